"""Local file system adapter used for downloads."""
