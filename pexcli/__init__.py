"""pexcli: command-line client for the Pexels photo and video API."""

__version__ = "0.1.0"
