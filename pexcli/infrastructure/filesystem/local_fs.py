"""Concrete implementation of the FileSystem interface for the local disk.

Uses `pathlib` for paths and `aiofiles` for async I/O.
"""

import logging
import os
from pathlib import Path

import aiofiles

from pexcli.domain.interfaces.filesystem import FileSystem
from pexcli.domain.models.common import FilePath

logger = logging.getLogger(__name__)

DOWNLOAD_FILE_MODE = 0o600


class LocalFileSystem(FileSystem):
    """Implementation of FileSystem for the local disk."""

    async def write_bytes(self, file_path: FilePath, content: bytes) -> FilePath:
        """Writes bytes asynchronously with aiofiles and restricts permissions."""
        path = Path(file_path)
        logger.debug(f"Attempting to write {len(content)} bytes to file: {path}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, mode='wb') as f:
                await f.write(content)
            os.chmod(path, DOWNLOAD_FILE_MODE)
        except PermissionError as e:
            logger.error(f"Permission denied writing file: {path}")
            raise PermissionError(f"Permission denied: {file_path}") from e
        except OSError as e:
            logger.error(f"Error writing file {path}: {e}")
            raise OSError(f"Failed to write file {file_path}: {e}") from e
        resolved = path.resolve()
        logger.debug(f"Successfully wrote to {resolved}")
        return FilePath(str(resolved))
