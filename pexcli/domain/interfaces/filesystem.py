"""Interface for interacting with the file system.

Defines the contract for writing downloaded media, allowing the core
application to be independent of the specific file system implementation.
"""

import abc

from pexcli.domain.models.common import FilePath


class FileSystem(abc.ABC):
    """Abstract Base Class for file system operations."""

    @abc.abstractmethod
    async def write_bytes(self, file_path: FilePath, content: bytes) -> FilePath:
        """Writes bytes to a file asynchronously, overwriting if it exists.

        Parent directories are created as needed and the file is readable
        by its owner only.

        Args:
            file_path: The path to the file to write.
            content: The bytes to write.

        Returns:
            The absolute path of the written file.

        Raises:
            PermissionError: If write permissions are denied.
            OSError: For other file system errors.
        """
        pass
