"""
File validation and reading services.

Single Responsibility: Each class handles one specific task.
"""
from pathlib import Path
from typing import Tuple, Optional, Union
import aiofiles

from ...logging import get_logger
from ...exceptions import SourceNotFoundError, ChunkReadError


class FileValidator:
    """
    Validates files before upload.
    
    Responsibilities:
    - Check file existence
    - Verify file is not a directory
    - Get file size
    """
    
    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Validate a file for upload.
        
        Args:
            file_path: Path to the file
            
        Returns:
            Tuple of (validated Path, file size in bytes)
            
        Raises:
            SourceNotFoundError: If the path is missing or not a regular file
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path
        
        if not path.exists():
            raise SourceNotFoundError(path)
        
        if not path.is_file():
            raise SourceNotFoundError(path, f"Path is not a file: {path}")
        
        file_size = path.stat().st_size
        
        return path, file_size


class AsyncFileReader:
    """
    Asynchronous reader for inclusive byte ranges of a local file.
    
    Uses aiofiles so reads never block the event loop. One reader serves
    one session: the file handle stays open between chunks.
    """
    
    def __init__(self):
        """Initialize file reader."""
        self._logger = get_logger('driveuploader.upload.file')
        self._file_handle = None
        self._current_file_path: Optional[Path] = None
    
    @property
    def is_open(self) -> bool:
        return self._file_handle is not None
    
    async def open_file(self, file_path: Path) -> None:
        """
        Open file for reading. Call this before reading chunks.
        
        Args:
            file_path: Path to the file to open
            
        Raises:
            SourceNotFoundError: If the file does not exist
        """
        if self._file_handle is not None and self._current_file_path == file_path:
            return
        
        if self._file_handle is not None:
            await self.close_file()
        
        try:
            self._file_handle = await aiofiles.open(file_path, 'rb')
        except FileNotFoundError as e:
            raise SourceNotFoundError(file_path) from e
        self._current_file_path = file_path
    
    async def close_file(self) -> None:
        """Close the currently open file."""
        if self._file_handle is not None:
            await self._file_handle.close()
            self._file_handle = None
            self._current_file_path = None
    
    async def read_range(self, file_path: Path, start: int, end: int) -> bytes:
        """
        Read the inclusive byte range [start, end] of a file.
        
        Reuses the open handle when it belongs to file_path, otherwise
        opens and closes the file for this read only.
        
        Args:
            file_path: Path to the file
            start: First byte
            end: Last byte (inclusive); end == start - 1 reads nothing
            
        Returns:
            Exactly end - start + 1 bytes
            
        Raises:
            ValueError: If the range is malformed
            SourceNotFoundError: If the file does not exist
            ChunkReadError: If fewer bytes than requested could be read
        """
        if start < 0 or end < start - 1:
            raise ValueError(f"Invalid byte range {start}-{end}")
        
        size = end - start + 1
        
        try:
            if self._file_handle is not None and self._current_file_path == file_path:
                await self._file_handle.seek(start)
                data = await self._file_handle.read(size)
            else:
                async with aiofiles.open(file_path, 'rb') as f:
                    await f.seek(start)
                    data = await f.read(size)
        except FileNotFoundError as e:
            raise SourceNotFoundError(file_path) from e
        except OSError as e:
            self._logger.error(f"Failed to read range {start}-{end} of {file_path}: {e}")
            raise ChunkReadError(f"Failed to read {file_path}: {e}", start, end) from e
        
        if len(data) != size:
            raise ChunkReadError(
                f"Short read of {file_path}: expected {size} bytes at {start}, got {len(data)}",
                start,
                end
            )
        
        self._logger.debug(f"Read range {start}-{end} ({size} bytes)")
        return data
