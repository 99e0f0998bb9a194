"""
Protocol definitions for upload module.

Defines the interfaces the upload engine depends on, so the remote
service and the local file access can be swapped (HTTP, in-memory fakes).
"""
from typing import Protocol, Callable, Any
from pathlib import Path

from .models import (
    ChunkRange,
    InitiateUploadParams,
    InitiateUploadResult,
    ResumeUploadParams,
    ResumeUploadResponse,
    UploadProgress,
    UploadResult
)


class ChunkingStrategy(Protocol):
    """Protocol for chunk planning."""
    
    def next_range(self, offset: int, content_length: int) -> ChunkRange:
        """
        Range of the next chunk to send.
        
        Args:
            offset: First byte the service has not acknowledged
            content_length: Total size of the upload
            
        Returns:
            Inclusive byte range
        """
        ...
    
    def count_chunks(self, content_length: int) -> int:
        """Number of transfer calls needed for content_length bytes."""
        ...


class ChunkSourceProtocol(Protocol):
    """
    Protocol for reading byte ranges of a local file.
    
    Readers may also define async open_file(path) and close_file(); the
    session then calls them around the transfer to keep one handle open.
    """
    
    async def read_range(self, file_path: Path, start: int, end: int) -> bytes:
        """
        Read the inclusive range [start, end] of a file.
        
        Args:
            file_path: Path to the file
            start: First byte
            end: Last byte (inclusive); end == start - 1 reads nothing
            
        Returns:
            Exactly end - start + 1 bytes
            
        Raises:
            SourceNotFoundError: If the file does not exist
            ChunkReadError: If the range cannot be read in full
        """
        ...


class RemoteUploadServiceProtocol(Protocol):
    """
    Protocol for the remote document service.
    
    Failures are reported through the returned status, not raised.
    """
    
    async def initiate_upload(
        self,
        params: InitiateUploadParams
    ) -> InitiateUploadResult:
        """
        Open an upload session.
        
        Args:
            params: Mode, title, content type/length and parent location
            
        Returns:
            Status and, on success, the session upload URL
        """
        ...
    
    async def resume_upload(
        self,
        params: ResumeUploadParams
    ) -> ResumeUploadResponse:
        """
        Push one byte range to an upload session.
        
        Args:
            params: Session URL, range, chunk bytes, content type/length
            
        Returns:
            Partial progress (received range) or final document entry
        """
        ...


CompletionCallback = Callable[[UploadResult], Any]
ReadyCallback = Callable[[int], Any]
ProgressCallback = Callable[[int, UploadProgress], Any]


class LoggerProtocol(Protocol):
    """Protocol for logger objects."""
    
    def debug(self, msg: str) -> None: ...
    def info(self, msg: str) -> None: ...
    def warning(self, msg: str) -> None: ...
    def error(self, msg: str) -> None: ...
