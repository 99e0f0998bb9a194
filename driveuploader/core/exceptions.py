"""
Custom exceptions for upload operations.

Inside the engine these never escape: they are turned into an
UploadErrorKind and delivered through the completion callback.
The facade and client layers raise them to their callers.
"""
from typing import Optional, Any


class DriveUploadException(Exception):
    """Base exception for all upload-related errors."""
    
    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            error_code: Numeric status code (if available)
        """
        self.error_code = error_code
        super().__init__(message)


class SourceNotFoundError(DriveUploadException, FileNotFoundError):
    """Exception raised when the local source file does not exist."""
    
    def __init__(self, path: Any, message: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message or f"File not found: {path}")


class ChunkReadError(DriveUploadException):
    """Exception raised when a byte range cannot be read from the source."""
    
    def __init__(
        self,
        message: str,
        start: Optional[int] = None,
        end: Optional[int] = None
    ) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            start: First byte of the requested range
            end: Last byte of the requested range (inclusive)
        """
        self.start = start
        self.end = end
        super().__init__(message)


class UploadFailedError(DriveUploadException):
    """Exception raised by the facade when an upload ends without success."""
    
    def __init__(self, result: Any) -> None:
        """
        Initialize the exception.
        
        Args:
            result: The terminal UploadResult of the failed upload
        """
        self.result = result
        self.kind = result.error
        super().__init__(
            f"Upload of {result.local_path} failed: {result.error.value}"
        )


class UploadCancelledError(UploadFailedError):
    """Exception raised by the facade when an upload was cancelled."""
    pass
