"""
Upload facade.

Provides an awaitable interface over the callback-based engine.
Follows Facade Pattern - hides sessions and callbacks from the caller.
"""
import mimetypes
from pathlib import Path
from typing import Optional, Union

from .engine import UploadEngine
from .models import UploadResult, UploadErrorKind
from .protocols import ProgressCallback
from .services import FileValidator
from ..exceptions import SourceNotFoundError, UploadFailedError, UploadCancelledError

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


def guess_content_type(path: Union[str, Path]) -> str:
    """Guess the MIME type from the file name."""
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type or DEFAULT_CONTENT_TYPE


class UploadFacade:
    """
    Simplified interface for uploads.
    
    Derives content length and type from the local file, runs the upload
    on the engine and returns the result, raising on failure.
    
    Example:
        >>> uploader = UploadFacade(UploadEngine(service))
        >>> result = await uploader.upload_new_file("report.pdf", parent_url)
        >>> print(result.entry.id)
    """
    
    def __init__(self, engine: UploadEngine):
        """
        Initialize upload facade.
        
        Args:
            engine: Engine running the uploads
        """
        self._engine = engine
        self._validator = FileValidator()
    
    @property
    def engine(self) -> UploadEngine:
        return self._engine
    
    async def upload_new_file(
        self,
        file_path: Union[str, Path],
        upload_location: str,
        title: Optional[str] = None,
        remote_path: Optional[str] = None,
        content_type: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> UploadResult:
        """
        Upload a file as a new document.
        
        Args:
            file_path: Path to file to upload
            upload_location: Parent location URL
            title: Document title (defaults to the file name)
            remote_path: Logical remote path (defaults to the title)
            content_type: MIME type (guessed from the name if omitted)
            progress_callback: Called per acknowledged chunk
            
        Returns:
            Successful UploadResult with the document entry
            
        Raises:
            SourceNotFoundError: If file doesn't exist
            UploadCancelledError: If the upload was cancelled
            UploadFailedError: If the upload failed
        """
        path, file_size = self._validator.validate(file_path)
        title = title or path.name
        
        session = self._engine.upload_new_file(
            upload_location,
            remote_path or title,
            path,
            title,
            content_type or guess_content_type(path),
            file_size,
            file_size,
            completion_callback=None,
            progress_callback=progress_callback
        )
        return await self._wait(session, path)
    
    async def upload_existing_file(
        self,
        file_path: Union[str, Path],
        upload_location: str,
        remote_path: Optional[str] = None,
        content_type: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> UploadResult:
        """
        Overwrite an existing document with a local file.
        
        Args:
            file_path: Path to file to upload
            upload_location: Location URL of the existing document
            remote_path: Logical remote path (defaults to the file name)
            content_type: MIME type (guessed from the name if omitted)
            progress_callback: Called per acknowledged chunk
            
        Returns:
            Successful UploadResult with the document entry
        """
        path, file_size = self._validator.validate(file_path)
        
        session = self._engine.upload_existing_file(
            upload_location,
            remote_path or path.name,
            path,
            content_type or guess_content_type(path),
            file_size,
            completion_callback=None,
            progress_callback=progress_callback
        )
        return await self._wait(session, path)
    
    async def _wait(self, session, path: Path) -> UploadResult:
        if session is None:
            # Removed between validation and start
            raise SourceNotFoundError(path)
        
        result = await session.wait()
        if result.error is UploadErrorKind.CANCELLED:
            raise UploadCancelledError(result)
        if result.error is UploadErrorKind.SOURCE_NOT_FOUND:
            raise SourceNotFoundError(path)
        if not result.ok:
            raise UploadFailedError(result)
        return result
