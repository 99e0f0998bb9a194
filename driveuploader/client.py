"""
DriveClient - High-level async client for resumable uploads.

Example:
    >>> async with DriveClient(APIConfig(auth_token="...")) as drive:
    ...     result = await drive.upload("report.pdf", parent_url)
    ...     print(result.entry.id)
"""
from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from .core.logging import get_logger
from .core.api import APIConfig, RetryConfig
from .core.upload import (
    UploadEngine,
    UploadFacade,
    UploadResult,
    HttpUploadService
)
from .core.upload.protocols import ProgressCallback

logger = get_logger('driveuploader.client')


class DriveClient:
    """
    Wires configuration, HTTP service, engine and facade together.
    
    The engine is exposed for callback-style use; upload() covers the
    common awaitable case.
    """
    
    def __init__(
        self,
        config: Optional[APIConfig] = None,
        auth_token: Optional[str] = None,
        retry: Optional[RetryConfig] = None
    ):
        """
        Initialize client.
        
        Args:
            config: API configuration (uses defaults if not provided)
            auth_token: Bearer token, overrides config.auth_token
            retry: Retry configuration, overrides config.retry
        """
        overrides = {}
        if auth_token:
            overrides['auth_token'] = auth_token
        if retry is not None:
            overrides['retry'] = retry
        # The caller's config is never modified
        self._config = replace(config or APIConfig.default(), **overrides)
        
        self._service = HttpUploadService(self._config)
        self._engine = UploadEngine(self._service)
        self._facade = UploadFacade(self._engine)
    
    @property
    def engine(self) -> UploadEngine:
        return self._engine
    
    @property
    def service(self) -> HttpUploadService:
        return self._service
    
    async def __aenter__(self) -> 'DriveClient':
        await self._service.__aenter__()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    async def close(self):
        """Cancel live uploads and release the HTTP session."""
        cancelled = self._engine.cancel_all()
        if cancelled:
            logger.info(f"Cancelled {cancelled} upload(s) on close")
        await self._engine.wait_idle()
        await self._service.close()
    
    async def upload(
        self,
        file_path: Union[str, Path],
        location: str,
        title: Optional[str] = None,
        existing: bool = False,
        remote_path: Optional[str] = None,
        content_type: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> UploadResult:
        """
        Upload a file.
        
        Args:
            file_path: Local file path
            location: Parent location (new file) or document location (existing)
            title: Title of the new document (defaults to the file name)
            existing: Overwrite the document at location instead of creating one
            remote_path: Logical remote path
            content_type: MIME type (guessed if omitted)
            progress_callback: Called per acknowledged chunk
            
        Returns:
            Successful UploadResult
        """
        if existing:
            return await self._facade.upload_existing_file(
                file_path,
                location,
                remote_path=remote_path,
                content_type=content_type,
                progress_callback=progress_callback
            )
        return await self._facade.upload_new_file(
            file_path,
            location,
            title=title,
            remote_path=remote_path,
            content_type=content_type,
            progress_callback=progress_callback
        )
