"""
driveuploader - Async resumable chunked uploads to document storage.

Usage:
    >>> from driveuploader import DriveClient
    >>> 
    >>> async with DriveClient(auth_token="...") as drive:
    ...     result = await drive.upload("report.pdf", parent_url)
"""
import logging
from .client import DriveClient

from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    UploadStatus
)

from .core.upload import (
    UploadEngine,
    UploadSession,
    UploadFacade,
    HttpUploadService,
    UploadMode,
    UploadState,
    UploadErrorKind,
    UploadRequest,
    UploadResult,
    UploadProgress,
    DocumentEntry,
    UPLOAD_CHUNK_SIZE
)

from .core.exceptions import (
    DriveUploadException,
    SourceNotFoundError,
    ChunkReadError,
    UploadFailedError,
    UploadCancelledError
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for driveuploader modules.
    
    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'driveuploader',
        'driveuploader.client',
        'driveuploader.upload.engine',
        'driveuploader.upload.session',
        'driveuploader.upload.file',
        'driveuploader.upload.http',
    ]
    
    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'DriveClient',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'UploadStatus',
    'UploadEngine',
    'UploadSession',
    'UploadFacade',
    'HttpUploadService',
    'UploadMode',
    'UploadState',
    'UploadErrorKind',
    'UploadRequest',
    'UploadResult',
    'UploadProgress',
    'DocumentEntry',
    'UPLOAD_CHUNK_SIZE',
    'DriveUploadException',
    'SourceNotFoundError',
    'ChunkReadError',
    'UploadFailedError',
    'UploadCancelledError',
    'setup_logging',
]
