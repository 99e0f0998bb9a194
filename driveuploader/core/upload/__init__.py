"""
Upload module for resumable chunked uploads.

Splits a local file into fixed-size chunks and pushes them, one at a
time, to a resumable upload session of a remote document service.
"""
from .engine import UploadEngine
from .session import UploadSession
from .facade import UploadFacade
from .models import (
    UploadMode,
    UploadState,
    UploadErrorKind,
    UploadRequest,
    UploadResult,
    UploadProgress,
    DocumentEntry
)
from .protocols import (
    ChunkingStrategy,
    ChunkSourceProtocol,
    RemoteUploadServiceProtocol
)
from .services import HttpUploadService, AsyncFileReader, FileValidator
from .strategies import FixedSizeChunkingStrategy, UPLOAD_CHUNK_SIZE

__all__ = [
    # Main classes
    'UploadEngine',
    'UploadSession',
    'UploadFacade',
    'HttpUploadService',
    
    # Models
    'UploadMode',
    'UploadState',
    'UploadErrorKind',
    'UploadRequest',
    'UploadResult',
    'UploadProgress',
    'DocumentEntry',
    
    # Protocols
    'ChunkingStrategy',
    'ChunkSourceProtocol',
    'RemoteUploadServiceProtocol',
    
    # Building blocks
    'AsyncFileReader',
    'FileValidator',
    'FixedSizeChunkingStrategy',
    'UPLOAD_CHUNK_SIZE',
]
