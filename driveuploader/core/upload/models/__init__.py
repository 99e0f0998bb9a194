"""Upload models."""
from .upload_models import (
    UploadMode,
    UploadState,
    UploadErrorKind,
    DocumentEntry,
    UploadRequest,
    ChunkRange,
    InitiateUploadParams,
    InitiateUploadResult,
    ResumeUploadParams,
    ResumeUploadResponse,
    UploadProgress,
    UploadResult
)

__all__ = [
    'UploadMode',
    'UploadState',
    'UploadErrorKind',
    'DocumentEntry',
    'UploadRequest',
    'ChunkRange',
    'InitiateUploadParams',
    'InitiateUploadResult',
    'ResumeUploadParams',
    'ResumeUploadResponse',
    'UploadProgress',
    'UploadResult'
]
