"""Upload services module."""
from .file_service import FileValidator, AsyncFileReader
from .http_service import HttpUploadService, format_content_range, parse_range_header

__all__ = [
    'FileValidator',
    'AsyncFileReader',
    'HttpUploadService',
    'format_content_range',
    'parse_range_header',
]
