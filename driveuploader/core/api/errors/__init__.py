"""Upload service statuses and errors."""
from .api_errors import UploadStatus, StatusMessages

__all__ = [
    'UploadStatus',
    'StatusMessages',
]
