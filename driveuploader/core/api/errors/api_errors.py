"""Upload service status codes and exceptions."""
from enum import IntEnum
from typing import Dict


class UploadStatus(IntEnum):
    """
    Status reported by the remote upload service.
    
    Positive values are HTTP status codes; negative values are
    transport-level outcomes that never reached an HTTP response.
    """
    HTTP_SUCCESS = 200
    HTTP_CREATED = 201
    HTTP_NO_CONTENT = 204
    HTTP_RESUME_INCOMPLETE = 308
    HTTP_BAD_REQUEST = 400
    HTTP_UNAUTHORIZED = 401
    HTTP_FORBIDDEN = 403
    HTTP_NOT_FOUND = 404
    HTTP_CONFLICT = 409
    HTTP_LENGTH_REQUIRED = 411
    HTTP_PRECONDITION = 412
    HTTP_INTERNAL_SERVER_ERROR = 500
    HTTP_BAD_GATEWAY = 502
    HTTP_SERVICE_UNAVAILABLE = 503
    HTTP_GATEWAY_TIMEOUT = 504
    
    OTHER_ERROR = -1
    PARSE_ERROR = -100
    FILE_ERROR = -101
    CANCELLED = -102
    NO_CONNECTION = -103
    
    @classmethod
    def from_code(cls, code: int) -> 'UploadStatus':
        """Map a raw HTTP status code, falling back to OTHER_ERROR."""
        try:
            return cls(code)
        except ValueError:
            return cls.OTHER_ERROR
    
    @property
    def is_success(self) -> bool:
        """True for the statuses that finish an upload."""
        return self in (UploadStatus.HTTP_SUCCESS, UploadStatus.HTTP_CREATED)
    
    @property
    def is_transport_error(self) -> bool:
        return self.value < 0


class StatusMessages:
    """Human-readable descriptions for service statuses (for logs only)."""
    
    MESSAGES: Dict[int, str] = {
        200: 'HTTP_SUCCESS (200): Request completed',
        201: 'HTTP_CREATED (201): Document created',
        204: 'HTTP_NO_CONTENT (204)',
        308: 'HTTP_RESUME_INCOMPLETE (308): More bytes expected by the upload session',
        400: 'HTTP_BAD_REQUEST (400): Malformed request or content range',
        401: 'HTTP_UNAUTHORIZED (401): Missing or expired credentials',
        403: 'HTTP_FORBIDDEN (403): Access to the destination denied',
        404: 'HTTP_NOT_FOUND (404): Upload location or session not found',
        409: 'HTTP_CONFLICT (409)',
        411: 'HTTP_LENGTH_REQUIRED (411)',
        412: 'HTTP_PRECONDITION (412): Destination changed since it was read',
        500: 'HTTP_INTERNAL_SERVER_ERROR (500)',
        502: 'HTTP_BAD_GATEWAY (502)',
        503: 'HTTP_SERVICE_UNAVAILABLE (503)',
        504: 'HTTP_GATEWAY_TIMEOUT (504)',
        -1: 'OTHER_ERROR (-1): Unexpected response from the service',
        -100: 'PARSE_ERROR (-100): Response body could not be parsed',
        -101: 'FILE_ERROR (-101)',
        -102: 'CANCELLED (-102): Request cancelled',
        -103: 'NO_CONNECTION (-103): Could not reach the service',
    }
    
    @classmethod
    def get_message(cls, code: int) -> str:
        """Gets message for status code."""
        return cls.MESSAGES.get(int(code), f"Unknown status: {code}")
