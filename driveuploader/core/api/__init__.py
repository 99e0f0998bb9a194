"""
Service-facing configuration and status handling.

Configuration, status codes and retry policy shared by the
HTTP upload service.
"""
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig, RetryConfig
from .errors import UploadStatus, StatusMessages
from .retry import RetryStrategy, ExponentialBackoffStrategy

__all__ = [
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'UploadStatus',
    'StatusMessages',
    'RetryStrategy',
    'ExponentialBackoffStrategy',
]
