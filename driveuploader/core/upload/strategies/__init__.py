"""Upload strategies module."""
from .chunking import BaseChunkingStrategy, FixedSizeChunkingStrategy, UPLOAD_CHUNK_SIZE

__all__ = [
    'BaseChunkingStrategy',
    'FixedSizeChunkingStrategy',
    'UPLOAD_CHUNK_SIZE',
]
