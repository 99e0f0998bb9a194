"""
Chunking strategies for file uploads.

Implements Strategy Pattern for chunk planning.
Ranges are inclusive on both ends, as the resumable protocol expects.
"""
from abc import ABC, abstractmethod
from typing import List

from ..models import ChunkRange

# Fixed chunk size of the resumable protocol
UPLOAD_CHUNK_SIZE = 512 * 1024


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""
    
    @abstractmethod
    def next_range(self, offset: int, content_length: int) -> ChunkRange:
        """Range of the chunk starting at offset."""
        pass
    
    def calculate_chunks(self, content_length: int) -> List[ChunkRange]:
        """
        Calculate the full chunk plan for a file.
        
        A zero-length file yields exactly one empty range, which is the
        terminal call that completes the session.
        
        Args:
            content_length: Total file size in bytes
            
        Returns:
            List of inclusive ChunkRange values
        """
        if content_length < 0:
            raise ValueError("Content length must be >= 0")
        
        if content_length == 0:
            return [self.next_range(0, 0)]
        
        chunks = []
        position = 0
        
        while position < content_length:
            chunk = self.next_range(position, content_length)
            chunks.append(chunk)
            position = chunk.end + 1
        
        return chunks
    
    def count_chunks(self, content_length: int) -> int:
        """Number of transfer calls for a file of content_length bytes."""
        return len(self.calculate_chunks(content_length))


class FixedSizeChunkingStrategy(BaseChunkingStrategy):
    """
    Fixed-size chunking strategy.
    
    Every chunk holds chunk_size bytes except the last one, which may be
    shorter. A file whose length is an exact multiple of chunk_size gets no
    trailing empty chunk.
    """
    
    DEFAULT_CHUNK_SIZE = UPLOAD_CHUNK_SIZE
    
    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize with chunk size.
        
        Args:
            chunk_size: Size of each chunk in bytes
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size
    
    def next_range(self, offset: int, content_length: int) -> ChunkRange:
        """
        Range [offset, min(offset + chunk_size, content_length) - 1].
        
        Args:
            offset: First unacknowledged byte
            content_length: Total file size in bytes
            
        Returns:
            Inclusive chunk range, (0, -1) for an empty file
        """
        if offset < 0 or offset > content_length:
            raise ValueError(
                f"Offset {offset} outside of content length {content_length}"
            )
        if offset == content_length and content_length > 0:
            raise ValueError(f"No bytes left after offset {offset}")
        
        end = min(offset + self.chunk_size, content_length) - 1
        return ChunkRange(start=offset, end=end)
