"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, Union
from pathlib import Path

from ...api.errors import UploadStatus


class UploadMode(Enum):
    """Whether an upload creates a document or overwrites a known one."""
    NEW_FILE = 'new_file'
    EXISTING_FILE = 'existing_file'


class UploadState(Enum):
    """States of an upload session."""
    INITIATING = 'initiating'
    TRANSFERRING = 'transferring'
    COMPLETED = 'completed'
    FAILED = 'failed'
    
    @property
    def is_terminal(self) -> bool:
        return self in (UploadState.COMPLETED, UploadState.FAILED)


class UploadErrorKind(Enum):
    """Outcome reported through the completion callback."""
    OK = 'ok'
    SOURCE_NOT_FOUND = 'source_not_found'
    SESSION_INITIATION_FAILED = 'session_initiation_failed'
    TRANSFER_FAILED = 'transfer_failed'
    CANCELLED = 'cancelled'


@dataclass(frozen=True)
class DocumentEntry:
    """
    Metadata of the remote document created or updated by an upload.
    
    Attributes:
        id: Remote document id
        title: Display name
        content_type: MIME type stored by the service
        file_size: Size stored by the service, if reported
        raw: Complete metadata as returned by the service
    
    Example:
        >>> entry = DocumentEntry.from_dict({'id': 'file:abc', 'title': 'a.txt'})
        >>> entry.id
        'file:abc'
    """
    id: str
    title: str = ''
    content_type: str = ''
    file_size: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocumentEntry':
        """Create from service metadata, accepting the common key spellings."""
        size = data.get('fileSize', data.get('size'))
        return cls(
            id=str(data.get('id', data.get('resourceId', ''))),
            title=data.get('title', data.get('name', '')),
            content_type=data.get('mimeType', data.get('contentType', '')),
            file_size=int(size) if size is not None else None,
            raw=dict(data)
        )


@dataclass(frozen=True)
class UploadRequest:
    """
    Caller-supplied description of one upload.
    
    Attributes:
        remote_parent_location: URL where the upload session is initiated
        remote_path: Logical path of the file on the remote service
        local_path: Path to the source file
        content_type: MIME type
        content_length: Bytes to transfer, fixed for the session's life
        mode: NEW_FILE or EXISTING_FILE
        title: Display name, only for NEW_FILE
        file_size_hint: Size of the file on disk when the request was made
    """
    remote_parent_location: str
    remote_path: str
    local_path: Path
    content_type: str
    content_length: int
    mode: UploadMode = UploadMode.EXISTING_FILE
    title: Optional[str] = None
    file_size_hint: Optional[int] = None
    
    def __post_init__(self):
        """Validate and normalize request."""
        if isinstance(self.local_path, str):
            object.__setattr__(self, 'local_path', Path(self.local_path))
        
        if self.content_length < 0:
            raise ValueError(f"Content length must be >= 0, got {self.content_length}")
        
        if self.mode is UploadMode.NEW_FILE and not self.title:
            raise ValueError("A new file upload requires a title")
        
        if self.mode is UploadMode.EXISTING_FILE and self.title:
            raise ValueError("An existing file upload must not carry a title")


@dataclass(frozen=True)
class ChunkRange:
    """
    Inclusive byte range of one chunk.
    
    The empty range used for zero-length files is (0, -1).
    """
    start: int
    end: int
    
    @property
    def size(self) -> int:
        """Returns chunk size."""
        return self.end - self.start + 1
    
    @property
    def is_empty(self) -> bool:
        return self.size == 0


@dataclass(frozen=True)
class InitiateUploadParams:
    """Arguments of the service's session initiation call."""
    mode: UploadMode
    content_type: str
    content_length: int
    upload_location: str
    remote_path: str = ''
    title: str = ''


@dataclass(frozen=True)
class InitiateUploadResult:
    """Outcome of session initiation: a status and, on success, the session URL."""
    status: UploadStatus
    upload_url: str = ''
    
    @property
    def ok(self) -> bool:
        return self.status == UploadStatus.HTTP_SUCCESS and bool(self.upload_url)


@dataclass(frozen=True)
class ResumeUploadParams:
    """
    Arguments of one chunk transfer.
    
    Attributes:
        mode: Mode of the originating request
        upload_location: Session URL returned by initiation
        start_range: First byte of the chunk
        end_range: Last byte of the chunk (inclusive, -1 for empty file)
        content_length: Total bytes of the upload
        content_type: MIME type of the upload
        data: Chunk bytes
        remote_path: Logical remote path (for logging)
    """
    mode: UploadMode
    upload_location: str
    start_range: int
    end_range: int
    content_length: int
    content_type: str
    data: bytes = b''
    remote_path: str = ''
    
    @property
    def chunk_size(self) -> int:
        return self.end_range - self.start_range + 1


@dataclass(frozen=True)
class ResumeUploadResponse:
    """
    Outcome of one chunk transfer.
    
    On HTTP_RESUME_INCOMPLETE the received range is reported; on final
    success the document entry is attached instead.
    """
    status: UploadStatus
    start_position_received: int = -1
    end_position_received: int = -1
    entry: Optional[DocumentEntry] = None
    
    @property
    def next_offset(self) -> int:
        """Offset of the first byte the service has not received."""
        return self.end_position_received + 1


@dataclass
class UploadProgress:
    """
    Upload progress information.
    
    Attributes:
        total_chunks: Total number of chunks
        uploaded_chunks: Number of acknowledged chunks
        total_bytes: Declared content length
        uploaded_bytes: Bytes acknowledged by the service
    """
    total_chunks: int
    uploaded_chunks: int = 0
    total_bytes: int = 0
    uploaded_bytes: int = 0
    
    @property
    def percentage(self) -> float:
        """Returns upload progress as percentage."""
        if self.total_bytes == 0:
            return 100.0 if self.is_complete else 0.0
        return (self.uploaded_bytes / self.total_bytes) * 100
    
    @property
    def is_complete(self) -> bool:
        """Returns True if upload is complete."""
        return self.uploaded_chunks >= self.total_chunks


@dataclass(frozen=True)
class UploadResult:
    """
    Terminal result of an upload, passed to the completion callback.
    
    Attributes:
        error: Outcome kind (OK on success)
        remote_path: Logical remote path of the request
        local_path: Source file of the request
        entry: Document metadata, present only on success
        session_id: Id of the session, None if no session was created
    """
    error: UploadErrorKind
    remote_path: str
    local_path: Union[str, Path]
    entry: Optional[DocumentEntry] = None
    session_id: Optional[int] = None
    
    @property
    def ok(self) -> bool:
        return self.error is UploadErrorKind.OK
