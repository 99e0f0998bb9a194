"""Tests for upload models."""
import pytest
from pathlib import Path
from driveuploader.core.api.errors import UploadStatus
from driveuploader.core.upload.models import (
    UploadMode,
    UploadState,
    UploadErrorKind,
    DocumentEntry,
    UploadRequest,
    ChunkRange,
    InitiateUploadResult,
    ResumeUploadParams,
    ResumeUploadResponse,
    UploadProgress,
    UploadResult
)


class TestUploadRequest:
    """Test suite for UploadRequest."""
    
    def test_existing_file_request(self):
        """Test existing file request without title."""
        request = UploadRequest(
            remote_parent_location="http://test/doc",
            remote_path="drive/a.txt",
            local_path="/tmp/a.txt",
            content_type="text/plain",
            content_length=10
        )
        
        assert request.mode is UploadMode.EXISTING_FILE
        assert request.local_path == Path("/tmp/a.txt")
        assert request.title is None
    
    def test_new_file_request(self):
        """Test new file request keeps title and size hint."""
        request = UploadRequest(
            remote_parent_location="http://test/parent",
            remote_path="drive/a.txt",
            local_path=Path("/tmp/a.txt"),
            content_type="text/plain",
            content_length=10,
            mode=UploadMode.NEW_FILE,
            title="a.txt",
            file_size_hint=10
        )
        
        assert request.title == "a.txt"
        assert request.file_size_hint == 10
    
    def test_new_file_requires_title(self):
        """Test new file request without title is rejected."""
        with pytest.raises(ValueError, match="title"):
            UploadRequest(
                remote_parent_location="http://test/parent",
                remote_path="drive/a.txt",
                local_path="/tmp/a.txt",
                content_type="text/plain",
                content_length=10,
                mode=UploadMode.NEW_FILE
            )
    
    def test_existing_file_rejects_title(self):
        """Test existing file request with title is rejected."""
        with pytest.raises(ValueError, match="title"):
            UploadRequest(
                remote_parent_location="http://test/doc",
                remote_path="drive/a.txt",
                local_path="/tmp/a.txt",
                content_type="text/plain",
                content_length=10,
                title="a.txt"
            )
    
    def test_negative_length(self):
        """Test negative content length is rejected."""
        with pytest.raises(ValueError):
            UploadRequest(
                remote_parent_location="http://test/doc",
                remote_path="drive/a.txt",
                local_path="/tmp/a.txt",
                content_type="text/plain",
                content_length=-1
            )
    
    def test_frozen(self):
        """Test requests are immutable."""
        request = UploadRequest("http://test/doc", "a", "/tmp/a", "text/plain", 0)
        
        with pytest.raises(AttributeError):
            request.content_length = 5


class TestDocumentEntry:
    """Test suite for DocumentEntry."""
    
    def test_from_dict(self):
        """Test parsing service metadata."""
        data = {'id': 'file:abc', 'title': 'a.txt', 'mimeType': 'text/plain', 'fileSize': '12'}
        entry = DocumentEntry.from_dict(data)
        
        assert entry.id == 'file:abc'
        assert entry.title == 'a.txt'
        assert entry.content_type == 'text/plain'
        assert entry.file_size == 12
        assert entry.raw == data
    
    def test_from_dict_alternate_keys(self):
        """Test resourceId/name/size spellings."""
        entry = DocumentEntry.from_dict({'resourceId': 'file:x', 'name': 'b', 'size': 3})
        
        assert entry.id == 'file:x'
        assert entry.title == 'b'
        assert entry.file_size == 3
    
    def test_from_dict_without_size(self):
        """Test missing size stays None."""
        entry = DocumentEntry.from_dict({'id': 'file:abc'})
        
        assert entry.file_size is None
        assert entry.title == ''


class TestUploadState:
    """Test suite for UploadState."""
    
    @pytest.mark.parametrize("state,terminal", [
        (UploadState.INITIATING, False),
        (UploadState.TRANSFERRING, False),
        (UploadState.COMPLETED, True),
        (UploadState.FAILED, True),
    ])
    def test_is_terminal(self, state, terminal):
        assert state.is_terminal is terminal


class TestServiceResults:
    """Test suite for initiate/resume results."""
    
    def test_initiate_ok(self):
        """Test success requires a session URL."""
        assert InitiateUploadResult(UploadStatus.HTTP_SUCCESS, "http://s").ok
        assert not InitiateUploadResult(UploadStatus.HTTP_SUCCESS).ok
        assert not InitiateUploadResult(UploadStatus.HTTP_NOT_FOUND, "http://s").ok
    
    def test_next_offset(self):
        """Test next offset follows the received range."""
        response = ResumeUploadResponse(UploadStatus.HTTP_RESUME_INCOMPLETE, 0, 524287)
        
        assert response.next_offset == 524288
    
    def test_next_offset_nothing_received(self):
        """Test next offset is 0 when no range was reported."""
        response = ResumeUploadResponse(UploadStatus.HTTP_RESUME_INCOMPLETE)
        
        assert response.next_offset == 0
    
    def test_chunk_size(self):
        """Test inclusive chunk size."""
        params = ResumeUploadParams(
            mode=UploadMode.EXISTING_FILE,
            upload_location="http://s",
            start_range=0,
            end_range=-1,
            content_length=0,
            content_type="text/plain"
        )
        
        assert params.chunk_size == 0
    
    def test_chunk_range_size(self):
        assert ChunkRange(10, 19).size == 10
        assert not ChunkRange(10, 19).is_empty


class TestUploadProgress:
    """Test suite for UploadProgress."""
    
    def test_percentage(self):
        """Test percentage is byte based."""
        progress = UploadProgress(total_chunks=3, uploaded_chunks=1, total_bytes=200, uploaded_bytes=50)
        
        assert progress.percentage == 25.0
        assert not progress.is_complete
    
    def test_complete(self):
        """Test completion."""
        progress = UploadProgress(total_chunks=2, uploaded_chunks=2, total_bytes=10, uploaded_bytes=10)
        
        assert progress.percentage == 100.0
        assert progress.is_complete
    
    def test_empty_file(self):
        """Test empty upload reports 0 until its single chunk completes."""
        progress = UploadProgress(total_chunks=1)
        assert progress.percentage == 0.0
        
        progress.uploaded_chunks = 1
        assert progress.percentage == 100.0


class TestUploadResult:
    """Test suite for UploadResult."""
    
    def test_ok(self):
        result = UploadResult(
            error=UploadErrorKind.OK,
            remote_path="drive/a.txt",
            local_path=Path("/tmp/a.txt"),
            entry=DocumentEntry(id="file:a")
        )
        
        assert result.ok
    
    def test_failure(self):
        result = UploadResult(UploadErrorKind.TRANSFER_FAILED, "drive/a.txt", "/tmp/a.txt")
        
        assert not result.ok
        assert result.entry is None
        assert result.session_id is None
