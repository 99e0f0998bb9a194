"""Tests for HttpUploadService against a local resumable upload server."""
import re

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from driveuploader.core.api import APIConfig, RetryConfig, UploadStatus
from driveuploader.core.upload import (
    HttpUploadService,
    UploadEngine,
    FixedSizeChunkingStrategy
)
from driveuploader.core.upload.models import (
    UploadMode,
    UploadErrorKind,
    InitiateUploadParams,
    ResumeUploadParams
)
from driveuploader.core.upload.services import format_content_range, parse_range_header

_CHUNK_RANGE = re.compile(r'bytes (\d+)-(\d+)/(\d+)')
_QUERY_RANGE = re.compile(r'bytes \*/(\d+)')


class ResumableServer:
    """
    Minimal resumable upload endpoint.
    
    POST/PUT on /create opens a session at /session; PUTs on /session
    append bytes when they start at the current offset.
    """
    
    def __init__(self):
        self.server = None
        self.received = bytearray()
        self.initiate_requests = []
        self.session_requests = []
        self.initiate_failures = 0
        self.chunk_failures = 0
        # Bytes of a failing chunk kept before answering 503
        self.partial_bytes = 0
        self.omit_location = False
    
    def url(self, path: str) -> str:
        return str(self.server.make_url(path))
    
    async def create(self, request: web.Request) -> web.Response:
        body = await request.read()
        self.initiate_requests.append((request.method, request.headers.copy(), body))
        if self.initiate_failures:
            self.initiate_failures -= 1
            return web.Response(status=503)
        if self.omit_location:
            return web.Response(status=200)
        return web.Response(status=200, headers={'Location': self.url('/session')})
    
    async def session(self, request: web.Request) -> web.Response:
        body = await request.read()
        content_range = request.headers['Content-Range']
        self.session_requests.append((content_range, body))
        
        match = _CHUNK_RANGE.match(content_range)
        if match:
            start, total = int(match.group(1)), int(match.group(3))
            if self.chunk_failures:
                self.chunk_failures -= 1
                if start == len(self.received):
                    self.received.extend(body[:self.partial_bytes])
                return web.Response(status=503)
            if start == len(self.received):
                self.received.extend(body)
        else:
            total = int(_QUERY_RANGE.match(content_range).group(1))
        
        if len(self.received) == total:
            return web.json_response(
                {'id': 'file:abc', 'title': 'dummy.txt', 'fileSize': str(total)},
                status=201
            )
        if not self.received:
            return web.Response(status=308)
        return web.Response(status=308, headers={'Range': f"bytes=0-{len(self.received) - 1}"})


@pytest_asyncio.fixture
async def upload_server():
    """Start a local resumable upload server."""
    fake = ResumableServer()
    app = web.Application()
    app.router.add_route('POST', '/create', fake.create)
    app.router.add_route('PUT', '/create', fake.create)
    app.router.add_route('PUT', '/session', fake.session)
    
    server = test_utils.TestServer(app)
    await server.start_server()
    fake.server = server
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def service():
    """HTTP service retrying without delay."""
    config = APIConfig(auth_token="secret", retry=RetryConfig(max_retries=2, base_delay=0))
    async with HttpUploadService(config) as svc:
        yield svc


def resume_params(server, data, start, end, total):
    return ResumeUploadParams(
        mode=UploadMode.NEW_FILE,
        upload_location=server.url('/session'),
        start_range=start,
        end_range=end,
        content_length=total,
        content_type='text/plain',
        data=data
    )


class TestHeaders:
    """Test suite for header helpers."""
    
    def test_content_range(self):
        assert format_content_range(0, 99, 250) == "bytes 0-99/250"
    
    def test_content_range_empty(self):
        assert format_content_range(0, -1, 0) == "bytes */0"
    
    def test_parse_range(self):
        assert parse_range_header("bytes=0-524287") == (0, 524287)
    
    @pytest.mark.parametrize("value", [None, "", "items=1-2", "bytes=abc"])
    def test_parse_range_invalid(self, value):
        assert parse_range_header(value) is None


class TestInitiateUpload:
    """Test suite for session initiation."""
    
    @pytest.mark.asyncio
    async def test_new_file(self, service, upload_server):
        """Test new file is POSTed with its title."""
        result = await service.initiate_upload(InitiateUploadParams(
            mode=UploadMode.NEW_FILE,
            content_type='text/plain',
            content_length=12,
            upload_location=upload_server.url('/create'),
            title='Hello world'
        ))
        
        assert result.ok
        assert result.upload_url == upload_server.url('/session')
        
        method, headers, body = upload_server.initiate_requests[0]
        assert method == 'POST'
        assert headers['X-Upload-Content-Type'] == 'text/plain'
        assert headers['X-Upload-Content-Length'] == '12'
        assert headers['Authorization'] == 'Bearer secret'
        assert 'If-Match' not in headers
        assert b'"title"' in body and b'Hello world' in body
    
    @pytest.mark.asyncio
    async def test_existing_file(self, service, upload_server):
        """Test existing file is PUT with If-Match: *."""
        result = await service.initiate_upload(InitiateUploadParams(
            mode=UploadMode.EXISTING_FILE,
            content_type='text/plain',
            content_length=0,
            upload_location=upload_server.url('/create')
        ))
        
        assert result.ok
        method, headers, body = upload_server.initiate_requests[0]
        assert method == 'PUT'
        assert headers['If-Match'] == '*'
        assert body == b''
    
    @pytest.mark.asyncio
    async def test_retries_transient_status(self, service, upload_server):
        """Test a 503 is retried."""
        upload_server.initiate_failures = 1
        
        result = await service.initiate_upload(InitiateUploadParams(
            UploadMode.EXISTING_FILE, 'text/plain', 1, upload_server.url('/create')
        ))
        
        assert result.ok
        assert len(upload_server.initiate_requests) == 2
    
    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, service, upload_server):
        """Test retries stop at max_retries."""
        upload_server.initiate_failures = 10
        
        result = await service.initiate_upload(InitiateUploadParams(
            UploadMode.EXISTING_FILE, 'text/plain', 1, upload_server.url('/create')
        ))
        
        assert result.status == UploadStatus.HTTP_SERVICE_UNAVAILABLE
        assert not result.ok
        assert len(upload_server.initiate_requests) == 3
    
    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self, service, upload_server):
        """Test permanent failures are returned at once."""
        result = await service.initiate_upload(InitiateUploadParams(
            UploadMode.EXISTING_FILE, 'text/plain', 1, upload_server.url('/missing')
        ))
        
        assert result.status == UploadStatus.HTTP_NOT_FOUND
    
    @pytest.mark.asyncio
    async def test_missing_location(self, service, upload_server):
        """Test success without Location is a parse error."""
        upload_server.omit_location = True
        
        result = await service.initiate_upload(InitiateUploadParams(
            UploadMode.EXISTING_FILE, 'text/plain', 1, upload_server.url('/create')
        ))
        
        assert result.status == UploadStatus.PARSE_ERROR
    
    @pytest.mark.asyncio
    async def test_no_connection(self):
        """Test unreachable host maps to NO_CONNECTION."""
        config = APIConfig(retry=RetryConfig.disabled())
        async with HttpUploadService(config) as svc:
            result = await svc.initiate_upload(InitiateUploadParams(
                UploadMode.EXISTING_FILE, 'text/plain', 1, 'http://127.0.0.1:1/create'
            ))
        
        assert result.status == UploadStatus.NO_CONNECTION


class TestResumeUpload:
    """Test suite for chunk transfer."""
    
    @pytest.mark.asyncio
    async def test_resume_incomplete(self, service, upload_server):
        """Test 308 reports the received range."""
        data = b'a' * 100
        response = await service.resume_upload(resume_params(upload_server, data, 0, 99, 250))
        
        assert response.status == UploadStatus.HTTP_RESUME_INCOMPLETE
        assert response.start_position_received == 0
        assert response.end_position_received == 99
        assert response.next_offset == 100
        assert upload_server.session_requests[0][0] == 'bytes 0-99/250'
    
    @pytest.mark.asyncio
    async def test_final_chunk(self, service, upload_server):
        """Test 201 carries the document entry."""
        data = b'0123456789'
        response = await service.resume_upload(resume_params(upload_server, data, 0, 9, 10))
        
        assert response.status == UploadStatus.HTTP_CREATED
        assert response.entry.id == 'file:abc'
        assert response.entry.file_size == 10
    
    @pytest.mark.asyncio
    async def test_empty_file(self, service, upload_server):
        """Test empty upload sends bytes */0."""
        response = await service.resume_upload(resume_params(upload_server, b'', 0, -1, 0))
        
        assert upload_server.session_requests == [('bytes */0', b'')]
        assert response.status == UploadStatus.HTTP_CREATED
    
    @pytest.mark.asyncio
    async def test_retry_queries_status_and_resends_remainder(self, service, upload_server):
        """Test a failed chunk resumes from the server's offset."""
        upload_server.chunk_failures = 1
        upload_server.partial_bytes = 40
        data = bytes(range(100))
        
        response = await service.resume_upload(resume_params(upload_server, data, 0, 99, 100))
        
        assert response.status == UploadStatus.HTTP_CREATED
        assert bytes(upload_server.received) == data
        assert [r[0] for r in upload_server.session_requests] == [
            'bytes 0-99/100',
            'bytes */100',
            'bytes 40-99/100',
        ]
        assert upload_server.session_requests[2][1] == data[40:]
    
    @pytest.mark.asyncio
    async def test_retry_without_progress_resends_chunk(self, service, upload_server):
        """Test a chunk the server did not keep is sent again."""
        upload_server.chunk_failures = 1
        data = b'x' * 50
        
        response = await service.resume_upload(resume_params(upload_server, data, 0, 49, 100))
        
        assert response.status == UploadStatus.HTTP_RESUME_INCOMPLETE
        assert response.next_offset == 50
        assert [r[0] for r in upload_server.session_requests] == [
            'bytes 0-49/100',
            'bytes */100',
            'bytes 0-49/100',
        ]
    
    @pytest.mark.asyncio
    async def test_failure_without_retry(self, upload_server):
        """Test failure status is returned when retries are disabled."""
        upload_server.chunk_failures = 1
        config = APIConfig(retry=RetryConfig.disabled())
        async with HttpUploadService(config) as svc:
            response = await svc.resume_upload(resume_params(upload_server, b'abc', 0, 2, 3))
        
        assert response.status == UploadStatus.HTTP_SERVICE_UNAVAILABLE
        assert len(upload_server.session_requests) == 1


class TestEngineOverHttp:
    """End-to-end uploads through the engine."""
    
    @pytest.mark.asyncio
    async def test_upload_new_file(self, service, upload_server, make_file):
        """Test a multi-chunk upload assembles the file on the server."""
        path, data = make_file(250)
        engine = UploadEngine(service, chunking_strategy=FixedSizeChunkingStrategy(100))
        ready = []
        
        session = engine.upload_new_file(
            upload_server.url('/create'),
            'drive/dummy.txt',
            path,
            'dummy.txt',
            'text/plain',
            len(data),
            len(data),
            None,
            ready_callback=ready.append
        )
        result = await session.wait()
        
        assert result.error is UploadErrorKind.OK
        assert result.entry.id == 'file:abc'
        assert ready == [session.id]
        assert bytes(upload_server.received) == data
        assert [r[0] for r in upload_server.session_requests] == [
            'bytes 0-99/250',
            'bytes 100-199/250',
            'bytes 200-249/250',
        ]
    
    @pytest.mark.asyncio
    async def test_shared_session_not_closed(self, upload_server):
        """Test a caller-provided session stays open."""
        import aiohttp
        async with aiohttp.ClientSession() as http:
            svc = HttpUploadService(session=http)
            await svc.close()
            
            assert not http.closed


class TestDriveClient:
    """Test suite for DriveClient over HTTP."""
    
    @pytest.mark.asyncio
    async def test_upload_new_file(self, upload_server, make_file):
        """Test 1234 KiB upload with default chunking."""
        from driveuploader import DriveClient
        
        path, data = make_file(1234 * 1024, name="dummy.bin")
        progress = []
        
        async with DriveClient(retry=RetryConfig(base_delay=0)) as drive:
            result = await drive.upload(
                path,
                upload_server.url('/create'),
                progress_callback=lambda sid, p: progress.append(p.uploaded_bytes)
            )
        
        assert result.ok
        assert result.remote_path == 'dummy.bin'
        assert bytes(upload_server.received) == data
        assert progress == [512 * 1024, 1024 * 1024, 1234 * 1024]
        
        _, headers, body = upload_server.initiate_requests[0]
        assert headers['X-Upload-Content-Type'] == 'application/octet-stream'
        assert b'dummy.bin' in body
    
    @pytest.mark.asyncio
    async def test_upload_existing_file(self, upload_server, make_file):
        """Test overwriting a document."""
        from driveuploader import DriveClient
        
        path, data = make_file(10, name="notes.txt")
        
        async with DriveClient(auth_token="t0ken") as drive:
            result = await drive.upload(path, upload_server.url('/create'), existing=True)
        
        assert result.entry.id == 'file:abc'
        method, headers, _ = upload_server.initiate_requests[0]
        assert method == 'PUT'
        assert headers['X-Upload-Content-Type'] == 'text/plain'
        assert headers['Authorization'] == 'Bearer t0ken'
    
    @pytest.mark.asyncio
    async def test_upload_failure_raises(self, upload_server, make_file):
        """Test a failed upload raises with its kind."""
        from driveuploader import DriveClient, UploadFailedError
        
        path, _ = make_file(10)
        
        async with DriveClient(retry=RetryConfig.disabled()) as drive:
            with pytest.raises(UploadFailedError) as exc_info:
                await drive.upload(path, upload_server.url('/missing'))
        
        assert exc_info.value.kind is UploadErrorKind.SESSION_INITIATION_FAILED
    
    @pytest.mark.asyncio
    async def test_overrides_leave_config_untouched(self):
        """Test token and retry overrides apply to a copy of the config."""
        from driveuploader import DriveClient
        
        config = APIConfig()
        drive = DriveClient(config, auth_token="x", retry=RetryConfig(max_retries=0))
        
        assert config.auth_token is None
        assert config.retry.max_retries == 3
        assert drive.service.config.auth_token == "x"
        assert drive.service.config.retry.max_retries == 0
        
        other = DriveClient(config)
        assert other.service.config.auth_token is None
