"""
HTTP upload service.

Speaks the resumable upload protocol against a document storage API:
a session is opened on the parent (or destination) location, then the
file is PUT to the returned session URL one Content-Range at a time.
"""
import re
import time
import asyncio
from dataclasses import replace
from typing import Optional, Dict, Any

import aiohttp

from ...logging import get_logger
from ...api.config import APIConfig
from ...api.errors import UploadStatus, StatusMessages
from ...api.retry import RetryStrategy, ExponentialBackoffStrategy
from ..models import (
    UploadMode,
    DocumentEntry,
    InitiateUploadParams,
    InitiateUploadResult,
    ResumeUploadParams,
    ResumeUploadResponse
)

_RANGE_PATTERN = re.compile(r'bytes=(\d+)-(\d+)')


def format_content_range(start: int, end: int, total: int) -> str:
    """
    Build the Content-Range header of a chunk.
    
    Args:
        start: First byte of the chunk
        end: Last byte of the chunk (inclusive)
        total: Total size of the upload
        
    Returns:
        'bytes start-end/total', or 'bytes */total' when there is no byte to send
    """
    if end < start:
        return f"bytes */{total}"
    return f"bytes {start}-{end}/{total}"


def parse_range_header(value: Optional[str]) -> Optional[tuple]:
    """Parse a 'bytes=a-b' Range header into (a, b), None if absent or malformed."""
    if not value:
        return None
    match = _RANGE_PATTERN.search(value)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


class HttpUploadService:
    """
    Remote upload service over HTTP.
    
    Failures come back as statuses, never as exceptions: transport errors
    map to NO_CONNECTION. Transient failures are retried here, with backoff;
    a failed chunk is followed by a status query so the caller resumes from
    the server's own offset instead of resending blindly.
    
    Example:
        >>> async with HttpUploadService(APIConfig(auth_token="...")) as service:
        ...     engine = UploadEngine(service)
    """
    
    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        retry_strategy: Optional[RetryStrategy] = None
    ):
        """
        Initialize HTTP upload service.
        
        Args:
            config: API configuration (uses defaults if not provided)
            session: Optional shared aiohttp session (not closed by this service)
            retry_strategy: Retry policy (defaults to exponential backoff from config)
        """
        self._config = config or APIConfig.default()
        self._session = session
        self._owns_session = False
        self._retry = retry_strategy or ExponentialBackoffStrategy(self._config.retry)
        self._logger = get_logger('driveuploader.upload.http')
    
    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config
    
    async def __aenter__(self) -> 'HttpUploadService':
        await self._get_session()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._session = aiohttp.ClientSession(
                connector=connector,
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session
    
    async def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None
            self._owns_session = False
    
    def _request_kwargs(self) -> Dict[str, Any]:
        # 308 is the protocol's "resume incomplete", never a redirect
        kwargs: Dict[str, Any] = {'allow_redirects': False}
        if self._config.proxy:
            kwargs['proxy'] = self._config.proxy.to_aiohttp_proxy()
        return kwargs
    
    async def initiate_upload(
        self,
        params: InitiateUploadParams
    ) -> InitiateUploadResult:
        """
        Open an upload session.
        
        New files are POSTed with their title as JSON metadata; existing
        files are PUT with If-Match: * and no body.
        
        Args:
            params: Initiation parameters
            
        Returns:
            HTTP_SUCCESS with the session URL, or the failure status
        """
        attempt = 0
        while True:
            result = await self._send_initiate(params)
            if result.status == UploadStatus.HTTP_SUCCESS:
                return result
            if not self._retry.should_retry(result.status, attempt):
                self._logger.error(
                    f"Initiate upload failed for {params.remote_path or params.upload_location}: "
                    f"{StatusMessages.get_message(result.status)}"
                )
                return result
            self._logger.warning(
                f"Initiate upload got {result.status.name}, retry {attempt + 1}/{self._retry.max_retries}"
            )
            await self._retry.wait_async(attempt)
            attempt += 1
    
    async def _send_initiate(self, params: InitiateUploadParams) -> InitiateUploadResult:
        headers = {
            'X-Upload-Content-Type': params.content_type,
            'X-Upload-Content-Length': str(params.content_length),
        }
        kwargs = self._request_kwargs()
        if params.mode is UploadMode.NEW_FILE:
            method = 'POST'
            kwargs['json'] = {'title': params.title}
        else:
            method = 'PUT'
            headers['If-Match'] = '*'
        
        session = await self._get_session()
        try:
            async with session.request(
                method,
                params.upload_location,
                headers=headers,
                **kwargs
            ) as response:
                if response.status != UploadStatus.HTTP_SUCCESS:
                    return InitiateUploadResult(UploadStatus.from_code(response.status))
                
                location = response.headers.get('Location', '')
                if not location:
                    self._logger.error("Initiate upload succeeded without a Location header")
                    return InitiateUploadResult(UploadStatus.PARSE_ERROR)
                
                self._logger.debug(f"Upload session opened: {location}")
                return InitiateUploadResult(UploadStatus.HTTP_SUCCESS, location)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.warning(f"Initiate upload could not reach {params.upload_location}: {e!r}")
            return InitiateUploadResult(UploadStatus.NO_CONNECTION)
    
    async def resume_upload(
        self,
        params: ResumeUploadParams
    ) -> ResumeUploadResponse:
        """
        Send one chunk to the upload session.
        
        Args:
            params: Session URL, inclusive range and chunk data
            
        Returns:
            HTTP_RESUME_INCOMPLETE with the received range, HTTP_SUCCESS or
            HTTP_CREATED with the document entry, or the failure status
        """
        current = params
        response = await self._send_chunk(current)

        attempt = 0
        while self._is_failure(response) and self._retry.should_retry(response.status, attempt):
            self._logger.warning(
                f"Chunk {current.start_range}-{current.end_range} got {response.status.name}, "
                f"querying session status (retry {attempt + 1}/{self._retry.max_retries})"
            )
            await self._retry.wait_async(attempt)
            attempt += 1
            response = await self.get_upload_status(
                current.upload_location,
                current.content_length
            )
            if response.status != UploadStatus.HTTP_RESUME_INCOMPLETE:
                continue

            offset = response.next_offset
            if not current.start_range <= offset <= current.end_range:
                # Chunk fully held (or server went backwards): caller decides
                return response

            current = replace(
                current,
                start_range=offset,
                data=current.data[offset - current.start_range:]
            )
            self._logger.debug(
                f"Resending {current.start_range}-{current.end_range} after status query"
            )
            response = await self._send_chunk(current)

        return response
    
    @staticmethod
    def _is_failure(response: ResumeUploadResponse) -> bool:
        return not (
            response.status.is_success
            or response.status == UploadStatus.HTTP_RESUME_INCOMPLETE
        )
    
    async def _send_chunk(self, params: ResumeUploadParams) -> ResumeUploadResponse:
        headers = {
            'Content-Range': format_content_range(
                params.start_range, params.end_range, params.content_length
            ),
            'Content-Type': params.content_type,
        }
        chunk_size_kb = len(params.data) / 1024
        upload_start = time.time()
        
        session = await self._get_session()
        try:
            async with session.put(
                params.upload_location,
                data=params.data,
                headers=headers,
                **self._request_kwargs()
            ) as response:
                result = await self._process_response(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            upload_time = time.time() - upload_start
            self._logger.warning(
                f"Chunk {params.start_range}-{params.end_range} failed after {upload_time:.2f}s: {e!r}"
            )
            return ResumeUploadResponse(UploadStatus.NO_CONNECTION)
        
        upload_time = time.time() - upload_start
        speed_kbps = (chunk_size_kb / upload_time) if upload_time > 0 else 0
        self._logger.debug(
            f"Chunk {params.start_range}-{params.end_range} answered {result.status.name} "
            f"in {upload_time:.2f}s ({speed_kbps:.1f} KB/s)"
        )
        return result
    
    async def get_upload_status(
        self,
        upload_url: str,
        content_length: int
    ) -> ResumeUploadResponse:
        """
        Ask the upload session how many bytes it holds.
        
        Args:
            upload_url: Session URL
            content_length: Total size of the upload
            
        Returns:
            Same shapes as resume_upload
        """
        headers = {'Content-Range': f"bytes */{content_length}"}
        session = await self._get_session()
        try:
            async with session.put(
                upload_url,
                data=b'',
                headers=headers,
                **self._request_kwargs()
            ) as response:
                return await self._process_response(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.warning(f"Status query for {upload_url} failed: {e!r}")
            return ResumeUploadResponse(UploadStatus.NO_CONNECTION)
    
    async def _process_response(
        self,
        response: aiohttp.ClientResponse
    ) -> ResumeUploadResponse:
        """
        Map an HTTP response of the upload session.
        
        Args:
            response: Response to a chunk PUT or a status query
            
        Returns:
            Parsed ResumeUploadResponse
        """
        status = UploadStatus.from_code(response.status)
        
        if status == UploadStatus.HTTP_RESUME_INCOMPLETE:
            received = parse_range_header(response.headers.get('Range'))
            if received is None:
                return ResumeUploadResponse(status, -1, -1)
            return ResumeUploadResponse(status, received[0], received[1])
        
        if status.is_success:
            try:
                data = await response.json(content_type=None)
            except (ValueError, aiohttp.ContentTypeError) as e:
                self._logger.error(f"Could not parse document metadata: {e}")
                return ResumeUploadResponse(UploadStatus.PARSE_ERROR)
            if not isinstance(data, dict):
                self._logger.error(f"Unexpected document metadata: {data!r}")
                return ResumeUploadResponse(UploadStatus.PARSE_ERROR)
            return ResumeUploadResponse(status, entry=DocumentEntry.from_dict(data))
        
        return ResumeUploadResponse(status)
