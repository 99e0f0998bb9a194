"""
Upload session.

One session drives one file from session initiation to a terminal
result. Chunk transfers are strictly sequential: the next chunk is read
and sent only after the previous response has been observed.
"""
import time
import asyncio
import inspect
from pathlib import Path
from typing import Optional, Callable, Any, Set

from ..logging import get_logger
from .models import (
    UploadMode,
    UploadState,
    UploadErrorKind,
    UploadRequest,
    UploadResult,
    UploadProgress,
    DocumentEntry,
    InitiateUploadParams,
    ResumeUploadParams
)
from .protocols import (
    ChunkingStrategy,
    ChunkSourceProtocol,
    RemoteUploadServiceProtocol,
    CompletionCallback,
    ReadyCallback,
    ProgressCallback
)
from ..api.errors import UploadStatus, StatusMessages
from ..exceptions import SourceNotFoundError, ChunkReadError

logger = get_logger('driveuploader.upload.session')


def invoke_callback(
    callback: Optional[Callable],
    *args: Any,
    pending: Optional[Set[asyncio.Future]] = None
) -> None:
    """
    Call a user callback without letting its errors reach the engine.

    Awaitables returned by the callback are scheduled on the running loop
    and kept in pending until they finish; their errors are logged too.
    """
    if callback is None:
        return
    try:
        result = callback(*args)
    except Exception:
        logger.exception(f"Upload callback {callback!r} raised")
        return

    if not inspect.isawaitable(result):
        return

    task = asyncio.ensure_future(result)
    if pending is not None:
        pending.add(task)

    def on_done(finished: asyncio.Future):
        if pending is not None:
            pending.discard(finished)
        if finished.cancelled():
            return
        error = finished.exception()
        if error is not None:
            logger.exception(f"Upload callback {callback!r} raised", exc_info=error)

    task.add_done_callback(on_done)


class UploadSession:
    """
    State machine for a single upload.
    
    INITIATING -> TRANSFERRING -> COMPLETED, with FAILED reachable from
    both non-terminal states. The completion callback fires exactly once;
    once the session is terminal no further service call is made, and a
    response that arrives afterwards is discarded.
    
    Sessions are created and owned by UploadEngine.
    """
    
    def __init__(
        self,
        session_id: int,
        request: UploadRequest,
        service: RemoteUploadServiceProtocol,
        chunking: ChunkingStrategy,
        file_reader: ChunkSourceProtocol,
        completion_callback: CompletionCallback,
        ready_callback: Optional[ReadyCallback] = None,
        progress_callback: Optional[ProgressCallback] = None,
        on_terminal: Optional[Callable[['UploadSession'], None]] = None,
        callback_tasks: Optional[Set[asyncio.Future]] = None
    ):
        """
        Initialize upload session.
        
        Args:
            session_id: Engine-assigned id
            request: The originating request
            service: Remote upload service
            chunking: Chunk planning strategy
            file_reader: Byte range reader for the local file
            completion_callback: Called once with the terminal UploadResult
            ready_callback: Called with the session id once the session is open
            progress_callback: Called with (session id, progress) per acknowledged chunk
            on_terminal: Engine hook run before the completion callback
            callback_tasks: Holds tasks scheduled by async callbacks
        """
        self._id = session_id
        self._request = request
        self._service = service
        self._chunking = chunking
        self._file_reader = file_reader
        self._completion_callback = completion_callback
        self._ready_callback = ready_callback
        self._progress_callback = progress_callback
        self._on_terminal = on_terminal
        self._callback_tasks = callback_tasks if callback_tasks is not None else set()
        
        self._state = UploadState.INITIATING
        self._upload_location = ''
        self._bytes_sent = 0
        self._result: Optional[UploadResult] = None
        self._done: asyncio.Future = asyncio.get_running_loop().create_future()
        
        self._progress = UploadProgress(
            total_chunks=chunking.count_chunks(request.content_length),
            total_bytes=request.content_length
        )
    
    @property
    def id(self) -> int:
        return self._id
    
    @property
    def request(self) -> UploadRequest:
        return self._request
    
    @property
    def state(self) -> UploadState:
        return self._state
    
    @property
    def upload_location(self) -> str:
        """Session URL returned by initiation, empty until then."""
        return self._upload_location
    
    @property
    def bytes_sent(self) -> int:
        """Bytes acknowledged by the service so far."""
        return self._bytes_sent
    
    @property
    def progress(self) -> UploadProgress:
        return self._progress
    
    @property
    def result(self) -> Optional[UploadResult]:
        return self._result
    
    @property
    def is_finished(self) -> bool:
        return self._result is not None
    
    async def wait(self) -> UploadResult:
        """Wait for the terminal result."""
        return await asyncio.shield(self._done)
    
    def cancel(self) -> bool:
        """
        Abort the session.
        
        An in-flight service call is not interrupted; its response is
        discarded when it arrives.
        
        Returns:
            True if the session was live and is now cancelled
        """
        if self.is_finished:
            return False
        logger.info(f"Upload {self._id} cancelled at {self._bytes_sent}/{self._request.content_length} bytes")
        return self._finish(UploadErrorKind.CANCELLED)
    
    async def run(self) -> None:
        """Drive the session to a terminal state."""
        try:
            if self.is_finished:
                return
            await self._initiate()
            if self._state is UploadState.TRANSFERRING and not self.is_finished:
                await self._transfer()
        except asyncio.CancelledError:
            self._finish(UploadErrorKind.CANCELLED)
            raise
        except SourceNotFoundError as e:
            logger.error(f"Upload {self._id}: source vanished: {e}")
            self._finish(UploadErrorKind.SOURCE_NOT_FOUND)
        except ChunkReadError as e:
            logger.error(f"Upload {self._id}: {e}")
            self._finish(UploadErrorKind.TRANSFER_FAILED)
        except Exception:
            logger.exception(f"Upload {self._id} failed in state {self._state.value}")
            if self._state is UploadState.INITIATING:
                self._finish(UploadErrorKind.SESSION_INITIATION_FAILED)
            else:
                self._finish(UploadErrorKind.TRANSFER_FAILED)
        finally:
            close_file = getattr(self._file_reader, 'close_file', None)
            if close_file is not None:
                await close_file()
    
    async def _initiate(self) -> None:
        request = self._request
        params = InitiateUploadParams(
            mode=request.mode,
            content_type=request.content_type,
            content_length=request.content_length,
            upload_location=request.remote_parent_location,
            remote_path=request.remote_path,
            title=request.title if request.mode is UploadMode.NEW_FILE else ''
        )
        
        logger.debug(f"Upload {self._id}: initiating session at {request.remote_parent_location}")
        result = await self._service.initiate_upload(params)
        
        if self.is_finished:
            logger.debug(f"Upload {self._id}: discarding initiate response after cancel")
            return
        
        if not result.ok:
            logger.error(
                f"Upload {self._id}: session initiation failed: "
                f"{StatusMessages.get_message(result.status)}"
            )
            self._finish(UploadErrorKind.SESSION_INITIATION_FAILED)
            return
        
        self._upload_location = result.upload_url
        self._state = UploadState.TRANSFERRING
        logger.info(
            f"Upload {self._id} started: {request.local_path.name} -> {request.remote_path} "
            f"({request.content_length} bytes, {self._progress.total_chunks} chunks)"
        )
        
        if request.mode is UploadMode.NEW_FILE:
            invoke_callback(self._ready_callback, self._id, pending=self._callback_tasks)
    
    async def _transfer(self) -> None:
        request = self._request
        path: Path = request.local_path
        total = request.content_length
        
        # Readers without open_file read each range on its own
        open_file = getattr(self._file_reader, 'open_file', None)
        if open_file is not None:
            await open_file(path)
        
        while True:
            chunk = self._chunking.next_range(self._bytes_sent, total)
            data = await self._file_reader.read_range(path, chunk.start, chunk.end)
            if self.is_finished:
                return
            
            params = ResumeUploadParams(
                mode=request.mode,
                upload_location=self._upload_location,
                start_range=chunk.start,
                end_range=chunk.end,
                content_length=total,
                content_type=request.content_type,
                data=data,
                remote_path=request.remote_path
            )
            chunk_start_time = time.time()
            response = await self._service.resume_upload(params)
            
            if self.is_finished:
                logger.debug(f"Upload {self._id}: discarding chunk response after cancel")
                return
            
            elapsed = time.time() - chunk_start_time
            logger.debug(
                f"Upload {self._id}: chunk {chunk.start}-{chunk.end} "
                f"({chunk.size} bytes) -> {response.status.name} in {elapsed:.2f}s"
            )
            
            if response.status.is_success:
                self._on_final_response(response.entry)
                return
            
            if response.status != UploadStatus.HTTP_RESUME_INCOMPLETE:
                logger.error(
                    f"Upload {self._id}: transfer failed at {self._bytes_sent}/{total} bytes: "
                    f"{StatusMessages.get_message(response.status)}"
                )
                self._finish(UploadErrorKind.TRANSFER_FAILED)
                return
            
            next_offset = response.next_offset
            if next_offset <= self._bytes_sent or next_offset >= total:
                logger.error(
                    f"Upload {self._id}: service reported offset {next_offset} "
                    f"after {self._bytes_sent}/{total} bytes"
                )
                self._finish(UploadErrorKind.TRANSFER_FAILED)
                return
            
            self._bytes_sent = next_offset
            self._progress.uploaded_chunks += 1
            self._progress.uploaded_bytes = next_offset
            invoke_callback(
                self._progress_callback, self._id, self._progress,
                pending=self._callback_tasks
            )
    
    def _on_final_response(self, entry: Optional[DocumentEntry]) -> None:
        if entry is None:
            logger.error(f"Upload {self._id}: final response carried no document metadata")
            self._finish(UploadErrorKind.TRANSFER_FAILED)
            return
        
        self._bytes_sent = self._request.content_length
        self._progress.uploaded_chunks = self._progress.total_chunks
        self._progress.uploaded_bytes = self._bytes_sent
        invoke_callback(
            self._progress_callback, self._id, self._progress,
            pending=self._callback_tasks
        )
        self._finish(UploadErrorKind.OK, entry)
    
    def _finish(
        self,
        kind: UploadErrorKind,
        entry: Optional[DocumentEntry] = None
    ) -> bool:
        """Enter the terminal state and fire the completion callback once."""
        if self._result is not None:
            return False
        
        self._state = UploadState.COMPLETED if kind is UploadErrorKind.OK else UploadState.FAILED
        self._result = UploadResult(
            error=kind,
            remote_path=self._request.remote_path,
            local_path=self._request.local_path,
            entry=entry,
            session_id=self._id
        )
        
        if kind is UploadErrorKind.OK:
            logger.info(f"Upload {self._id} completed: {self._request.remote_path} ({entry.id})")
        elif kind is not UploadErrorKind.CANCELLED:
            logger.info(f"Upload {self._id} failed: {kind.value}")
        
        if self._on_terminal is not None:
            self._on_terminal(self)
        invoke_callback(self._completion_callback, self._result, pending=self._callback_tasks)
        if not self._done.done():
            self._done.set_result(self._result)
        return True
