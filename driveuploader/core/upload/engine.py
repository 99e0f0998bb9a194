"""
Upload engine.

Entry point for starting uploads. Owns the registry of live sessions,
routes their results back to callers and exposes cancellation.
Depends on abstractions: any RemoteUploadServiceProtocol implementation
can be plugged in.
"""
import asyncio
import itertools
import threading
from pathlib import Path
from typing import Dict, List, Optional, Set, Union, Callable

from ..logging import get_logger
from .models import UploadMode, UploadRequest, UploadResult, UploadErrorKind, UploadProgress
from .protocols import (
    ChunkingStrategy,
    ChunkSourceProtocol,
    RemoteUploadServiceProtocol,
    CompletionCallback,
    ReadyCallback,
    ProgressCallback,
    LoggerProtocol
)
from .session import UploadSession, invoke_callback
from .strategies import FixedSizeChunkingStrategy
from .services import FileValidator, AsyncFileReader
from ..exceptions import SourceNotFoundError


class UploadEngine:
    """
    Starts and tracks resumable uploads.
    
    Uses dependency injection for all components, making it:
    - Testable (fake services and readers)
    - Extensible (any service speaking the initiate/resume contract)
    
    Methods that start uploads are plain calls made from inside a running
    event loop; each session runs as its own task. The engine never
    retries: retry policy belongs to the service.
    cancel() and cancel_all() may also be called from other threads; the
    cancellation is then posted to the loop, where callbacks always run.
    
    Example:
        >>> engine = UploadEngine(service)
        >>> session = engine.upload_new_file(
        ...     parent_url, "drive/report.pdf", "report.pdf", "Report",
        ...     "application/pdf", size, size, on_done, on_ready
        ... )
        >>> result = await session.wait()
    """
    
    def __init__(
        self,
        service: RemoteUploadServiceProtocol,
        chunking_strategy: Optional[ChunkingStrategy] = None,
        file_reader_factory: Optional[Callable[[], ChunkSourceProtocol]] = None,
        logger: Optional[LoggerProtocol] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Initialize upload engine.
        
        Args:
            service: Remote upload service
            chunking_strategy: Chunk planning (512 KiB fixed chunks by default)
            file_reader_factory: Builds one byte range reader per session
            logger: Logger instance
            progress_callback: Default progress callback for all sessions
        """
        self._service = service
        self._chunking = chunking_strategy or FixedSizeChunkingStrategy()
        self._reader_factory = file_reader_factory or AsyncFileReader
        self._validator = FileValidator()
        self._logger = logger or get_logger('driveuploader.upload.engine')
        self._progress_callback = progress_callback
        
        # Registry of live sessions; guarded by _lock
        self._sessions: Dict[int, UploadSession] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._tasks: Set[asyncio.Task] = set()
        self._callback_tasks: Set[asyncio.Future] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
    
    def upload_existing_file(
        self,
        upload_location: str,
        remote_path: str,
        local_path: Union[str, Path],
        content_type: str,
        content_length: int,
        completion_callback: Optional[CompletionCallback],
        progress_callback: Optional[ProgressCallback] = None
    ) -> Optional[UploadSession]:
        """
        Overwrite a known remote document with a local file.
        
        Args:
            upload_location: URL where the session is initiated
            remote_path: Logical remote path of the document
            local_path: Source file
            content_type: MIME type
            content_length: Bytes to send
            completion_callback: Called once with the UploadResult
            progress_callback: Called per acknowledged chunk
            
        Returns:
            The new session, or None if the source file does not exist
            (the completion callback has then already fired)
        """
        request = UploadRequest(
            remote_parent_location=upload_location,
            remote_path=remote_path,
            local_path=local_path,
            content_type=content_type,
            content_length=content_length,
            mode=UploadMode.EXISTING_FILE
        )
        return self.start_upload(request, completion_callback, progress_callback=progress_callback)
    
    def upload_new_file(
        self,
        upload_location: str,
        remote_path: str,
        local_path: Union[str, Path],
        title: str,
        content_type: str,
        content_length: int,
        file_size_hint: Optional[int],
        completion_callback: Optional[CompletionCallback],
        ready_callback: Optional[ReadyCallback] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Optional[UploadSession]:
        """
        Create a new remote document from a local file.
        
        Args:
            upload_location: Parent location where the session is initiated
            remote_path: Logical remote path of the new document
            local_path: Source file
            title: Display name of the new document
            content_type: MIME type
            content_length: Declared bytes to send
            file_size_hint: Size of the file on disk at request time
            completion_callback: Called once with the UploadResult
            ready_callback: Called with the session id before any byte is sent
            progress_callback: Called per acknowledged chunk
            
        Returns:
            The new session, or None if the source file does not exist
        """
        request = UploadRequest(
            remote_parent_location=upload_location,
            remote_path=remote_path,
            local_path=local_path,
            content_type=content_type,
            content_length=content_length,
            mode=UploadMode.NEW_FILE,
            title=title,
            file_size_hint=file_size_hint
        )
        return self.start_upload(
            request,
            completion_callback,
            ready_callback=ready_callback,
            progress_callback=progress_callback
        )
    
    def start_upload(
        self,
        request: UploadRequest,
        completion_callback: Optional[CompletionCallback],
        ready_callback: Optional[ReadyCallback] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Optional[UploadSession]:
        """
        Validate the source and start a session for request.
        
        The pre-flight check runs before any service call: a missing
        source fires the completion callback with SOURCE_NOT_FOUND before
        this method returns.
        """
        try:
            path, file_size = self._validator.validate(request.local_path)
        except SourceNotFoundError as e:
            self._logger.warning(f"Upload of {request.local_path} rejected: {e}")
            invoke_callback(
                completion_callback,
                UploadResult(
                    error=UploadErrorKind.SOURCE_NOT_FOUND,
                    remote_path=request.remote_path,
                    local_path=request.local_path
                ),
                pending=self._callback_tasks
            )
            return None
        
        if request.file_size_hint is not None and request.file_size_hint != request.content_length:
            self._logger.debug(
                f"{path.name}: size hint {request.file_size_hint} differs from "
                f"declared length {request.content_length}"
            )
        if file_size < request.content_length:
            self._logger.warning(
                f"{path.name} holds {file_size} bytes, {request.content_length} declared"
            )
        
        loop = asyncio.get_running_loop()
        self._loop = loop
        with self._lock:
            session = UploadSession(
                session_id=next(self._ids),
                request=request,
                service=self._service,
                chunking=self._chunking,
                file_reader=self._reader_factory(),
                completion_callback=completion_callback,
                ready_callback=ready_callback if request.mode is UploadMode.NEW_FILE else None,
                progress_callback=progress_callback or self._progress_callback,
                on_terminal=self._unregister,
                callback_tasks=self._callback_tasks
            )
            self._sessions[session.id] = session
        
        self._logger.debug(f"Upload {session.id} created for {path} ({request.mode.value})")
        task = loop.create_task(session.run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return session
    
    def _unregister(self, session: UploadSession) -> None:
        with self._lock:
            self._sessions.pop(session.id, None)
    
    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False
    
    def cancel(self, session_id: int) -> bool:
        """
        Cancel a live session.
        
        Cancelling an unknown or already finished session is a no-op.
        Called from another thread, the cancellation is posted to the
        engine's loop and the completion callback runs there.
        
        Args:
            session_id: Id of the session
            
        Returns:
            True if a live session was cancelled (or, off the loop thread,
            found and scheduled for cancellation)
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            return False
        if self._on_loop_thread():
            return session.cancel()
        self._loop.call_soon_threadsafe(session.cancel)
        return True
    
    def cancel_all(self) -> int:
        """Cancel every live session and return how many were cancelled."""
        with self._lock:
            sessions = list(self._sessions.values())
        if not sessions:
            return 0
        if self._on_loop_thread():
            return sum(1 for session in sessions if session.cancel())
        for session in sessions:
            self._loop.call_soon_threadsafe(session.cancel)
        return len(sessions)
    
    def get_session(self, session_id: int) -> Optional[UploadSession]:
        """Returns a live session, None once it has finished."""
        with self._lock:
            return self._sessions.get(session_id)
    
    def get_progress(self, session_id: int) -> Optional[UploadProgress]:
        """Returns the progress of a live session."""
        session = self.get_session(session_id)
        return session.progress if session else None
    
    @property
    def active_session_ids(self) -> List[int]:
        """Ids of the sessions that have not finished yet."""
        with self._lock:
            return sorted(self._sessions)
    
    async def wait_idle(self) -> None:
        """Wait until every session task and async callback has returned."""
        while self._tasks or self._callback_tasks:
            await asyncio.gather(
                *list(self._tasks),
                *list(self._callback_tasks),
                return_exceptions=True
            )
