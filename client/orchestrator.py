"""
Client-side orchestrator for business scraping jobs.

One orchestrator instance is one scraping session: it runs at most one job at
a time, owns that job's cancellation handle and relays its progress events.

    orchestrator = ScrapingOrchestrator(RunnerClient())
    task = orchestrator.start(request, on_progress=print)
    businesses = await task

Progress for a job: ``started`` (0) → ``update`` (25, before the remote
call) → ``update`` (85, results received) → ``completed`` (100, payload), or
a terminal ``error`` at any point after ``started``.
"""
import asyncio
import logging
import threading
from enum import Enum
from typing import Optional, Union

from api.models import BusinessRecord, JobRequest, ProgressEvent, ProgressKind, build_request
from client.progress import CancellationHandle, ProgressCallback, ProgressChannel
from client.runner_client import RunnerClient
from errors import AlreadyRunningError, JobCancelledError, ScrapingError

logger = logging.getLogger(__name__)

PERCENT_REQUEST_SENT = 25
PERCENT_RESULTS_RECEIVED = 85


class OrchestratorState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ScrapingOrchestrator:
    def __init__(self, client: Optional[RunnerClient] = None, queue_size: Optional[int] = None):
        self._client = client or RunnerClient()
        self._queue_size = queue_size
        self._lock = threading.Lock()
        self._state = OrchestratorState.IDLE
        self._token: Optional[object] = None
        self._cancel: Optional[CancellationHandle] = None

        self.channel: Optional[ProgressChannel] = None
        self.job_id: Optional[str] = None
        self.last_event: Optional[ProgressEvent] = None
        self.last_outcome: Optional[OrchestratorState] = None

    # ── Public contract ───────────────────────────────────────────────────────

    @property
    def state(self) -> OrchestratorState:
        return self._state

    def is_active(self) -> bool:
        """Best-effort: a concurrent stop() or completion may flip it right after the read."""
        return self._state != OrchestratorState.IDLE

    def start(
        self,
        request: Union[JobRequest, dict],
        on_progress: Optional[ProgressCallback] = None,
    ) -> "asyncio.Task[list[BusinessRecord]]":
        """
        Start a job and return the task that resolves with its businesses.

        Must be called from a running event loop. Raises AlreadyRunningError
        right away if the previous job has not settled (or been stopped).
        """
        if isinstance(request, dict):
            request = build_request(**request)
        loop = asyncio.get_running_loop()

        with self._lock:
            if self._state != OrchestratorState.IDLE:
                raise AlreadyRunningError()
            token = object()
            handle = CancellationHandle()
            self._token = token
            self._cancel = handle
            self._state = OrchestratorState.STARTING

        channel = ProgressChannel(self._queue_size, on_event=on_progress)
        self.channel = channel
        self.job_id = None
        self._emit(channel, ProgressEvent(
            kind=ProgressKind.STARTED,
            message=f"Scraping started: '{request.query_text}' in '{request.location}'",
            percent=0,
        ))

        return loop.create_task(self._run(request, handle, channel, token))

    def stop(self):
        """Cancel the in-flight job, if any, and release the guard immediately."""
        with self._lock:
            handle = self._cancel
            self._cancel = None
            self._token = None
            self._state = OrchestratorState.IDLE
            if handle is not None:
                self.last_outcome = OrchestratorState.CANCELLED
        if handle is not None and not handle.cancelled:
            logger.info("Stopping scraping job")
            handle.cancel()

    # ── Job lifecycle ─────────────────────────────────────────────────────────

    async def _run(
        self,
        request: JobRequest,
        handle: CancellationHandle,
        channel: ProgressChannel,
        token: object,
    ) -> list[BusinessRecord]:
        outcome = OrchestratorState.FAILED
        try:
            if handle.cancelled:
                raise JobCancelledError()
            self._transition(token, OrchestratorState.RUNNING)
            self._emit(channel, ProgressEvent(
                kind=ProgressKind.UPDATE,
                message="Sending job to runner...",
                percent=PERCENT_REQUEST_SENT,
            ))

            response = await self._client.start_job(request, cancel=handle)
            if handle.cancelled:
                raise JobCancelledError(details=f"Runner finished job {response.job_id} after cancellation")

            if self._token is token:
                self.job_id = response.job_id
            businesses = response.results[: request.result_limit]
            self._emit(channel, ProgressEvent(
                kind=ProgressKind.UPDATE,
                message=f"{response.total_found} businesses received",
                percent=PERCENT_RESULTS_RECEIVED,
                job_id=response.job_id,
            ))
            self._emit(channel, ProgressEvent(
                kind=ProgressKind.COMPLETED,
                message=f"Scraping complete: {len(businesses)} businesses found",
                percent=100,
                payload=businesses,
                job_id=response.job_id,
            ))
            outcome = OrchestratorState.COMPLETED
            logger.info(f"Job {response.job_id} completed with {len(businesses)} businesses")
            return businesses

        except ScrapingError as exc:
            if isinstance(exc, JobCancelledError):
                outcome = OrchestratorState.CANCELLED
            self._emit_error(channel, exc.message, exc.code)
            logger.warning(f"Scraping job ended: {exc.code}: {exc.message}")
            raise
        except asyncio.CancelledError:
            outcome = OrchestratorState.CANCELLED
            self._emit_error(channel, JobCancelledError().message, JobCancelledError.code)
            raise
        except Exception as exc:
            self._emit_error(channel, f"{type(exc).__name__}: {exc}", None)
            logger.error(f"Scraping job crashed: {exc}")
            raise
        finally:
            self._finish(token, outcome)

    def _transition(self, token: object, state: OrchestratorState):
        with self._lock:
            if self._token is token:
                self._state = state

    def _finish(self, token: object, outcome: OrchestratorState):
        with self._lock:
            if self._token is not token:
                # stop() already released the guard, possibly for a newer job
                return
            self.last_outcome = outcome
            self._token = None
            self._cancel = None
            self._state = OrchestratorState.IDLE

    def _emit(self, channel: ProgressChannel, event: ProgressEvent):
        if channel.publish(event) and channel is self.channel:
            self.last_event = event

    def _emit_error(self, channel: ProgressChannel, message: str, code: Optional[str]):
        self._emit(channel, ProgressEvent(kind=ProgressKind.ERROR, error_message=message, error_code=code))
