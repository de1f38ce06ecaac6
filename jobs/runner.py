"""
Server-side job runner.

Creates a job record, runs the business generator and finalizes the record.
The caller sees a plain request/response: ``run`` returns the records or
raises RunnerFailureError. Whatever happens, the record it created is left
in a terminal state (completed or failed) before ``run`` returns.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import config
from api.models import BusinessRecord, JobRecord, JobRequest, JobState
from errors import RunnerFailureError
from generators.business_generator import generate_businesses
from jobs.store import JobStore, get_job_store

logger = logging.getLogger(__name__)

Generator = Callable[[str, str, int], list[BusinessRecord]]

# Progress checkpoints written to the store while the job runs
PROGRESS_PREPARING = 10
PROGRESS_GENERATING = 30
PROGRESS_DONE = 100


class JobRunner:
    def __init__(
        self,
        store: Optional[JobStore] = None,
        generator: Generator = generate_businesses,
        delay: Optional[float] = None,
    ):
        self._store = store or get_job_store()
        self._generator = generator
        self._delay = config.RUNNER_SIMULATED_DELAY if delay is None else delay

    @property
    def store(self) -> JobStore:
        return self._store

    def run(self, request: JobRequest) -> list[BusinessRecord]:
        return self.execute(request).results or []

    def execute(self, request: JobRequest) -> JobRecord:
        """Run one job and return its finalized record."""
        try:
            record = self._store.create(request)
        except Exception as exc:
            detail = f"{type(exc).__name__}: {exc}"
            logger.error(f"Could not create job: {detail}")
            raise RunnerFailureError("Could not create job", detail) from exc
        job_id = record.id
        progress = record.progress_percent
        finished = False
        logger.info(
            f"Job {job_id} started: '{request.query_text}' in '{request.location}' "
            f"(limit: {request.result_limit})"
        )

        def advance(percent: int):
            nonlocal progress
            progress = max(progress, percent)
            self._store.update(job_id, progress_percent=progress)

        try:
            advance(PROGRESS_PREPARING)
            if self._delay:
                time.sleep(self._delay)

            advance(PROGRESS_GENERATING)
            businesses = self._generator(request.query_text, request.location, request.result_limit)
            results = list(businesses)[: request.result_limit]

            self._store.update(
                job_id,
                state=JobState.COMPLETED,
                progress_percent=PROGRESS_DONE,
                result_count=len(results),
                results=results,
                completed_at=datetime.now(timezone.utc),
            )
            finished = True
            logger.info(f"Job {job_id} completed: {len(results)} businesses")
            return self._store.get(job_id)

        except Exception as exc:
            detail = f"{type(exc).__name__}: {exc}"
            logger.error(f"Job {job_id} failed: {detail}")
            if not finished:
                self._fail(job_id, detail)
                finished = True
            raise RunnerFailureError("Scraping job failed", detail, job_id=job_id) from exc

        finally:
            if not finished:
                # BaseException (KeyboardInterrupt, SystemExit) skipped the except block
                self._fail(job_id, "Job interrupted")

    def _fail(self, job_id: str, detail: str):
        try:
            self._store.update(
                job_id,
                state=JobState.FAILED,
                error_detail=detail,
                completed_at=datetime.now(timezone.utc),
            )
        except Exception as exc:
            logger.error(f"Job {job_id}: could not record failure ({exc})")
