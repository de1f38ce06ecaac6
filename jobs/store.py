"""
In-memory job store.

A keyed record table with timestamped writes. It never interprets field
values: state transitions and progress rules belong to the job runner.
Records are replaced wholesale under a lock and readers get copies, so a
partially applied update is never visible.
"""
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Optional

import config
from api.models import JobRecord, JobRequest, JobState
from errors import JobNotFoundError

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JobStore:
    def __init__(self):
        self._jobs: dict[str, JobRecord] = {}
        self._lock = threading.Lock()

    def create(self, request: JobRequest) -> JobRecord:
        now = _now()
        record = JobRecord(
            id=str(uuid.uuid4()),
            request=request,
            state=JobState.RUNNING,
            progress_percent=0,
            created_at=now,
            updated_at=now,
            started_at=now,
        )
        with self._lock:
            self._jobs[record.id] = record
        logger.debug(f"Job {record.id} created for submitter {request.submitter_id}")
        return record.model_copy(deep=True)

    def update(self, job_id: str, **fields) -> None:
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFoundError(job_id)
            data = current.model_dump()
            data.update(fields)
            data["updated_at"] = _now()
            self._jobs[job_id] = JobRecord.model_validate(data)

    def get(self, job_id: str) -> JobRecord:
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None:
                raise JobNotFoundError(job_id)
            return record.model_copy(deep=True)

    def list_for_submitter(self, submitter_id: str, limit: Optional[int] = None) -> list[JobRecord]:
        """Most recent jobs of one submitter, newest first."""
        limit = limit or config.JOB_LIST_LIMIT
        with self._lock:
            records = [r for r in self._jobs.values() if r.request.submitter_id == submitter_id]
            records.sort(key=lambda r: r.created_at, reverse=True)
            return [r.model_copy(deep=True) for r in records[:limit]]


_store = JobStore()


def get_job_store() -> JobStore:
    return _store


def reset_job_store() -> None:
    global _store
    _store = JobStore()
