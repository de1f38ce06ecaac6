import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.models import JobRecord, JobRequest, StartJobResponse
from jobs.runner import JobRunner
from jobs.store import JobStore, get_job_store

_log = logging.getLogger(__name__)

router = APIRouter()


def get_runner(store: JobStore = Depends(get_job_store)) -> JobRunner:
    return JobRunner(store=store)


@router.post("/jobs", response_model=StartJobResponse)
def start_job(req: JobRequest, runner: JobRunner = Depends(get_runner)):
    """Run a scraping job to completion and return its results (runs in the threadpool)."""
    _log.info(f"[/api/jobs] {req.submitter_id}: '{req.query_text}' in '{req.location}'")
    record = runner.execute(req)
    results = record.results or []
    return StartJobResponse(job_id=record.id, results=results, total_found=len(results))


@router.get("/jobs/{job_id}", response_model=JobRecord)
def get_job(job_id: str, store: JobStore = Depends(get_job_store)):
    """Authoritative job record (state, progress, results)."""
    return store.get(job_id)


@router.get("/jobs", response_model=list[JobRecord])
def list_jobs(
    submitter_id: str = Query(alias="submitterId"),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    store: JobStore = Depends(get_job_store),
):
    return store.list_for_submitter(submitter_id, limit)
