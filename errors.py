"""
Error taxonomy shared by the job runner service and the client orchestrator.

Every error carries a short ``code`` (used in progress events and HTTP
bodies) and the HTTP status the runner service answers with.
"""
from typing import Optional


class ScrapingError(Exception):
    code = "scraping_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidArgumentError(ScrapingError):
    code = "invalid_argument"
    status_code = 400


class AlreadyRunningError(ScrapingError):
    code = "already_running"
    status_code = 409

    def __init__(self, message: str = "A scraping job is already running", details: Optional[str] = None):
        super().__init__(message, details)


class ConfigurationMissingError(ScrapingError):
    code = "configuration_missing"
    status_code = 500

    def __init__(self, missing: list[str]):
        super().__init__(
            "Job runner is not configured",
            f"Missing settings: {', '.join(missing)}",
        )
        self.missing = missing


class RemoteCallFailedError(ScrapingError):
    code = "remote_call_failed"
    status_code = 502

    def __init__(self, message: str, details: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, details)
        self.upstream_status = upstream_status


class JobCancelledError(ScrapingError):
    code = "cancelled"
    status_code = 499

    def __init__(self, message: str = "Scraping job was cancelled", details: Optional[str] = None):
        super().__init__(message, details)


class JobNotFoundError(ScrapingError):
    code = "not_found"
    status_code = 404

    def __init__(self, job_id: str):
        super().__init__("Job not found", f"No job with id {job_id}")
        self.job_id = job_id


class RunnerFailureError(ScrapingError):
    code = "runner_failure"
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, job_id: Optional[str] = None):
        super().__init__(message, details)
        self.job_id = job_id
