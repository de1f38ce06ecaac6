"""
Client for the remote job runner.

``start_job`` is the async, cancellable start-job call used by the
orchestrator (httpx). ``get_job`` is a plain blocking lookup (requests) for
callers that need the authoritative record of a job by id.
"""
import asyncio
import logging
from typing import Optional

import httpx
import requests
from pydantic import ValidationError

import config
from api.models import JobRecord, JobRequest, StartJobResponse
from client.progress import CancellationHandle
from errors import (
    ConfigurationMissingError,
    JobCancelledError,
    JobNotFoundError,
    RemoteCallFailedError,
)

logger = logging.getLogger(__name__)

START_JOB_PATH = "/api/jobs"


class RunnerClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (config.RUNNER_URL if base_url is None else base_url).rstrip("/")
        self.api_key = config.RUNNER_API_KEY if api_key is None else api_key
        self.timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
        self._http = http_client

    def ensure_configured(self):
        missing = []
        if not self.base_url:
            missing.append("RUNNER_URL")
        if not self.api_key:
            missing.append("RUNNER_API_KEY")
        if missing:
            raise ConfigurationMissingError(missing)

    def _headers(self) -> dict:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def start_job(self, request: JobRequest, cancel: Optional[CancellationHandle] = None) -> StartJobResponse:
        """
        POST the job and wait for the runner's response.

        Raises ConfigurationMissingError before any I/O, JobCancelledError if
        ``cancel`` fires first, RemoteCallFailedError for transport errors and
        non-success responses.
        """
        self.ensure_configured()
        if cancel is not None and cancel.cancelled:
            raise JobCancelledError()

        call = asyncio.ensure_future(self._post(request))
        if cancel is None:
            return await call

        watcher = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({call, watcher}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            watcher.cancel()

        if not call.done():
            call.cancel()
            logger.info(f"Start-job call for '{request.query_text}' cancelled")
            raise JobCancelledError()
        return call.result()

    async def _post(self, request: JobRequest) -> StartJobResponse:
        url = f"{self.base_url}{START_JOB_PATH}"
        body = request.model_dump(mode="json", by_alias=True)
        try:
            if self._http is not None:
                resp = await self._http.post(url, json=body, headers=self._headers(), timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as http:
                    resp = await http.post(url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Runner call failed: {e}")
            raise RemoteCallFailedError("Job runner unreachable", f"{type(e).__name__}: {e}") from e

        data = _json_or_none(resp)
        if not resp.is_success or not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else None
            details = data.get("details") if isinstance(data, dict) else resp.text[:200]
            logger.error(f"Runner returned HTTP {resp.status_code}: {error or 'unexpected response'}")
            raise RemoteCallFailedError(
                error or f"Job runner returned HTTP {resp.status_code}",
                details,
                upstream_status=resp.status_code,
            )
        try:
            return StartJobResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Runner returned a malformed response: {e.error_count()} validation errors")
            raise RemoteCallFailedError(
                "Malformed job runner response",
                "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()),
                upstream_status=resp.status_code,
            ) from e

    def get_job(self, job_id: str) -> JobRecord:
        """Fetch the authoritative job record by id."""
        self.ensure_configured()
        try:
            resp = requests.get(
                f"{self.base_url}{START_JOB_PATH}/{job_id}",
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RemoteCallFailedError("Job runner unreachable", f"{type(e).__name__}: {e}") from e

        if resp.status_code == 404:
            raise JobNotFoundError(job_id)
        if not resp.ok:
            raise RemoteCallFailedError(
                f"Job lookup returned HTTP {resp.status_code}", resp.text[:200], upstream_status=resp.status_code
            )
        try:
            return JobRecord.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise RemoteCallFailedError(
                "Malformed job record", f"{type(e).__name__}: {e}", upstream_status=resp.status_code
            ) from e


def _json_or_none(resp: httpx.Response):
    try:
        return resp.json()
    except ValueError:
        return None
