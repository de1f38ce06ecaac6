from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from errors import InvalidArgumentError


class WireModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobRequest(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    query_text: str
    location: str = ""
    result_limit: int = Field(gt=0)
    submitter_id: str

    @field_validator("query_text")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("queryText must not be empty")
        return value

    @field_validator("location")
    @classmethod
    def _strip_location(cls, value: str) -> str:
        return value.strip()


def build_request(**fields) -> JobRequest:
    """Validate request fields, raising InvalidArgumentError instead of ValidationError."""
    try:
        return JobRequest(**fields)
    except ValidationError as exc:
        raise InvalidArgumentError("Invalid job request", _describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "; ".join(parts)


class Coordinates(WireModel):
    lat: float
    lng: float


class BusinessRecord(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    category: str
    address: str
    phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0.0, le=5.0)
    review_count: Optional[int] = Field(default=None, ge=0)
    opening_hours: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class JobState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = (JobState.COMPLETED, JobState.FAILED)


class JobRecord(WireModel):
    id: str
    request: JobRequest
    state: JobState = JobState.PENDING
    progress_percent: int = Field(default=0, ge=0, le=100)
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result_count: Optional[int] = None
    results: Optional[list[BusinessRecord]] = None
    error_detail: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


class ProgressKind(str, Enum):
    STARTED = "started"
    UPDATE = "update"
    COMPLETED = "completed"
    ERROR = "error"


class ProgressEvent(WireModel):
    kind: ProgressKind
    message: Optional[str] = None
    percent: Optional[int] = None
    payload: Optional[list[BusinessRecord]] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None  # errors.ScrapingError.code, e.g. "cancelled"
    job_id: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in (ProgressKind.COMPLETED, ProgressKind.ERROR)


class StartJobResponse(WireModel):
    success: bool = True
    job_id: str
    results: list[BusinessRecord] = []
    total_found: int = 0


class ErrorResponse(WireModel):
    error: str
    details: Optional[str] = None
