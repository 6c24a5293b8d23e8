from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from higgsfield_client.errors import BadInputError
from higgsfield_client.polling import poll_until_settled

if TYPE_CHECKING:
    from higgsfield_client.transport import HttpTransport

DEFAULT_BASE_URL = "https://platform.higgsfield.ai"


class ClientConfig(BaseModel):
    """Immutable client settings. All durations are in seconds."""

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(default=120.0, gt=0)
    max_retries: int = Field(default=3, ge=0, le=5)
    retry_backoff: float = Field(default=1.0, gt=0)
    retry_max_backoff: float = Field(default=60.0, gt=0)
    poll_interval: float = Field(default=2.0, gt=0)
    max_poll_time: float = Field(default=300.0, gt=0)
    base_url: str = DEFAULT_BASE_URL
    headers: Dict[str, str] = Field(default_factory=dict)
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    credentials: Optional[str] = None

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class Credentials(BaseModel):
    api_key: str
    api_secret: str

    @classmethod
    def parse(cls, value: str) -> "Credentials":
        """Parse a combined ``"KEY_ID:KEY_SECRET"`` string."""
        parts = value.split(":")
        if len(parts) != 2 or not all(parts):
            raise BadInputError('Credentials must be in format "KEY_ID:KEY_SECRET"')
        return cls(api_key=parts[0], api_secret=parts[1])


class JobStatus(str, Enum):
    queued = "queued"
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"
    nsfw = "nsfw"
    canceled = "canceled"


TERMINAL_JOB_STATUSES = frozenset(
    {JobStatus.completed, JobStatus.failed, JobStatus.nsfw, JobStatus.canceled}
)
# The request protocol has no cancellation status of its own.
TERMINAL_REQUEST_STATUSES = frozenset(
    {JobStatus.completed, JobStatus.nsfw, JobStatus.failed}
)


class Result(BaseModel):
    url: str
    type: str


class Job(BaseModel):
    id: str
    status: JobStatus
    results: Optional[Dict[str, Result]] = None


class JobSet(BaseModel):
    """A batch of jobs created by one generation request."""

    id: str
    jobs: List[Job] = Field(default_factory=list)

    def _any_job(self, status: JobStatus) -> bool:
        return any(job.status == status for job in self.jobs)

    @property
    def is_queued(self) -> bool:
        return self._any_job(JobStatus.queued)

    @property
    def is_in_progress(self) -> bool:
        return self._any_job(JobStatus.in_progress)

    @property
    def is_completed(self) -> bool:
        return self._any_job(JobStatus.completed)

    @property
    def is_failed(self) -> bool:
        return self._any_job(JobStatus.failed)

    @property
    def is_nsfw(self) -> bool:
        return self._any_job(JobStatus.nsfw)

    @property
    def is_canceled(self) -> bool:
        return self._any_job(JobStatus.canceled)

    @property
    def is_settled(self) -> bool:
        """Polling stops as soon as any one job reaches a terminal status."""
        return any(job.status in TERMINAL_JOB_STATUSES for job in self.jobs)

    @property
    def polling_url(self) -> str:
        return f"/v1/job-sets/{self.id}"

    def apply_status(self, data: Dict[str, Any]) -> None:
        self.jobs = [Job.model_validate(job) for job in data.get("jobs", [])]

    async def poll(self, transport: "HttpTransport", config: ClientConfig) -> None:
        await poll_until_settled(
            transport,
            config,
            self.polling_url,
            apply=self.apply_status,
            is_settled=lambda: self.is_settled,
        )


def _request_results(data: Dict[str, Any]) -> Optional[Dict[str, Result]]:
    """Both result slots carry the first image, or else the video."""
    images = data.get("images") or []
    video = data.get("video")
    if images:
        result = Result(url=images[0]["url"], type="image")
    elif video:
        result = Result(url=video["url"], type="video")
    else:
        return None
    return {"raw": result, "min": result}


class RequestJobSet(JobSet):
    """A single request from the request-based API, shaped like a job set."""

    status_url: Optional[str] = None
    cancel_url: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "RequestJobSet":
        request_id = data.get("request_id") or ""
        return cls(
            id=request_id,
            jobs=[cls._job_from(request_id, data)],
            status_url=data.get("status_url"),
            cancel_url=data.get("cancel_url"),
        )

    @staticmethod
    def _job_from(request_id: str, data: Dict[str, Any]) -> Job:
        return Job(id=request_id, status=data["status"], results=_request_results(data))

    @property
    def is_settled(self) -> bool:
        return any(job.status in TERMINAL_REQUEST_STATUSES for job in self.jobs)

    @property
    def polling_url(self) -> str:
        return f"/requests/{self.id}/status"

    def apply_status(self, data: Dict[str, Any]) -> None:
        self.jobs = [self._job_from(self.id, data)]


class SoulIdStatus(str, Enum):
    not_ready = "not_ready"
    queued = "queued"
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"


class SoulId(BaseModel):
    """A custom character reference trained from user images."""

    id: str
    name: str
    status: SoulIdStatus

    @property
    def is_completed(self) -> bool:
        return self.status == SoulIdStatus.completed

    @property
    def is_failed(self) -> bool:
        return self.status == SoulIdStatus.failed

    @property
    def polling_url(self) -> str:
        return f"/v1/custom-references/{self.id}"

    def apply_status(self, data: Dict[str, Any]) -> None:
        self.status = SoulIdStatus(data["status"])

    async def poll(self, transport: "HttpTransport", config: ClientConfig) -> None:
        await poll_until_settled(
            transport,
            config,
            self.polling_url,
            apply=self.apply_status,
            is_settled=lambda: self.is_completed or self.is_failed,
        )


class SoulIdList(BaseModel):
    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 0
    items: List[SoulId] = Field(default_factory=list)


class Motion(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    preview_url: Optional[str] = None
    start_end_frame: Optional[bool] = None


class SoulStyle(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    preview_url: Optional[str] = None


class UploadResponse(BaseModel):
    upload_url: str
    public_url: str


class Webhook(BaseModel):
    url: str
    secret: str
