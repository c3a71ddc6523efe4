"""Pydantic models for request/response validation."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from counter_agent.jobs.types import SUPPORTED_TASK, JobStatus


class InputDataItem(BaseModel):
    """One key/value entry of a job's input_data."""

    model_config = ConfigDict(extra="allow")

    key: Optional[str] = None
    value: Any = None


class StartJobResponse(BaseModel):
    """Response for an accepted job (times are unix seconds as strings)."""

    job_id: str
    payment_id: str
    inputHash: str
    blockchainIdentifier: str
    unlockTime: str
    externalDisputeUnlockTime: str
    submitResultTime: str


class JobStatusResponse(BaseModel):
    """Current state of a job."""

    job_id: str
    status: JobStatus
    result: Optional[str] = None


class AvailabilityResponse(BaseModel):
    """Service availability."""

    status: str = "available"
    uptime: int
    message: str


class ErrorResponse(BaseModel):
    """Error body for 4xx/5xx responses."""

    error: str


class StartJobRequest(BaseModel):
    """Body of POST /start_job."""

    input_data: list[Any]


class InputSchemaField(BaseModel):
    key: str
    value: dict[str, Any]


class InputSchemaResponse(BaseModel):
    """Accepted input_data shape."""

    input_data: list[InputSchemaField] = Field(
        default_factory=lambda: [
            InputSchemaField(
                key="task",
                value={"type": "string", "enum": [SUPPORTED_TASK]},
            )
        ]
    )
