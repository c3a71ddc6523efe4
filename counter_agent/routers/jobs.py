"""Job endpoints: start a paid increment job, poll its status, describe input."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from counter_agent.exceptions import JobNotFoundError, ShuttingDownError
from counter_agent.jobs.lifecycle import JobLifecycleManager
from counter_agent.jobs.types import SUPPORTED_TASK
from counter_agent.routers.metrics import record_rejection
from counter_agent.schemas import (
    ErrorResponse,
    InputDataItem,
    InputSchemaResponse,
    JobStatusResponse,
    StartJobRequest,
    StartJobResponse,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


class JobRequestRejected(Exception):
    """A /start_job body that must be answered with 400."""

    def __init__(self, reason: str, message: str):
        self.reason = reason
        self.message = message
        super().__init__(message)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _job_manager(request: Request) -> Optional[JobLifecycleManager]:
    return getattr(request.app.state, "jobs", None)


def parse_input_data(body: Any) -> list[dict[str, Any]]:
    """
    Validate a /start_job body and return its input_data entries.

    Raises:
        JobRequestRejected: input_data missing or not an array, or no entry
            with key "task" and value "increment"
    """
    try:
        parsed = StartJobRequest.model_validate(body)
    except ValidationError:
        raise JobRequestRejected(
            "invalid_input_data", "input_data must be an array"
        ) from None

    entries: list[dict[str, Any]] = []
    task: Any = None
    for raw in parsed.input_data:
        if not isinstance(raw, dict):
            continue
        try:
            item = InputDataItem.model_validate(raw)
        except ValidationError:
            # Entries with a non-string key cannot name the task
            continue
        entries.append(item.model_dump())
        if task is None and item.key == "task":
            task = item.value

    if task != SUPPORTED_TASK:
        raise JobRequestRejected("unsupported_task", "Unsupported task")
    return entries


@router.post(
    "/start_job",
    response_model=StartJobResponse,
    responses={
        200: {"description": "Job accepted, awaiting payment"},
        400: {"model": ErrorResponse, "description": "Invalid input_data or task"},
        503: {"model": ErrorResponse, "description": "Service not accepting jobs"},
    },
)
async def start_job(request: Request):
    """
    Accept an increment job.

    Responds immediately with the job and payment identifiers. Payment
    confirmation and the increment happen in the background; poll
    GET /status for progress.
    """
    try:
        body = await request.json()
    except ValueError:
        record_rejection("malformed_body")
        return _error(status.HTTP_400_BAD_REQUEST, "Request body must be JSON")

    try:
        input_data = parse_input_data(body)
    except JobRequestRejected as e:
        record_rejection(e.reason)
        logger.info("Job request rejected", reason=e.reason)
        return _error(status.HTTP_400_BAD_REQUEST, e.message)

    jobs = _job_manager(request)
    if jobs is None:
        record_rejection("not_ready")
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Service not ready")
    try:
        job = await jobs.submit(input_data)
    except ShuttingDownError as e:
        record_rejection("shutting_down")
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(e))

    logger.info("Job accepted", job_id=job.job_id, payment_id=job.payment_id)

    return StartJobResponse(
        job_id=job.job_id,
        payment_id=job.payment_id,
        inputHash=job.input_hash,
        blockchainIdentifier=job.blockchain_identifier,
        unlockTime=str(job.unlock_time),
        externalDisputeUnlockTime=str(job.external_dispute_unlock_time),
        submitResultTime=str(job.submit_result_time),
    )


@router.get(
    "/status",
    response_model=JobStatusResponse,
    responses={
        200: {"description": "Job status retrieved"},
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
async def get_job_status(request: Request, job_id: Optional[str] = None):
    """
    Get the status of a job.

    Statuses: AwaitingPayment, Running, Completed, Failed. ``result`` holds
    the transaction id or the failure reason once the job is terminal.
    """
    jobs = _job_manager(request)
    if not job_id or jobs is None:
        return _error(status.HTTP_404_NOT_FOUND, "Job not found")

    try:
        job = await jobs.registry.get(job_id)
    except JobNotFoundError:
        return _error(status.HTTP_404_NOT_FOUND, "Job not found")

    return JobStatusResponse(job_id=job.job_id, status=job.status, result=job.result)


@router.get("/input_schema", response_model=InputSchemaResponse)
async def input_schema() -> InputSchemaResponse:
    """Describe the accepted input_data: a single "task" enum."""
    return InputSchemaResponse()
