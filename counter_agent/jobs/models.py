"""Job system data models."""

import hashlib
import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from counter_agent.jobs.types import JobStatus


@dataclass
class Job:
    """A paid increment job."""

    job_id: str
    payment_id: str
    input_hash: str
    blockchain_identifier: str

    # Deadlines echoed to the caller (unix seconds)
    created_at: int
    unlock_time: int
    external_dispute_unlock_time: int
    submit_result_time: int

    status: JobStatus = JobStatus.AWAITING_PAYMENT
    # Set once, on the transition to COMPLETED or FAILED
    result: Optional[str] = None
    updated_at: float = field(default_factory=time.time)

    @classmethod
    def new(
        cls,
        input_data: list[dict[str, Any]],
        blockchain_identifier: str,
        unlock_offset: int = 600,
        submit_result_offset: int = 1200,
        external_dispute_offset: int = 1800,
        now: Optional[int] = None,
    ) -> "Job":
        """Create a fresh job awaiting payment, with generated identifiers."""
        created_at = int(time.time()) if now is None else now
        return cls(
            job_id=str(uuid.uuid4()),
            payment_id=str(uuid.uuid4()),
            input_hash=compute_input_hash(input_data),
            blockchain_identifier=blockchain_identifier,
            created_at=created_at,
            unlock_time=created_at + unlock_offset,
            external_dispute_unlock_time=created_at + external_dispute_offset,
            submit_result_time=created_at + submit_result_offset,
        )


def compute_input_hash(input_data: list[dict[str, Any]]) -> str:
    """SHA-256 of the canonical JSON encoding of a job's input."""
    canonical = json.dumps(input_data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
