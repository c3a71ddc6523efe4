"""Paid job lifecycle: registry, payment gate, execution."""

from counter_agent.jobs.models import Job
from counter_agent.jobs.registry import JobRegistry
from counter_agent.jobs.types import JobStatus

__all__ = ["Job", "JobRegistry", "JobStatus"]
