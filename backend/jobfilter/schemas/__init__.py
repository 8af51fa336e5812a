"""Convenience exports for API schemas.

Re-exports the pydantic models used across the backend so consumers can import from one module.
"""

from .jobs import JobPayload, JobSnapshot, build_job_snapshot, require_job_id
from .preferences import (
    FeedbackRequest,
    FeedbackResponse,
    FilterRequest,
    FilterResponse,
    PreferenceSummary,
)

__all__ = [
    "JobPayload",
    "JobSnapshot",
    "build_job_snapshot",
    "require_job_id",
    "FeedbackRequest",
    "FeedbackResponse",
    "FilterRequest",
    "FilterResponse",
    "PreferenceSummary",
]
