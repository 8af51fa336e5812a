"""Pydantic schemas describing job postings as they arrive from the scraper.

Classes:
    JobPayload: Loosely-validated job body; extra scraper fields are tolerated and ignored.
    JobSnapshot: Bounded record of the fields that feed the embedding input.

Functions:
    build_job_snapshot(job): Validate required text fields and return a JobSnapshot.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobfilter.core.errors import InvalidJobError

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Any = None
    title: Any = None
    location: Any = None
    salary_info: Any = None
    salary: Any = None
    benefits: Any = None
    description_text: Any = None
    seniority_level: Any = None
    employment_type: Any = None


class JobSnapshot(BaseModel):
    model_config = _CAMEL

    title: str
    location: str
    salary_info: list[str] = Field(default_factory=list)
    salary: str
    benefits: list[str] = Field(default_factory=list)
    description_text: str
    seniority_level: Optional[str] = None
    employment_type: str


_REQUIRED_TEXT_FIELDS = ("title", "location", "salary", "description_text", "employment_type")


def require_job_id(job: JobPayload) -> str:
    if not isinstance(job.id, str) or not job.id.strip():
        raise InvalidJobError("Job must include a valid id", code="InvalidJobId")
    return job.id


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def build_job_snapshot(job: JobPayload) -> JobSnapshot:
    missing = [name for name in _REQUIRED_TEXT_FIELDS if not isinstance(getattr(job, name), str)]
    if missing:
        raise InvalidJobError(f"Job must include required embedding fields: {', '.join(missing)}")

    seniority = job.seniority_level if isinstance(job.seniority_level, str) else None
    return JobSnapshot(
        title=job.title,
        location=job.location,
        salary_info=_string_list(job.salary_info),
        salary=job.salary,
        benefits=_string_list(job.benefits),
        description_text=job.description_text,
        seniority_level=seniority,
        employment_type=job.employment_type,
    )
