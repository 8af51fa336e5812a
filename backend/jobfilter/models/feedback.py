"""Job feedback ledger model.

Classes:
    FeedbackLabel: Allowed feedback labels.
    JobFeedback: One like/dislike per (user, job), overwritten on resubmission.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import Field, SQLModel

from jobfilter.utils.timestamps import utcnow


class FeedbackLabel(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class JobFeedback(SQLModel, table=True):
    __tablename__ = "job_feedback"
    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_job_feedback_user_job"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    job_id: str = Field(index=True)
    label: str = Field(max_length=16)
    job: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
