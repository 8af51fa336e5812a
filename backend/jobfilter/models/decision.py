"""Filter decision model.

Classes:
    DecisionSource: Where a decision came from.
    JobDecision: Last accept/reject outcome recorded for a (user, job) pair.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from jobfilter.utils.timestamps import utcnow


class DecisionSource(str, Enum):
    FEEDBACK = "feedback"
    CLASSIFIER = "classifier"


class JobDecision(SQLModel, table=True):
    __tablename__ = "job_decisions"
    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_job_decisions_user_job"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    job_id: str = Field(index=True)
    model_id: str
    accepted: bool
    source: str = Field(default=DecisionSource.CLASSIFIER.value, max_length=16)
    reason: Optional[str] = None
    sim_positive: Optional[float] = None
    sim_negative: Optional[float] = None
    decided_at: datetime = Field(default_factory=utcnow, index=True)
