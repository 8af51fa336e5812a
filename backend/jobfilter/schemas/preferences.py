"""Request and response schemas for feedback and filtering.

Classes:
    FeedbackRequest, FeedbackResponse: Body and result of a like/dislike submission.
    FilterRequest, FilterResponse: Body and result of classifying a candidate job.
    PreferenceSummary: Current centroid state for a user.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from jobfilter.models import FeedbackLabel, PreferenceState
from jobfilter.schemas.jobs import JobPayload


class FeedbackRequest(BaseModel):
    job: JobPayload
    label: FeedbackLabel


class FeedbackResponse(BaseModel):
    likes_count: int
    dislikes_count: int
    model_id: str


class FilterRequest(BaseModel):
    job: JobPayload


class FilterResponse(BaseModel):
    accept: bool
    sim_positive: Optional[float] = None
    sim_negative: Optional[float] = None
    reason: Optional[str] = None
    model_id: str


class PreferenceSummary(BaseModel):
    model_id: str
    state: PreferenceState
    likes_count: int
    dislikes_count: int
    updated_at: Optional[datetime] = None
