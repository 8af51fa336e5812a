"""Preference centroid model.

Classes:
    PreferenceState: Which centroids a user currently has.
    PreferenceCentroid: Unit-norm positive/negative mean vectors for one (user, model) pair.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, LargeBinary, UniqueConstraint
from sqlmodel import Field, SQLModel

from jobfilter.utils.timestamps import utcnow


class PreferenceState(str, Enum):
    UNSEEN = "unseen"
    POSITIVE_ONLY = "positive_only"
    NEGATIVE_ONLY = "negative_only"
    BOTH = "both"


class PreferenceCentroid(SQLModel, table=True):
    """Centroids are recomputed from the whole ledger; never patched in place.

    Attributes:
        positive: Normalised mean of liked job vectors, or None before the first like.
        negative: Normalised mean of disliked job vectors, or None before the first dislike.
        dim: Component count shared by both centroids (0 when neither exists).
        likes_count: Ledger likes seen by the last aggregation.
        dislikes_count: Ledger dislikes seen by the last aggregation.
    """

    __tablename__ = "preference_centroids"
    __table_args__ = (
        UniqueConstraint("user_id", "model_id", name="uq_preference_centroids_user_model"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    model_id: str = Field(index=True)
    positive: Optional[bytes] = Field(default=None, sa_column=Column(LargeBinary, nullable=True))
    negative: Optional[bytes] = Field(default=None, sa_column=Column(LargeBinary, nullable=True))
    vector_dtype: str = Field(default="float32")
    dim: int = Field(default=0)
    likes_count: int = Field(default=0)
    dislikes_count: int = Field(default=0)
    updated_at: datetime = Field(default_factory=utcnow)
