"""Convenience exports for ORM models.

Surface frequently used SQLModel classes so calling code can import them from a single module.
"""

from .feedback import FeedbackLabel, JobFeedback
from .embedding_cache import JobEmbedding
from .centroid import PreferenceCentroid, PreferenceState
from .decision import DecisionSource, JobDecision

__all__ = [
    "FeedbackLabel",
    "JobFeedback",
    "JobEmbedding",
    "PreferenceCentroid",
    "PreferenceState",
    "DecisionSource",
    "JobDecision",
]
