"""Service layer exports.

Expose the embedding client and the preference services for easy importing.
"""

from .openai_client import OpenAIService
from .embedding_cache import EmbeddingCacheService
from .feedback import FeedbackLedger
from .centroids import CentroidAggregator
from .classifier import JobClassifier
from .preferences import PreferenceService, build_preference_service

__all__ = [
    "OpenAIService",
    "EmbeddingCacheService",
    "FeedbackLedger",
    "CentroidAggregator",
    "JobClassifier",
    "PreferenceService",
    "build_preference_service",
]
