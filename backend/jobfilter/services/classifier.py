"""Accept/reject decisions for candidate jobs against stored centroids.

Classes:
    Classification: Outcome of classifying one job.
    JobClassifier: Embeds the candidate and applies the decision rule to a loaded centroid record.

Functions:
    preference_state(record): Derive the state from a centroid record.
    decide(sim_positive, sim_negative, threshold): The pure decision rule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from jobfilter.core.errors import InvalidJobError
from jobfilter.models import PreferenceCentroid, PreferenceState
from jobfilter.schemas.jobs import JobSnapshot
from jobfilter.services.embedding_cache import EmbeddingCacheService
from jobfilter.utils.vectors import cosine_similarity, unpack_vector

_LOGGER = logging.getLogger(__name__)

NO_LIKES_REASON = "no-likes"


@dataclass(slots=True)
class Classification:
    accept: bool
    sim_positive: Optional[float]
    sim_negative: Optional[float]
    state: PreferenceState
    reason: Optional[str] = None


def preference_state(record: PreferenceCentroid | None) -> PreferenceState:
    if record is None:
        return PreferenceState.UNSEEN
    has_positive = record.positive is not None
    has_negative = record.negative is not None
    if has_positive and has_negative:
        return PreferenceState.BOTH
    if has_positive:
        return PreferenceState.POSITIVE_ONLY
    if has_negative:
        return PreferenceState.NEGATIVE_ONLY
    return PreferenceState.UNSEEN


def decide(sim_positive: float, sim_negative: Optional[float], threshold: float) -> bool:
    """Comparative rule once both classes exist, absolute cutoff otherwise. Ties reject."""

    if sim_negative is not None:
        return sim_positive > sim_negative
    return sim_positive > threshold


class JobClassifier:
    def __init__(
        self,
        cache: EmbeddingCacheService,
        *,
        positive_only_threshold: float = 0.3,
    ) -> None:
        self._cache = cache
        self._threshold = positive_only_threshold

    async def classify(
        self,
        session: AsyncSession,
        *,
        record: PreferenceCentroid | None,
        user_id: str,
        model_id: str,
        job_id: str,
        snapshot: JobSnapshot | None,
    ) -> Classification:
        """Classify one candidate against an already-loaded centroid ``record``.

        ``snapshot`` may be None only when the record has no positive centroid;
        a job is never embedded unless a decision depends on it.
        """

        state = preference_state(record)

        # A dislikes-only user has nothing to compare against, same as a new one.
        if record is None or record.positive is None:
            return Classification(
                accept=False,
                sim_positive=None,
                sim_negative=None,
                state=state,
                reason=NO_LIKES_REASON,
            )
        if snapshot is None:
            raise InvalidJobError("Job must include required embedding fields")

        positive = unpack_vector(record.positive, record.dim)
        negative = unpack_vector(record.negative, record.dim)

        vectors = await self._cache.resolve(
            session, user_id=user_id, model_id=model_id, jobs={job_id: snapshot}
        )
        candidate = vectors[job_id]

        sim_positive = cosine_similarity(positive, candidate)
        sim_negative = cosine_similarity(negative, candidate) if negative is not None else None
        accept = decide(sim_positive, sim_negative, self._threshold)
        _LOGGER.debug(
            "Classified job %s for user %s: accept=%s pos=%.4f neg=%s",
            job_id,
            user_id,
            accept,
            sim_positive,
            f"{sim_negative:.4f}" if sim_negative is not None else None,
        )
        return Classification(
            accept=accept,
            sim_positive=sim_positive,
            sim_negative=sim_negative,
            state=state,
        )
