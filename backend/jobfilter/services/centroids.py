"""Preference centroid aggregation.

Classes:
    CentroidAggregator: Recomputes a user's positive/negative centroids from the full ledger.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator
from uuid import uuid4

from sqlalchemy import select
from sqlmodel.ext.asyncio.session import AsyncSession

from jobfilter.db.upsert import upsert
from jobfilter.models import FeedbackLabel, PreferenceCentroid
from jobfilter.schemas.jobs import JobSnapshot
from jobfilter.services.embedding_cache import EmbeddingCacheService
from jobfilter.services.feedback import FeedbackLedger
from jobfilter.utils.timestamps import utcnow
from jobfilter.utils.vectors import VECTOR_DTYPE, mean_vector, normalize_vector, pack_vector

_LOGGER = logging.getLogger(__name__)


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class CentroidAggregator:
    def __init__(self, ledger: FeedbackLedger, cache: EmbeddingCacheService) -> None:
        self._ledger = ledger
        self._cache = cache
        self._locks: dict[tuple[str, str], _KeyLock] = {}

    @property
    def active_locks(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def _serialized(self, key: tuple[str, str]) -> AsyncIterator[None]:
        # Entries live only while someone holds or waits on them.
        entry = self._locks.setdefault(key, _KeyLock())
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._locks[key]

    async def recompute(self, session: AsyncSession, *, user_id: str, model_id: str) -> PreferenceCentroid:
        """Rebuild both centroids from every feedback record the user has.

        This is a full pass over the ledger rather than an incremental update,
        so the stored record is always a function of the current labels.
        """

        async with self._serialized((user_id, model_id)):
            feedback = await self._ledger.list_feedback(session, user_id=user_id)
            jobs = {record.job_id: JobSnapshot.model_validate(record.job) for record in feedback}
            vectors = await self._cache.resolve(session, user_id=user_id, model_id=model_id, jobs=jobs)

            liked = [vectors[record.job_id] for record in feedback if record.label == FeedbackLabel.LIKE.value]
            disliked = [vectors[record.job_id] for record in feedback if record.label == FeedbackLabel.DISLIKE.value]

            positive_mean = mean_vector(liked)
            negative_mean = mean_vector(disliked)
            positive = normalize_vector(positive_mean) if positive_mean is not None else None
            negative = normalize_vector(negative_mean) if negative_mean is not None else None
            dim = next((int(v.size) for v in (positive, negative) if v is not None), 0)

            await upsert(
                session,
                PreferenceCentroid,
                keys={"user_id": user_id, "model_id": model_id},
                values={
                    "positive": pack_vector(positive) if positive is not None else None,
                    "negative": pack_vector(negative) if negative is not None else None,
                    "vector_dtype": VECTOR_DTYPE,
                    "dim": dim,
                    "likes_count": len(liked),
                    "dislikes_count": len(disliked),
                    "updated_at": utcnow(),
                },
                insert_only={"id": uuid4()},
            )
            await session.commit()
            _LOGGER.info(
                "Recomputed centroids for user %s (%s): %d likes, %d dislikes",
                user_id,
                model_id,
                len(liked),
                len(disliked),
            )

            result = await session.exec(self._select(user_id, model_id))
            return result.scalars().one()

    async def load(self, session: AsyncSession, *, user_id: str, model_id: str) -> PreferenceCentroid | None:
        result = await session.exec(self._select(user_id, model_id))
        return result.scalars().first()

    @staticmethod
    def _select(user_id: str, model_id: str):
        return (
            select(PreferenceCentroid)
            .where(PreferenceCentroid.user_id == user_id, PreferenceCentroid.model_id == model_id)
            .execution_options(populate_existing=True)
        )
