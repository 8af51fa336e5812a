"""Orchestration for the feedback and filter endpoints.

Classes:
    PreferenceService: Validates input, writes the ledger, triggers aggregation, and records decisions.

Functions:
    build_preference_service(embeddings, settings): Wire the ledger, cache, aggregator and classifier.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from sqlmodel.ext.asyncio.session import AsyncSession

from jobfilter.core.config import Settings, get_settings
from jobfilter.db.upsert import upsert
from jobfilter.models import DecisionSource, FeedbackLabel, JobDecision
from jobfilter.schemas.jobs import JobPayload, build_job_snapshot, require_job_id
from jobfilter.schemas.preferences import FeedbackResponse, FilterResponse, PreferenceSummary
from jobfilter.services.centroids import CentroidAggregator
from jobfilter.services.classifier import JobClassifier, preference_state
from jobfilter.services.embedding_cache import EmbeddingCacheService
from jobfilter.services.feedback import FeedbackLedger
from jobfilter.services.openai_client import OpenAIService
from jobfilter.utils.timestamps import as_utc, utcnow

_LOGGER = logging.getLogger(__name__)


class PreferenceService:
    def __init__(
        self,
        embeddings: OpenAIService,
        *,
        ledger: FeedbackLedger,
        aggregator: CentroidAggregator,
        classifier: JobClassifier,
    ) -> None:
        self._embeddings = embeddings
        self._ledger = ledger
        self._aggregator = aggregator
        self._classifier = classifier

    @property
    def model_id(self) -> str:
        return self._embeddings.model_id

    async def submit_feedback(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        job: JobPayload,
        label: FeedbackLabel,
    ) -> FeedbackResponse:
        job_id = require_job_id(job)
        snapshot = build_job_snapshot(job)
        # Configuration errors surface before anything is written.
        self._embeddings.ensure_configured()

        label = FeedbackLabel(label)
        await self._ledger.submit(
            session, user_id=user_id, job_id=job_id, label=label, snapshot=snapshot
        )
        await self._record_decision(
            session,
            user_id=user_id,
            job_id=job_id,
            accepted=label is FeedbackLabel.LIKE,
            source=DecisionSource.FEEDBACK,
        )
        centroid = await self._aggregator.recompute(session, user_id=user_id, model_id=self.model_id)
        return FeedbackResponse(
            likes_count=centroid.likes_count,
            dislikes_count=centroid.dislikes_count,
            model_id=self.model_id,
        )

    async def classify(self, session: AsyncSession, *, user_id: str, job: JobPayload) -> FilterResponse:
        job_id = require_job_id(job)
        record = await self._aggregator.load(session, user_id=user_id, model_id=self.model_id)
        snapshot = None
        if record is not None and record.positive is not None:
            snapshot = build_job_snapshot(job)
            self._embeddings.ensure_configured()

        result = await self._classifier.classify(
            session,
            record=record,
            user_id=user_id,
            model_id=self.model_id,
            job_id=job_id,
            snapshot=snapshot,
        )
        await self._record_decision(
            session,
            user_id=user_id,
            job_id=job_id,
            accepted=result.accept,
            source=DecisionSource.CLASSIFIER,
            reason=result.reason,
            sim_positive=result.sim_positive,
            sim_negative=result.sim_negative,
        )
        return FilterResponse(
            accept=result.accept,
            sim_positive=result.sim_positive,
            sim_negative=result.sim_negative,
            reason=result.reason,
            model_id=self.model_id,
        )

    async def summary(self, session: AsyncSession, *, user_id: str) -> PreferenceSummary:
        record = await self._aggregator.load(session, user_id=user_id, model_id=self.model_id)
        return PreferenceSummary(
            model_id=self.model_id,
            state=preference_state(record),
            likes_count=record.likes_count if record else 0,
            dislikes_count=record.dislikes_count if record else 0,
            updated_at=as_utc(record.updated_at) if record else None,
        )

    async def _record_decision(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        job_id: str,
        accepted: bool,
        source: DecisionSource,
        reason: Optional[str] = None,
        sim_positive: Optional[float] = None,
        sim_negative: Optional[float] = None,
    ) -> None:
        await upsert(
            session,
            JobDecision,
            keys={"user_id": user_id, "job_id": job_id},
            values={
                "model_id": self.model_id,
                "accepted": accepted,
                "source": source.value,
                "reason": reason,
                "sim_positive": sim_positive,
                "sim_negative": sim_negative,
                "decided_at": utcnow(),
            },
            insert_only={"id": uuid4()},
        )
        await session.commit()


def build_preference_service(
    embeddings: OpenAIService,
    settings: Optional[Settings] = None,
) -> PreferenceService:
    settings = settings or get_settings()
    ledger = FeedbackLedger()
    cache = EmbeddingCacheService(embeddings, concurrency=settings.embedding_concurrency)
    aggregator = CentroidAggregator(ledger, cache)
    classifier = JobClassifier(
        cache,
        positive_only_threshold=settings.positive_only_threshold,
    )
    return PreferenceService(
        embeddings,
        ledger=ledger,
        aggregator=aggregator,
        classifier=classifier,
    )
