"""Feedback ledger: one label per (user, job).

Classes:
    FeedbackLedger: Upserts and lists like/dislike feedback.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from uuid import uuid4

from sqlalchemy import select
from sqlmodel.ext.asyncio.session import AsyncSession

from jobfilter.db.upsert import upsert
from jobfilter.models import FeedbackLabel, JobFeedback
from jobfilter.schemas.jobs import JobSnapshot
from jobfilter.utils.timestamps import as_utc, utcnow

_LOGGER = logging.getLogger(__name__)


class FeedbackLedger:
    async def submit(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        job_id: str,
        label: FeedbackLabel,
        snapshot: JobSnapshot,
        now: datetime | None = None,
    ) -> JobFeedback:
        """Record ``label`` for the job, keeping the first creation timestamp."""

        now = as_utc(now) if now is not None else utcnow()
        label = FeedbackLabel(label)
        await upsert(
            session,
            JobFeedback,
            keys={"user_id": user_id, "job_id": job_id},
            values={
                "label": label.value,
                "job": snapshot.model_dump(),
                "updated_at": now,
            },
            insert_only={"id": uuid4(), "created_at": now},
        )
        await session.commit()
        _LOGGER.info("Recorded %s for job %s (user %s)", label.value, job_id, user_id)

        result = await session.exec(self._select(user_id, job_id))
        return result.scalars().one()

    async def get(self, session: AsyncSession, *, user_id: str, job_id: str) -> JobFeedback | None:
        result = await session.exec(self._select(user_id, job_id))
        return result.scalars().first()

    @staticmethod
    def _select(user_id: str, job_id: str):
        return (
            select(JobFeedback)
            .where(JobFeedback.user_id == user_id, JobFeedback.job_id == job_id)
            .execution_options(populate_existing=True)
        )

    async def list_feedback(self, session: AsyncSession, *, user_id: str) -> list[JobFeedback]:
        stmt = (
            select(JobFeedback)
            .where(JobFeedback.user_id == user_id)
            .order_by(JobFeedback.created_at, JobFeedback.job_id)
            .execution_options(populate_existing=True)
        )
        result = await session.exec(stmt)
        return list(result.scalars())

    async def count_labels(self, session: AsyncSession, *, user_id: str) -> dict[FeedbackLabel, int]:
        records = await self.list_feedback(session, user_id=user_id)
        counts = Counter(FeedbackLabel(record.label) for record in records)
        return {label: counts.get(label, 0) for label in FeedbackLabel}
