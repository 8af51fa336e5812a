"""Compute-if-absent cache of job embeddings keyed by (user, job, model).

Classes:
    EmbeddingProvider: Protocol for anything that can embed a job snapshot.
    EmbeddingCacheService: Resolves vectors for a batch of jobs, embedding and persisting misses.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Protocol
from uuid import uuid4

import numpy as np
from sqlalchemy import select
from sqlmodel.ext.asyncio.session import AsyncSession

from jobfilter.core.errors import DimensionMismatchError
from jobfilter.db.upsert import upsert
from jobfilter.models import JobEmbedding
from jobfilter.schemas.jobs import JobSnapshot
from jobfilter.utils.text import build_job_embedding_input, text_hash
from jobfilter.utils.timestamps import utcnow
from jobfilter.utils.vectors import VECTOR_DTYPE, pack_vector, unpack_vector

_LOGGER = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    async def embed_job(self, job: JobSnapshot) -> list[float]: ...


class EmbeddingCacheService:
    def __init__(self, provider: EmbeddingProvider, *, concurrency: int = 4) -> None:
        self._provider = provider
        self._concurrency = max(1, concurrency)

    async def resolve(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        model_id: str,
        jobs: Mapping[str, JobSnapshot],
    ) -> dict[str, np.ndarray]:
        """Return a vector for every job id in ``jobs``.

        An existing entry for (user, job, model) is reused as-is; a job is
        embedded at most once per model. Misses are embedded concurrently and
        each one is committed as soon as it arrives, so a failure part-way
        through keeps earlier entries.
        """

        if not jobs:
            return {}

        stmt = (
            select(JobEmbedding)
            .where(
                JobEmbedding.user_id == user_id,
                JobEmbedding.model_id == model_id,
                JobEmbedding.job_id.in_(list(jobs.keys())),
            )
            .execution_options(populate_existing=True)
        )
        result = await session.exec(stmt)
        cached = {record.job_id: record for record in result.scalars()}

        vectors: dict[str, np.ndarray] = {}
        expected_dim: int | None = None
        misses: list[str] = []
        for job_id in jobs:
            record = cached.get(job_id)
            if record is None:
                misses.append(job_id)
                continue
            arr = unpack_vector(record.vector, record.dim)
            expected_dim = self._check_dim(expected_dim, arr)
            vectors[job_id] = arr

        _LOGGER.debug(
            "Embedding cache for user %s: %d hits, %d misses", user_id, len(vectors), len(misses)
        )
        if not misses:
            return vectors

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _embed(job_id: str) -> tuple[str, str, list[float]]:
            text = build_job_embedding_input(jobs[job_id])
            async with semaphore:
                return job_id, text_hash(text), await self._provider.embed_job(jobs[job_id])

        tasks = [asyncio.create_task(_embed(job_id)) for job_id in misses]
        try:
            for next_done in asyncio.as_completed(tasks):
                job_id, digest, raw = await next_done
                # Round through float32 so fresh and cached vectors are bit-identical.
                arr = np.asarray(raw, dtype=np.float32).astype(np.float64)
                expected_dim = self._check_dim(expected_dim, arr)
                await self._store(
                    session,
                    user_id=user_id,
                    job_id=job_id,
                    model_id=model_id,
                    digest=digest,
                    vector=arr,
                )
                vectors[job_id] = arr
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # Collects failures of tasks that finished after the first error.
            await asyncio.gather(*tasks, return_exceptions=True)

        return vectors

    async def _store(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        job_id: str,
        model_id: str,
        digest: str,
        vector: np.ndarray,
    ) -> None:
        now = utcnow()
        await upsert(
            session,
            JobEmbedding,
            keys={"user_id": user_id, "job_id": job_id, "model_id": model_id},
            values={
                "text_hash": digest,
                "vector": pack_vector(vector),
                "vector_dtype": VECTOR_DTYPE,
                "dim": int(vector.size),
                "updated_at": now,
            },
            insert_only={"id": uuid4(), "created_at": now},
        )
        await session.commit()

    @staticmethod
    def _check_dim(expected: int | None, arr: np.ndarray) -> int:
        if expected is not None and arr.size != expected:
            raise DimensionMismatchError(
                f"Embedding has {arr.size} components, expected {expected}"
            )
        return int(arr.size)
