"""Embedding cache model for reusing job vectors across feedback rounds."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, Index, LargeBinary, UniqueConstraint
from sqlmodel import Field, SQLModel

from jobfilter.utils.timestamps import utcnow


class JobEmbedding(SQLModel, table=True):
    __tablename__ = "job_embeddings"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "job_id",
            "model_id",
            name="uq_job_embeddings_user_job_model",
        ),
        Index("ix_job_embeddings_user_model", "user_id", "model_id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    job_id: str = Field(index=True)
    model_id: str = Field(index=True)
    text_hash: str
    vector: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    vector_dtype: str = Field(default="float32")
    dim: int
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
