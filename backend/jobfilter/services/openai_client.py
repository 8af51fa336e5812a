"""Async OpenAI embeddings wrapper.

Classes:
    OpenAIService: Turns job snapshots into embedding vectors with retry semantics.

Functions:
    build_client(settings): Construct the AsyncOpenAI client once per application lifespan.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from jobfilter.core.config import Settings, get_settings
from jobfilter.core.errors import EmbeddingServiceError, MissingCredentialError
from jobfilter.schemas.jobs import JobSnapshot
from jobfilter.services.retry import RetryOptions, execute
from jobfilter.utils.text import build_job_embedding_input

_LOGGER = logging.getLogger(__name__)


def build_client(settings: Settings) -> Optional[AsyncOpenAI]:
    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
    if not api_key:
        return None
    # Retries are owned by the retry wrapper, not the SDK.
    return AsyncOpenAI(api_key=api_key, timeout=settings.openai_timeout_seconds, max_retries=0)


class OpenAIService:
    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        settings: Optional[Settings] = None,
        retry_options: Optional[RetryOptions] = None,
        sleep: Any = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client if client is not None else build_client(self._settings)
        self._retry_options = retry_options or RetryOptions.from_settings(self._settings)
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    @property
    def model_id(self) -> str:
        return self._settings.openai_embedding_model

    def ensure_configured(self) -> None:
        if self._client is None:
            raise MissingCredentialError()

    async def embed_text(self, text: str) -> list[float]:
        self.ensure_configured()
        payload = dict(model=self.model_id, input=text)

        async def _call():
            return await self._client.embeddings.create(**payload)

        retry_kwargs: dict[str, Any] = {"context": f"embed ({len(text)} chars)"}
        if self._sleep is not None:
            retry_kwargs["sleep"] = self._sleep
        try:
            response = await execute(_call, self._retry_options, **retry_kwargs)
        except openai.OpenAIError as exc:
            raise EmbeddingServiceError(f"Failed to create job embedding: {exc}") from exc

        return list(response.data[0].embedding)

    async def embed_job(self, job: JobSnapshot) -> list[float]:
        return await self.embed_text(build_job_embedding_input(job))

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
