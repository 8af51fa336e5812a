from collections.abc import AsyncGenerator
from typing import Any, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import jobfilter.models  # noqa: F401
from jobfilter.api.deps import get_preference_service
from jobfilter.core.config import Settings
from jobfilter.core.errors import EmbeddingServiceError, MissingCredentialError
from jobfilter.db.session import get_session
from jobfilter.main import app
from jobfilter.schemas.jobs import JobPayload, JobSnapshot
from jobfilter.services.preferences import PreferenceService, build_preference_service


class FakeEmbeddingService:
    """Stands in for OpenAIService; vectors are looked up by job title."""

    model_id = "fake-embedding"

    def __init__(self) -> None:
        self.vectors: dict[str, list[float]] = {}
        self.default_vector: list[float] = [1.0, 0.0, 0.0]
        self.fail_titles: set[str] = set()
        self.configured = True
        self.calls: list[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def ensure_configured(self) -> None:
        if not self.configured:
            raise MissingCredentialError()

    async def embed_job(self, job: JobSnapshot) -> list[float]:
        self.ensure_configured()
        self.calls.append(job.title)
        if job.title in self.fail_titles:
            raise EmbeddingServiceError("Failed to create job embedding: upstream 503")
        return list(self.vectors.get(job.title, self.default_vector))


def make_job(job_id: str, title: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": job_id,
        "title": title,
        "companyName": "Acme",
        "location": "Berlin",
        "salaryInfo": ["60k-70k EUR"],
        "salary": "65000",
        "benefits": ["Remote", "Pension"],
        "descriptionText": f"{title} working on data pipelines",
        "seniorityLevel": "Mid-Senior level",
        "employmentType": "Full-time",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def job_factory() -> Callable[..., dict[str, Any]]:
    return make_job


@pytest.fixture()
def payload_factory() -> Callable[..., JobPayload]:
    def _build(job_id: str, title: str, **overrides: Any) -> JobPayload:
        return JobPayload.model_validate(make_job(job_id, title, **overrides))

    return _build


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key=None,
        positive_only_threshold=0.3,
        embedding_concurrency=2,
    )


@pytest.fixture()
def embeddings() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture()
def preference_service(embeddings: FakeEmbeddingService, settings: Settings) -> PreferenceService:
    return build_preference_service(embeddings, settings)  # type: ignore[arg-type]


@pytest_asyncio.fixture()
async def session() -> AsyncGenerator[AsyncSession, None]:
    engine: AsyncEngine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    async_session = AsyncSession(engine, expire_on_commit=False)
    try:
        yield async_session
    finally:
        await async_session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(
    session: AsyncSession, preference_service: PreferenceService
) -> AsyncGenerator[AsyncClient, None]:
    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_preference_service] = lambda: preference_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()
