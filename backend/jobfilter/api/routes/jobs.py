"""Job filter endpoint: accept or reject a candidate against stored preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from jobfilter.api.deps import get_preference_service, get_user_id
from jobfilter.db.session import get_session
from jobfilter.schemas import FilterRequest, FilterResponse
from jobfilter.services.preferences import PreferenceService

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("/filter", response_model=FilterResponse)
async def filter_job(
    payload: FilterRequest,
    user_id: str = Depends(get_user_id),
    service: PreferenceService = Depends(get_preference_service),
    session: AsyncSession = Depends(get_session),
) -> FilterResponse:
    return await service.classify(session, user_id=user_id, job=payload.job)
