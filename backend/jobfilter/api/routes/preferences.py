"""Preference summary endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from jobfilter.api.deps import get_preference_service, get_user_id
from jobfilter.db.session import get_session
from jobfilter.schemas import PreferenceSummary
from jobfilter.services.preferences import PreferenceService

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("", response_model=PreferenceSummary)
async def get_preferences(
    user_id: str = Depends(get_user_id),
    service: PreferenceService = Depends(get_preference_service),
    session: AsyncSession = Depends(get_session),
) -> PreferenceSummary:
    return await service.summary(session, user_id=user_id)
