"""Feedback endpoint: record a like/dislike and refresh the user's centroids."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from jobfilter.api.deps import get_preference_service, get_user_id
from jobfilter.db.session import get_session
from jobfilter.schemas import FeedbackRequest, FeedbackResponse
from jobfilter.services.preferences import PreferenceService

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("", response_model=FeedbackResponse)
async def submit_feedback(
    payload: FeedbackRequest,
    user_id: str = Depends(get_user_id),
    service: PreferenceService = Depends(get_preference_service),
    session: AsyncSession = Depends(get_session),
) -> FeedbackResponse:
    return await service.submit_feedback(session, user_id=user_id, job=payload.job, label=payload.label)
