"""Request-scoped dependencies shared by the route modules."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from jobfilter.core.config import get_settings
from jobfilter.services.preferences import PreferenceService


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return get_settings().default_user_id


def get_preference_service(request: Request) -> PreferenceService:
    return request.app.state.preference_service
