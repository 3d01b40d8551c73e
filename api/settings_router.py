"""
Settings API Router.

Read, partially update and reset the planning settings record.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from api.dependencies import get_context
from api.response_models import SettingsResponse
from krocs.context import AppContext

logger = logging.getLogger(__name__)

settings_router = APIRouter(
    prefix="/api/settings",
    tags=["Settings"],
)


@settings_router.get("", response_model=SettingsResponse)
def get_settings(ctx: AppContext = Depends(get_context)) -> dict:
    return ctx.settings.get().to_dict()


@settings_router.patch("", response_model=SettingsResponse)
def update_settings(
    partial: dict[str, Any] = Body(..., description="Fields to deep-merge into the settings"),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """
    Deep-merge a partial settings document.

    Example: {"notifications": {"buffer_warning": {"threshold_percent": 90}}}
    """
    try:
        settings = ctx.settings.update(partial)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid settings: {e}") from e

    logger.info("Settings updated: %s", sorted(partial))
    return settings.to_dict()


@settings_router.post("/reset", response_model=SettingsResponse)
def reset_settings(ctx: AppContext = Depends(get_context)) -> dict:
    return ctx.settings.reset().to_dict()
