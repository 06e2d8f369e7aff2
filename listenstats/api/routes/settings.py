from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from listenstats import app_settings

router = APIRouter()


class SettingsPatch(BaseModel):
    display: dict[str, Any] | None = None
    concerts: dict[str, Any] | None = None


@router.get("")
async def get_settings() -> dict[str, Any]:
    return app_settings.load_settings()


@router.put("")
async def update_settings(payload: SettingsPatch) -> dict[str, Any]:
    patch = payload.model_dump(exclude_none=True)
    return app_settings.update_settings(patch)
