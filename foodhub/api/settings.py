"""
Settings API

String key/value feature flags that drive what the client apps show.
Values are "true"/"false" for switches; clients load them once per session.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodhub.core.exceptions import NotFoundError, ValidationError
from foodhub.database import get_db
from foodhub.models import SystemSetting
from foodhub.schemas import UiSettingResponse, UiSettingUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Settings"])

# key -> (default value, description)
DEFAULT_UI_SETTINGS = {
    "show_categories": ("true", "Show the category tabs on the home page"),
    "show_search_bar": ("true", "Show the search bar"),
    "show_special_offers": ("true", "Show the special offers carousel"),
    "show_cart_button": ("true", "Show the floating cart button"),
    "show_ratings": ("true", "Show restaurant ratings"),
    "show_delivery_time": ("true", "Show estimated delivery time on restaurant cards"),
    "show_minimum_order": ("true", "Show the minimum order amount"),
    "show_restaurant_description": ("true", "Show restaurant descriptions"),
    "enable_location_services": ("false", "Ask customers for their location"),
}


async def seed_default_settings(db: AsyncSession) -> int:
    """Insert missing default flags; existing values are left alone."""
    result = await db.execute(select(SystemSetting.key))
    existing = set(result.scalars().all())

    created = 0
    for key, (value, description) in DEFAULT_UI_SETTINGS.items():
        if key not in existing:
            db.add(SystemSetting(key=key, value=value, description=description, category="ui"))
            created += 1

    if created:
        await db.commit()
        logger.info(f"Seeded {created} default UI settings")
    return created


async def _get_setting(db: AsyncSession, key: str) -> SystemSetting:
    result = await db.execute(select(SystemSetting).where(SystemSetting.key == key))
    setting = result.scalar_one_or_none()
    if setting is None:
        raise NotFoundError(f"Setting '{key}' not found")
    return setting


@router.get("/settings", response_model=dict[str, str])
async def public_settings(db: AsyncSession = Depends(get_db)):
    """Public flags as a flat ``{key: value}`` object."""
    result = await db.execute(
        select(SystemSetting).where(SystemSetting.is_public.is_(True)).order_by(SystemSetting.key)
    )
    return {s.key: s.value for s in result.scalars().all()}


@router.get("/ui-settings", response_model=list[UiSettingResponse])
async def list_ui_settings(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(SystemSetting).order_by(SystemSetting.key))
    return result.scalars().all()


@router.get("/ui-settings/{key}", response_model=UiSettingResponse)
async def get_ui_setting(key: str, db: AsyncSession = Depends(get_db)):
    return await _get_setting(db, key)


@router.put("/ui-settings/{key}", response_model=UiSettingResponse)
async def update_ui_setting(key: str, data: UiSettingUpdate, db: AsyncSession = Depends(get_db)):
    if data.value is None:
        raise ValidationError("Setting value is required")

    setting = await _get_setting(db, key)
    setting.value = data.as_text()
    await db.commit()
    await db.refresh(setting)

    logger.info(f"UI setting {key} = {setting.value}")
    return setting
