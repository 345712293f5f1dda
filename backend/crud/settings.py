"""
User settings database operations.
"""
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from database import insert_if_absent
from models import UserSettings
from schemas.settings_schema import DEFAULT_USER_SETTINGS
from utils.datetime_utils import db_now

logger = logging.getLogger(__name__)

# Columns that accept an explicit null
NULLABLE_SETTINGS = {"email_signature"}


def get_or_create_settings(db: Session, user_id: str) -> UserSettings:
    """The user's settings row, seeded with defaults on first read"""
    now = db_now()
    defaults = {**DEFAULT_USER_SETTINGS, "world_clocks": [], "created_at": now, "updated_at": now}
    return insert_if_absent(db, UserSettings, key={"user_id": user_id}, defaults=defaults)


def update_settings(db: Session, user_id: str, fields: Dict[str, Any]) -> UserSettings:
    """Apply only the fields present in the request"""
    settings = get_or_create_settings(db, user_id)

    for field, value in fields.items():
        if field not in DEFAULT_USER_SETTINGS:
            continue
        if value is None and field not in NULLABLE_SETTINGS:
            if field == "world_clocks":
                value = []
            else:
                continue
        setattr(settings, field, value)

    settings.updated_at = db_now()
    db.commit()
    db.refresh(settings)
    logger.info(f"Updated settings for user {user_id}: {sorted(fields)}")
    return settings


def set_whatsapp_connected(db: Session, user_id: str, connected: bool):
    """Flip the WhatsApp flag on an existing settings row; no row is created"""
    settings = db.query(UserSettings).filter(UserSettings.user_id == user_id).first()
    if settings is None:
        return
    settings.message_whatsapp_connected = connected
    settings.updated_at = db_now()
    db.commit()
