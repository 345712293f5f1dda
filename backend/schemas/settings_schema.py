"""
User settings: default seed values, partial-update body and representation.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from schemas.base_schema import RequestModel
from models import UserSettings
from utils.datetime_utils import iso

# Seed record for a user's first settings read, keyed by column name
DEFAULT_USER_SETTINGS: Dict[str, Any] = {
    # Calendar
    "calendar_default_duration": 60,
    "calendar_weekend_mode": "both_off",
    "calendar_first_day_of_week": "sunday",
    "calendar_google_connected": False,
    "calendar_outlook_connected": False,
    "calendar_apple_connected": False,
    "calendar_show_current_event": True,

    # Clock
    "clock_show_seconds": True,
    "clock_timezone": "Asia/Kolkata",
    "timer_default_duration": 300,
    "timer_sound_enabled": True,
    "world_clocks": [],

    # Workspace
    "workspace_theme": "light",
    "workspace_theme_mode": "automatic",
    "workspace_accent_color": "#F4B000",
    "workspace_auto_save": 1500,
    "workspace_font_size": 14,
    "workspace_spell_check": True,
    "ai_analysis_mode": "automatic",

    # Todo
    "todo_default_priority": "medium",
    "todo_show_completed": True,
    "todo_auto_archive_days": 30,
    "todo_sort_by": "date",
    "todo_reminders_enabled": True,

    # Email
    "email_signature": None,
    "email_notifications": True,
    "email_gmail_connected": False,
    "email_outlook_connected": False,

    # Messages
    "message_read_receipts": True,
    "message_notifications": True,
    "message_whatsapp_connected": False,
    "message_slack_connected": False,

    # General
    "language": "en",
    "date_format": "DD/MM/YYYY",
    "notifications_enabled": True,
}

# Wire names that to_camel would spell differently
_ALIAS_OVERRIDES = {
    "message_whatsapp_connected": "messageWhatsAppConnected",
}


def settings_alias(field_name: str) -> str:
    return _ALIAS_OVERRIDES.get(field_name) or to_camel(field_name)


class WorldClock(RequestModel):
    city: str
    timezone: str


class SettingsUpdate(RequestModel):
    """Every field optional; unknown keys are rejected"""
    model_config = ConfigDict(alias_generator=settings_alias, populate_by_name=True, extra="forbid")

    calendar_default_duration: Optional[int] = Field(default=None, gt=0)
    calendar_weekend_mode: Optional[Literal["all_working", "alternate_sat", "both_off"]] = None
    calendar_first_day_of_week: Optional[Literal["sunday", "monday"]] = None
    calendar_google_connected: Optional[bool] = None
    calendar_outlook_connected: Optional[bool] = None
    calendar_apple_connected: Optional[bool] = None
    calendar_show_current_event: Optional[bool] = None

    clock_show_seconds: Optional[bool] = None
    clock_timezone: Optional[str] = None
    timer_default_duration: Optional[int] = Field(default=None, gt=0)
    timer_sound_enabled: Optional[bool] = None
    world_clocks: Optional[List[WorldClock]] = None

    workspace_theme: Optional[Literal["light", "dark"]] = None
    workspace_theme_mode: Optional[Literal["manual", "automatic"]] = None
    workspace_accent_color: Optional[str] = None
    workspace_auto_save: Optional[int] = Field(default=None, ge=0)
    workspace_font_size: Optional[int] = Field(default=None, gt=0)
    workspace_spell_check: Optional[bool] = None
    ai_analysis_mode: Optional[Literal["manual", "automatic"]] = None

    todo_default_priority: Optional[Literal["low", "medium", "high"]] = None
    todo_show_completed: Optional[bool] = None
    todo_auto_archive_days: Optional[int] = Field(default=None, ge=0)
    todo_sort_by: Optional[Literal["date", "priority", "manual"]] = None
    todo_reminders_enabled: Optional[bool] = None

    email_signature: Optional[str] = None
    email_notifications: Optional[bool] = None
    email_gmail_connected: Optional[bool] = None
    email_outlook_connected: Optional[bool] = None

    message_read_receipts: Optional[bool] = None
    message_notifications: Optional[bool] = None
    message_whatsapp_connected: Optional[bool] = None
    message_slack_connected: Optional[bool] = None

    language: Optional[str] = None
    date_format: Optional[str] = None
    notifications_enabled: Optional[bool] = None


def serialize_settings(settings: UserSettings) -> Dict[str, Any]:
    data = {
        "id": settings.id,
        "userId": settings.user_id,
        "createdAt": iso(settings.created_at),
        "updatedAt": iso(settings.updated_at),
    }
    for field in DEFAULT_USER_SETTINGS:
        data[settings_alias(field)] = getattr(settings, field)
    return data
