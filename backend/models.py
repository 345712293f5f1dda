"""
Database models for the EXEAI application.
Core entities: Users, Tasks (to-dos and calendar events), Pages, Daily Notes, Settings
"""
from sqlalchemy import (
    Column, String, DateTime, Date, Text, Integer, Boolean, ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
import uuid

from utils.datetime_utils import db_now

Base = declarative_base()

CALENDAR_TYPES = ("meeting", "event", "travel", "birthday", "reminder")


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String)
    email = Column(String, nullable=False, unique=True, index=True)
    password = Column(String)  # bcrypt hash, empty for OAuth-only accounts
    image = Column(String)

    # Subscription
    subscription_tier = Column(String, default="free_trial")  # free_trial, pro, ...
    subscription_status = Column(String, default="active")    # active, canceled, past_due
    trial_ends_at = Column(DateTime)
    current_period_end = Column(DateTime)

    # Gmail integration
    gmail_connected = Column(Boolean, default=False)
    gmail_email = Column(String)
    gmail_access_token = Column(Text)
    gmail_refresh_token = Column(Text)
    gmail_token_expiry = Column(DateTime)

    created_at = Column(DateTime, default=db_now)
    updated_at = Column(DateTime, default=db_now, onupdate=db_now)

    # Relationships
    tasks = relationship("Task", back_populates="user", cascade="all, delete-orphan")
    pages = relationship("Page", back_populates="user", cascade="all, delete-orphan")
    daily_notes = relationship("DailyNote", back_populates="user", cascade="all, delete-orphan")
    settings = relationship("UserSettings", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(email='{self.email}', tier='{self.subscription_tier}')>"


class DailyNote(Base):
    __tablename__ = "daily_notes"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    content = Column(Text, default="")
    extra_data = Column("metadata", JSON)

    created_at = Column(DateTime, default=db_now)
    updated_at = Column(DateTime, default=db_now, onupdate=db_now)

    user = relationship("User", back_populates="daily_notes")
    tasks = relationship("Task", back_populates="daily_note", order_by="Task.created_at")

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_note_user_date"),
        Index("idx_daily_note_user_date", "user_id", "date"),
    )

    def __repr__(self):
        return f"<DailyNote(user_id='{self.user_id}', date='{self.date}')>"


class Task(Base):
    """A to-do item, daily-note bullet or calendar event, told apart by `type`"""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    daily_note_id = Column(String, ForeignKey("daily_notes.id", ondelete="SET NULL"), index=True)

    title = Column(String, nullable=False)
    description = Column(Text)
    type = Column(String, default="task", index=True)  # task, meeting, event, travel, birthday, reminder
    completed = Column(Boolean, default=False, index=True)
    completed_at = Column(DateTime)
    priority = Column(String, default="medium")  # low, medium, high
    due_date = Column(DateTime)
    due_time = Column(String)  # free-form time, or the end instant for calendar events
    reminder = Column(DateTime)
    extra_data = Column("metadata", JSON)

    created_at = Column(DateTime, default=db_now)
    updated_at = Column(DateTime, default=db_now, onupdate=db_now)

    user = relationship("User", back_populates="tasks")
    daily_note = relationship("DailyNote", back_populates="tasks")

    __table_args__ = (
        Index("idx_task_user_completed", "user_id", "completed"),
        Index("idx_task_user_type", "user_id", "type"),
        Index("idx_task_user_due", "user_id", "due_date"),
    )

    def __repr__(self):
        return f"<Task(title='{self.title}', type='{self.type}', completed={self.completed})>"


class Page(Base):
    __tablename__ = "pages"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False, default="Untitled Page")
    content = Column(Text, default="")
    tags = Column(JSON, default=list)
    linked_pages = Column(JSON, default=list)  # ids of pages this page links to

    created_at = Column(DateTime, default=db_now)
    updated_at = Column(DateTime, default=db_now, onupdate=db_now)

    user = relationship("User", back_populates="pages")

    __table_args__ = (
        Index("idx_page_user_updated", "user_id", "updated_at"),
    )

    def __repr__(self):
        return f"<Page(title='{self.title}')>"


class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    # Calendar
    calendar_default_duration = Column(Integer)  # minutes
    calendar_weekend_mode = Column(String)       # all_working, alternate_sat, both_off
    calendar_first_day_of_week = Column(String)  # sunday, monday
    calendar_google_connected = Column(Boolean)
    calendar_outlook_connected = Column(Boolean)
    calendar_apple_connected = Column(Boolean)
    calendar_show_current_event = Column(Boolean)

    # Clock
    clock_show_seconds = Column(Boolean)
    clock_timezone = Column(String)
    timer_default_duration = Column(Integer)  # seconds
    timer_sound_enabled = Column(Boolean)
    world_clocks = Column(JSON)  # [{"city": ..., "timezone": ...}]

    # Workspace
    workspace_theme = Column(String)       # light, dark
    workspace_theme_mode = Column(String)  # manual, automatic
    workspace_accent_color = Column(String)
    workspace_auto_save = Column(Integer)  # milliseconds
    workspace_font_size = Column(Integer)
    workspace_spell_check = Column(Boolean)
    ai_analysis_mode = Column(String)      # manual, automatic

    # Todo
    todo_default_priority = Column(String)
    todo_show_completed = Column(Boolean)
    todo_auto_archive_days = Column(Integer)
    todo_sort_by = Column(String)  # date, priority, manual
    todo_reminders_enabled = Column(Boolean)

    # Email
    email_signature = Column(Text)
    email_notifications = Column(Boolean)
    email_gmail_connected = Column(Boolean)
    email_outlook_connected = Column(Boolean)

    # Messages
    message_read_receipts = Column(Boolean)
    message_notifications = Column(Boolean)
    message_whatsapp_connected = Column(Boolean)
    message_slack_connected = Column(Boolean)

    # General
    language = Column(String)
    date_format = Column(String)
    notifications_enabled = Column(Boolean)

    created_at = Column(DateTime, default=db_now)
    updated_at = Column(DateTime, default=db_now, onupdate=db_now)

    user = relationship("User", back_populates="settings")
