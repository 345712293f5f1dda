"""
Engine, session factory and storage helpers shared by every route.
"""
import logging
from typing import Any, Dict, Type

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL
from errors import NotFoundError

logger = logging.getLogger(__name__)


def build_engine(url: str = DATABASE_URL):
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory database
            options["poolclass"] = StaticPool
        return create_engine(url, pool_pre_ping=True, echo=False, **options)
    return create_engine(url, pool_pre_ping=True, echo=False)


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Database dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def load_owned(db: Session, model: Type, record_id: str, user_id: str, *criteria,
               label: str = None):
    """Load a row by id that belongs to user_id, or raise NotFoundError.

    A row owned by another user is reported exactly like a missing one.
    """
    record = db.query(model).filter(
        model.id == record_id,
        model.user_id == user_id,
        *criteria
    ).first()
    if record is None:
        raise NotFoundError(f"{label or model.__name__} not found")
    return record


LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """LIKE pattern matching `text` anywhere, with its wildcards taken literally"""
    for char in (LIKE_ESCAPE, "%", "_"):
        text = text.replace(char, LIKE_ESCAPE + char)
    return f"%{text}%"


def insert_if_absent(db: Session, model: Type, key: Dict[str, Any],
                     defaults: Dict[str, Any] = None):
    """Atomically create the row identified by `key` unless it exists, then return it.

    `key` must cover a unique constraint of the table.
    """
    existing = db.query(model).filter_by(**key).first()
    if existing is not None:
        return existing

    values = {**(defaults or {}), **key}
    dialect = db.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert
        statement = insert(model).values(**values).on_conflict_do_nothing(
            index_elements=list(key.keys())
        )
        result = db.execute(statement)
        db.commit()
        if result.rowcount:
            logger.info(f"Created {model.__name__} for {key}")
    else:
        try:
            with db.begin_nested():
                db.add(model(**values))
            db.commit()
            logger.info(f"Created {model.__name__} for {key}")
        except IntegrityError:
            db.rollback()

    return db.query(model).filter_by(**key).one()

