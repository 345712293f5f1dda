"""
Page database operations: CRUD, search, tags and links between pages.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import LIKE_ESCAPE, contains_pattern, load_owned
from errors import InvalidRequestError
from models import Page
from utils.datetime_utils import db_now

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


def get_page(db: Session, user_id: str, page_id: str) -> Page:
    return load_owned(db, Page, page_id, user_id, label="Page")


def list_pages(db: Session, user_id: str, tags: Optional[List[str]] = None) -> List[Page]:
    """All pages, most recently edited first; with `tags`, only pages carrying any of them"""
    pages = db.query(Page).filter(Page.user_id == user_id).order_by(Page.updated_at.desc()).all()
    if tags:
        wanted = set(tags)
        pages = [page for page in pages if wanted.intersection(page.tags or [])]
    return pages


def create_page(db: Session, user_id: str, data: Dict[str, Any]) -> Page:
    page = Page(
        user_id=user_id,
        title=data.get("title") or "Untitled Page",
        content=data.get("content") or "",
        tags=data.get("tags") or [],
        linked_pages=[],
    )
    db.add(page)
    db.commit()
    db.refresh(page)
    return page


def update_page(db: Session, user_id: str, page_id: str, fields: Dict[str, Any]) -> Page:
    page = get_page(db, user_id, page_id)

    if "title" in fields:
        page.title = fields["title"] or "Untitled Page"
    if "content" in fields:
        page.content = fields["content"] or ""
    if "tags" in fields:
        page.tags = list(fields["tags"] or [])
    if "linked_pages" in fields:
        linked = list(fields["linked_pages"] or [])
        for target_id in linked:
            get_page(db, user_id, target_id)
        page.linked_pages = linked

    page.updated_at = db_now()
    db.commit()
    db.refresh(page)
    return page


def delete_page(db: Session, user_id: str, page_id: str):
    page = get_page(db, user_id, page_id)

    # Drop dangling links from the user's other pages
    for other in db.query(Page).filter(Page.user_id == user_id, Page.id != page.id).all():
        if page.id in (other.linked_pages or []):
            other.linked_pages = [pid for pid in other.linked_pages if pid != page.id]

    db.delete(page)
    db.commit()


def search_pages(db: Session, user_id: str, query: Optional[str]) -> List[Page]:
    if not query:
        raise InvalidRequestError("Search query is required")
    pattern = contains_pattern(query)
    return db.query(Page).filter(
        Page.user_id == user_id,
        or_(
            Page.title.ilike(pattern, escape=LIKE_ESCAPE),
            Page.content.ilike(pattern, escape=LIKE_ESCAPE),
        ),
    ).order_by(Page.updated_at.desc()).limit(SEARCH_LIMIT).all()


def get_all_tags(db: Session, user_id: str) -> List[str]:
    tags = set()
    for (page_tags,) in db.query(Page.tags).filter(Page.user_id == user_id).all():
        tags.update(page_tags or [])
    return sorted(tags)


def get_backlinks(db: Session, user_id: str, page_id: str) -> List[Page]:
    """Pages of the same user that link to `page_id`"""
    page = get_page(db, user_id, page_id)
    others = db.query(Page).filter(Page.user_id == user_id, Page.id != page.id).all()
    return [other for other in others if page.id in (other.linked_pages or [])]


def add_link(db: Session, user_id: str, page_id: str, target_page_id: Optional[str]) -> Page:
    if not target_page_id:
        raise InvalidRequestError("targetPageId is required")
    page = get_page(db, user_id, page_id)
    target = get_page(db, user_id, target_page_id)
    if target.id == page.id:
        raise InvalidRequestError("A page cannot link to itself")

    linked = list(page.linked_pages or [])
    if target.id not in linked:
        # Reassign so the JSON column is flagged dirty
        page.linked_pages = linked + [target.id]
        page.updated_at = db_now()
        db.commit()
        db.refresh(page)
    return page
