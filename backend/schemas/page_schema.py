"""
Wiki-style page bodies and representation.
"""
from typing import Any, Dict, List, Optional

from schemas.base_schema import RequestModel
from models import Page
from utils.datetime_utils import iso


class PageCreate(RequestModel):
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None


class PageUpdate(RequestModel):
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    linked_pages: Optional[List[str]] = None


class PageSearch(RequestModel):
    query: Optional[str] = None


class PageLink(RequestModel):
    target_page_id: Optional[str] = None


def serialize_page(page: Page) -> Dict[str, Any]:
    return {
        "id": page.id,
        "title": page.title,
        "content": page.content,
        "tags": page.tags or [],
        "linkedPages": page.linked_pages or [],
        "userId": page.user_id,
        "createdAt": iso(page.created_at),
        "updatedAt": iso(page.updated_at),
    }
