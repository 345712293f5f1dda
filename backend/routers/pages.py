"""
Wiki-style pages: CRUD, search, tags and links.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth import get_current_user
from crud import pages as pages_crud
from database import get_db
from errors import api_errors
from models import User
from schemas.page_schema import PageCreate, PageLink, PageSearch, PageUpdate, serialize_page

router = APIRouter(prefix="/api/pages", tags=["pages"])


@router.get("")
@api_errors("Failed to fetch pages")
async def list_pages(tags: Optional[List[str]] = Query(None), user: User = Depends(get_current_user),
                     db: Session = Depends(get_db)):
    # Accept both ?tags=a&tags=b and ?tags=a,b
    wanted = [tag.strip() for value in (tags or []) for tag in value.split(",") if tag.strip()]
    pages = pages_crud.list_pages(db, user.id, wanted)
    return {"success": True, "pages": [serialize_page(p) for p in pages]}


@router.post("")
@api_errors("Failed to create page")
async def create_page(body: PageCreate, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    page = pages_crud.create_page(db, user.id, body.model_dump())
    return {"success": True, "page": serialize_page(page)}


@router.post("/search")
@api_errors("Failed to search pages")
async def search_pages(body: PageSearch, user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    pages = pages_crud.search_pages(db, user.id, body.query)
    return {"success": True, "pages": [serialize_page(p) for p in pages], "count": len(pages)}


@router.get("/tags")
@api_errors("Failed to fetch tags")
async def list_tags(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "tags": pages_crud.get_all_tags(db, user.id)}


@router.get("/{page_id}")
@api_errors("Failed to fetch page")
async def get_page(page_id: str, user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    return {"success": True, "page": serialize_page(pages_crud.get_page(db, user.id, page_id))}


@router.patch("/{page_id}")
@api_errors("Failed to update page")
async def update_page(page_id: str, body: PageUpdate, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    page = pages_crud.update_page(db, user.id, page_id, body.present_fields())
    return {"success": True, "page": serialize_page(page)}


@router.delete("/{page_id}")
@api_errors("Failed to delete page")
async def delete_page(page_id: str, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    pages_crud.delete_page(db, user.id, page_id)
    return {"success": True, "message": "Page deleted"}


@router.get("/{page_id}/backlinks")
@api_errors("Failed to fetch backlinks")
async def get_backlinks(page_id: str, user: User = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    pages = pages_crud.get_backlinks(db, user.id, page_id)
    return {"success": True, "pages": [serialize_page(p) for p in pages]}


@router.post("/{page_id}/links")
@api_errors("Failed to link pages")
async def add_link(page_id: str, body: PageLink, user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    page = pages_crud.add_link(db, user.id, page_id, body.target_page_id)
    return {"success": True, "page": serialize_page(page)}
