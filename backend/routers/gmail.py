"""
Gmail integration routes.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from errors import api_errors
from integrations.gmail.service import GmailService, get_gmail_service
from models import User
from schemas.base_schema import RequestModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gmail", tags=["gmail"])


class MarkReadRequest(RequestModel):
    message_id: Optional[str] = None


@router.get("/auth")
@api_errors("Failed to start Gmail authorization")
async def gmail_auth(user: User = Depends(get_current_user),
                     gmail: GmailService = Depends(get_gmail_service)):
    return {"authUrl": gmail.authorization_url(user)}


@router.get("/callback")
async def gmail_callback(code: Optional[str] = None, state: Optional[str] = None,
                         error: Optional[str] = None, db: Session = Depends(get_db),
                         gmail: GmailService = Depends(get_gmail_service)):
    """OAuth redirect target; always answers with a redirect to the settings page"""
    redirect_url = await gmail.complete_authorization(db, code, state, error)
    return RedirectResponse(redirect_url, status_code=307)


@router.get("/status")
@api_errors("Failed to fetch Gmail status")
async def gmail_status(user: User = Depends(get_current_user),
                       gmail: GmailService = Depends(get_gmail_service)):
    return gmail.status(user)


@router.get("/emails")
@api_errors("Failed to fetch emails")
async def gmail_emails(user: User = Depends(get_current_user), db: Session = Depends(get_db),
                       gmail: GmailService = Depends(get_gmail_service)):
    return await gmail.list_inbox(db, user)


@router.post("/mark-read")
@api_errors("Failed to mark as read")
async def gmail_mark_read(body: MarkReadRequest, user: User = Depends(get_current_user),
                          db: Session = Depends(get_db),
                          gmail: GmailService = Depends(get_gmail_service)):
    await gmail.mark_read(db, user, body.message_id)
    return {"success": True}


@router.post("/disconnect")
@api_errors("Failed to disconnect")
async def gmail_disconnect(user: User = Depends(get_current_user), db: Session = Depends(get_db),
                           gmail: GmailService = Depends(get_gmail_service)):
    await gmail.disconnect(db, user)
    return {"success": True}
