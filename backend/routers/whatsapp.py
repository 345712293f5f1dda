"""
WhatsApp connection routes and the buffered WhatsApp inbox.
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from crud import settings as settings_crud
from database import get_db
from errors import InvalidRequestError, NotFoundError, api_errors
from integrations.whatsapp.qr import qr_data_url
from integrations.whatsapp.session import WhatsAppSessionManager, get_whatsapp_manager
from models import User
from schemas.base_schema import RequestModel
from schemas.message_schema import message_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["whatsapp"])


class WhatsAppAction(RequestModel):
    action: Optional[str] = None


class MessageUpdate(RequestModel):
    read: bool = True


@router.get("/api/whatsapp")
@api_errors("Failed to fetch WhatsApp status")
async def whatsapp_status(user: User = Depends(get_current_user),
                          manager: WhatsAppSessionManager = Depends(get_whatsapp_manager)):
    state = manager.state()
    return {**state, "qrImage": qr_data_url(state["qrCode"])}


@router.post("/api/whatsapp")
@api_errors("Failed to update WhatsApp connection")
async def whatsapp_action(body: WhatsAppAction, background_tasks: BackgroundTasks,
                          user: User = Depends(get_current_user), db: Session = Depends(get_db),
                          manager: WhatsAppSessionManager = Depends(get_whatsapp_manager)):
    if body.action == "connect":
        background_tasks.add_task(manager.connect)
        return {"message": "Initializing connection..."}

    if body.action == "disconnect":
        await manager.disconnect()
        settings_crud.set_whatsapp_connected(db, user.id, False)
        return {"message": "Disconnected"}

    raise InvalidRequestError("Invalid action")


@router.get("/api/messages")
@api_errors("Failed to fetch")
async def list_messages(user: User = Depends(get_current_user),
                        manager: WhatsAppSessionManager = Depends(get_whatsapp_manager)):
    return manager.messages()


@router.patch("/api/messages/{message_id}")
@api_errors("Failed to update")
async def update_message(message_id: str, body: MessageUpdate, user: User = Depends(get_current_user),
                         manager: WhatsAppSessionManager = Depends(get_whatsapp_manager)):
    message = manager.message_buffer.mark_read(message_id, body.read)
    if message is None:
        raise NotFoundError("Message not found")
    return {"success": True, **message_to_dict(message)}
