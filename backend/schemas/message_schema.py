"""
Inbox message schema shared by the Gmail and WhatsApp integrations.
Both sources are flattened into the same shape before they reach the dashboard.
"""
import base64
import binascii
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from utils.datetime_utils import utc_now

PREVIEW_LENGTH = 50


class InboxMessage(BaseModel):
    """Standardized inbox message"""
    id: str
    platform: str  # gmail, whatsapp
    sender: str
    subject: Optional[str] = None
    preview: str = ""
    content: str = ""
    date: datetime
    read: bool = False


def message_to_dict(message: InboxMessage) -> Dict[str, Any]:
    """Convert InboxMessage to the dashboard's JSON shape"""
    data = {
        "id": message.id,
        "platform": message.platform,
        "from": message.sender,
        "preview": message.preview,
        "content": message.content,
        "date": message.date.isoformat(),
        "read": message.read,
    }
    if message.platform == "gmail":
        data["subject"] = message.subject or ""
    return data


# ===== Gmail =====

def _decode_body(data: Optional[str]) -> str:
    """Decode a Gmail base64url body part"""
    if not data:
        return ""
    try:
        padded = data + "=" * (-len(data) % 4)
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""


def _find_part(parts: List[Dict[str, Any]], mime_types: tuple) -> Optional[Dict[str, Any]]:
    for mime_type in mime_types:
        for part in parts:
            if part.get("mimeType") == mime_type:
                return part
    return None


def extract_gmail_body(payload: Dict[str, Any]) -> str:
    """Body text of a Gmail payload, preferring HTML over plain text, one nesting level deep"""
    body = payload.get("body") or {}
    if body.get("data"):
        return _decode_body(body["data"])

    parts = payload.get("parts") or []
    part = _find_part(parts, ("text/html", "text/plain"))
    if not part:
        return ""
    if (part.get("body") or {}).get("data"):
        return _decode_body(part["body"]["data"])

    nested = _find_part(part.get("parts") or [], ("text/html", "text/plain"))
    if nested and (nested.get("body") or {}).get("data"):
        return _decode_body(nested["body"]["data"])
    return ""


def create_message_from_gmail(email_data: Dict[str, Any]) -> InboxMessage:
    """Create InboxMessage from a Gmail API message resource (format=full)"""
    payload = email_data.get("payload") or {}
    headers = payload.get("headers") or []

    def get_header(name: str) -> str:
        for header in headers:
            if header.get("name", "").lower() == name.lower():
                return header.get("value", "")
        return ""

    body = extract_gmail_body(payload)
    # Plain text bodies are rendered as HTML by the dashboard
    if body and "<" not in body:
        body = body.replace("\n", "<br>")

    snippet = email_data.get("snippet") or ""
    internal_date = email_data.get("internalDate")
    received = (
        datetime.fromtimestamp(int(internal_date) / 1000, tz=timezone.utc)
        if internal_date else utc_now()
    )

    return InboxMessage(
        id=email_data["id"],
        platform="gmail",
        sender=get_header("From"),
        subject=get_header("Subject"),
        preview=snippet,
        content=body or snippet,
        date=received,
        read="UNREAD" not in (email_data.get("labelIds") or []),
    )


# ===== WhatsApp =====

def extract_whatsapp_text(message: Dict[str, Any]) -> str:
    return (
        message.get("conversation")
        or (message.get("extendedTextMessage") or {}).get("text")
        or (message.get("imageMessage") or {}).get("caption")
        or "Media message"
    )


def create_message_from_whatsapp(raw: Dict[str, Any]) -> Optional[InboxMessage]:
    """Create InboxMessage from a messages.upsert entry; None for our own or empty messages"""
    key = raw.get("key") or {}
    content = raw.get("message")
    if not content or key.get("fromMe") or not key.get("id"):
        return None

    text = extract_whatsapp_text(content)
    remote_jid = key.get("remoteJid") or ""
    sender = raw.get("pushName") or remote_jid.split("@")[0] or "Unknown"
    preview = text[:PREVIEW_LENGTH] + ("..." if len(text) > PREVIEW_LENGTH else "")

    return InboxMessage(
        id=key["id"],
        platform="whatsapp",
        sender=sender,
        preview=preview,
        content=text,
        date=utc_now(),
        read=False,
    )
