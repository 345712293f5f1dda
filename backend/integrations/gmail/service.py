"""
Gmail service: ties the OAuth manager and API connector to the stored user.
Routes call this; it owns token freshness, inbox flattening and disconnects.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fastapi import Request
from sqlalchemy.orm import Session

from auth import sign_state, verify_state
from config import FRONTEND_URL
from errors import InvalidRequestError, ServiceError, UnauthorizedError
from integrations.gmail.auth import GmailAuthError, GmailAuthManager
from integrations.gmail.connector import GmailAPIError, GmailConnector
from models import User
from schemas.message_schema import create_message_from_gmail, message_to_dict
from utils.datetime_utils import db_now

logger = logging.getLogger(__name__)

STATE_PURPOSE = "gmail"
INBOX_PAGE_SIZE = 20
FETCH_LIMIT = 10
SETTINGS_PATH = "/dashboard/settings"


def settings_redirect(**params) -> str:
    """Settings page URL on the email tab with a success or error flag"""
    return f"{FRONTEND_URL}{SETTINGS_PATH}?{urlencode({'tab': 'email', **params})}"


class GmailService:
    """Gmail operations for one application instance"""

    def __init__(self, auth_manager: GmailAuthManager = None, connector: GmailConnector = None):
        self.auth_manager = auth_manager or GmailAuthManager()
        self.connector = connector or GmailConnector()

    async def close(self):
        await self.connector.close()

    # ===== OAuth =====

    def authorization_url(self, user: User) -> str:
        return self.auth_manager.get_authorization_url(sign_state(user.id, STATE_PURPOSE))

    async def complete_authorization(self, db: Session, code: Optional[str], state: Optional[str],
                                     error: Optional[str] = None) -> str:
        """Finish the consent round trip and return where to send the browser"""
        if error:
            logger.warning(f"Gmail OAuth denied: {error}")
            return settings_redirect(error="access_denied")
        if not code or not state:
            return settings_redirect(error="missing_params")

        user_id = verify_state(state, STATE_PURPOSE)
        if not user_id:
            logger.error("Gmail callback with invalid state")
            return settings_redirect(error="user_not_found")

        try:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                logger.error("Gmail callback for unknown user")
                return settings_redirect(error="user_not_found")

            try:
                tokens = await self.auth_manager.exchange_code_for_token(code)
            except GmailAuthError as e:
                logger.error(f"Gmail token exchange failed: {e}")
                return settings_redirect(error="token_error")

            try:
                profile = await self.connector.get_profile(tokens["access_token"])
            except GmailAPIError as e:
                logger.error(f"Gmail profile fetch failed: {e}")
                return settings_redirect(error="profile_error")

            user.gmail_access_token = tokens["access_token"]
            user.gmail_refresh_token = tokens.get("refresh_token")
            user.gmail_token_expiry = self.auth_manager.expiry_from(tokens)
            user.gmail_connected = True
            user.gmail_email = profile.get("emailAddress")
            user.updated_at = db_now()
            db.commit()
            logger.info(f"Gmail connected for user {user.id}")
            return settings_redirect(success="gmail_connected")
        except Exception as e:
            logger.exception(f"Gmail callback error: {e}")
            db.rollback()
            return settings_redirect(error="server_error")

    # ===== Tokens =====

    def _require_connected(self, user: User):
        if not user.gmail_connected or not user.gmail_access_token:
            raise InvalidRequestError("Gmail not connected")

    async def get_valid_access_token(self, db: Session, user: User) -> str:
        """Stored access token, refreshed first when it has expired"""
        self._require_connected(user)

        if user.gmail_token_expiry and db_now() >= user.gmail_token_expiry - timedelta(minutes=1):
            logger.info(f"Gmail token expired for user {user.id}, refreshing...")
            try:
                tokens = await self.auth_manager.refresh_access_token(user.gmail_refresh_token)
            except GmailAuthError as e:
                logger.warning(f"Gmail token refresh failed for user {user.id}: {e}")
                user.gmail_connected = False
                db.commit()
                raise UnauthorizedError("Failed to refresh token")

            user.gmail_access_token = tokens["access_token"]
            user.gmail_token_expiry = self.auth_manager.expiry_from(tokens)
            if tokens.get("refresh_token"):
                user.gmail_refresh_token = tokens["refresh_token"]
            db.commit()

        return user.gmail_access_token

    # ===== Inbox =====

    async def list_inbox(self, db: Session, user: User) -> List[Dict[str, Any]]:
        """Newest inbox messages, flattened for the dashboard"""
        access_token = await self.get_valid_access_token(db, user)

        try:
            summaries = await self.connector.list_messages(access_token, "INBOX", INBOX_PAGE_SIZE)
        except GmailAPIError as e:
            logger.error(f"Gmail list failed: {e}")
            raise ServiceError("Failed to fetch emails from Gmail")

        results = await asyncio.gather(
            *(self.connector.get_message(access_token, summary["id"]) for summary in summaries[:FETCH_LIMIT]),
            return_exceptions=True,
        )

        emails = []
        for summary, result in zip(summaries, results):
            if isinstance(result, Exception):
                logger.warning(f"Skipping Gmail message {summary.get('id')}: {result}")
                continue
            email = message_to_dict(create_message_from_gmail(result))
            email.pop("platform", None)
            emails.append(email)
        return emails

    async def mark_read(self, db: Session, user: User, message_id: Optional[str]):
        if not message_id:
            raise InvalidRequestError("Message ID required")
        access_token = await self.get_valid_access_token(db, user)
        try:
            await self.connector.modify_labels(access_token, message_id, remove=["UNREAD"])
        except GmailAPIError as e:
            logger.error(f"Gmail mark read failed: {e}")
            raise ServiceError("Failed to mark as read")

    async def disconnect(self, db: Session, user: User):
        """Revoke the token and forget every Gmail field"""
        if user.gmail_access_token:
            await self.auth_manager.revoke_token(user.gmail_access_token)

        user.gmail_connected = False
        user.gmail_email = None
        user.gmail_access_token = None
        user.gmail_refresh_token = None
        user.gmail_token_expiry = None
        user.updated_at = db_now()
        db.commit()
        logger.info(f"Gmail disconnected for user {user.id}")

    @staticmethod
    def status(user: User) -> Dict[str, Any]:
        return {"connected": bool(user.gmail_connected), "email": user.gmail_email}


def get_gmail_service(request: Request) -> GmailService:
    """Dependency returning the application's Gmail service"""
    return request.app.state.gmail
