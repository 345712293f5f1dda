"""
OAuth2 handler for the Gmail integration.
Builds the Google consent URL and talks to Google's token endpoints.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional
from urllib.parse import urlencode

import aiohttp

from config import GMAIL_CLIENT_ID, GMAIL_CLIENT_SECRET, GMAIL_REDIRECT_URI
from utils.datetime_utils import db_now

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
REVOKE_URL = "https://oauth2.googleapis.com/revoke"


class GmailAuthError(Exception):
    """Google refused a token request"""


class GmailAuthManager:
    """Handles the OAuth2 flow for Gmail"""

    def __init__(self, client_id: str = None, client_secret: str = None, redirect_uri: str = None):
        self.client_id = client_id or GMAIL_CLIENT_ID
        self.client_secret = client_secret or GMAIL_CLIENT_SECRET
        self.redirect_uri = redirect_uri or GMAIL_REDIRECT_URI

        self.scopes = [
            "openid",
            "email",
            "profile",
            "https://www.googleapis.com/auth/gmail.readonly",
            "https://www.googleapis.com/auth/gmail.modify",
        ]

        if not self.client_id:
            logger.warning("GMAIL_CLIENT_ID is not set, Gmail connect will fail")

    def get_authorization_url(self, state: str) -> str:
        """Google consent URL asking for offline access"""
        if not self.client_id:
            raise ValueError("GMAIL_CLIENT_ID environment variable is not set")

        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "state": state,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    async def _post_token(self, data: Dict[str, str]) -> Dict:
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30)) as session:
                async with session.post(TOKEN_URL, data=data) as response:
                    token_data = await response.json(content_type=None) or {}
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Token request failed: {e}")
            raise GmailAuthError(f"Token request failed: {e}")

        if status != 200 or "error" in token_data:
            logger.error(f"Token request failed ({status}): {token_data.get('error')}")
            raise GmailAuthError(f"Token request failed: {token_data.get('error', status)}")
        return token_data

    async def exchange_code_for_token(self, authorization_code: str) -> Dict:
        """Exchange authorization code for access and refresh tokens"""
        token_data = await self._post_token({
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": authorization_code,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        })
        logger.info("Acquired Gmail tokens")
        return token_data

    async def refresh_access_token(self, refresh_token: str) -> Dict:
        """Refresh an expired access token"""
        if not refresh_token:
            raise GmailAuthError("No refresh token available - user needs to re-authenticate")

        token_data = await self._post_token({
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        })
        logger.info("Refreshed Gmail access token")
        return token_data

    async def revoke_token(self, token: str):
        """Revoke a token at Google; failures are logged and ignored"""
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30)) as session:
                async with session.post(REVOKE_URL, params={"token": token}) as response:
                    if response.status != 200:
                        logger.warning(f"Token revoke returned {response.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Token revoke failed: {e}")

    @staticmethod
    def expiry_from(token_data: Dict) -> Optional[datetime]:
        """Stored expiry for a token response"""
        expires_in = token_data.get("expires_in")
        if not expires_in:
            return None
        return db_now() + timedelta(seconds=int(expires_in))
