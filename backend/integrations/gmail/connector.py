"""
Gmail REST API connector.
Handles all direct API communication with the Gmail v1 endpoints.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

logger = logging.getLogger(__name__)


class GmailAPIError(Exception):
    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(f"Gmail API error {status}: {message}")


class GmailConnector:
    """Pure Gmail API client - no business logic"""

    def __init__(self, base_url: str = "https://www.googleapis.com/gmail/v1/users/me"):
        self.base_url = base_url

        # Session for connection pooling
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session with connection pooling"""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=30)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self):
        """Close the HTTP session"""
        if self._session and not self._session.closed:
            await self._session.close()

    async def make_gmail_request(self, endpoint: str, access_token: str, method: str = "GET",
                                 data: Dict = None, params: Dict = None) -> Dict[str, Any]:
        """Make authenticated request to the Gmail API"""
        session = await self._get_session()
        headers = {"Authorization": f"Bearer {access_token}"}
        url = f"{self.base_url}{endpoint}"

        try:
            async with session.request(method, url, headers=headers, json=data, params=params) as response:
                return await self._handle_response(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Gmail API request failed: {e}")
            raise GmailAPIError(0, str(e))

    async def _handle_response(self, response: aiohttp.ClientResponse) -> Dict[str, Any]:
        """Handle Gmail API response with error checking"""
        try:
            response_data = await response.json(content_type=None)
        except ValueError:
            response_data = {"text": await response.text()}
        if response_data is None:
            response_data = {}

        if response.status >= 400:
            error = response_data.get("error")
            error_msg = error.get("message", "Unknown error") if isinstance(error, dict) else (error or "Unknown error")
            logger.error(f"Gmail API error {response.status}: {error_msg}")
            raise GmailAPIError(response.status, error_msg)

        return response_data

    async def get_profile(self, access_token: str) -> Dict:
        return await self.make_gmail_request("/profile", access_token)

    async def list_messages(self, access_token: str, label_id: str = "INBOX",
                            max_results: int = 20) -> List[Dict]:
        """Ids of the newest messages under a label"""
        response = await self.make_gmail_request(
            "/messages", access_token,
            params={"maxResults": max_results, "labelIds": label_id},
        )
        return response.get("messages", [])

    async def get_message(self, access_token: str, message_id: str) -> Dict:
        return await self.make_gmail_request(
            f"/messages/{message_id}", access_token, params={"format": "full"}
        )

    async def modify_labels(self, access_token: str, message_id: str,
                            add: List[str] = None, remove: List[str] = None) -> Dict:
        data = {"addLabelIds": add or [], "removeLabelIds": remove or []}
        return await self.make_gmail_request(f"/messages/{message_id}/modify", access_token, "POST", data)
