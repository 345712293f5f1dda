"""
Storage used by the WhatsApp session: linked-device credentials on disk and
the in-memory inbox buffer.
"""
import json
import logging
import os
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from schemas.message_schema import InboxMessage

logger = logging.getLogger(__name__)

MESSAGE_BUFFER_SIZE = 50


class FileCredentialStore:
    """Credentials of the linked device as one JSON file in a directory"""

    def __init__(self, directory: str, filename: str = "creds.json"):
        self.directory = directory
        self.path = os.path.join(directory, filename)

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable WhatsApp credentials at {self.path}: {e}")
            return None

    def save(self, update: Dict[str, Any]):
        """Merge an update into the stored credentials"""
        creds = self.load() or {}
        creds.update(update or {})
        os.makedirs(self.directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(creds, f)
        os.replace(tmp_path, self.path)

    def clear(self):
        if self.exists():
            os.remove(self.path)
            logger.info("Cleared stored WhatsApp credentials")


class MessageBuffer:
    """Most-recent-first message list, capped and deduplicated by id"""

    def __init__(self, capacity: int = MESSAGE_BUFFER_SIZE):
        self.capacity = capacity
        self._messages: "OrderedDict[str, InboxMessage]" = OrderedDict()

    def __len__(self):
        return len(self._messages)

    def add(self, message: InboxMessage) -> bool:
        """Store a message at the front; False when its id was already seen"""
        if message.id in self._messages:
            return False
        self._messages[message.id] = message
        self._messages.move_to_end(message.id, last=False)
        while len(self._messages) > self.capacity:
            self._messages.popitem(last=True)
        return True

    def list(self) -> List[InboxMessage]:
        return list(self._messages.values())

    def get(self, message_id: str) -> Optional[InboxMessage]:
        return self._messages.get(message_id)

    def mark_read(self, message_id: str, read: bool = True) -> Optional[InboxMessage]:
        message = self._messages.get(message_id)
        if message is not None:
            message.read = read
        return message
