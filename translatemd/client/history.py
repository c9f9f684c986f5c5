"""
Saved conversation store

A JSON file holding the most recent conversations, optionally encrypted at
rest with Fernet since it contains patient speech.
"""

from pathlib import Path
from typing import List, Optional, Union

from pydantic import TypeAdapter

from translatemd.client.conversation import SavedConversation
from translatemd.core.logging import get_logger
from translatemd.core.security import DataEncryption

logger = get_logger(__name__)

MAX_SAVED_CONVERSATIONS = 50

_conversation_list = TypeAdapter(List[SavedConversation])


class ConversationHistoryStore:

    def __init__(
        self,
        path: Union[str, Path],
        encryption: Optional[DataEncryption] = None,
        limit: int = MAX_SAVED_CONVERSATIONS,
    ):
        self.path = Path(path)
        self.encryption = encryption
        self.limit = limit

    def load(self) -> List[SavedConversation]:
        """All saved conversations, newest first."""
        return sorted(self._read(), key=lambda conversation: conversation.timestamp, reverse=True)

    def save(self, conversation: SavedConversation) -> None:
        """Appends a conversation, evicting the oldest beyond the limit."""
        conversations = self._read()
        conversations.append(conversation)
        conversations.sort(key=lambda item: item.timestamp)
        if len(conversations) > self.limit:
            conversations = conversations[-self.limit:]
        self._write(conversations)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Cleared conversation history at {self.path}")

    def _read(self) -> List[SavedConversation]:
        if not self.path.exists():
            return []
        data = self.path.read_bytes()
        if self.encryption is not None:
            data = self.encryption.decrypt_data(data)
        return _conversation_list.validate_json(data)

    def _write(self, conversations: List[SavedConversation]) -> None:
        data = _conversation_list.dump_json(conversations)
        if self.encryption is not None:
            data = self.encryption.encrypt_data(data)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_bytes(data)
        tmp_path.replace(self.path)
