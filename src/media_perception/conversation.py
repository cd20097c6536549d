"""In-memory message store for hosts without one of their own."""

from __future__ import annotations

import logging
from typing import List

from media_perception.perception.model import Message

logger = logging.getLogger(__name__)


class InMemoryConversation:
    """Append-only list of messages. ``get_messages`` returns a copy."""

    def __init__(self, messages: List[Message] | None = None) -> None:
        self._messages: List[Message] = list(messages or [])

    def append(self, message: Message) -> None:
        self._messages.append(message)
        logger.debug(
            "conversation append id=%s attachments=%d total=%d",
            message.id,
            len(message.attachments),
            len(self._messages),
        )

    def get_messages(self) -> List[Message]:
        return list(self._messages)


__all__ = ["InMemoryConversation"]
