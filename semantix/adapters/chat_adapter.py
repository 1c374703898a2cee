"""Adapter for hosts that pass the structured chat array."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from semantix.adapters.base_host_adapter import HostAdapter
from semantix.models.intercept_request import InterceptRequest

logger = logging.getLogger(__name__)

INJECTED_NAME = "World Info"


class ChatAdapter(HostAdapter):
    """Inserts the lore block as a system message right before the latest message.

    Returns a new list; the host's array is never mutated.
    """

    name = "chat"

    def should_skip(self, request: InterceptRequest) -> bool:
        if request.abort is None:
            return False
        try:
            return bool(request.abort())
        except Exception as e:
            logger.warning(f"[CHAT_ADAPTER] Abort check failed, continuing: {e}")
            return False

    def original(self, request: InterceptRequest) -> List[Dict[str, Any]]:
        return request.chat

    def inject(self, request: InterceptRequest, block: str) -> List[Dict[str, Any]]:
        chat = list(request.chat)
        message = {
            "name": INJECTED_NAME,
            "is_user": False,
            "is_system": True,
            "mes": block,
        }
        chat.insert(max(len(chat) - 1, 0), message)
        return chat
