"""Host-agnostic container for one prompt interception call."""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass
class InterceptRequest:
    """Normalized arguments of a host interceptor call.

    Attributes:
        chat: Chat messages in host order. Each item carries the text under
              "mes". For the "prompt" convention this is the chat history;
              for the "chat" convention it is the array being sent.
        world_name: Name of the active lore book.
        prompt: Outgoing prompt string ("prompt" convention only).
        context_size: Model context size in tokens ("chat" convention only).
        abort: Callable reporting whether generation was aborted
               ("chat" convention only).
    """
    chat: List[Dict[str, Any]]
    world_name: str
    prompt: Optional[str] = None
    context_size: Optional[int] = None
    abort: Optional[Callable[[], bool]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def latest_message(self) -> str:
        # hosts occasionally hand over non-list chats or non-dict items
        if not isinstance(self.chat, list) or not self.chat:
            return ""
        last = self.chat[-1]
        if not isinstance(last, dict):
            return ""
        message = last.get("mes")
        return message if isinstance(message, str) else ""
