"""Adapters package entry.

Provides a factory to obtain adapters by host convention name.
"""
from typing import Dict

from semantix.adapters.base_host_adapter import HostAdapter
from semantix.adapters.chat_adapter import ChatAdapter
from semantix.adapters.prompt_adapter import PromptAdapter


_ADAPTERS: Dict[str, HostAdapter] = {
    "prompt": PromptAdapter(),
    "chat": ChatAdapter(),
}


def get_adapter_for_convention(convention: str) -> HostAdapter:
    """Return a singleton adapter instance for the given host convention."""
    adapter = _ADAPTERS.get(convention)
    if adapter is None:
        raise ValueError(f"No adapter for host convention: {convention}")
    return adapter
