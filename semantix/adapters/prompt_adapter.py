"""Adapter for hosts that pass a single prompt string."""
from __future__ import annotations

from semantix.adapters.base_host_adapter import HostAdapter
from semantix.models.intercept_request import InterceptRequest


class PromptAdapter(HostAdapter):
    """Prepends the lore block to the prompt text, separated by a blank line."""

    name = "prompt"

    def original(self, request: InterceptRequest) -> str:
        return request.prompt or ""

    def inject(self, request: InterceptRequest, block: str) -> str:
        return f"{block}\n\n{request.prompt or ''}"
