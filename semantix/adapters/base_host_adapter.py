"""Abstract base interface for host calling conventions.

The host calls the prompt interceptor differently depending on its version:
either with a single prompt string plus chat history, or with the structured
chat array it is about to send. An adapter knows how to read one convention
and how to put retrieved lore back into it.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from semantix.models.intercept_request import InterceptRequest


class HostAdapter(ABC):
    """Base adapter contract for all host conventions."""

    name: str = ""

    def should_skip(self, request: InterceptRequest) -> bool:
        """Return True when the host no longer wants the result (e.g. aborted)."""
        return False

    @abstractmethod
    def original(self, request: InterceptRequest) -> Any:
        """Return the host input unmodified, in the shape the host expects back."""
        raise NotImplementedError

    @abstractmethod
    def inject(self, request: InterceptRequest, block: str) -> Any:
        """Return the host input with `block` (the bracketed lore text) injected."""
        raise NotImplementedError
