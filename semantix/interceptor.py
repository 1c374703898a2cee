"""
Prompt interceptor.

Called by the host before each generation. Searches the backend with the
latest chat message, and injects the matching lore entries into the outgoing
prompt using the adapter for the host's calling convention.

Any failure returns the host's input unmodified; nothing propagates to the host.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from semantix import config, settings_store
from semantix.adapters import get_adapter_for_convention
from semantix.adapters.base_host_adapter import HostAdapter
from semantix.backend_client import BackendClient, SearchResult, client_for_settings
from semantix.models.intercept_request import InterceptRequest
from semantix.session import collection_name_for

logger = logging.getLogger(__name__)

BLOCK_HEADER = "[Relevant World Info:"
BLOCK_FOOTER = "]"


def fit_contents(results: List[SearchResult], max_chars: int = None) -> List[str]:
    """Pick result contents, in order, that fit within `max_chars` in total.

    A result too large for the remaining budget is skipped; smaller results
    after it can still fit.
    """
    max_chars = config.MAX_INJECTED_CHARS if max_chars is None else max_chars
    parts = []
    total_chars = 0

    for r in results:
        if not r.content:
            continue
        if total_chars + len(r.content) > max_chars:
            logger.info(
                f"[INTERCEPTOR] Skipping result of {len(r.content)} chars, "
                f"over the char limit ({total_chars}/{max_chars} used)"
            )
            continue
        parts.append(r.content)
        total_chars += len(r.content)

    return parts


def wrap_block(parts: List[str]) -> str:
    """Join contents with blank lines and wrap them in the lore block ("" if empty)."""
    if not parts:
        return ""
    joined = "\n\n".join(parts)
    return f"{BLOCK_HEADER}\n{joined}\n{BLOCK_FOOTER}"


def format_block(results: List[SearchResult], max_chars: int = None) -> str:
    return wrap_block(fit_contents(results, max_chars))


class Interceptor:
    """One interceptor for every host convention.

    Args:
        convention: Default host convention ("prompt" or "chat").
        client_factory: Builds a backend client from the loaded settings.
        settings_loader: Returns the current extension settings.
    """

    def __init__(
        self,
        convention: str = None,
        client_factory: Callable[[Dict[str, Any]], BackendClient] = client_for_settings,
        settings_loader: Callable[[], Dict[str, Any]] = settings_store.load_settings,
    ):
        self.convention = convention or config.HOST_CONVENTION
        self._client_factory = client_factory
        self._settings_loader = settings_loader
        # validate early so a bad configuration fails at startup
        get_adapter_for_convention(self.convention)

    async def intercept(self, request: InterceptRequest, convention: Optional[str] = None) -> Any:
        """Return the host input with relevant lore injected, or unmodified."""
        adapter: HostAdapter = get_adapter_for_convention(convention or self.convention)

        try:
            query_text = request.latest_message
            if not query_text:
                return adapter.original(request)
            if adapter.should_skip(request):
                logger.info("[INTERCEPTOR] Generation aborted, skipping search")
                return adapter.original(request)

            settings = self._settings_loader()
            module_settings = settings["moduleSettings"]
            client = self._client_factory(settings)
            results = await client.search(
                query_text,
                collection_name_for(request.world_name),
                limit=module_settings.get("searchLimit", 5),
                rerank=module_settings.get("rerank", True),
            )
            if not results:
                logger.info("[INTERCEPTOR] No relevant world info found")
                return adapter.original(request)
            parts = fit_contents(results)
            if not parts:
                logger.info(f"[INTERCEPTOR] All {len(results)} results exceed the char limit, nothing injected")
                return adapter.original(request)
            if adapter.should_skip(request):
                logger.info("[INTERCEPTOR] Generation aborted during search, discarding results")
                return adapter.original(request)
            injected = adapter.inject(request, wrap_block(parts))
        except Exception as e:
            logger.error(f"[INTERCEPTOR] Error in interceptor, returning original input: {e}")
            return adapter.original(request)

        logger.info(
            f"[INTERCEPTOR] Injected {len(parts)} of {len(results)} world info results "
            f"({adapter.name} convention, context size {request.context_size})"
        )
        return injected

    async def intercept_prompt(
        self,
        prompt: str,
        chat_history: List[Dict[str, Any]],
        world_name: str,
    ) -> str:
        """Host convention with a single prompt string."""
        request = InterceptRequest(chat=chat_history or [], world_name=world_name, prompt=prompt)
        return await self.intercept(request, convention="prompt")

    async def intercept_chat(
        self,
        chat: List[Dict[str, Any]],
        world_name: str,
        context_size: Optional[int] = None,
        abort: Optional[Callable[[], bool]] = None,
    ) -> List[Dict[str, Any]]:
        """Host convention with the structured chat array."""
        request = InterceptRequest(
            chat=chat or [], world_name=world_name, context_size=context_size, abort=abort
        )
        return await self.intercept(request, convention="chat")
