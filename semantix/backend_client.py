"""Vectorization backend client.

Async client for the two backend operations:
- store: chunk, embed and store a range of lore entries
- search: similarity search over a stored lore book collection

Non-2xx responses, transport errors and malformed bodies are raised as
`BackendError`; callers decide how to surface them. No retries.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import logging

import httpx

from semantix import config
from semantix.models.lore_entry import LoreEntry

logger = logging.getLogger(__name__)

STORE_PATH = "/vectorize-and-store"
SEARCH_PATH = "/search"


class BackendError(Exception):
    """Raised when a backend call fails for any reason."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class StoreResult:
    chunks_processed: int
    points_stored: int
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    """One search hit. `content` is the hit's `payload.content`."""
    content: str
    score: Optional[float] = None


class BackendClient:
    """Thin async wrapper over the backend HTTP API.

    Args:
        base_url: Backend root, e.g. http://localhost:8008.
        timeout: Per-request timeout in seconds.
        headers: Extra headers sent with every request (provider headers).
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.DEFAULT_BACKEND_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.BACKEND_TIMEOUT_SECONDS
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self._transport = transport

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, json=payload, headers=self.headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"[BACKEND] {path} failed with status {e.response.status_code}: {e.response.text}")
                raise BackendError(
                    f"Backend request failed with status {e.response.status_code}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.HTTPError as e:
                logger.error(f"[BACKEND] {path} request error: {e}")
                raise BackendError(f"Backend request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(f"Backend returned invalid JSON for {path}") from e
        if not isinstance(body, dict):
            raise BackendError(f"Backend returned unexpected body for {path}: {type(body).__name__}")
        return body

    async def store_entries(
        self,
        entries: Sequence[LoreEntry],
        collection_name: Optional[str] = None,
        chunk_size: Optional[int] = None,
        overlap_size: Optional[int] = None,
    ) -> StoreResult:
        """Send entries to the backend for chunking, embedding and storage."""
        payload: Dict[str, Any] = {"entries": [e.to_payload() for e in entries]}
        if collection_name:
            payload["collectionName"] = collection_name
        if chunk_size is not None:
            payload["chunkSize"] = chunk_size
        if overlap_size is not None:
            payload["overlapSize"] = overlap_size

        logger.info(f"[BACKEND] Storing {len(entries)} entries at {self.base_url}{STORE_PATH}")
        body = await self._post(STORE_PATH, payload)

        try:
            result = StoreResult(
                chunks_processed=int(body["chunksProcessed"]),
                points_stored=int(body["pointsStored"]),
                raw=body,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Backend store response missing counts: {body}") from e

        logger.info(
            f"[BACKEND] Stored {result.points_stored} vectors from {result.chunks_processed} chunks"
        )
        return result

    async def search(
        self,
        query_text: str,
        collection_name: str,
        limit: int = 5,
        rerank: bool = True,
    ) -> List[SearchResult]:
        """Search a collection; results come back in backend order."""
        payload = {
            "queryText": query_text,
            "collectionName": collection_name,
            "limit": limit,
            "rerank": rerank,
        }
        body = await self._post(SEARCH_PATH, payload)

        results = []
        for item in body.get("results") or []:
            item = item or {}
            item_payload = item.get("payload") or {}
            content = item_payload.get("content")
            if not isinstance(content, str):
                raise BackendError(f"Search result without payload.content in {collection_name}")
            results.append(SearchResult(content=content, score=item.get("score")))

        logger.info(f"[BACKEND] Search in '{collection_name}' returned {len(results)} results")
        return results


def client_for_settings(settings: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport] = None) -> BackendClient:
    """Build a client for the active embedding provider."""
    from semantix.settings_store import active_provider, backend_url

    provider = active_provider(settings)
    return BackendClient(
        base_url=backend_url(settings),
        headers=provider.get("headers") or {},
        transport=transport,
    )
