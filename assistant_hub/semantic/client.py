# FILE: assistant_hub/semantic/client.py
"""
HTTP client for the semantic similarity service.

The service is an external collaborator that owns embeddings. This client
only speaks its contract:

    GET  /api/v1/vector/health   -> {"healthy": bool}
    POST /api/v1/vector/store    {"content"}        -> {"id"}
    POST /api/v1/vector/search   {"query", "limit"} -> {"results": [{content, similarity}]}
    GET  /api/v1/vector/count    -> {"count": int}

store() and search() raise SimilarityServiceError on failure and go through
a small concurrency gate and a consecutive-failure circuit breaker.
is_healthy() and get_count() never raise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from assistant_hub.errors import CircuitOpenError, SimilarityServiceError
from config.settings import get_settings

logger = logging.getLogger(__name__)


MAX_CONCURRENT_REQUESTS = 2
MAX_CONSECUTIVE_FAILURES = 5
CIRCUIT_OPEN_SECONDS = 60.0


@dataclass
class SimilarityHit:
    content: str
    similarity: float
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SimilarityHit":
        return cls(
            content=str(raw.get("content") or ""),
            similarity=float(raw.get("similarity") or 0.0),
            id=raw.get("id"),
        )


class SimilarityServiceClient:
    """Async client for the similarity service."""

    def __init__(
        self,
        base_url: str = None,
        timeout_s: float = None,
        auth_token: str = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.similarity_url).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.similarity_timeout_s
        self.auth_token = auth_token if auth_token is not None else settings.similarity_token
        self._transport = transport
        self._gate = asyncio.Semaphore(MAX_CONCURRENT_REQUESTS)
        self._consecutive_failures = 0
        self._circuit_open_until = 0.0

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_s),
            headers=headers,
            transport=self._transport,
        )

    @property
    def circuit_open(self) -> bool:
        return time.monotonic() < self._circuit_open_until

    def _record_success(self) -> None:
        self._consecutive_failures = 0

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
            self._circuit_open_until = time.monotonic() + CIRCUIT_OPEN_SECONDS
            logger.warning(
                f"[similarity] circuit breaker opened for {CIRCUIT_OPEN_SECONDS:.0f}s "
                f"after {self._consecutive_failures} failures"
            )

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.circuit_open:
            raise CircuitOpenError("similarity service temporarily unavailable (circuit breaker open)")

        async with self._gate:
            try:
                async with self._client() as client:
                    resp = await client.post(path, json=payload)
                if resp.status_code >= 400:
                    try:
                        detail = resp.json().get("error")
                    except ValueError:
                        detail = None
                    raise SimilarityServiceError(detail or f"{path} returned HTTP {resp.status_code}")
                data = resp.json()
            except SimilarityServiceError:
                self._record_failure()
                raise
            except (httpx.HTTPError, ValueError) as e:
                self._record_failure()
                raise SimilarityServiceError(f"{path} failed: {e}") from e

        self._record_success()
        return data

    # -------------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------------

    async def is_healthy(self) -> bool:
        try:
            async with self._client() as client:
                resp = await client.get("/api/v1/vector/health")
            return bool(resp.json().get("healthy", False))
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[similarity] health check failed: {e}")
            return False

    async def store(self, text: str) -> Optional[str]:
        data = await self._post("/api/v1/vector/store", {"content": text})
        return data.get("id")

    async def search(self, query: str, limit: int = 10) -> List[SimilarityHit]:
        data = await self._post("/api/v1/vector/search", {"query": query, "limit": limit})
        return [SimilarityHit.from_dict(r) for r in data.get("results") or []]

    async def get_count(self) -> int:
        try:
            async with self._client() as client:
                resp = await client.get("/api/v1/vector/count")
            return int(resp.json().get("count") or 0)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[similarity] count failed: {e}")
            return 0


__all__ = [
    "SimilarityHit",
    "SimilarityServiceClient",
]
