# -*- coding: utf-8 -*-
"""Text embeddings from an OpenAI-compatible ``/embeddings`` endpoint.

Embedding is fail-soft: :meth:`EmbeddingClient.embed` never raises, it
returns an empty list when the provider cannot be reached. Callers store
an empty result as "no semantic index" for the entry.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging
import os

import httpx

from .errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"


class EmbeddingClient:
    """Single-attempt embedding calls over httpx."""

    def __init__(
        self,
        api_base: str,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, cfg: Dict[str, object]) -> "EmbeddingClient":
        return cls(
            api_base=str(cfg.get("embedding_api_base") or ""),
            api_key=os.environ.get("OPENAI_API_KEY", ""),
            model=str(cfg.get("embedding_model") or DEFAULT_MODEL),
            timeout=float(cfg.get("embedding_timeout") or 30.0),
        )

    async def embed(self, text: str) -> List[float]:
        """Return the embedding of *text*, or ``[]`` on any failure."""
        try:
            return await self._fetch(text)
        except EmbeddingError as exc:
            logger.warning("Error generating embedding: %s", exc)
            return []

    async def _fetch(self, text: str) -> List[float]:
        if not self.api_base or not self.api_key:
            raise EmbeddingError("embedding_config_missing")

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        payload = {"model": self.model, "input": text}
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.api_base}/embeddings", json=payload, headers=headers
                )
                response.raise_for_status()
                parsed = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            raise EmbeddingError(f"embedding_request_failed: {exc}") from exc

        embedding = _extract_embedding(parsed)
        if embedding is None:
            raise EmbeddingError("embedding_response_invalid")
        return embedding


def _extract_embedding(body: Any) -> Optional[List[float]]:
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    raw = data[0].get("embedding")
    if not isinstance(raw, list) or not raw:
        return None
    try:
        return [float(v) for v in raw]
    except (TypeError, ValueError):
        return None
