"""Redis-backed response cache keyed by a request hash."""

from __future__ import annotations

import hashlib
import json
from datetime import timedelta
from typing import Any

from .model import ChatRequest, ChatResponse

CACHE_KEY_PREFIX = "ezai:cache:"
DEFAULT_TTL = timedelta(minutes=10)
_SEP = b"\x00"


class CacheError(Exception):
    """Raised when the cache store fails or holds unreadable data."""


class ResponseCache:
    """Caches chat responses in a Redis-like client with ``get`` and ``set``."""

    def __init__(self, client: Any, ttl: float | timedelta | None = None) -> None:
        if isinstance(ttl, (int, float)):
            ttl = timedelta(seconds=ttl)
        if ttl is None or ttl <= timedelta(0):
            ttl = DEFAULT_TTL
        self.client = client
        self.ttl = ttl

    def get(self, request: ChatRequest) -> ChatResponse | None:
        """Return the cached response, or None on a miss."""
        key = self.build_key(request)
        try:
            data = self.client.get(key)
        except Exception as exc:
            raise CacheError(f"cache lookup failed: {exc}") from exc
        if data is None:
            return None
        try:
            return ChatResponse.from_dict(json.loads(data))
        except ValueError as exc:
            raise CacheError(f"cache decode failed: {exc}") from exc

    def set(self, request: ChatRequest, response: ChatResponse) -> None:
        """Store a response for the request."""
        key = self.build_key(request)
        data = json.dumps(response.to_dict(), ensure_ascii=False)
        try:
            self.client.set(key, data, ex=self.ttl)
        except Exception as exc:
            raise CacheError(f"cache store failed: {exc}") from exc

    def build_key(self, request: ChatRequest) -> str:
        """Hash the fields that determine a response into a cache key."""
        h = hashlib.sha256()
        h.update(request.provider.encode())
        h.update(_SEP)
        h.update(request.model.encode())
        h.update(_SEP)
        for msg in request.messages:
            h.update(msg.role.encode())
            h.update(_SEP)
            h.update(msg.content.encode())
            h.update(_SEP)
        opts = request.options
        if opts.temperature is not None:
            h.update(f"t:{opts.temperature:f}".encode())
        h.update(_SEP)
        if opts.max_tokens is not None:
            h.update(f"m:{opts.max_tokens:d}".encode())
        h.update(_SEP)
        if opts.top_p is not None:
            h.update(f"p:{opts.top_p:f}".encode())
        h.update(_SEP)
        h.update(f"s:{'true' if opts.stream else 'false'}".encode())
        return CACHE_KEY_PREFIX + h.hexdigest()[:32]