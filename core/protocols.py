"""Shared protocol definitions."""

from typing import Protocol

from core.request_types import RelayResponse


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard, ConsoleLogger)."""

    def log_relay(
        self,
        method: str,
        url: str,
        status: int,
        *,
        elapsed: float,
        headers: dict[str, str] | None = None,
    ) -> None: ...
    def log_cache_hit(self, method: str, url: str) -> None: ...
    def log_error(self, url: str | None, status: int, message: str) -> None: ...


class ResponseCache(Protocol):
    """Keyed store for translated responses (MemoryCache, NullCache)."""

    def get(self, key: str) -> RelayResponse | None: ...
    def set(self, key: str, value: RelayResponse, ttl: float) -> None: ...
