"""
Collaborator contracts used by the Authorizer.

The Authorizer depends only on these protocols. The package ships one default
implementation of each (PayloadCache, RemoteFetcher, CasbinEngine, Permission);
tests and hosts may inject anything that satisfies the same shape.
"""

from typing import Any, Awaitable, Dict, Optional, Protocol, Union, runtime_checkable


class PayloadCacheProtocol(Protocol):
    """Key/value store for serialized authorization payloads, keyed by user."""

    async def load(self, key: str) -> Optional[str]:
        """Return the payload for key, or None if missing or expired."""
        ...

    async def save(self, key: str, payload: str, ttl_seconds: float) -> None:
        ...


@runtime_checkable
class InvalidatingCacheProtocol(PayloadCacheProtocol, Protocol):
    """A payload cache that can also drop entries.

    Optional: Authorizer.invalidate_cache() reports 0 for caches without it.
    """

    def invalidate(self, key: str) -> int:
        """Drop one key; return the number of entries removed."""
        ...

    def invalidate_all(self) -> int:
        ...


class FetcherProtocol(Protocol):
    """Retrieves the serialized authorization payload for a subject."""

    async def fetch(self, user: str) -> str:
        ...


class EnforcerProtocol(Protocol):
    """A built policy evaluator.

    enforce() may return a bool or an awaitable resolving to one.
    """

    async def add_policy(self, *params: str) -> Any:
        ...

    async def add_grouping_policy(self, *params: str) -> Any:
        ...

    def enforce(self, *rvals: str) -> Union[bool, Awaitable[bool]]:
        ...


class PolicyEngineProtocol(Protocol):
    """Builds enforcers from a model definition."""

    def new_enforcer(self, model_text: str) -> EnforcerProtocol:
        ...


class PermissionStoreProtocol(Protocol):
    def load(self, data: Union[Dict[str, Any], str]) -> None:
        ...

    def check(self, action: str, obj: str) -> bool:
        ...

    def to_object(self) -> Dict[str, Any]:
        ...
