"""
Client-side authorization front for Casbin.

This module provides the Authorizer class that applications use to answer
"may the current user do this action on this object?" either from a
permission set pushed manually or from a Casbin model and policy fetched
from a server for the current user.
"""

import asyncio
import functools
import inspect
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar, Union

from .cache import PayloadCache
from .engine import CasbinEngine
from .errors import (
    AuthorizationDenied,
    ConfigurationError,
    EnforcerNotInitializedError,
    ModeNotImplementedError,
    PayloadError,
    PermissionNotSetError,
    PreconditionError,
)
from .fetcher import RemoteFetcher
from .interfaces import (
    EnforcerProtocol,
    FetcherProtocol,
    InvalidatingCacheProtocol,
    PayloadCacheProtocol,
    PolicyEngineProtocol,
)
from .permission import Permission

logger = logging.getLogger(__name__)

# Type variable for generic decorators
F = TypeVar('F', bound=Callable[..., Awaitable[Any]])

DEFAULT_CACHE_EXPIRED_TIME = 60  # seconds


class Mode(str, Enum):
    """How the Authorizer obtains authorization data."""

    # Permission set pushed by the host with set_permission()
    MANUAL = "manual"
    # Model and policy fetched from `endpoint` whenever the user changes
    AUTO = "auto"
    # Read from a cookie; declared but not available
    COOKIES = "cookies"


@dataclass
class AuthorizerConfig:
    """Configuration for an Authorizer."""

    mode: Union[Mode, str] = Mode.MANUAL

    # Casbin server permission endpoint, required in auto mode
    endpoint: Optional[str] = None

    # Headers sent with every fetch (e.g. Authorization)
    request_headers: Dict[str, str] = field(default_factory=dict)

    # Lifetime of a cached payload in seconds
    cache_expired_time: int = DEFAULT_CACHE_EXPIRED_TIME

    # Transport timeout in seconds
    request_timeout: float = 5.0

    # Maximum users held by the default cache
    cache_max_size: int = 10000


class Authorizer:
    """
    Answers authorization questions for the current user.

    Modes:
    - "manual": the host pushes a permission set with set_permission();
      decisions are evaluated locally against it.
    - "auto": the host calls set_user() whenever the identity changes; the
      Casbin model and policy for that user are loaded from the local cache
      or fetched from `endpoint`, and decisions are evaluated by Casbin.
    - "cookies": not implemented, construction always fails.

    The mode is fixed for the lifetime of the instance.

    Example:
        authorizer = Authorizer("auto", endpoint="http://localhost:8080/api/casbin")
        await authorizer.set_user("alice")

        if await authorizer.can("read", "data1"):
            ...

        if await authorizer.can_all("write", ["data1", "data2"], domain="tenant1"):
            ...
    """

    def __init__(
        self,
        mode: Union[Mode, str] = Mode.MANUAL,
        endpoint: Optional[str] = None,
        request_headers: Optional[Dict[str, str]] = None,
        cache_expired_time: Optional[float] = None,
        *,
        cache: Optional[PayloadCacheProtocol] = None,
        fetcher: Optional[FetcherProtocol] = None,
        engine: Optional[PolicyEngineProtocol] = None,
        request_timeout: float = 5.0,
        cache_max_size: int = 10000
    ):
        """
        Initialize the authorizer.

        Args:
            mode: "manual", "auto" or "cookies"
            endpoint: Casbin server endpoint, REQUIRED when mode is "auto"
            request_headers: Headers attached to every fetch
            cache_expired_time: Lifetime of cached payloads in seconds
                (default 60); used in auto mode only
            cache: Payload cache; defaults to an in-memory PayloadCache
            fetcher: Payload fetcher; defaults to a RemoteFetcher on `endpoint`
            engine: Policy engine; defaults to CasbinEngine
            request_timeout: Timeout for the default fetcher, in seconds
            cache_max_size: Capacity of the default cache

        Raises:
            ConfigurationError: endpoint missing in auto mode, or unknown mode
            ModeNotImplementedError: mode is "cookies"
        """
        self.mode = self._parse_mode(mode)
        self.endpoint: Optional[str] = None
        self.request_headers: Optional[Dict[str, str]] = None
        self.cache_expired_time = DEFAULT_CACHE_EXPIRED_TIME
        self.user: Optional[str] = None
        self.permission: Optional[Permission] = None
        self.enforcer: Optional[EnforcerProtocol] = None

        self._cache = cache
        self._fetcher = fetcher
        self._engine = engine if engine is not None else CasbinEngine()
        self._user_lock = asyncio.Lock()

        if self.mode is Mode.AUTO:
            if not endpoint:
                raise ConfigurationError(
                    "Specify the endpoint when initializing the authorizer with mode 'auto'"
                )
            self.endpoint = endpoint
            if request_headers:
                self.request_headers = dict(request_headers)
            if cache_expired_time is not None:
                if cache_expired_time > 0:
                    self.cache_expired_time = cache_expired_time
                else:
                    logger.warning(
                        f"Ignoring non-positive cache_expired_time={cache_expired_time}, "
                        f"using {DEFAULT_CACHE_EXPIRED_TIME}s"
                    )

            if self._cache is None:
                self._cache = PayloadCache(
                    default_ttl=self.cache_expired_time,
                    max_size=cache_max_size
                )
            if self._fetcher is None:
                self._fetcher = RemoteFetcher(
                    endpoint=self.endpoint,
                    headers=self.request_headers,
                    timeout=request_timeout
                )

    @classmethod
    def from_config(cls, config: AuthorizerConfig, **collaborators: Any) -> "Authorizer":
        """Build an authorizer from an AuthorizerConfig.

        Keyword arguments (cache, fetcher, engine) are passed through.
        """
        return cls(
            config.mode,
            endpoint=config.endpoint,
            request_headers=config.request_headers,
            cache_expired_time=config.cache_expired_time,
            request_timeout=config.request_timeout,
            cache_max_size=config.cache_max_size,
            **collaborators
        )

    @staticmethod
    def _parse_mode(mode: Union[Mode, str]) -> Mode:
        try:
            parsed = Mode(mode)
        except ValueError:
            raise ConfigurationError(
                f"Mode {mode!r} not recognized; use one of 'auto', 'cookies' and 'manual'"
            ) from None
        if parsed is Mode.COOKIES:
            raise ModeNotImplementedError("Cookie mode not implemented.")
        return parsed

    # ------------------------------------------------------------------
    # Manual mode
    # ------------------------------------------------------------------

    def get_permission(self) -> Dict[str, Any]:
        """Return the current permission set.

        Raises:
            PermissionNotSetError: set_permission() was never called
        """
        if self.permission is None:
            raise PermissionNotSetError(
                "Permission is not defined. Are you using manual mode and have set the permission?"
            )
        return self.permission.to_object()

    def set_permission(self, permission: Union[Dict[str, Any], str]) -> None:
        """Replace the manual permission set with a mapping or JSON string."""
        if self.permission is None:
            self.permission = Permission()
        self.permission.load(permission)

    # ------------------------------------------------------------------
    # Auto mode
    # ------------------------------------------------------------------

    async def set_user(self, user: str) -> None:
        """
        Set the subject used for decisions.

        In auto mode, a new identity loads that user's model and policy,
        from the cache when present there, otherwise from the endpoint (the
        fetched payload is then cached for cache_expired_time seconds).
        Setting the user already in effect does nothing; so does any call
        outside auto mode.

        Fetch and engine errors propagate. On failure the previous user and
        enforcer stay in effect.
        """
        if self.mode is not Mode.AUTO:
            return

        async with self._user_lock:
            if user == self.user:
                logger.debug(f"User {user!r} already active, skipping reload")
                return

            previous = self.user
            self.user = user
            try:
                await self._load_for_user(user)
            except Exception as e:
                logger.warning(f"Failed to load authorization data for {user!r}: {e}")
                self.user = previous
                raise

    async def reload(self) -> None:
        """
        Fetch the current user's payload again, bypassing and then
        overwriting the cached copy.

        Does nothing outside auto mode.

        Raises:
            PreconditionError: no user has been set
        """
        if self.mode is not Mode.AUTO:
            return

        async with self._user_lock:
            if self.user is None:
                raise PreconditionError("No user set; call set_user() first")
            await self._load_for_user(self.user, use_cache=False)

    async def _load_for_user(self, user: str, use_cache: bool = True) -> None:
        payload = await self._cache.load(user) if use_cache else None
        if payload is None:
            logger.debug(f"Cache miss for {user!r}")
            payload = await self._fetcher.fetch(user)
            await self._cache.save(user, payload, self.cache_expired_time)
        else:
            logger.debug(f"Cache hit for {user!r}")
        await self.init_enforcer(payload)

    async def init_enforcer(self, payload: Union[str, Dict[str, Any]]) -> None:
        """
        Build a new enforcer from an authorization payload.

        The payload carries the model text under "m" and an ordered list of
        rule entries under "p". Each entry starts with its kind: "p" rows are
        added as policies, "g" rows as grouping policies, anything else is
        skipped. Rules are applied in order. The new enforcer replaces the
        current one only once it is fully built.

        Raises:
            PayloadError: payload is not a JSON object, has no model, or its
                rules are not lists of strings
        """
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise PayloadError(f"Authorization payload is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise PayloadError("Authorization payload must be a JSON object")
        if "m" not in payload:
            raise PayloadError("No model when init enforcer.")

        rules = self._parse_rules(payload.get("p"))
        enforcer = self._engine.new_enforcer(payload["m"])

        policies = groupings = 0
        for tokens in rules:
            if not tokens:
                continue
            kind, params = tokens[0], tokens[1:]
            if kind == "p":
                await enforcer.add_policy(*params)
                policies += 1
            elif kind == "g":
                await enforcer.add_grouping_policy(*params)
                groupings += 1
            else:
                logger.debug(f"Skipping rule entry of unknown kind {kind!r}")

        self.enforcer = enforcer
        logger.info(f"Enforcer built with {policies} policies and {groupings} grouping rules")

    @staticmethod
    def _parse_rules(rules: Any) -> List[List[str]]:
        if rules is None:
            return []
        if not isinstance(rules, list):
            raise PayloadError("Payload field 'p' must be a list of rule entries")

        parsed = []
        for index, entry in enumerate(rules):
            if not isinstance(entry, list) or not all(isinstance(token, str) for token in entry):
                raise PayloadError(f"Rule entry {index} must be a list of strings")
            parsed.append([token.strip() for token in entry])
        return parsed

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def can(self, action: str, obj: str, domain: Optional[str] = None) -> bool:
        """
        Check if the current subject may perform action on obj.

        Args:
            action: The action (e.g., "read")
            obj: The object acted upon (e.g., "data1")
            domain: Optional tenant; when given, the enforcer is queried with
                (user, domain, obj, action) instead of (user, obj, action)

        Returns:
            True if allowed. In manual mode with no permission set, False.

        Raises:
            EnforcerNotInitializedError: auto mode before a user was loaded
        """
        if self.mode is Mode.MANUAL:
            return self.permission is not None and self.permission.check(action, obj)
        elif self.mode is Mode.AUTO:
            enforcer = self.enforcer
            if enforcer is None:
                raise EnforcerNotInitializedError("Enforcer not initialized")
            if domain is None:
                result = enforcer.enforce(self.user, obj, action)
            else:
                result = enforcer.enforce(self.user, domain, obj, action)
            if inspect.isawaitable(result):
                result = await result
            return bool(result)
        else:
            raise ConfigurationError(f"Mode {self.mode} not recognized.")

    async def cannot(self, action: str, obj: str, domain: Optional[str] = None) -> bool:
        return not await self.can(action, obj, domain)

    async def can_all(self, action: str, objects: Iterable[str], domain: Optional[str] = None) -> bool:
        """True if action is allowed on every object. Stops at the first denial."""
        for obj in objects:
            if await self.cannot(action, obj, domain):
                return False
        return True

    async def can_any(self, action: str, objects: Iterable[str], domain: Optional[str] = None) -> bool:
        """True if action is allowed on at least one object. Stops at the first grant."""
        for obj in objects:
            if await self.can(action, obj, domain):
                return True
        return False

    async def filter_objects(
        self,
        action: str,
        objects: Iterable[Any],
        domain: Optional[str] = None
    ) -> List[Any]:
        """
        Filter objects down to those the current subject may act on.

        Args:
            action: The action to check
            objects: Candidate objects, in order
            domain: Optional tenant

        Returns:
            Allowed objects, in input order
        """
        allowed = []
        for obj in objects:
            if await self.can(action, obj, domain):
                allowed.append(obj)
        return allowed

    def require(
        self,
        action: str,
        obj: Optional[str] = None,
        domain: Optional[str] = None
    ) -> Callable[[F], F]:
        """
        Decorator to require authorization before a coroutine runs.

        Args:
            action: Action to check
            obj: Object to check (defaults to the function name)
            domain: Optional tenant

        Returns:
            Decorator function

        Example:
            @authorizer.require("read", "reports")
            async def show_reports():
                ...
        """
        def decorator(func: F) -> F:
            if not inspect.iscoroutinefunction(func):
                raise TypeError(f"{func.__name__} must be a coroutine function")

            target = obj if obj is not None else func.__name__

            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                if not await self.can(action, target, domain):
                    raise AuthorizationDenied(action, target, domain)
                return await func(*args, **kwargs)

            return wrapper  # type: ignore

        return decorator

    # ------------------------------------------------------------------
    # Cache maintenance
    # ------------------------------------------------------------------

    def invalidate_cache(self, user: Optional[str] = None) -> int:
        """
        Drop cached payloads. The active enforcer is left untouched.

        Caches that only offer load and save have nothing to drop.

        Args:
            user: If provided, drop only this user's payload

        Returns:
            Number of entries invalidated
        """
        if not isinstance(self._cache, InvalidatingCacheProtocol):
            return 0
        if user is not None:
            return self._cache.invalidate(user)
        return self._cache.invalidate_all()

    @property
    def cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics (empty when the cache does not report any)."""
        return dict(getattr(self._cache, "stats", {}) or {})
