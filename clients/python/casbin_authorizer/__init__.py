"""
Casbin Authorizer

This module provides a client-side authorization front for applications
backed by Casbin. It answers "may the current user perform this action on
this object?" from either a manually supplied permission set or a Casbin
model and policy fetched from a server for the current user.

Features:
- Manual mode with a locally evaluated permission set
- Auto mode that loads the user's model and policy on identity change
- Client-side TTL caching of fetched authorization data
- Batch checks (all / any) and object filtering
- Decorator-based authorization enforcement

Example:
    from casbin_authorizer import Authorizer

    authorizer = Authorizer(
        "auto",
        endpoint="http://localhost:8080/api/casbin",
        cache_expired_time=60
    )
    await authorizer.set_user("alice")

    if await authorizer.can("read", "data1"):
        ...
"""

from .authorizer import Authorizer, AuthorizerConfig, Mode
from .cache import PayloadCache
from .engine import CasbinEngine
from .errors import (
    AuthorizationDenied,
    AuthorizerError,
    ConfigurationError,
    EnforcerNotInitializedError,
    FetchError,
    ModeNotImplementedError,
    PayloadError,
    PermissionNotSetError,
    PreconditionError,
)
from .fetcher import RemoteFetcher
from .permission import Permission

__all__ = [
    "Authorizer",
    "AuthorizerConfig",
    "Mode",
    "PayloadCache",
    "CasbinEngine",
    "RemoteFetcher",
    "Permission",
    "AuthorizerError",
    "ConfigurationError",
    "ModeNotImplementedError",
    "PreconditionError",
    "PermissionNotSetError",
    "EnforcerNotInitializedError",
    "PayloadError",
    "FetchError",
    "AuthorizationDenied",
]
