"""
Exception types raised by the Casbin authorizer.

Configuration errors are raised while constructing an Authorizer, precondition
errors when the caller uses it in the wrong state. Transport and engine
failures are not wrapped; they reach the caller as raised by `requests` or
`casbin`.
"""


class AuthorizerError(Exception):
    """Base class for all authorizer errors."""


class ConfigurationError(AuthorizerError, ValueError):
    """Invalid mode or missing required argument at construction time."""


class ModeNotImplementedError(ConfigurationError):
    """The requested mode is declared but not available."""


class PreconditionError(AuthorizerError, RuntimeError):
    """An operation was called before the authorizer was ready for it."""


class PermissionNotSetError(PreconditionError):
    """get_permission() called before any set_permission()."""


class EnforcerNotInitializedError(PreconditionError):
    """A decision was requested in auto mode before an enforcer was built."""


class PayloadError(PreconditionError):
    """Authorization payload is malformed (bad JSON, missing model)."""


class FetchError(AuthorizerError):
    """The remote endpoint answered with a body we cannot use."""


class AuthorizationDenied(AuthorizerError, PermissionError):
    """Raised by Authorizer.require() when the current subject is denied."""

    def __init__(self, action: str, obj: str, domain=None):
        self.action = action
        self.obj = obj
        self.domain = domain
        where = f" in domain {domain}" if domain is not None else ""
        super().__init__(f"Not authorized to {action} {obj}{where}")
