"""Construction and mode handling."""

import pytest

from casbin_authorizer import (
    Authorizer,
    AuthorizerConfig,
    CasbinEngine,
    ConfigurationError,
    Mode,
    ModeNotImplementedError,
    PayloadCache,
    RemoteFetcher,
)


def test_default_mode_is_manual():
    authorizer = Authorizer()
    assert authorizer.mode is Mode.MANUAL
    assert authorizer.user is None
    assert authorizer.permission is None
    assert authorizer.enforcer is None


@pytest.mark.parametrize("mode", ["manual", Mode.MANUAL])
def test_manual_mode_accepts_string_or_enum(mode):
    assert Authorizer(mode).mode is Mode.MANUAL


def test_auto_mode_keeps_configuration():
    authorizer = Authorizer(
        "auto",
        endpoint="https://svc/perm",
        request_headers={"Authorization": "Bearer t"},
        cache_expired_time=120,
    )
    assert authorizer.mode is Mode.AUTO
    assert authorizer.mode == "auto"
    assert authorizer.endpoint == "https://svc/perm"
    assert authorizer.request_headers == {"Authorization": "Bearer t"}
    assert authorizer.cache_expired_time == 120


def test_auto_mode_builds_default_collaborators():
    authorizer = Authorizer(
        "auto",
        endpoint="https://svc/perm",
        request_headers={"X-Key": "k"},
        request_timeout=2.5,
    )
    assert isinstance(authorizer._cache, PayloadCache)
    assert isinstance(authorizer._engine, CasbinEngine)
    assert isinstance(authorizer._fetcher, RemoteFetcher)
    assert authorizer._fetcher.endpoint == "https://svc/perm"
    assert authorizer._fetcher.headers == {"X-Key": "k"}
    assert authorizer._fetcher.timeout == 2.5


@pytest.mark.parametrize("endpoint", [None, ""])
def test_auto_mode_requires_endpoint(endpoint):
    with pytest.raises(ConfigurationError):
        Authorizer("auto", endpoint=endpoint)


@pytest.mark.parametrize("ttl", [None, 0, -5])
def test_auto_mode_keeps_default_ttl_unless_positive(ttl):
    authorizer = Authorizer("auto", endpoint="https://svc/perm", cache_expired_time=ttl)
    assert authorizer.cache_expired_time == 60


def test_cookies_mode_is_not_available():
    with pytest.raises(ModeNotImplementedError):
        Authorizer("cookies")
    with pytest.raises(ConfigurationError):
        Authorizer(Mode.COOKIES, endpoint="https://svc/perm")


@pytest.mark.parametrize("mode", ["Auto", "remote", "", None, 3])
def test_unrecognized_mode_fails(mode):
    with pytest.raises(ConfigurationError, match="not recognized"):
        Authorizer(mode)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        Authorizer("auto")


def test_from_config():
    config = AuthorizerConfig(
        mode="auto",
        endpoint="https://svc/perm",
        request_headers={"X-Key": "k"},
        cache_expired_time=30,
        request_timeout=1.0,
    )
    authorizer = Authorizer.from_config(config)
    assert authorizer.mode is Mode.AUTO
    assert authorizer.cache_expired_time == 30
    assert authorizer.request_headers == {"X-Key": "k"}
    assert authorizer._fetcher.timeout == 1.0


def test_from_config_passes_collaborators(engine, cache, fetcher):
    config = AuthorizerConfig(mode=Mode.AUTO, endpoint="https://svc/perm")
    authorizer = Authorizer.from_config(config, engine=engine, cache=cache, fetcher=fetcher)
    assert authorizer._engine is engine
    assert authorizer._cache is cache
    assert authorizer._fetcher is fetcher
