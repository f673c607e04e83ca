"""Shared fakes for authorizer tests.

None of these touch the network or a real policy engine:
- FakeEngine / FakeEnforcer record every call and answer enforce() from the
  "p" rules they were given
- ScriptedFetcher serves canned payloads (or raises) and counts fetches
- RecordingCache is a plain dict with no expiry, recording saves
"""

import json
from typing import Dict, List, Optional, Tuple

import pytest

from casbin_authorizer import Authorizer


def make_payload(rules=None, model: Optional[str] = "fake-model") -> str:
    doc = {}
    if model is not None:
        doc["m"] = model
    if rules is not None:
        doc["p"] = rules
    return json.dumps(doc)


class FakeEnforcer:
    def __init__(self, model_text: str, enforce_async: bool = False):
        self.model_text = model_text
        self.calls: List[Tuple[str, Tuple[str, ...]]] = []
        self.enforce_calls: List[Tuple[str, ...]] = []
        self._policies = set()
        self._enforce_async = enforce_async

    async def add_policy(self, *params):
        self.calls.append(("add_policy", params))
        self._policies.add(params)
        return True

    async def add_grouping_policy(self, *params):
        self.calls.append(("add_grouping_policy", params))
        return True

    def enforce(self, *rvals):
        self.enforce_calls.append(rvals)
        allowed = rvals in self._policies
        if self._enforce_async:
            async def resolve():
                return allowed
            return resolve()
        return allowed


class FakeEngine:
    def __init__(self, enforce_async: bool = False):
        self.enforcers: List[FakeEnforcer] = []
        self.enforce_async = enforce_async
        self.fail_with: Optional[Exception] = None

    def new_enforcer(self, model_text: str) -> FakeEnforcer:
        if self.fail_with is not None:
            raise self.fail_with
        enforcer = FakeEnforcer(model_text, self.enforce_async)
        self.enforcers.append(enforcer)
        return enforcer


class ScriptedFetcher:
    def __init__(self, responses: Optional[Dict[str, object]] = None):
        self.responses = dict(responses or {})
        self.fetched: List[str] = []

    async def fetch(self, user: str) -> str:
        self.fetched.append(user)
        response = self.responses[user]
        if isinstance(response, Exception):
            raise response
        return response


class RecordingCache:
    def __init__(self):
        self.store: Dict[str, str] = {}
        self.saves: List[Tuple[str, str, float]] = []
        self.loads: List[str] = []

    async def load(self, key: str) -> Optional[str]:
        self.loads.append(key)
        return self.store.get(key)

    async def save(self, key: str, payload: str, ttl_seconds: float) -> None:
        self.saves.append((key, payload, ttl_seconds))
        self.store[key] = payload

    def invalidate(self, key: str) -> int:
        return 1 if self.store.pop(key, None) is not None else 0

    def invalidate_all(self) -> int:
        count = len(self.store)
        self.store.clear()
        return count


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def cache():
    return RecordingCache()


@pytest.fixture
def fetcher():
    return ScriptedFetcher({
        "alice": make_payload([["p", "alice", "data1", "read"]]),
        "bob": make_payload([["p", "bob", "data2", "write"]]),
    })


@pytest.fixture
def auto_authorizer(engine, cache, fetcher):
    return Authorizer(
        "auto",
        endpoint="https://svc/perm",
        cache=cache,
        fetcher=fetcher,
        engine=engine,
    )


@pytest.fixture
def manual_authorizer():
    return Authorizer("manual")
