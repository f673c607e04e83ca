"""
Locally evaluated permission set for manual mode.
"""

import copy
import json
from typing import Any, Dict, Set, Tuple, Union

from .errors import PayloadError


class Permission:
    """
    Set of granted (action, object) pairs.

    Two shapes are accepted, and may be mixed in one mapping:

        {"read": ["data1", "data2"]}               # action -> objects
        {"data1": {"read": True, "write": False}}  # object -> action flags

    Only a true flag grants; anything not listed is denied.
    """

    def __init__(self):
        self._granted: Set[Tuple[str, str]] = set()
        self._raw: Dict[str, Any] = {}

    def load(self, data: Union[Dict[str, Any], str]) -> None:
        """Replace the current content with data (a mapping or JSON text)."""
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                raise PayloadError(f"Permission data is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise PayloadError("Permission data must be a JSON object")

        granted = set()
        for key, value in data.items():
            if isinstance(value, dict):
                for action, allowed in value.items():
                    if allowed is True:
                        granted.add((action, key))
            elif isinstance(value, (list, tuple, set, frozenset)):
                for obj in value:
                    granted.add((key, obj))
            else:
                raise PayloadError(
                    f"Permission entry {key!r} must be a list of objects or a mapping of actions"
                )

        self._granted = granted
        self._raw = copy.deepcopy(data)

    def check(self, action: str, obj: str) -> bool:
        return (action, obj) in self._granted

    def to_object(self) -> Dict[str, Any]:
        """Return a copy of the mapping last loaded."""
        return copy.deepcopy(self._raw)
