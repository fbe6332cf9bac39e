"""Nested key-value store used for per-user parameters."""
from __future__ import annotations

import copy
import json
from typing import Any, Dict, Iterator, Mapping, Optional, Union

RegistrySource = Union["Registry", Mapping[str, Any], str, bytes, list, None]

_MISSING = object()


class Registry:
    """Dictionary wrapper addressing nested values with dotted paths.

    ``Registry({"editor": {"theme": "dark"}}).get("editor.theme")`` returns
    ``"dark"``. Raw JSON text (as stored in the ``params`` column) is decoded
    on construction.
    """

    separator = "."

    def __init__(self, data: RegistrySource = None) -> None:
        self._data: Dict[str, Any] = {}
        if data is not None:
            self.load(data)

    def load(self, data: RegistrySource) -> "Registry":
        """Merge ``data`` into the registry and return ``self``."""

        if isinstance(data, (list, tuple)) and not data:
            # Empty parameter sets are often stored as "[]".
            return self
        if isinstance(data, Registry):
            self._merge(self._data, data.to_dict())
        elif isinstance(data, (str, bytes)):
            text = data.decode("utf-8") if isinstance(data, bytes) else data
            if text.strip():
                decoded = json.loads(text)
                if decoded == []:
                    return self
                if not isinstance(decoded, dict):
                    raise ValueError("Registry JSON must decode to an object")
                self._merge(self._data, decoded)
        elif isinstance(data, Mapping):
            self._merge(self._data, data)
        elif data is not None:
            raise TypeError(f"Cannot build a registry from {type(data).__name__}")
        return self

    def get(self, path: str, default: Any = None) -> Any:
        node: Any = self._data
        for part in path.split(self.separator):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, path: str, value: Any) -> Any:
        """Store ``value`` at ``path`` and return the previous value, if any."""

        parts = path.split(self.separator)
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        previous = node.get(parts[-1])
        node[parts[-1]] = value
        return previous

    def exists(self, path: str) -> bool:
        return self.get(path, _MISSING) is not _MISSING

    def merge(self, other: RegistrySource) -> "Registry":
        return self.load(other)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def to_json(self) -> str:
        return json.dumps(self._data, sort_keys=True)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Registry):
            return self._data == other._data
        return NotImplemented

    def __repr__(self) -> str:
        return f"Registry({self._data!r})"

    @classmethod
    def _merge(cls, target: Dict[str, Any], source: Mapping[str, Any]) -> None:
        for key, value in source.items():
            existing: Optional[Any] = target.get(key)
            if isinstance(value, Mapping) and isinstance(existing, dict):
                cls._merge(existing, value)
            elif isinstance(value, Mapping):
                target[str(key)] = copy.deepcopy(dict(value))
            else:
                target[str(key)] = copy.deepcopy(value)


__all__ = ["Registry"]
