"""Per-component settings, namespaced by component id."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

Namespaces = dict[str, dict[str, Any]]


class SettingsError(ValueError):
    """Raised when a setting cannot be stored as JSON."""


class SettingsStore:
    """Namespaced key/value settings, optionally persisted as JSON.

    The store is owned by the host; components only ever see a
    :class:`SettingsAccessor` bound to their own namespace. Every change is
    serialized before it replaces the current data, so a rejected value
    leaves the store untouched.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._data: Namespaces = self._read() if path else {}

    def get(self, namespace: str, key: str, default: Any | None = None) -> Any | None:
        with self._lock:
            return self._data.get(namespace, {}).get(key, default)

    def set(self, namespace: str, key: str, value: Any) -> None:
        with self._lock:
            candidate = self._copy()
            candidate.setdefault(namespace, {})[key] = value
            self._commit(candidate)

    def delete(self, namespace: str, key: str) -> bool:
        with self._lock:
            if key not in self._data.get(namespace, {}):
                return False
            candidate = self._copy()
            del candidate[namespace][key]
            self._commit(candidate)
            return True

    def remove_all(self, namespace: str) -> int:
        """Purge every setting under ``namespace``; returns how many were dropped."""

        with self._lock:
            removed = len(self._data.get(namespace, {}))
            if removed:
                candidate = self._copy()
                del candidate[namespace]
                self._commit(candidate)
            return removed

    def items(self, namespace: str) -> dict[str, Any]:
        with self._lock:
            return dict(self._data.get(namespace, {}))

    def namespace(self, namespace: str) -> "SettingsAccessor":
        return SettingsAccessor(self, namespace)

    def _copy(self) -> Namespaces:
        return {namespace: dict(values) for namespace, values in self._data.items()}

    def _commit(self, candidate: Namespaces) -> None:
        try:
            text = json.dumps(candidate, ensure_ascii=False, indent=2, sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"setting is not JSON serializable: {exc}") from exc
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(text, encoding="utf-8")
        self._data = candidate

    def _read(self) -> Namespaces:
        assert self.path is not None
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {
            str(namespace): dict(values)
            for namespace, values in payload.items()
            if isinstance(values, dict)
        }


class SettingsAccessor:
    """View of a :class:`SettingsStore` restricted to one namespace."""

    def __init__(self, store: SettingsStore, namespace: str) -> None:
        self._store = store
        self.namespace = namespace

    def get(self, key: str, default: Any | None = None) -> Any | None:
        return self._store.get(self.namespace, key, default)

    def set(self, key: str, value: Any) -> None:
        self._store.set(self.namespace, key, value)

    def delete(self, key: str) -> bool:
        return self._store.delete(self.namespace, key)

    def remove_all(self) -> int:
        return self._store.remove_all(self.namespace)

    def as_dict(self) -> dict[str, Any]:
        return self._store.items(self.namespace)
