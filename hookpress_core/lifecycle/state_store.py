"""Persist component lifecycle state between host runs."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .states import TRANSIENT, LifecycleState

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "components.json"


@dataclass(frozen=True)
class StoredState:
    state: LifecycleState
    version: str | None = None
    error: str | None = None


def state_file_path(state_dir: Path) -> Path:
    return state_dir / STATE_FILE_NAME


class LifecycleStateStore:
    """JSON file mapping component ids to their last settled state."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> dict[str, StoredState]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("ignoring unreadable lifecycle state %s: %s", self.path, exc)
            return {}
        components = payload.get("components") if isinstance(payload, dict) else None
        if not isinstance(components, dict):
            return {}
        return {
            str(component_id): stored
            for component_id, entry in components.items()
            if (stored := _parse_entry(entry)) is not None
        }

    def write(self, states: dict[str, StoredState]) -> Path:
        payload = {
            "updated_at": datetime.now(tz=UTC).isoformat(),
            "components": {
                component_id: {
                    "state": stored.state.value,
                    "version": stored.version,
                    "error": stored.error,
                }
                for component_id, stored in sorted(states.items())
            },
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        return self.path


def _parse_entry(entry: Any) -> StoredState | None:
    if not isinstance(entry, dict):
        return None
    try:
        state = LifecycleState(entry.get("state"))
    except ValueError:
        return None
    error = entry.get("error")
    if state in TRANSIENT:
        # the previous run stopped mid-transition
        state = LifecycleState.ERROR
        error = error or "interrupted transition"
    version = entry.get("version")
    return StoredState(
        state=state,
        version=str(version) if version is not None else None,
        error=str(error) if error is not None else None,
    )
