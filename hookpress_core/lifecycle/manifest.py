"""Handle component manifest parsing."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import tomllib

from .errors import ComponentManifestError

MANIFEST_FILE_NAME = "component.toml"
COMPONENT_KINDS = ("plugin", "theme")


@dataclass(frozen=True)
class ComponentManifest:
    """Immutable representation of a ``component.toml`` document."""

    id: str
    name: str
    version: str
    entrypoint: str
    kind: str = "plugin"
    description: str = ""

    @staticmethod
    def _normalize_field(label: str, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ComponentManifestError(f"{label} cannot be empty.")
        return normalized

    @classmethod
    def load(cls, path: Path) -> "ComponentManifest":
        """Load and validate manifest data from ``component.toml``."""

        try:
            with path.open("rb") as handle:
                document = tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ComponentManifestError(f"unable to read manifest at {path}") from exc

        section = document.get("component")
        if not isinstance(section, dict):
            raise ComponentManifestError("missing or malformed [component] section")

        fields: dict[str, str] = {}
        for key in ("id", "name", "version", "entrypoint"):
            raw_value = section.get(key)
            if raw_value is None:
                raise ComponentManifestError(f"missing '{key}' in manifest")
            if not isinstance(raw_value, str):
                raise ComponentManifestError(f"'{key}' must be a string")
            fields[key] = cls._normalize_field(key, raw_value)

        kind = section.get("kind", "plugin")
        if kind not in COMPONENT_KINDS:
            raise ComponentManifestError(
                f"'kind' must be one of {', '.join(COMPONENT_KINDS)}, got {kind!r}"
            )
        description = section.get("description", "")
        if not isinstance(description, str):
            raise ComponentManifestError("'description' must be a string")

        return cls(kind=kind, description=description.strip(), **fields)
