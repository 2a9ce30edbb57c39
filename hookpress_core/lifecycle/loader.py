"""Find component folders and import their entrypoints."""

from __future__ import annotations

import importlib
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from .component import Component
from .errors import ComponentLoadError, ComponentManifestError
from .manifest import MANIFEST_FILE_NAME, ComponentManifest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentCandidate:
    id: str
    manifest: ComponentManifest
    path: Path
    source: str


def scan_components(directories: Sequence[tuple[str, Path]]) -> list[ComponentCandidate]:
    """Collect components from ``(source, directory)`` pairs.

    Earlier directories win when two folders declare the same id. Folders with
    an invalid manifest, or whose name differs from the manifest id, are
    skipped with a warning.
    """

    discovered: list[ComponentCandidate] = []
    seen: set[str] = set()

    for source, directory in directories:
        if not directory.is_dir():
            continue
        for child in sorted(directory.iterdir(), key=lambda path: path.name):
            manifest_path = child / MANIFEST_FILE_NAME
            if not child.is_dir() or not manifest_path.is_file():
                continue
            try:
                manifest = ComponentManifest.load(manifest_path)
            except ComponentManifestError as exc:
                logger.warning("skipping %s: %s", child, exc)
                continue
            if manifest.id != child.name:
                logger.warning("component folder %s id mismatch %s", child, manifest.id)
                continue
            if manifest.id in seen:
                continue
            seen.add(manifest.id)
            discovered.append(
                ComponentCandidate(id=manifest.id, manifest=manifest, path=child, source=source)
            )

    return discovered


def split_entrypoint(component_id: str, entrypoint: str) -> tuple[str, str]:
    """Split ``package.module:Class`` (or ``package.module.Class``) into its parts."""

    separator = ":" if ":" in entrypoint else "."
    if separator not in entrypoint:
        raise ComponentLoadError(
            f"entrypoint {entrypoint!r} of {component_id} is not a module path"
        )
    if separator == ":":
        module_name, _, class_name = entrypoint.partition(":")
    else:
        module_name, _, class_name = entrypoint.rpartition(".")
    if not (module_name and class_name):
        raise ComponentLoadError(f"entrypoint {entrypoint!r} of {component_id} is incomplete")
    return module_name, class_name


@contextmanager
def importable_from(root: Path) -> Iterator[None]:
    """Put ``root`` first on ``sys.path`` for the duration of an import."""

    entry = str(root)
    added = entry not in sys.path
    if added:
        sys.path.insert(0, entry)
    try:
        yield
    finally:
        if added and entry in sys.path:
            sys.path.remove(entry)


class ComponentLoader:
    """Turn a manifest entrypoint into a :class:`Component` instance."""

    def __init__(self, manifest: ComponentManifest, root: Path) -> None:
        self.manifest = manifest
        self.root = root

    def load(self) -> Component:
        component_id = self.manifest.id
        module_name, class_name = split_entrypoint(component_id, self.manifest.entrypoint)
        try:
            with importable_from(self.root):
                component_cls = self._component_class(module_name, class_name)
                component = component_cls()
        except ComponentLoadError:
            raise
        except Exception as exc:
            raise ComponentLoadError(f"component {component_id} failed to initialize: {exc}") from exc

        if component.info.id != component_id:
            raise ComponentLoadError(
                f"{self.manifest.entrypoint} reports id {component.info.id!r}, "
                f"manifest declares {component_id!r}"
            )
        logger.debug("loaded component %s from %s", component_id, self.root)
        return component

    def _component_class(self, module_name: str, class_name: str) -> type[Component]:
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as exc:
            raise ComponentLoadError(
                f"unable to import {module_name} for component {self.manifest.id}: {exc}"
            ) from exc

        component_cls = getattr(module, class_name, None)
        if component_cls is None:
            raise ComponentLoadError(f"{module_name} does not expose {class_name}")
        if isinstance(component_cls, type) and issubclass(component_cls, Component):
            return component_cls
        raise ComponentLoadError(f"{module_name}:{class_name} is not a Component subclass")
