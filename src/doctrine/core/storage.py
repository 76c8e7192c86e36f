"""
Registry persistence boundary (SYNC-ONLY).

The registry itself does no I/O. Durable storage sits behind a small
protocol - save, load, list, delete of named snapshots - so the backing
store (local files, an object store, a browser bridge) can be swapped
without touching the core.

Architecture:
    ::

        DoctrineRegistry ──registry_to_dict()──► RegistryStore.save(name, ...)
                                                      │
                         ┌────────────────────────────┴───────────────┐
                         ▼                                            ▼
                InMemoryRegistryStore                         JsonFileStore
                (tests, ephemeral)                    <root>/<name>.json

        RegistryStore.load(name) ──registry_from_dict()──► DoctrineRegistry
                                   (invariants re-checked)

Guardrails:
    - Snapshot names are restricted to ``[A-Za-z0-9_.-]+``
    - JSON files are written to a temp file and renamed into place
    - Missing snapshots raise NotFoundError, unreadable ones StorageError

Tags:
    storage, persistence, protocol, json, doctrine-registry

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import copy
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

from doctrine.core.errors import InvalidFieldError, NotFoundError, StorageError
from doctrine.core.logging import get_logger
from doctrine.core.registry import DoctrineRegistry
from doctrine.core.serialization import registry_from_dict, registry_to_dict

logger = get_logger(__name__)

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def _check_name(name: str) -> str:
    if not isinstance(name, str) or not _NAME_PATTERN.match(name) or name in (".", ".."):
        raise InvalidFieldError(f"Invalid snapshot name: {name!r}", field="name", value=name)
    return name


class RegistryStore(Protocol):
    """Save/load/list/delete contract for registry snapshots."""

    def save(self, name: str, registry: DoctrineRegistry) -> None: ...

    def load(self, name: str, **registry_kwargs: Any) -> DoctrineRegistry: ...

    def list(self) -> list[str]: ...

    def delete(self, name: str) -> None: ...


class InMemoryRegistryStore:
    """Dict-backed store holding serialized snapshots."""

    def __init__(self) -> None:
        self._snapshots: dict[str, dict[str, Any]] = {}

    def save(self, name: str, registry: DoctrineRegistry) -> None:
        self._snapshots[_check_name(name)] = registry_to_dict(registry)
        logger.debug("registry_saved", name=name, backend="memory", doctrines=len(registry))

    def load(self, name: str, **registry_kwargs: Any) -> DoctrineRegistry:
        if _check_name(name) not in self._snapshots:
            raise NotFoundError(name, what="Snapshot")
        registry = registry_from_dict(copy.deepcopy(self._snapshots[name]), **registry_kwargs)
        logger.debug("registry_loaded", name=name, backend="memory", doctrines=len(registry))
        return registry

    def list(self) -> list[str]:
        return sorted(self._snapshots)

    def delete(self, name: str) -> None:
        if self._snapshots.pop(_check_name(name), None) is None:
            raise NotFoundError(name, what="Snapshot")
        logger.debug("registry_deleted", name=name, backend="memory")


class JsonFileStore:
    """One ``<name>.json`` file per snapshot under ``root``."""

    suffix = ".json"

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def _path(self, name: str) -> Path:
        return self.root / f"{_check_name(name)}{self.suffix}"

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def save(self, name: str, registry: DoctrineRegistry) -> None:
        path = self._path(name)
        payload = json.dumps(registry_to_dict(registry), indent=2, ensure_ascii=False)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Could not write snapshot {name}: {e}", cause=e).with_context(
                path=str(path)
            ) from e
        logger.info("registry_saved", name=name, path=str(path), doctrines=len(registry))

    def load(self, name: str, **registry_kwargs: Any) -> DoctrineRegistry:
        path = self._path(name)
        if not path.is_file():
            raise NotFoundError(name, what="Snapshot")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read snapshot {name}: {e}", cause=e).with_context(
                path=str(path)
            ) from e
        registry = registry_from_dict(data, **registry_kwargs)
        logger.info("registry_loaded", name=name, path=str(path), doctrines=len(registry))
        return registry

    def list(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.stem for p in self.root.glob(f"*{self.suffix}") if p.is_file())

    def delete(self, name: str) -> None:
        path = self._path(name)
        if not path.is_file():
            raise NotFoundError(name, what="Snapshot")
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Could not delete snapshot {name}: {e}", cause=e) from e
        logger.info("registry_deleted", name=name, path=str(path))


__all__ = ["InMemoryRegistryStore", "JsonFileStore", "RegistryStore"]
