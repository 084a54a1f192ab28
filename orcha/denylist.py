"""Persistent set of plugin names that must not be loaded automatically."""

from __future__ import annotations

import threading
from os import PathLike
from pathlib import Path


class PluginDenylist:
    """File-backed set of disabled plugin names, one name per line."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._names: set[str] = set()
        self._load()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._names

    def add(self, name: str) -> None:
        with self._lock:
            if name not in self._names:
                self._names.add(name)
                self._save()

    def remove(self, name: str) -> None:
        with self._lock:
            if name in self._names:
                self._names.discard(name)
                self._save()

    def names(self) -> list[str]:
        """All denylisted names in sorted order."""
        with self._lock:
            return sorted(self._names)

    def _load(self) -> None:
        try:
            with open(self._path, encoding="utf-8", newline="") as handle:
                content = handle.read()
        except OSError:
            return
        for line in content.split("\n"):
            line = line.rstrip("\r \t")
            if line:
                self._names.add(line)

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass
        with open(self._path, "w", encoding="utf-8", newline="\n") as handle:
            handle.writelines(f"{name}\n" for name in sorted(self._names))