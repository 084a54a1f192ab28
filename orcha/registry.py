"""Thread-safe registry of commands, with loading of command plugins from files."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from os import PathLike
from pathlib import Path

from .command import Command

CommandFactory = Callable[[], Command]


class RegistrationError(Exception):
    """Raised when a command cannot be loaded or registered."""


class CommandRegistry:
    """Holds commands by name.

    Plugin libraries are files on disk; each is bound to a command factory
    through the ``factories`` mapping, keyed by the file's stem.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        factories: Mapping[str, CommandFactory] | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._commands: dict[str, Command] = {}
        self._sources: dict[str, Path | None] = {}
        self._factories: dict[str, CommandFactory] = dict(factories or {})

    def _fail(self, message: str, cause: BaseException | None = None) -> RegistrationError:
        self._logger.error(message)
        error = RegistrationError(message)
        error.__cause__ = cause
        return error

    def load_command_library(self, path: str | PathLike[str]) -> Command:
        """Create the command bound to the plugin file at ``path`` and register it."""
        path = Path(path)
        if not path.is_file():
            raise self._fail(f"Failed to load plugin: {path} (no such file)")

        factory = self._factories.get(path.stem)
        if not callable(factory):
            raise self._fail(f"Cannot load command factory '{path.stem}' for {path}")

        try:
            command = factory()
        except Exception as exc:
            raise self._fail(f"Plugin in {path} failed to create its command: {exc}", exc) from exc
        if command is None:
            raise self._fail(f"Plugin in {path} did not return a valid command.")

        name = command.name
        with self._lock:
            if name in self._commands:
                raise self._fail(f"Command '{name}' already registered, skipping.")
            self._commands[name] = command
            self._sources[name] = path

        self._logger.info("Loaded command: %s from %s", name, path)
        return command

    def register_command(self, command: Command) -> None:
        """Register a command instance directly."""
        if command is None:
            raise RegistrationError("No command given")
        name = command.name
        with self._lock:
            if name in self._commands:
                raise self._fail(f"Command '{name}' already registered.")
            self._commands[name] = command
            self._sources[name] = None
        self._logger.info("Registered command: %s", name)

    def unregister_command(self, name: str) -> None:
        """Remove a command; raise KeyError if no command has that name."""
        with self._lock:
            if name not in self._commands:
                raise KeyError(name)
            del self._commands[name]
            self._sources.pop(name, None)
        self._logger.info("Unregistered command: %s", name)

    def get_command(self, name: str) -> Command | None:
        with self._lock:
            return self._commands.get(name)

    def list_commands(self) -> list[str]:
        with self._lock:
            return list(self._commands)

    def has_command(self, name: str) -> bool:
        with self._lock:
            return name in self._commands

    def command_count(self) -> int:
        with self._lock:
            return len(self._commands)