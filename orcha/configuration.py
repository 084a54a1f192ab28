"""Application configuration: dot-notation access to YAML data with environment overrides."""

from __future__ import annotations

import abc
import contextlib
import math
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ENV_PREFIX = "ORCHA_"

DEFAULT_CONFIG = """
server:
  host: "0.0.0.0"
  port: 8070
  worker_threads: 4

logging:
  file: "./logs/orcha.log"
  level: INFO
  console_output: true

plugins:
  directory: "./commands"
  auto_reload: false
  scan_interval_ms: 5000

admin:
  enabled: true
  auth_required: true
  username: "admin"
  password: ""
  realm: "Orcha Admin"

jobs:
  db_path: "./orcha-jobs.db"
  scheduler_enabled: true
  scheduler_tick_seconds: 30
"""

_NULL_TAG = "tag:yaml.org,2002:null"
_MISSING = object()

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_WS = "[ \t\n\v\f\r]*"
_INT_RE = re.compile(rf"([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*){_WS}")
_FLOAT_RE = re.compile(rf"([+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?){_WS}")

_POS_INF = {".inf", ".Inf", ".INF", "+.inf", "+.Inf", "+.INF"}
_NEG_INF = {"-.inf", "-.Inf", "-.INF"}
_NAN = {".nan", ".NaN", ".NAN"}

_YAML_TRUE = {"y", "yes", "true", "on"}
_YAML_FALSE = {"n", "no", "false", "off"}
_LOOSE_TRUE = {"true", "yes", "1"}
_LOOSE_FALSE = {"false", "no", "0"}


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or modified."""


class _Loader(yaml.SafeLoader):
    """Keeps every plain scalar as text; only null is recognised implicitly."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag == _NULL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _format_double(value: float) -> str:
    if math.isnan(value):
        return ".nan"
    if math.isinf(value):
        return ".inf" if value > 0 else "-.inf"
    return repr(float(value))


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_double(value)
    return str(value)


def _normalize(node: Any) -> Any:
    """Turn loaded YAML into dicts, lists, text scalars and None."""
    if node is None:
        return None
    if isinstance(node, Mapping):
        return {
            ("~" if key is None else _scalar_text(key)): _normalize(value)
            for key, value in node.items()
        }
    if isinstance(node, list):
        return [_normalize(item) for item in node]
    return _scalar_text(node)


def _parse_int(text: str) -> int | None:
    match = _INT_RE.fullmatch(text)
    if match is None:
        return None
    sign, digits = match.groups()
    if digits[:2] in ("0x", "0X"):
        value = int(digits[2:], 16)
    elif len(digits) > 1:
        value = int(digits[1:], 8)
    else:
        value = int(digits)
    if sign == "-":
        value = -value
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _parse_double(text: str) -> float | None:
    if text in _POS_INF:
        return math.inf
    if text in _NEG_INF:
        return -math.inf
    if text in _NAN:
        return math.nan
    match = _FLOAT_RE.fullmatch(text)
    if match is None:
        return None
    return float(match.group(1))


def _is_flexible_case(text: str) -> bool:
    if not text:
        return True
    if text == text.lower() or text == text.upper():
        return True
    return text[0] == text[0].upper() and text[1:] == text[1:].lower()


def _parse_bool(text: str) -> bool | None:
    lowered = text.lower()
    if _is_flexible_case(text):
        if lowered in _YAML_TRUE:
            return True
        if lowered in _YAML_FALSE:
            return False
    if lowered in _LOOSE_TRUE:
        return True
    if lowered in _LOOSE_FALSE:
        return False
    return None


def _split_key(key: str) -> list[str]:
    segments = key.split(".")
    if segments and segments[-1] == "":
        segments.pop()
    return segments


class Configuration(abc.ABC):
    """Read access to configuration values by dot-separated key."""

    @abc.abstractmethod
    def _string(self, key: str) -> str | None:
        """The value at ``key`` as text, or None."""

    @abc.abstractmethod
    def _int(self, key: str) -> int | None:
        """The value at ``key`` as an integer, or None."""

    @abc.abstractmethod
    def _bool(self, key: str) -> bool | None:
        """The value at ``key`` as a boolean, or None."""

    @abc.abstractmethod
    def _double(self, key: str) -> float | None:
        """The value at ``key`` as a float, or None."""

    def get_string(self, key: str, default: str | None = None) -> str | None:
        value = self._string(key)
        return default if value is None else value

    def get_int(self, key: str, default: int | None = None) -> int | None:
        value = self._int(key)
        return default if value is None else value

    def get_bool(self, key: str, default: bool | None = None) -> bool | None:
        value = self._bool(key)
        return default if value is None else value

    def get_double(self, key: str, default: float | None = None) -> float | None:
        value = self._double(key)
        return default if value is None else value

    @abc.abstractmethod
    def get_string_list(self, key: str) -> list[str]:
        """Scalar items of the sequence at ``key``; empty if there is none."""

    @abc.abstractmethod
    def get_section(self, section: str) -> Configuration:
        """The mapping at ``section`` as a configuration of its own."""

    @abc.abstractmethod
    def has_key(self, key: str) -> bool:
        """True if ``key`` holds a non-null value."""

    @abc.abstractmethod
    def keys(self) -> list[str]:
        """Keys at the top level."""


class YamlConfiguration(Configuration):
    """Configuration held as YAML data, with environment variables taking precedence."""

    def __init__(self, root: Any = None) -> None:
        self._root = root
        self._env_overrides: dict[str, str] = {}

    def load_from_file(self, path: str | PathLike[str]) -> None:
        """Replace the data with the YAML file at ``path``."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
        self.load_from_string(content)

    def load_from_string(self, content: str) -> None:
        """Replace the data with the first YAML document in ``content``."""
        try:
            document = next(iter(yaml.load_all(content, Loader=_Loader)), None)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML: {exc}") from exc
        self._root = _normalize(document)

    def merge_environment(
        self,
        prefix: str = DEFAULT_ENV_PREFIX,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Take ``PREFIX_SECTION_KEY`` variables as overrides for ``section.key``."""
        source = os.environ if environ is None else environ
        for name, value in source.items():
            if not name.startswith(prefix):
                continue
            key = name[len(prefix):].replace("_", ".").lower()
            self._env_overrides[key] = value

    def _navigate(self, key: str) -> Any:
        if not key:
            return self._root
        if key in self._env_overrides:
            return self._env_overrides[key]
        current = self._root
        for segment in _split_key(key):
            if not isinstance(current, dict) or segment not in current:
                return _MISSING
            current = current[segment]
        return current

    def _scalar(self, key: str) -> str | None:
        node = self._navigate(key)
        return node if isinstance(node, str) else None

    def _string(self, key: str) -> str | None:
        return self._scalar(key)

    def _int(self, key: str) -> int | None:
        text = self._scalar(key)
        return None if text is None else _parse_int(text)

    def _bool(self, key: str) -> bool | None:
        text = self._scalar(key)
        return None if text is None else _parse_bool(text)

    def _double(self, key: str) -> float | None:
        text = self._scalar(key)
        return None if text is None else _parse_double(text)

    def get_string_list(self, key: str) -> list[str]:
        node = self._navigate(key)
        if not isinstance(node, list):
            return []
        return [item for item in node if isinstance(item, str)]

    def get_section(self, section: str) -> YamlConfiguration:
        node = self._navigate(section)
        if isinstance(node, dict):
            return YamlConfiguration(node)
        return YamlConfiguration()

    def has_key(self, key: str) -> bool:
        if key in self._env_overrides:
            return True
        node = self._navigate(key)
        return node is not _MISSING and node is not None

    def keys(self) -> list[str]:
        if isinstance(self._root, dict):
            return list(self._root)
        return []

    def _set(self, key: str, value: str) -> None:
        if not key:
            self._root = value
            return
        if self._root is None:
            self._root = {}
        if not isinstance(self._root, dict):
            raise ConfigError(f"Cannot set '{key}': configuration root is not a mapping")
        *parents, last = _split_key(key)
        container = self._root
        for segment in parents:
            child = container.get(segment)
            if child is None:
                child = {}
                container[segment] = child
            elif not isinstance(child, dict):
                raise ConfigError(f"Cannot set '{key}': '{segment}' is not a mapping")
            container = child
        container[last] = value

    def set_string(self, key: str, value: str) -> None:
        self._set(key, str(value))

    def set_int(self, key: str, value: int) -> None:
        self._set(key, str(int(value)))

    def set_bool(self, key: str, value: bool) -> None:
        self._set(key, "true" if value else "false")

    def set_double(self, key: str, value: float) -> None:
        self._set(key, _format_double(float(value)))

    def merge(self, other: Configuration) -> None:
        """Copy the top-level scalar values of ``other`` into this configuration."""
        for key in other.keys():
            value = other.get_string(key)
            if value is not None:
                self.set_string(key, value)

    @classmethod
    def create(
        cls, config_path: str | PathLike[str], env_prefix: str = DEFAULT_ENV_PREFIX
    ) -> YamlConfiguration:
        """Load ``config_path`` if it can be read, then apply environment overrides."""
        config = cls()
        with contextlib.suppress(ConfigError):
            config.load_from_file(config_path)
        config.merge_environment(env_prefix)
        return config

    @classmethod
    def create_default(cls) -> YamlConfiguration:
        """The built-in defaults with ``ORCHA_`` environment overrides applied."""
        config = cls()
        config.load_from_string(DEFAULT_CONFIG)
        config.merge_environment(DEFAULT_ENV_PREFIX)
        return config


@dataclass
class ServerConfig:
    """Typed server settings."""

    host: str = "0.0.0.0"
    port: int = 8070
    worker_threads: int = 4

    @classmethod
    def from_config(cls, config: Configuration) -> ServerConfig:
        return cls(
            host=config.get_string("server.host", "0.0.0.0"),
            port=config.get_int("server.port", 8070) & 0xFFFF,
            worker_threads=config.get_int("server.worker_threads", 4) % 2**64,
        )


@dataclass
class LoggingConfig:
    """Typed logging settings."""

    file: str = "./logs/orcha.log"
    level: str = "INFO"
    console_output: bool = True

    @classmethod
    def from_config(cls, config: Configuration) -> LoggingConfig:
        return cls(
            file=config.get_string("logging.file", "./logs/orcha.log"),
            level=config.get_string("logging.level", "INFO"),
            console_output=config.get_bool("logging.console_output", True),
        )


@dataclass
class PluginConfig:
    """Typed plugin settings."""

    directory: str = "./commands"
    auto_reload: bool = False
    scan_interval_ms: int = 5000

    @classmethod
    def from_config(cls, config: Configuration) -> PluginConfig:
        return cls(
            directory=config.get_string("plugins.directory", "./commands"),
            auto_reload=config.get_bool("plugins.auto_reload", False),
            scan_interval_ms=config.get_int("plugins.scan_interval_ms", 5000),
        )