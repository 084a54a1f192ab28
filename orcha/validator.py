"""Startup checks of application configuration, with messages and suggestions."""

from __future__ import annotations

import enum
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from .configuration import Configuration

_HOST_PATTERN = re.compile(
    r"^(\d{1,3}\.){3}\d{1,3}$|^localhost$|^[\w\-\.]+$", re.ASCII
)

_VALID_LOG_LEVELS = frozenset(
    {"trace", "debug", "info", "warn", "warning", "error", "fatal", "off"}
)
_VALID_ROLLBACK_MODES = frozenset({"none", "all", "completed"})


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found in the configuration."""

    severity: Severity
    key: str
    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        prefix = "[ERROR] " if self.severity is Severity.ERROR else "[WARN] "
        text = f"{prefix}{self.key}: {self.message}"
        if self.suggestion is not None:
            text += f" (suggestion: {self.suggestion})"
        return text


@dataclass
class ValidationResult:
    """All issues found; ``valid`` is False once any error is added."""

    valid: bool = True
    issues: list[ValidationIssue] = field(default_factory=list)

    def add_error(self, key: str, message: str, suggestion: str | None = None) -> None:
        self.valid = False
        self.issues.append(ValidationIssue(Severity.ERROR, key, message, suggestion))

    def add_warning(self, key: str, message: str, suggestion: str | None = None) -> None:
        self.issues.append(ValidationIssue(Severity.WARNING, key, message, suggestion))

    def error_messages(self) -> list[str]:
        return [str(issue) for issue in self.issues if issue.severity is Severity.ERROR]

    def warning_messages(self) -> list[str]:
        return [str(issue) for issue in self.issues if issue.severity is Severity.WARNING]


class ConfigValidationError(Exception):
    """Raised when the configuration has at least one error."""

    def __init__(self, result: ValidationResult) -> None:
        message = "Configuration validation failed:\n" + "".join(
            f"  {error}\n" for error in result.error_messages()
        )
        super().__init__(message)
        self.result = result


Validator = Callable[[Configuration, ValidationResult], None]


def _ascii_lower(text: str) -> str:
    return "".join(ch.lower() if ch.isascii() else ch for ch in text)


class ConfigValidator:
    """Checks the built-in rules and any added ones against a configuration."""

    def __init__(self) -> None:
        self._validators: list[Validator] = []

    def validate(self, config: Configuration) -> ValidationResult:
        result = ValidationResult()
        _validate_server(config, result)
        _validate_plugins(config, result)
        _validate_logging(config, result)
        _validate_workflow(config, result)
        for validator in self._validators:
            validator(config, result)
        return result

    def add_validator(self, validator: Validator) -> None:
        """Add a rule called as ``validator(config, result)``."""
        self._validators.append(validator)

    def validate_or_raise(self, config: Configuration) -> ValidationResult:
        """Validate; raise ConfigValidationError if there are errors, else return the result."""
        result = self.validate(config)
        if not result.valid:
            raise ConfigValidationError(result)
        return result


def _validate_server(config: Configuration, result: ValidationResult) -> None:
    port = config.get_int("server.port")
    if port is not None:
        if port < 1 or port > 65535:
            result.add_error(
                "server.port",
                f"Port must be between 1 and 65535, got: {port}",
                "Use a port like 8080 or 8070",
            )
        if port < 1024:
            result.add_warning(
                "server.port",
                f"Port {port} requires root privileges",
                "Consider using a port >= 1024",
            )

    host = config.get_string("server.host")
    if host is not None:
        if not host:
            result.add_error(
                "server.host",
                "Server host cannot be empty",
                "Use '0.0.0.0' for all interfaces or '127.0.0.1' for localhost",
            )
        if _HOST_PATTERN.fullmatch(host) is None:
            result.add_warning(
                "server.host", f"Host '{host}' may not be a valid hostname or IP"
            )

    workers = config.get_int("server.worker_threads")
    if workers is not None:
        if workers < 1:
            result.add_error(
                "server.worker_threads",
                "Worker threads must be at least 1",
                "Use a value between 1 and number of CPU cores",
            )
        if workers > 64:
            result.add_warning(
                "server.worker_threads",
                f"High thread count ({workers}) may cause performance issues",
                "Consider using fewer threads",
            )


def _validate_plugins(config: Configuration, result: ValidationResult) -> None:
    directory = config.get_string("plugins.directory")
    if directory is not None:
        if not directory:
            result.add_error(
                "plugins.directory",
                "Plugin directory cannot be empty",
                "Use a relative path like 'commands' or absolute path",
            )
        if ".." in directory:
            result.add_warning(
                "plugins.directory",
                "Plugin directory contains '..', ensure this is intentional",
            )

    if config.get_bool("plugins.auto_reload", False):
        interval = config.get_int("plugins.scan_interval_ms", 5000)
        if interval < 1000:
            result.add_warning(
                "plugins.scan_interval_ms",
                f"Very short scan interval ({interval}ms) may impact performance",
                "Use at least 1000ms (1 second)",
            )


def _validate_logging(config: Configuration, result: ValidationResult) -> None:
    level = config.get_string("logging.level")
    if level is not None and _ascii_lower(level) not in _VALID_LOG_LEVELS:
        result.add_error(
            "logging.level",
            f"Invalid log level: '{level}'",
            "Use one of: trace, debug, info, warn, error, fatal, off",
        )

    log_file = config.get_string("logging.file")
    if log_file is not None and not log_file:
        result.add_warning(
            "logging.file", "Empty log file path, logs will only go to console"
        )


def _validate_workflow(config: Configuration, result: ValidationResult) -> None:
    timeout = config.get_int("workflow.default_timeout_ms")
    if timeout is not None:
        if timeout < 0:
            result.add_error(
                "workflow.default_timeout_ms",
                "Timeout cannot be negative",
                "Use 0 for no timeout or a positive value in milliseconds",
            )
        if 0 < timeout < 100:
            result.add_warning(
                "workflow.default_timeout_ms",
                f"Very short timeout ({timeout}ms) may cause frequent failures",
            )

    max_parallel = config.get_int("workflow.max_parallel_steps")
    if max_parallel is not None:
        if max_parallel < 1:
            result.add_error(
                "workflow.max_parallel_steps", "Max parallel steps must be at least 1"
            )
        if max_parallel > 32:
            result.add_warning(
                "workflow.max_parallel_steps",
                f"High parallelism ({max_parallel}) may exhaust system resources",
            )

    mode = config.get_string("workflow.rollback_mode")
    if mode is not None and mode not in _VALID_ROLLBACK_MODES:
        result.add_error(
            "workflow.rollback_mode",
            f"Invalid rollback mode: '{mode}'",
            "Use one of: none, all, completed",
        )