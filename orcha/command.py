"""Commands: the unit of work the orchestrator runs, with metadata and parameter checks."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

DEFAULT_VERSION = "1.0.0"


@dataclass
class CommandParameter:
    """Describes one command parameter for documentation and validation."""

    name: str
    type: str
    required: bool = False
    description: str | None = None
    default_value: str | None = None
    example: str | None = None

    def to_json(self) -> dict[str, Any]:
        obj: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "required": self.required,
        }
        if self.description is not None:
            obj["description"] = self.description
        if self.default_value is not None:
            obj["default"] = self.default_value
        if self.example is not None:
            obj["example"] = self.example
        return obj


@dataclass
class CommandMetadata:
    """Descriptive metadata about a command."""

    name: str
    version: str = DEFAULT_VERSION
    description: str = ""
    author: str = ""
    tags: list[str] = field(default_factory=list)
    parameters: list[CommandParameter] = field(default_factory=list)
    supports_rollback: bool = False

    def to_json(self) -> dict[str, Any]:
        obj: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "description": self.description,
        }
        if self.author:
            obj["author"] = self.author
        if self.tags:
            obj["tags"] = list(self.tags)
        if self.parameters:
            obj["parameters"] = [param.to_json() for param in self.parameters]
        obj["supports_rollback"] = self.supports_rollback
        return obj


class ParameterValidationError(ValueError):
    """Raised when command parameters do not satisfy the command's metadata."""

    def __init__(self, parameter_name: str, message: str) -> None:
        super().__init__(f"{parameter_name}: {message}")
        self.parameter_name = parameter_name
        self.message = message


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return _is_int(value) or isinstance(value, float)


_TYPE_CHECKS: dict[str, tuple[Callable[[Any], bool], str]] = {
    "string": (lambda v: isinstance(v, str), "Expected string type"),
    "int": (_is_int, "Expected integer type"),
    "bool": (lambda v: isinstance(v, bool), "Expected boolean type"),
    "double": (_is_number, "Expected number type"),
    "object": (lambda v: isinstance(v, Mapping), "Expected object type"),
    "array": (lambda v: isinstance(v, list), "Expected array type"),
}


class Command(abc.ABC):
    """Base class for commands that the registry can hold and workflows can run."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Unique name of this command."""

    @abc.abstractmethod
    def execute(self, params: Any) -> Any:
        """Run the command with the given JSON-like parameters and return its result."""

    def rollback(self, params: Any) -> None:
        """Undo a previous execution; does nothing unless overridden."""
        return None

    def metadata(self) -> CommandMetadata:
        return CommandMetadata(name=self.name, description="No description available")

    def validate(self, params: Any) -> None:
        """Check params against metadata(); raise ParameterValidationError on the first problem."""
        fields = params if isinstance(params, Mapping) else {}
        for param in self.metadata().parameters:
            present = param.name in fields
            if param.required and not present:
                raise ParameterValidationError(param.name, "Required parameter missing")
            if not present:
                continue
            check = _TYPE_CHECKS.get(param.type)
            if check is None:
                continue
            predicate, message = check
            if not predicate(fields[param.name]):
                raise ParameterValidationError(param.name, message)