"""Configuration validation collaborators.

The container never interprets configuration. Producers that want their
configuration checked declare a ``validator``: any object with a
``validate(config) -> ValidationResult`` method. :class:`SchemaValidator` is the
stock implementation, backed by a pydantic model.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError

__all__ = ["ValidationResult", "ConfigurationValidator", "SchemaValidator"]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a configuration.

    Attributes:
        success: Whether the configuration is valid.
        errors: Human readable descriptions of each problem, empty on success.
        value: The validated (possibly coerced) configuration, if the validator produces one.
    """

    success: bool
    errors: list[str] = field(default_factory=list)
    value: Any = None

    @staticmethod
    def ok(value: Any = None) -> "ValidationResult":
        return ValidationResult(True, [], value)

    @staticmethod
    def failed(errors: list[str]) -> "ValidationResult":
        return ValidationResult(False, list(errors))


@runtime_checkable
class ConfigurationValidator(Protocol):
    def validate(self, config: Any) -> ValidationResult: ...


class SchemaValidator:
    """Validate configuration against a pydantic model.

    Example:
        >>> class LoggerConfig(BaseModel):
        ...     level: Literal["DEBUG", "INFO", "WARNING"] = "WARNING"
        >>> SchemaValidator(LoggerConfig).validate({"level": "LOUD"}).errors
        ["level Input should be 'DEBUG', 'INFO' or 'WARNING'"]
    """

    def __init__(self, model: type[BaseModel]):
        self.model = model

    def validate(self, config: Any) -> ValidationResult:
        try:
            value = self.model.model_validate(config)
        except ValidationError as e:
            return ValidationResult.failed([_describe(error) for error in e.errors()])
        return ValidationResult.ok(value)

    def __repr__(self):
        return f"SchemaValidator({self.model.__name__})"


def _describe(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    if not location:
        return error["msg"]
    return f"{location} {error['msg']}"
