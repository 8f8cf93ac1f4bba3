"""Custom exceptions for the CrossQuery library.

Every error raised by the engine derives from :class:`CrossQueryError`, which
carries a human-readable message plus keyword details (entity, field, value...).
"""

from typing import Any, Dict


class CrossQueryError(Exception):
    """Base exception for all CrossQuery errors.

    Attributes:
        message: Error message
        details: Additional error context as key-value pairs
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        self.message = message
        self.details: Dict[str, Any] = kwargs
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.details:
            return self.message

        details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        if self.message:
            return f"{self.message} ({details_str})"
        return details_str

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# Registry exceptions
class NotRegisteredError(CrossQueryError):
    """Raised when a search targets an entity type that was never registered.

    Example:
        >>> raise NotRegisteredError("Entity not registered", entity="OperatingSystem")
    """


class FieldNotFoundError(CrossQueryError):
    """Raised by strict field-type lookups when the entity has no such filterable field.

    Example:
        >>> raise FieldNotFoundError("Field not found", field="colour", entity="OperatingSystem")
    """


# Validation exceptions
class ValidationError(CrossQueryError):
    """Raised when a descriptor or an inbound request has an invalid shape.

    Example:
        >>> raise ValidationError("Filter key cannot be blank", field="key")
    """


class ParseError(ValidationError):
    """Raised when a textual filter value cannot be converted to its field type.

    Example:
        >>> raise ParseError("Cannot parse date", value="31/31/2024", field_type="date")
    """


class UnsupportedOperatorForTypeError(ValidationError):
    """Raised when an operator is applied to a field type that cannot honour it.

    The criteria builder catches it, logs it and drops the offending filter.

    Example:
        >>> raise UnsupportedOperatorForTypeError("Operator not supported", operator="less_than", field_type="string")
    """


# Backend exceptions
class BackendExecutionError(CrossQueryError):
    """Raised when the storage engine rejects or fails a compiled query.

    Example:
        >>> raise BackendExecutionError("Query failed", backend="postgres", original_error="syntax error")
    """


# Configuration exceptions
class ConfigurationError(CrossQueryError):
    """Raised when configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError("Invalid configuration", setting="DEFAULT_PAGE_SIZE", value=0)
    """


class MissingConfigError(ConfigurationError):
    """Raised when required configuration values are not set.

    Example:
        >>> raise MissingConfigError("Configuration not set", config_key="MONGO_URI")
    """
