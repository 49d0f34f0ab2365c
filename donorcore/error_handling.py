"""Exception types shared by the deduplication and segmentation packages."""

from typing import Any, Dict, Optional, Tuple

from .logging_config import get_logger

logger = get_logger(__name__)


class DonorcoreError(Exception):
    """Base exception for all donorcore-specific errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class ValidationError(DonorcoreError):
    """A caller supplied a value that breaks a documented contract."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Any = None,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, context=context)
        self.field_name = field_name
        self.field_value = field_value


class SegmentValidationError(ValidationError):
    """A segment predicate tree references an unknown field, an illegal
    operator, or carries a value of the wrong shape.

    ``path`` locates the offending node from the root, using node ids where
    present and child indices otherwise.
    """

    def __init__(
        self,
        message: str,
        path: Tuple[Any, ...] = (),
        field_name: Optional[str] = None,
        field_value: Any = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(
            message,
            field_name=field_name,
            field_value=field_value,
            error_code=error_code,
            context={"path": list(path)},
        )
        self.path = tuple(path)

    def __str__(self) -> str:
        if not self.path:
            return self.message
        location = "/".join(str(part) for part in self.path)
        return f"{self.message} (at {location})"


class ConfigurationError(DonorcoreError):
    """Error from configuration loading and validation."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code="configuration", context=context)
        self.config_key = config_key


def raise_validation_error(error: ValidationError) -> None:
    """Log a contract violation with its context, then raise it."""
    logger.warning(
        "contract_violation",
        error_type=type(error).__name__,
        error_code=error.error_code,
        field_name=error.field_name,
        detail=str(error),
    )
    raise error
