"""
Custom exception classes for the file monitor.

Change outcomes (first run, corrupt cache, changed files, changed keys) are
ordinary return values. The exceptions here cover caller errors and
unexpected I/O failures that must reach the caller.
"""

from typing import Any


class BaseError(Exception):
    """
    Root of the file monitor's exception hierarchy.

    Carries a stable error code and a context dict (paths, operations,
    offending values) so callers can report failures without parsing
    messages.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Args:
            message: What went wrong, for humans
            error_code: Stable code such as 'PROBE_ERROR'
            context: Details such as the path or operation involved
            cause: The lower-level exception, usually an OSError
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        cause = f", cause={self.cause!r}" if self.cause is not None else ""
        return (
            f"{type(self).__name__}({self.message!r}, "
            f"error_code={self.error_code!r}, context={self.context!r}{cause})"
        )


class ConfigurationError(BaseError):
    """Raised when there are configuration or settings issues."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        expected_type: str | None = None,
        actual_value: Any | None = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if expected_type:
            context["expected_type"] = expected_type
        if actual_value is not None:
            context["actual_value"] = str(actual_value)

        super().__init__(message, error_code="CONFIG_ERROR", context=context)


class GlobSyntaxError(BaseError):
    """Raised when a glob pattern cannot be parsed into path segments."""

    def __init__(
        self,
        message: str,
        pattern: str | None = None,
        segment: str | None = None,
    ):
        context = {}
        if pattern is not None:
            context["pattern"] = pattern
        if segment is not None:
            context["segment"] = segment

        super().__init__(message, error_code="GLOB_SYNTAX_ERROR", context=context)


class MonitoringError(BaseError):
    """Raised when file monitoring operations fail."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
        error_code: str = "MONITORING_ERROR",
    ):
        context = {}
        if path:
            context["path"] = path
        if operation:
            context["operation"] = operation

        super().__init__(
            message,
            error_code=error_code,
            context=context,
            cause=underlying_error,
        )


class ProbeError(MonitoringError):
    """Raised when a watched file cannot be probed for a reason other than absence."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        super().__init__(
            message,
            path=path,
            operation=operation,
            underlying_error=underlying_error,
            error_code="PROBE_ERROR",
        )


class CacheFileError(MonitoringError):
    """Raised when the monitor cache file cannot be read or written."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        super().__init__(
            message,
            path=path,
            operation=operation,
            underlying_error=underlying_error,
            error_code="CACHE_FILE_ERROR",
        )


# Convenience functions for common error scenarios
def raise_config_error(
    message: str,
    config_key: str,
    expected_type: str | None = None,
    actual_value: Any | None = None,
) -> None:
    """Raise a configuration error with context."""
    raise ConfigurationError(
        message=message,
        config_key=config_key,
        expected_type=expected_type,
        actual_value=actual_value,
    )
