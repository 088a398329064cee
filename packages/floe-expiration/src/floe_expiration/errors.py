"""Custom exceptions for floe-expiration.

This module defines the exception hierarchy:
- FloeExpirationError (base)
- InvalidConfigValueError

Policy validation never raises: an ineligible policy is reported as a
warning and a False result by DataExpirationConfig.is_valid().
"""

from __future__ import annotations


class FloeExpirationError(Exception):
    """Base exception for all floe data-expiration operations.

    Attributes:
        message: Human-readable error description.
        details: Optional additional context about the error.

    Example:
        >>> try:
        ...     DataExpirationConfig.from_properties(properties)
        ... except FloeExpirationError as e:
        ...     print(f"Expiration error: {e}")
    """

    def __init__(self, message: str, *, details: dict[str, str] | None = None) -> None:
        """Initialize FloeExpirationError.

        Args:
            message: Human-readable error description.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class InvalidConfigValueError(FloeExpirationError):
    """A data-expiration setting could not be parsed from its raw form.

    Raised when:
    - data-expire.level or data-expire.since is missing or not a known token
    - data-expire.enabled is not a boolean string
    - data-expire.retention-time is not an integer or duration string

    Example:
        >>> try:
        ...     ExpireLevel.from_string("monthly")
        ... except InvalidConfigValueError as e:
        ...     print(e.value)
        monthly
    """

    def __init__(
        self,
        message: str,
        *,
        value: str | None = None,
        key: str | None = None,
    ) -> None:
        """Initialize InvalidConfigValueError.

        Args:
            message: Human-readable error description.
            value: The raw value that failed to parse (None when absent).
            key: The property key the value was read from, if known.
        """
        details: dict[str, str] = {}
        if key:
            details["key"] = key
        super().__init__(message, details=details)
        self.value = value
        self.key = key
