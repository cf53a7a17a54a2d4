"""
Custom exception classes with context for rg-panel.

All exceptions inherit from RgPanelError base class and support
attaching contextual information for better debugging and logging.
"""

from __future__ import annotations


class RgPanelError(Exception):
    """
    Base exception for rg-panel.

    All custom exceptions should inherit from this class to enable
    consistent error handling across the application.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary with additional context for logging/debugging
    """

    def __init__(self, message: str, context: dict[str, object] | None = None):
        """
        Initialize exception with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dictionary with contextual information
                    (operation name, option field, exit code, etc.)
        """
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(RgPanelError):
    """
    Configuration error.

    Raised when configuration loading, validation, or parsing fails.

    Example:
        raise ConfigurationError(
            "Missing required configuration key",
            context={
                "key": "auth.token",
                "config_file": "/app/config.yaml"
            }
        )
    """


class ValidationError(RgPanelError):
    """
    Input validation failed.

    Raised at the option edit boundary and for search requests that
    cannot be submitted.

    Example:
        raise ValidationError(
            "context_lines must be a number",
            context={
                "field": "context_lines",
                "value": "abc",
            }
        )
    """


class SearchError(RgPanelError):
    """
    The search engine failed.

    The message carries the engine's own error text unmodified so it can
    be shown to the user as-is.

    Example:
        raise SearchError(
            "regex parse error: unclosed group",
            context={
                "reason": "rg_failed",
                "exit_code": 2,
            }
        )
    """


class SearchInProgressError(RgPanelError):
    """
    A search was submitted while another one is still running.

    Example:
        raise SearchInProgressError(
            "A search is already in progress",
            context={"pattern_length": 5}
        )
    """
