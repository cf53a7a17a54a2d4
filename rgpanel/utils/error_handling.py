"""
Error handling utilities for rg-panel.

Provides decorators and helpers for consistent error handling and logging.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def log_errors(operation_name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log errors with context.

    Automatically logs exceptions with structured context including
    operation name, function name, and error details. The exception
    is re-raised after logging.

    Args:
        operation_name: Name of the operation for logging context

    Returns:
        Decorated function that logs errors before re-raising

    Example:
        @log_errors("ripgrep_search")
        async def search(options: SearchOptions) -> list[LineRecord]:
            # If this raises, error is logged with context
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.exception(
                    f"Error in {operation_name}",
                    extra={
                        "operation": operation_name,
                        "error_type": type(e).__name__,
                        "function": func.__name__,
                    },
                )
                raise

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.exception(
                    f"Error in {operation_name}",
                    extra={
                        "operation": operation_name,
                        "error_type": type(e).__name__,
                        "function": func.__name__,
                    },
                )
                raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper  # type: ignore[return-value]

    return decorator


def format_exception_for_response(e: Exception) -> dict[str, object]:
    """
    Format exception for API error response.

    Extracts error message and context from custom exceptions
    or formats generic exceptions for HTTP responses.

    Args:
        e: Exception to format

    Returns:
        Dictionary with error details suitable for API response

    Example:
        try:
            await session.run()
        except SearchError as e:
            raise HTTPException(
                status_code=502,
                detail=format_exception_for_response(e)
            )
    """
    from rgpanel.exceptions import RgPanelError

    error_dict: dict[str, object] = {
        "error": type(e).__name__,
        "message": str(e),
    }

    if isinstance(e, RgPanelError) and e.context:
        error_dict["context"] = e.context

    return error_dict
