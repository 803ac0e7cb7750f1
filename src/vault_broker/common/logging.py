"""
Logging utilities for vault_broker.

Provides structured logging helpers, a log context carried across async
boundaries, and a mixin for classes that log with instance context.
"""

import functools
import inspect
import logging
from contextvars import ContextVar
from typing import Any, Callable, Dict, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

_command_var: ContextVar[Optional[str]] = ContextVar("vault_command", default=None)


def set_log_context(command: Optional[str] = None) -> None:
    """
    Set log context fields for the current task.

    Only fields that are passed are updated.
    """
    if command is not None:
        _command_var.set(command)


def get_log_context() -> Dict[str, Optional[str]]:
    """Return the current log context."""
    return {"command": _command_var.get()}


def clear_log_context() -> None:
    """Reset all log context fields."""
    _command_var.set(None)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Additional context fields (mount, api_endpoint, http_status, etc.)

    Example:
        log_with_context(
            logger, logging.INFO, "Login succeeded",
            auth_method="approle",
            lease_duration=3600,
        )
    """
    logger.log(level, msg, extra=kwargs)


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Automatically extracts error_category from VaultError subclasses.

    Args:
        logger: Logger instance
        exc: Exception to log
        msg: Context message
        level: Log level (default: ERROR)
        include_traceback: Include full traceback (default: True)
        **kwargs: Additional context fields
    """
    error_category = kwargs.get("error_category")
    if error_category is None and hasattr(exc, "category"):
        cat = exc.category
        error_category = cat.value if hasattr(cat, "value") else str(cat)
        kwargs["error_category"] = error_category

    error_msg = str(exc)
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."
    kwargs["error_message"] = error_msg

    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=kwargs)
    else:
        logger.log(level, msg, extra=kwargs)


def _extract_instance_context(obj: Any) -> Dict[str, Any]:
    """
    Extract loggable context from instance attributes.

    Args:
        obj: Object instance

    Returns:
        Dict with identifier fields
    """
    ctx: Dict[str, Any] = {}

    for attr in ["auth_method", "mount", "api_url"]:
        if hasattr(obj, attr):
            value = getattr(obj, attr)
            if value is not None:
                ctx[attr] = value

    return ctx


def logged_operation(
    level: int = logging.DEBUG,
    log_start: bool = False,
    operation_name: Optional[str] = None,
) -> Callable[[F], F]:
    """
    Decorator for automatic operation logging on async class methods.

    Args:
        level: Log level for completion message
        log_start: Also log when operation starts
        operation_name: Override operation name (default: method_name)

    Example:
        class VaultClient(LoggedClass):
            @logged_operation(level=logging.DEBUG)
            async def read(self, path):
                ...
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"logged_operation requires a coroutine method, got {func!r}")

        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            _logger = getattr(self, "_logger", None) or get_logger(
                self.__class__.__module__
            )
            op_name = operation_name or func.__name__
            full_op = f"{self.__class__.__name__}.{op_name}"
            context = _extract_instance_context(self)

            if log_start:
                log_with_context(_logger, level, f"{full_op} starting", **context)

            try:
                result = await func(self, *args, **kwargs)
                log_with_context(_logger, level, f"{full_op} completed", **context)
                return result
            except Exception as e:
                log_exception(
                    _logger,
                    e,
                    f"{full_op} failed",
                    level=logging.WARNING,
                    include_traceback=False,
                    **context,
                )
                raise

        return wrapper  # type: ignore

    return decorator


class LoggedClass:
    """
    Mixin providing logging infrastructure for classes.

    Provides:
    - self._logger: Logger instance
    - self._log(): Log with auto-extracted context
    - self._log_exception(): Exception logging with context

    Example:
        class AppRoleAuth(LoggedClass):
            def __init__(self, mount: str):
                self.mount = mount
                super().__init__()

            async def authenticate(self):
                self._log(logging.INFO, "Making authentication request")
                ...
    """

    log_component: Optional[str] = None  # Optional logger name suffix

    def __init__(self, *args, **kwargs):
        logger_name = self.__class__.__module__
        if self.log_component:
            logger_name = f"{logger_name}.{self.log_component}"
        self._logger = get_logger(logger_name)
        super().__init__(*args, **kwargs)

    def _log(self, level: int, msg: str, **extra: Any) -> None:
        """Log with automatic context extraction from instance."""
        context = _extract_instance_context(self)
        context.update(extra)
        log_with_context(self._logger, level, msg, **context)

    def _log_exception(
        self,
        exc: Exception,
        msg: str,
        level: int = logging.ERROR,
        **extra: Any,
    ) -> None:
        """Log exception with automatic context extraction from instance."""
        context = _extract_instance_context(self)
        context.update(extra)
        log_exception(self._logger, exc, msg, level=level, **context)
