"""Error types and handlers for the BMI engine and history persistence"""
import logging
from typing import Optional, Dict, Any, Callable
from functools import wraps


logger = logging.getLogger(__name__)


class AppError(Exception):
    """Базовый класс для ошибок приложения"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Invalid height/weight input. Shown to the user as a blocking message."""
    def __init__(self, title: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.title = title
        super().__init__(message, details=details)

    def __str__(self) -> str:
        return f"{self.title}: {self.message}"


class PersistenceError(AppError):
    """Storage read/write failed or the stored payload is corrupt. Never shown to the user."""


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Логирует ошибку с контекстом"""
    context = dict(context or {})
    if isinstance(error, AppError) and error.details:
        context.update(error.details)

    # Input mistakes are expected, storage failures are not
    if isinstance(error, ValidationError):
        log_level = logging.WARNING
        exc_info = False
        label = "Validation error"
    else:
        log_level = logging.ERROR
        exc_info = True
        label = "Persistence error" if isinstance(error, PersistenceError) else "Error"

    log_message = f"{label}: {error}"
    if context:
        log_message += f" | Context: {context}"

    logger.log(log_level, log_message, exc_info=exc_info)


def handle_persistence_errors(fallback: Optional[Callable[[], Any]] = None):
    """Декоратор: логирует PersistenceError и возвращает fallback() вместо исключения"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except PersistenceError as e:
                log_error(e, context={"operation": func.__name__})
                return fallback() if fallback is not None else None

        return wrapper

    return decorator
