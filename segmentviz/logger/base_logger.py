"""Base logging functionality for debugging split statistics and layouts."""

import logging
from typing import Any, Callable, TypeVar, cast
from functools import wraps

F = TypeVar("F", bound=Callable[..., Any])


class AlgorithmLogger:
    """Base logger class for step-by-step debugging output.

    Wraps a standard ``logging.Logger`` and keeps a plain-text transcript of
    everything emitted while enabled, so tests and notebooks can inspect it.
    """

    def __init__(self, name: str):
        self.name = name
        self.disabled = False
        self._transcript: list[str] = []

        self.logger = logging.getLogger(name)

        # Only add a default StreamHandler if no handlers exist, so that two
        # instances sharing a name do not duplicate output.
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)
            self.logger.propagate = False
        elif self.logger.level == logging.NOTSET:
            self.logger.setLevel(logging.INFO)

    def section(self, title: str):
        """Start a new section in the log."""
        if self.disabled:
            return
        line = f"\n{'=' * 20} {title} {'=' * 20}\n"
        self.logger.info(line)
        self._transcript.append(line)

    def info(self, message: str):
        """Log info message."""
        if self.disabled:
            return
        self.logger.info(message)
        self._transcript.append(message)

    def warning(self, message: str):
        """Log warning message."""
        if self.disabled:
            return
        self.logger.warning(message)
        self._transcript.append(message)

    def clear(self):
        """Clear all accumulated content."""
        self._transcript = []

    def get_transcript(self) -> str:
        return "\n".join(self._transcript)

    def log_execution(self, func: F) -> F:
        """Decorator for logging function execution with type safety."""

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            self.section(f"Executing {func.__name__}")
            try:
                result = func(*args, **kwargs)
                self.info(f"{func.__name__} completed successfully")
                return result
            except Exception as e:
                self.info(f"Error in {func.__name__}: {str(e)}")
                raise

        return cast(F, wrapper)
