"""Text formatting utilities for logging."""

from typing import Any, Iterable


def format_groups(groups: Iterable[Any]) -> str:
    """Format a split's groups as 'age=young, gender=*'."""
    parts = [str(group) for group in groups]
    if not parts:
        return "(all)"
    return ", ".join(parts)


def format_proportions(proportions: Iterable[float], digits: int = 3) -> str:
    """Format a proportion vector as '[0.250, 0.750]'."""
    return "[" + ", ".join(f"{p:.{digits}f}" for p in proportions) + "]"
