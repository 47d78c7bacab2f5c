"""
View enumeration.

A view is a choice of active horizontal grouping questions, active vertical
grouping questions and response group display (expanded or collapsed). The
view id flattens the active indices: horizontal indices as they are,
vertical indices offset by the number of horizontal questions.
"""

from __future__ import annotations
import itertools
from dataclasses import dataclass
from typing import Iterable, List, Tuple

DISPLAYS = ("expanded", "collapsed")


def build_view_id(
    active_horizontal: Iterable[int],
    active_vertical: Iterable[int],
    num_horizontal: int,
) -> str:
    """
    Canonical id of a view from its active question indices.

    Example:
        >>> build_view_id([0], [1], 2)
        '0,3'
        >>> build_view_id([], [], 2)
        ''
    """
    flattened = sorted(active_horizontal) + [
        idx + num_horizontal for idx in sorted(active_vertical)
    ]
    return ",".join(str(idx) for idx in flattened)


def parse_view_id(view_id: str, num_horizontal: int) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """Inverse of ``build_view_id``."""
    if not view_id:
        return (), ()
    indices = sorted(int(part) for part in view_id.split(","))
    horizontal = tuple(idx for idx in indices if idx < num_horizontal)
    vertical = tuple(idx - num_horizontal for idx in indices if idx >= num_horizontal)
    return horizontal, vertical


@dataclass(frozen=True)
class ViewKey:
    view_id: str
    display: str

    def __str__(self) -> str:
        return f"[{self.view_id}]/{self.display}"


@dataclass(frozen=True)
class ViewSpec:
    """Active question indices of one view."""

    key: ViewKey
    active_horizontal: Tuple[int, ...]
    active_vertical: Tuple[int, ...]


def powerset(n: int) -> List[Tuple[int, ...]]:
    """All subsets of ``range(n)`` as sorted tuples, smallest first."""
    return [
        combo
        for size in range(n + 1)
        for combo in itertools.combinations(range(n), size)
    ]


def enumerate_views(num_horizontal: int, num_vertical: int) -> List[ViewSpec]:
    """Every view: 2^(h + v) question selections times both displays."""
    views = []
    for active_h in powerset(num_horizontal):
        for active_v in powerset(num_vertical):
            view_id = build_view_id(active_h, active_v, num_horizontal)
            for display in DISPLAYS:
                views.append(
                    ViewSpec(
                        key=ViewKey(view_id, display),
                        active_horizontal=active_h,
                        active_vertical=active_v,
                    )
                )
    return views
