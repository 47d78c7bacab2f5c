"""
Stable point identities for one response question.

A point is the triple (basis split index, expanded response group index,
sequence). In real mode there is one point per valid respondent and points
are only ever appended. In synthetic mode a fixed-size sample is drawn per
basis split on every update and reconciled against the previous sample so
that surviving sequence numbers keep their identity.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from segmentviz.elements.split import ResponseGroupStatsDelta, Split
from segmentviz.segment_viz.synthetic import allocate_synthetic_counts

PointKey = Tuple[int, int]


@dataclass(frozen=True, order=True)
class Point:
    """
    Identity of one dot in the chart.

    Attributes:
        split_index: Index of the basis split the point belongs to
        response_group_index: Index of the expanded response group
        sequence: 0-based number, dense per (split, response group)
    """

    split_index: int
    response_group_index: int
    sequence: int

    @property
    def key(self) -> PointKey:
        return (self.split_index, self.response_group_index)

    def __str__(self) -> str:
        return f"{self.split_index}:{self.response_group_index}:{self.sequence}"


class PointSetMode(Enum):
    REAL = "real"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class PointSetDiff:
    """Points added and removed by one update, keyed by (split index, group index)."""

    added: Dict[PointKey, Tuple[Point, ...]] = field(default_factory=dict)
    removed: Dict[PointKey, Tuple[Point, ...]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed

    def added_points(self) -> List[Point]:
        return sorted(p for points in self.added.values() for p in points)

    def removed_points(self) -> List[Point]:
        return sorted(p for points in self.removed.values() for p in points)


class PointSetManager:
    """
    Owns the current point set of one response question.

    The mode is fixed at construction: synthetic when ``synthetic_sample_size``
    is given, real otherwise.
    """

    def __init__(
        self,
        response_question_key: str,
        synthetic_sample_size: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.response_question_key = response_question_key
        self.synthetic_sample_size = synthetic_sample_size
        self.mode = (
            PointSetMode.REAL if synthetic_sample_size is None else PointSetMode.SYNTHETIC
        )
        self.logger = logger or logging.getLogger(__name__)
        self._points: Dict[PointKey, List[Point]] = {}

    def points_for(self, split_index: int, response_group_index: int) -> Tuple[Point, ...]:
        return tuple(self._points.get((split_index, response_group_index), ()))

    def count_for(self, split_index: int, response_group_index: int) -> int:
        return len(self._points.get((split_index, response_group_index), ()))

    def all_points(self) -> List[Point]:
        return [p for key in sorted(self._points) for p in self._points[key]]

    def __len__(self) -> int:
        return sum(len(points) for points in self._points.values())

    def apply_deltas(self, deltas: Iterable[ResponseGroupStatsDelta]) -> PointSetDiff:
        """
        Append real-mode points for the count changes of this question.

        Each (split, group) is grown to the delta's ``count_after``. A delta
        already reflected in the point set adds nothing, so replaying a batch
        never produces duplicate identities.
        """
        if self.mode is not PointSetMode.REAL:
            raise ValueError("apply_deltas is only available in real mode")

        added: Dict[PointKey, Tuple[Point, ...]] = {}
        for delta in deltas:
            if delta.response_question_key != self.response_question_key:
                continue
            key = (delta.split_index, delta.expanded_group_index)
            new_points = self._grow(key, delta.count_after)
            if new_points:
                added[key] = added.get(key, ()) + new_points

        diff = PointSetDiff(added=added)
        self.logger.debug(
            f"{self.response_question_key}: appended "
            f"{sum(len(p) for p in added.values())} points"
        )
        return diff

    def sync_counts(
        self, splits: Sequence[Split], basis_split_indices: Sequence[int]
    ) -> PointSetDiff:
        """Grow real-mode points to the current basis split counts."""
        deltas = []
        for split_index in basis_split_indices:
            rq_stats = splits[split_index].stats_for(self.response_question_key)
            if rq_stats is None:
                continue
            for group_index, rg in enumerate(rq_stats.expanded):
                deltas.append(
                    ResponseGroupStatsDelta(
                        response_question_key=self.response_question_key,
                        split_index=split_index,
                        expanded_group_index=group_index,
                        count_before=0,
                        count_after=rg.total_count,
                    )
                )
        return self.apply_deltas(deltas)

    def resample(
        self, splits: Sequence[Split], basis_split_indices: Sequence[int]
    ) -> PointSetDiff:
        """
        Redraw the synthetic sample of every basis split and reconcile it.

        Per (split, group): sequences below the new count are kept, those at
        or above it are removed, and missing ones up to the new count are added.
        Basis splits without data get no points.
        """
        if self.mode is not PointSetMode.SYNTHETIC:
            raise ValueError("resample is only available in synthetic mode")

        added: Dict[PointKey, Tuple[Point, ...]] = {}
        removed: Dict[PointKey, Tuple[Point, ...]] = {}
        for split_index in basis_split_indices:
            rq_stats = splits[split_index].stats_for(self.response_question_key)
            if rq_stats is None:
                continue
            if rq_stats.total_count == 0:
                targets = [0] * len(rq_stats.expanded)
            else:
                targets = allocate_synthetic_counts(
                    [rg.proportion for rg in rq_stats.expanded],
                    self.synthetic_sample_size,
                )
            for group_index, target in enumerate(targets):
                key = (split_index, group_index)
                dropped = self._shrink(key, target)
                if dropped:
                    removed[key] = dropped
                grown = self._grow(key, target)
                if grown:
                    added[key] = grown

        self.logger.debug(
            f"{self.response_question_key}: resampled, "
            f"+{sum(len(p) for p in added.values())} "
            f"-{sum(len(p) for p in removed.values())} points"
        )
        return PointSetDiff(added=added, removed=removed)

    def _grow(self, key: PointKey, target: int) -> Tuple[Point, ...]:
        current = self._points.setdefault(key, [])
        new_points = tuple(
            Point(key[0], key[1], sequence) for sequence in range(len(current), target)
        )
        current.extend(new_points)
        return new_points

    def _shrink(self, key: PointKey, target: int) -> Tuple[Point, ...]:
        current = self._points.get(key, [])
        if len(current) <= target:
            return ()
        dropped = tuple(current[target:])
        del current[target:]
        return dropped
