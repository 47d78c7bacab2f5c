"""
Split records and their diffs.

A split is one cell of the grouping-question lattice. Splits are immutable:
every statistics update produces a new Split plus a SplitDiff holding the
per-field deltas between the old and the new value.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import FrozenSet, Optional, Sequence, Tuple

from segmentviz.elements.question import Group, ResponseGroup, ResponseQuestion


@dataclass(frozen=True)
class ResponseGroupStats:
    """Statistics of one response group within one split."""

    label: str
    values: FrozenSet[int]
    total_count: int = 0
    total_weight: float = 0.0
    proportion: float = 0.0

    @classmethod
    def empty(cls, response_group: ResponseGroup) -> ResponseGroupStats:
        return cls(label=response_group.label, values=response_group.values)

    def minus(self, other: ResponseGroupStats) -> ResponseGroupStats:
        """Field-wise delta ``self - other`` (label and values are kept)."""
        return replace(
            self,
            total_count=self.total_count - other.total_count,
            total_weight=self.total_weight - other.total_weight,
            proportion=self.proportion - other.proportion,
        )

    def zeroed(self) -> ResponseGroupStats:
        return replace(self, total_count=0, total_weight=0.0, proportion=0.0)


@dataclass(frozen=True)
class ResponseQuestionStats:
    """
    Statistics of one tracked response question within one split.

    Attributes:
        question_key: Key of the response question
        total_count: Respondents in the split who answered inside an expanded group
        total_weight: Their summed weight
        expanded: One entry per expanded response group
        collapsed: One entry per collapsed response group
    """

    question_key: str
    total_count: int
    total_weight: float
    expanded: Tuple[ResponseGroupStats, ...]
    collapsed: Tuple[ResponseGroupStats, ...]

    @classmethod
    def empty(cls, response_question: ResponseQuestion) -> ResponseQuestionStats:
        return cls(
            question_key=response_question.key,
            total_count=0,
            total_weight=0.0,
            expanded=tuple(ResponseGroupStats.empty(rg) for rg in response_question.expanded),
            collapsed=tuple(
                ResponseGroupStats.empty(rg) for rg in response_question.collapsed
            ),
        )

    def groups(self, display: str) -> Tuple[ResponseGroupStats, ...]:
        if display == "expanded":
            return self.expanded
        if display == "collapsed":
            return self.collapsed
        raise ValueError(f"Unknown response group display: {display}")

    def minus(self, other: ResponseQuestionStats) -> ResponseQuestionStats:
        return replace(
            self,
            total_count=self.total_count - other.total_count,
            total_weight=self.total_weight - other.total_weight,
            expanded=tuple(a.minus(b) for a, b in zip(self.expanded, other.expanded)),
            collapsed=tuple(
                a.minus(b) for a, b in zip(self.collapsed, other.collapsed)
            ),
        )

    def zeroed(self) -> ResponseQuestionStats:
        return replace(
            self,
            total_count=0,
            total_weight=0.0,
            expanded=tuple(rg.zeroed() for rg in self.expanded),
            collapsed=tuple(rg.zeroed() for rg in self.collapsed),
        )


@dataclass(frozen=True)
class Split:
    """
    One cell of the split lattice.

    ``groups`` holds one Group per configured grouping question; a None
    response group means the split does not filter on that question.
    ``basis_split_indices`` lists the basis splits this split subsumes and is
    fixed at construction. Only the statistics change across updates.
    """

    groups: Tuple[Group, ...]
    basis_split_indices: Tuple[int, ...]
    total_count: int
    total_weight: float
    response_questions: Tuple[ResponseQuestionStats, ...]

    @property
    def is_basis(self) -> bool:
        return all(not group.is_null for group in self.groups)

    def stats_for(self, question_key: str) -> Optional[ResponseQuestionStats]:
        for rq_stats in self.response_questions:
            if rq_stats.question_key == question_key:
                return rq_stats
        return None

    def describe(self) -> str:
        if not self.groups:
            return "all respondents"
        return ", ".join(str(group) for group in self.groups)


@dataclass(frozen=True)
class SplitDiff:
    """
    Delta between two versions of the same split.

    Every numeric field holds ``after - before``; nothing is a snapshot.
    """

    split_index: int
    total_count: int
    total_weight: float
    response_questions: Tuple[ResponseQuestionStats, ...]

    @classmethod
    def between(cls, split_index: int, before: Split, after: Split) -> SplitDiff:
        return cls(
            split_index=split_index,
            total_count=after.total_count - before.total_count,
            total_weight=after.total_weight - before.total_weight,
            response_questions=tuple(
                a.minus(b)
                for a, b in zip(after.response_questions, before.response_questions)
            ),
        )

    @classmethod
    def no_change(cls, split_index: int, split: Split) -> SplitDiff:
        return cls(
            split_index=split_index,
            total_count=0,
            total_weight=0.0,
            response_questions=tuple(rq.zeroed() for rq in split.response_questions),
        )

    @property
    def is_zero(self) -> bool:
        if self.total_count != 0 or self.total_weight != 0:
            return False
        for rq in self.response_questions:
            if rq.total_count != 0 or rq.total_weight != 0:
                return False
            for rg in rq.expanded + rq.collapsed:
                if rg.total_count != 0 or rg.total_weight != 0 or rg.proportion != 0:
                    return False
        return True


@dataclass(frozen=True)
class ResponseGroupStatsDelta:
    """
    Change in the count of one expanded response group of one basis split.

    Consumed by the point set manager to append real-mode points.
    """

    response_question_key: str
    split_index: int
    expanded_group_index: int
    count_before: int
    count_after: int

    @property
    def delta(self) -> int:
        return self.count_after - self.count_before


def empty_response_question_stats(
    response_questions: Sequence[ResponseQuestion],
) -> Tuple[ResponseQuestionStats, ...]:
    return tuple(ResponseQuestionStats.empty(rq) for rq in response_questions)
