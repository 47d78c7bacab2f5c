"""Question and response group value objects."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple

from segmentviz.exceptions import ConfigurationError


@dataclass(frozen=True)
class Question:
    """
    Immutable identity of a survey question.

    A question is identified by the triple (variable name, battery name,
    sub-battery name). The composite ``key`` is what every lookup uses.

    Example:
        >>> q = Question("age", "demographics", "")
        >>> q.key
        'age|demographics|'
    """

    var_name: str
    battery_name: str = ""
    sub_battery: str = ""

    @property
    def key(self) -> str:
        return f"{self.var_name}|{self.battery_name}|{self.sub_battery}"

    def __str__(self) -> str:
        return self.var_name


@dataclass(frozen=True)
class ResponseGroup:
    """A named bucket of raw response codes."""

    label: str
    values: FrozenSet[int]

    def __init__(self, label: str, values: Iterable[int]):
        object.__setattr__(self, "label", label)
        object.__setattr__(self, "values", frozenset(values))

    def __contains__(self, value: object) -> bool:
        return value in self.values

    def is_subset_of(self, other: ResponseGroup) -> bool:
        return self.values <= other.values


def _find_group_index(
    groups: Tuple[ResponseGroup, ...], value: Optional[float]
) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    for idx, group in enumerate(groups):
        if value in group.values:
            return idx
    return None


@dataclass(frozen=True)
class GroupingQuestion:
    """
    A question used to segment respondents.

    Response groups are ordered and mutually exclusive, but need not cover
    every possible response value.
    """

    question: Question
    response_groups: Tuple[ResponseGroup, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "response_groups", tuple(self.response_groups))
        if not self.response_groups:
            raise ConfigurationError(
                f"Grouping question {self.question.key} has no response groups"
            )
        _check_mutually_exclusive(self.question, self.response_groups, "grouping")

    @property
    def key(self) -> str:
        return self.question.key

    def group_index_for(self, value: Optional[float]) -> Optional[int]:
        """Index of the response group containing ``value``, or None."""
        return _find_group_index(self.response_groups, value)


@dataclass(frozen=True)
class ResponseQuestion:
    """
    A question whose answer distribution is measured.

    Carries two parallel partitions of its value space: ``expanded``
    (fine-grained) and ``collapsed`` (coarse). Each expanded group maps to the
    collapsed group whose values contain it; the mapping is precomputed once
    into ``expanded_to_collapsed``.
    """

    question: Question
    expanded: Tuple[ResponseGroup, ...]
    collapsed: Tuple[ResponseGroup, ...]
    expanded_to_collapsed: Tuple[int, ...] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "expanded", tuple(self.expanded))
        object.__setattr__(self, "collapsed", tuple(self.collapsed))
        if not self.expanded:
            raise ConfigurationError(
                f"Response question {self.question.key} has no expanded response groups"
            )
        _check_mutually_exclusive(self.question, self.expanded, "expanded")
        _check_mutually_exclusive(self.question, self.collapsed, "collapsed")

        lookup = []
        for erg in self.expanded:
            matches = [
                crg_idx
                for crg_idx, crg in enumerate(self.collapsed)
                if erg.is_subset_of(crg)
            ]
            if len(matches) != 1:
                raise ConfigurationError(
                    f"Expanded response group '{erg.label}' of {self.question.key} "
                    f"must be contained in exactly one collapsed response group, "
                    f"found {len(matches)}"
                )
            lookup.append(matches[0])
        object.__setattr__(self, "expanded_to_collapsed", tuple(lookup))

    @property
    def key(self) -> str:
        return self.question.key

    def expanded_index_for(self, value: Optional[float]) -> Optional[int]:
        """Index of the expanded response group containing ``value``, or None."""
        return _find_group_index(self.expanded, value)

    def response_groups(self, display: str) -> Tuple[ResponseGroup, ...]:
        if display == "expanded":
            return self.expanded
        if display == "collapsed":
            return self.collapsed
        raise ValueError(f"Unknown response group display: {display}")


@dataclass(frozen=True)
class Group:
    """One grouping question paired with a response group, or None for "no filter"."""

    question: Question
    response_group: Optional[ResponseGroup]

    @property
    def is_null(self) -> bool:
        return self.response_group is None

    def __str__(self) -> str:
        label = self.response_group.label if self.response_group else "*"
        return f"{self.question}={label}"


def _check_mutually_exclusive(
    question: Question, groups: Tuple[ResponseGroup, ...], kind: str
) -> None:
    seen: set[int] = set()
    for group in groups:
        overlap = seen & group.values
        if overlap:
            raise ConfigurationError(
                f"{kind} response groups of {question.key} overlap on values "
                f"{sorted(overlap)}"
            )
        seen |= group.values
