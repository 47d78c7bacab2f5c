"""
Split lattice construction.

The lattice holds one split per combination of (response group or "no filter")
across all grouping questions. Splits whose every group is concrete are the
basis splits: they partition the valid-respondent population, so every other
split's statistics can be derived by summing over the basis splits it
subsumes. The subsumption table (``basis_split_indices``) is a pure function
of the configuration and is computed exactly once here.
"""

from __future__ import annotations
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from segmentviz.elements.question import Group, GroupingQuestion, ResponseQuestion
from segmentviz.elements.split import Split, empty_response_question_stats

logger = logging.getLogger(__name__)

T = TypeVar("T")

# One entry per grouping question: a response group index, or None for "no filter".
SplitChoice = Tuple[Optional[int], ...]


def generate_cartesian(options: Sequence[Sequence[T]]) -> List[Tuple[T, ...]]:
    """
    Cartesian product of option lists, first list varying slowest.

    For an empty input a single empty combination is returned.

    Example:
        >>> generate_cartesian([["a", "b"], [1, 2]])
        [('a', 1), ('a', 2), ('b', 1), ('b', 2)]
    """
    return list(itertools.product(*options))


@dataclass(frozen=True)
class SplitLattice:
    """
    Flat, index-addressed storage of every split.

    Attributes:
        splits: All splits, in lattice order
        basis_split_indices: Indices of the basis splits within ``splits``
        choices: The response group choice of every split, parallel to ``splits``
    """

    splits: Tuple[Split, ...]
    basis_split_indices: Tuple[int, ...]
    choices: Tuple[SplitChoice, ...]
    _index_by_choice: Dict[SplitChoice, int] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_index_by_choice",
            {choice: idx for idx, choice in enumerate(self.choices)},
        )

    def __len__(self) -> int:
        return len(self.splits)

    def index_of(self, choice: SplitChoice) -> int:
        """Index of the split with the given response group choice."""
        return self._index_by_choice[tuple(choice)]

    def with_splits(self, splits: Sequence[Split]) -> SplitLattice:
        """Same structure, different statistics."""
        return SplitLattice(
            splits=tuple(splits),
            basis_split_indices=self.basis_split_indices,
            choices=self.choices,
        )


def build_split_lattice(
    grouping_questions: Sequence[GroupingQuestion],
    response_questions: Sequence[ResponseQuestion],
) -> SplitLattice:
    """
    Enumerate the full split lattice for a configuration.

    Each grouping question contributes its response groups followed by the
    None sentinel; the lattice is their Cartesian product. All statistics are
    initialized to zero.

    Args:
        grouping_questions: Ordered grouping questions
        response_questions: Response questions whose statistics each split tracks

    Returns:
        SplitLattice with ∏(nᵢ + 1) splits of which ∏nᵢ are basis splits
    """
    options: List[List[Optional[int]]] = [
        [*range(len(gq.response_groups)), None] for gq in grouping_questions
    ]
    choices: List[SplitChoice] = generate_cartesian(options)

    basis_choices = [
        (idx, choice)
        for idx, choice in enumerate(choices)
        if all(c is not None for c in choice)
    ]
    basis_split_indices = tuple(idx for idx, _ in basis_choices)

    splits: List[Split] = []
    for idx, choice in enumerate(choices):
        groups = tuple(
            Group(
                question=gq.question,
                response_group=None if c is None else gq.response_groups[c],
            )
            for gq, c in zip(grouping_questions, choice)
        )
        splits.append(
            Split(
                groups=groups,
                basis_split_indices=_matching_basis_indices(choice, basis_choices),
                total_count=0,
                total_weight=0.0,
                response_questions=empty_response_question_stats(response_questions),
            )
        )

    logger.debug(
        f"Built split lattice with {len(splits)} splits, "
        f"{len(basis_split_indices)} basis splits"
    )
    return SplitLattice(
        splits=tuple(splits),
        basis_split_indices=basis_split_indices,
        choices=tuple(choices),
    )


def _matching_basis_indices(
    choice: SplitChoice, basis_choices: Sequence[Tuple[int, SplitChoice]]
) -> Tuple[int, ...]:
    # Filter the basis splits question by question; a null group eliminates nothing.
    remaining = list(basis_choices)
    for position, c in enumerate(choice):
        if c is None:
            continue
        remaining = [(idx, bc) for idx, bc in remaining if bc[position] == c]
    return tuple(idx for idx, _ in remaining)
