"""
Incremental aggregation of respondents into the split lattice.

All functions here are pure: they take splits and return new splits together
with a SplitDiff. New respondents are applied to the basis splits they land
in, then every aggregate split that subsumes a touched basis split is
recomputed from its basis splits.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Sequence, Set, Tuple

from segmentviz.elements.question import ResponseQuestion
from segmentviz.elements.split import (
    ResponseGroupStats,
    ResponseGroupStatsDelta,
    ResponseQuestionStats,
    Split,
    SplitDiff,
)
from segmentviz.exceptions import DataIntegrityError
from segmentviz.logger import viz_logger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BasisResponse:
    """
    One valid respondent headed for a basis split.

    Attributes:
        weight: Respondent weight
        expanded_indices: Response question index -> expanded group index, one
            entry per response question answered inside an expanded group
    """

    weight: float
    expanded_indices: Mapping[int, int] = field(default_factory=dict)


class _QuestionAccumulator:
    """Mutable scratch space for one response question of one split."""

    def __init__(self, rq_stats: ResponseQuestionStats):
        self.total_count = rq_stats.total_count
        self.total_weight = rq_stats.total_weight
        self.expanded_counts = [rg.total_count for rg in rq_stats.expanded]
        self.expanded_weights = [rg.total_weight for rg in rq_stats.expanded]
        self.collapsed_counts = [rg.total_count for rg in rq_stats.collapsed]
        self.collapsed_weights = [rg.total_weight for rg in rq_stats.collapsed]
        self.received = False

    def add(self, expanded_index: int, collapsed_index: int, weight: float) -> None:
        self.total_count += 1
        self.total_weight += weight
        self.expanded_counts[expanded_index] += 1
        self.expanded_weights[expanded_index] += weight
        self.collapsed_counts[collapsed_index] += 1
        self.collapsed_weights[collapsed_index] += weight
        self.received = True

    def build(self, template: ResponseQuestionStats) -> ResponseQuestionStats:
        return replace(
            template,
            total_count=self.total_count,
            total_weight=self.total_weight,
            expanded=_groups_with_proportions(
                template.expanded,
                self.expanded_counts,
                self.expanded_weights,
                self.total_weight,
            ),
            collapsed=_groups_with_proportions(
                template.collapsed,
                self.collapsed_counts,
                self.collapsed_weights,
                self.total_weight,
            ),
        )


def _proportion(weight: float, total_weight: float) -> float:
    if total_weight == 0:
        return 0.0
    return weight / total_weight


def _groups_with_proportions(
    templates: Tuple[ResponseGroupStats, ...],
    counts: Sequence[int],
    weights: Sequence[float],
    total_weight: float,
) -> Tuple[ResponseGroupStats, ...]:
    return tuple(
        replace(
            template,
            total_count=count,
            total_weight=weight,
            proportion=_proportion(weight, total_weight),
        )
        for template, count, weight in zip(templates, counts, weights)
    )


def update_basis_split(
    split_index: int,
    split: Split,
    responses: Sequence[BasisResponse],
    response_questions: Sequence[ResponseQuestion],
) -> Tuple[Split, SplitDiff]:
    """
    Apply new respondents to a basis split.

    Each respondent adds one to the split total and, for every response
    question it answered, to that question's total, its expanded group and
    the collapsed group containing it. Proportions are recomputed afterwards
    against the question totals.

    Args:
        split_index: Index of ``split`` in the lattice
        split: The basis split before the update (not modified)
        responses: Respondents landing in this split
        response_questions: Tracked response questions, in config order

    Returns:
        Tuple of (updated split, diff against ``split``)

    Raises:
        DataIntegrityError: If a total that received respondents is not positive
    """
    if not responses:
        return split, SplitDiff.no_change(split_index, split)

    total_count = split.total_count
    total_weight = split.total_weight
    accumulators = [_QuestionAccumulator(rq) for rq in split.response_questions]

    for response in responses:
        total_count += 1
        total_weight += response.weight
        for rq_idx, expanded_index in response.expanded_indices.items():
            collapsed_index = response_questions[rq_idx].expanded_to_collapsed[
                expanded_index
            ]
            accumulators[rq_idx].add(expanded_index, collapsed_index, response.weight)

    updated = replace(
        split,
        total_count=total_count,
        total_weight=total_weight,
        response_questions=tuple(
            acc.build(template)
            for acc, template in zip(accumulators, split.response_questions)
        ),
    )

    _check_integrity(split_index, updated, total_weight, accumulators)
    return updated, SplitDiff.between(split_index, split, updated)


def propagate_to_split(
    split_index: int, split: Split, updated_basis_splits: Sequence[Split]
) -> Tuple[Split, SplitDiff]:
    """
    Recompute an aggregate split from its (already updated) basis splits.

    Totals are straight sums. Each group's proportion is the weight-share
    weighted sum of the basis proportions,
    ``Σ (basis_q_weight / new_q_weight) · basis_proportion``, which equals
    ``Σ basis_group_weight / new_q_weight``.
    """
    total_count = sum(basis.total_count for basis in updated_basis_splits)
    total_weight = sum(basis.total_weight for basis in updated_basis_splits)

    rq_stats = []
    for rq_idx, template in enumerate(split.response_questions):
        basis_rqs = [basis.response_questions[rq_idx] for basis in updated_basis_splits]
        q_weight = sum(brq.total_weight for brq in basis_rqs)
        rq_stats.append(
            replace(
                template,
                total_count=sum(brq.total_count for brq in basis_rqs),
                total_weight=q_weight,
                expanded=_propagate_groups(
                    template.expanded, [brq.expanded for brq in basis_rqs], basis_rqs, q_weight
                ),
                collapsed=_propagate_groups(
                    template.collapsed, [brq.collapsed for brq in basis_rqs], basis_rqs, q_weight
                ),
            )
        )

    updated = replace(
        split,
        total_count=total_count,
        total_weight=total_weight,
        response_questions=tuple(rq_stats),
    )

    if total_count > split.total_count and total_weight <= 0:
        DataIntegrityError.raise_non_positive_weight(split_index, updated, total_weight)
    for before, after in zip(split.response_questions, updated.response_questions):
        if after.total_count > before.total_count and after.total_weight <= 0:
            DataIntegrityError.raise_non_positive_weight(
                split_index, updated, after.total_weight, scope=after.question_key
            )

    return updated, SplitDiff.between(split_index, split, updated)


def _propagate_groups(
    templates: Tuple[ResponseGroupStats, ...],
    basis_groups: Sequence[Tuple[ResponseGroupStats, ...]],
    basis_rqs: Sequence[ResponseQuestionStats],
    q_weight: float,
) -> Tuple[ResponseGroupStats, ...]:
    result = []
    for g_idx, template in enumerate(templates):
        proportion = 0.0
        if q_weight != 0:
            proportion = sum(
                (brq.total_weight / q_weight) * groups[g_idx].proportion
                for brq, groups in zip(basis_rqs, basis_groups)
            )
        result.append(
            replace(
                template,
                total_count=sum(groups[g_idx].total_count for groups in basis_groups),
                total_weight=sum(groups[g_idx].total_weight for groups in basis_groups),
                proportion=proportion,
            )
        )
    return tuple(result)


def no_change_diff(split_index: int, split: Split) -> SplitDiff:
    """All-zero diff for a split untouched by an update."""
    return SplitDiff.no_change(split_index, split)


def update_all_splits(
    splits: Sequence[Split],
    basis_split_indices: Sequence[int],
    responses: Sequence[Tuple[int, BasisResponse]],
    response_questions: Sequence[ResponseQuestion],
) -> Tuple[Tuple[Split, ...], Tuple[SplitDiff, ...]]:
    """
    Apply a batch of respondents to the whole lattice.

    Args:
        splits: Current splits, in lattice order
        basis_split_indices: Indices of the basis splits
        responses: (basis split index, respondent) pairs
        response_questions: Tracked response questions, in config order

    Returns:
        Tuple of (new splits, one diff per split in lattice order)
    """
    grouped: Dict[int, List[BasisResponse]] = defaultdict(list)
    for basis_index, response in responses:
        grouped[basis_index].append(response)

    basis_set = set(basis_split_indices)
    new_splits: List[Split] = list(splits)
    diffs: List[SplitDiff] = [no_change_diff(idx, split) for idx, split in enumerate(splits)]

    touched: Set[int] = set()
    for basis_index in sorted(grouped):
        if basis_index not in basis_set:
            raise ValueError(f"Split {basis_index} is not a basis split")
        new_splits[basis_index], diffs[basis_index] = update_basis_split(
            basis_index, splits[basis_index], grouped[basis_index], response_questions
        )
        touched.add(basis_index)

    for idx, split in enumerate(splits):
        if idx in basis_set or touched.isdisjoint(split.basis_split_indices):
            continue
        new_splits[idx], diffs[idx] = propagate_to_split(
            idx, split, [new_splits[b] for b in split.basis_split_indices]
        )

    logger.debug(
        f"Applied {len(responses)} respondents to {len(touched)} basis splits"
    )
    if touched and response_questions:
        viz_logger.section("Split statistics after update")
        viz_logger.splits_table(new_splits, response_questions[0].key)

    return tuple(new_splits), tuple(diffs)


def basis_count_deltas(
    before: Sequence[Split],
    after: Sequence[Split],
    basis_split_indices: Sequence[int],
) -> List[ResponseGroupStatsDelta]:
    """Expanded group count changes of every basis split, for all response questions."""
    deltas = []
    for split_index in basis_split_indices:
        old, new = before[split_index], after[split_index]
        if old is new:
            continue
        for old_rq, new_rq in zip(old.response_questions, new.response_questions):
            for g_idx, (old_rg, new_rg) in enumerate(zip(old_rq.expanded, new_rq.expanded)):
                if old_rg.total_count != new_rg.total_count:
                    deltas.append(
                        ResponseGroupStatsDelta(
                            response_question_key=new_rq.question_key,
                            split_index=split_index,
                            expanded_group_index=g_idx,
                            count_before=old_rg.total_count,
                            count_after=new_rg.total_count,
                        )
                    )
    return deltas


def _check_integrity(
    split_index: int,
    split: Split,
    total_weight: float,
    accumulators: Sequence[_QuestionAccumulator],
) -> None:
    if total_weight <= 0:
        DataIntegrityError.raise_non_positive_weight(split_index, split, total_weight)
    for acc, rq_stats in zip(accumulators, split.response_questions):
        if acc.received and acc.total_weight <= 0:
            DataIntegrityError.raise_non_positive_weight(
                split_index, split, acc.total_weight, scope=rq_stats.question_key
            )
