"""
Stateful statistics over a stream of respondent batches.

``Statistics`` owns the split lattice of one session and applies respondent
batches to it incrementally. It is a single-writer object: callers must
serialize ``update`` calls.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from segmentviz.elements.split import ResponseGroupStatsDelta, Split, SplitDiff
from segmentviz.exceptions import ConfigurationError
from segmentviz.logger import viz_logger
from segmentviz.statistics.config import SessionConfig
from segmentviz.statistics.lattice import SplitLattice, build_split_lattice
from segmentviz.statistics.update import (
    BasisResponse,
    basis_count_deltas,
    update_all_splits,
)
from segmentviz.statistics.validation import RespondentData, RespondentValidator


@dataclass(frozen=True)
class StatisticsUpdateResult:
    """
    Outcome of one ``Statistics.update`` call.

    Attributes:
        valid_count: Valid respondents in this batch
        invalid_count: Invalid respondents in this batch
        total_processed: Respondents in this batch
        diffs: One diff per split, in lattice order
        deltas: Expanded group count changes of the basis splits
    """

    valid_count: int
    invalid_count: int
    total_processed: int
    diffs: Tuple[SplitDiff, ...]
    deltas: Tuple[ResponseGroupStatsDelta, ...]


@dataclass(frozen=True)
class StatisticsResult:
    splits: Tuple[Split, ...]
    valid_count: int
    invalid_count: int
    total_processed: int


class Statistics:
    """
    Split statistics for one session configuration.

    Start empty, from a list of respondents, or from splits stored by the
    caller; then feed further batches through ``update``.

    Example:
        >>> stats = Statistics(config)
        >>> result = stats.update(batch)
        >>> stats.get_splits()[0].total_count
    """

    def __init__(
        self,
        config: SessionConfig,
        respondents: Optional[Sequence[RespondentData]] = None,
        existing_splits: Optional[Sequence[Split]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.logger = logger or logging.getLogger(config.logger_name)
        self.validator = RespondentValidator(config)

        lattice = build_split_lattice(config.grouping_questions, config.response_questions)
        if existing_splits is not None:
            _check_existing_splits(lattice, existing_splits)
            lattice = lattice.with_splits(existing_splits)
        self._lattice = lattice

        self.valid_count = 0
        self.invalid_count = 0

        if respondents:
            self.update(respondents)

    @property
    def lattice(self) -> SplitLattice:
        return self._lattice

    @property
    def splits(self) -> Tuple[Split, ...]:
        return self._lattice.splits

    @property
    def basis_split_indices(self) -> Tuple[int, ...]:
        return self._lattice.basis_split_indices

    @property
    def total_processed(self) -> int:
        return self.valid_count + self.invalid_count

    def get_splits(self) -> Tuple[Split, ...]:
        return self._lattice.splits

    def update(self, respondents: Sequence[RespondentData]) -> StatisticsUpdateResult:
        """
        Validate and aggregate a batch of respondents.

        Args:
            respondents: The new batch

        Returns:
            StatisticsUpdateResult for this batch

        Raises:
            DataIntegrityError: If a non-positive weight corrupts a split total
        """
        responses: List[Tuple[int, BasisResponse]] = []
        invalid = 0
        for respondent in respondents:
            verdict = self.validator.validate(respondent)
            if not verdict.valid:
                invalid += 1
                continue
            responses.append(
                (
                    self._lattice.index_of(verdict.basis_choice),
                    BasisResponse(verdict.weight, verdict.expanded_indices),
                )
            )

        before = self._lattice.splits
        new_splits, diffs = update_all_splits(
            before,
            self._lattice.basis_split_indices,
            responses,
            self.config.response_questions,
        )
        deltas = basis_count_deltas(before, new_splits, self._lattice.basis_split_indices)
        self._lattice = self._lattice.with_splits(new_splits)

        self.valid_count += len(responses)
        self.invalid_count += invalid
        if invalid:
            message = f"Skipped {invalid} of {len(respondents)} respondents failing validation"
            self.logger.info(message)
            viz_logger.warning(message)
        self.logger.debug(
            f"Batch applied: {len(responses)} valid, {len(deltas)} group count changes"
        )

        return StatisticsUpdateResult(
            valid_count=len(responses),
            invalid_count=invalid,
            total_processed=len(respondents),
            diffs=diffs,
            deltas=tuple(deltas),
        )


@viz_logger.log_execution
def compute_statistics(
    config: SessionConfig,
    respondents: Sequence[RespondentData],
    existing_splits: Optional[Sequence[Split]] = None,
) -> StatisticsResult:
    """
    One-shot statistics without keeping an instance around.

    Pass ``existing_splits`` (previously stored by the caller) to continue
    from them instead of starting from zero. Counts in the result refer to
    ``respondents`` only.
    """
    stats = Statistics(config, existing_splits=existing_splits)
    result = stats.update(respondents)
    return StatisticsResult(
        splits=stats.get_splits(),
        valid_count=result.valid_count,
        invalid_count=result.invalid_count,
        total_processed=result.total_processed,
    )


def _check_existing_splits(lattice: SplitLattice, splits: Sequence[Split]) -> None:
    if len(splits) != len(lattice.splits):
        raise ConfigurationError(
            f"Stored splits do not match the configuration: expected "
            f"{len(lattice.splits)} splits, got {len(splits)}"
        )
    for idx, (expected, stored) in enumerate(zip(lattice.splits, splits)):
        if stored.groups != expected.groups:
            raise ConfigurationError(
                f"Stored split {idx} ({stored.describe()}) does not match "
                f"the configured split ({expected.describe()})"
            )
        stored_keys = [rq.question_key for rq in stored.response_questions]
        expected_keys = [rq.question_key for rq in expected.response_questions]
        if stored_keys != expected_keys:
            raise ConfigurationError(
                f"Stored split {idx} tracks response questions {stored_keys}, "
                f"expected {expected_keys}"
            )
