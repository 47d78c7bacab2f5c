"""
Respondent validation.

Turns a raw respondent record into a verdict: whether the respondent can be
aggregated, with which weight, into which basis split, and into which
expanded response group of each tracked response question.
"""

from __future__ import annotations
import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple

from segmentviz.elements.question import Question
from segmentviz.statistics.config import SessionConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResponseValue:
    """A single raw answer. ``value`` is None when the question was skipped."""

    question: Question
    value: Optional[float]


@dataclass(frozen=True)
class RespondentData:
    respondent_id: str
    responses: Sequence[ResponseValue]


@dataclass(frozen=True)
class ValidationVerdict:
    """
    Outcome of validating one respondent.

    Attributes:
        valid: Whether the respondent may be aggregated
        weight: Respondent weight (1.0 without a weight question)
        basis_choice: Response group index per grouping question, None if invalid
        expanded_indices: Response question index -> expanded group index, for
            every response question answered inside an expanded group
    """

    valid: bool
    weight: float = 0.0
    basis_choice: Optional[Tuple[int, ...]] = None
    expanded_indices: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def invalid(cls) -> ValidationVerdict:
        return cls(valid=False)


def create_response_map(
    responses: Sequence[ResponseValue],
) -> Dict[str, Optional[float]]:
    """Map question key to raw value. Later answers for the same key win."""
    return {response.question.key: response.value for response in responses}


def _is_number(value: object) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, numbers.Real):
        return False
    return math.isfinite(float(value))


class RespondentValidator:
    """Validates respondents against a session configuration."""

    def __init__(self, config: SessionConfig):
        self.config = config

    def validate(self, respondent: RespondentData) -> ValidationVerdict:
        return self.validate_map(create_response_map(respondent.responses))

    def validate_map(self, response_map: Mapping[str, Optional[float]]) -> ValidationVerdict:
        basis_choice = []
        for gq in self.config.grouping_questions:
            group_index = gq.group_index_for(response_map.get(gq.key))
            if group_index is None:
                return ValidationVerdict.invalid()
            basis_choice.append(group_index)

        weight = 1.0
        if self.config.weight_question is not None:
            raw_weight = response_map.get(self.config.weight_question.key)
            if not _is_number(raw_weight):
                return ValidationVerdict.invalid()
            weight = float(raw_weight)

        expanded_indices: Dict[int, int] = {}
        for rq_idx, rq in enumerate(self.config.response_questions):
            expanded_index = rq.expanded_index_for(response_map.get(rq.key))
            if expanded_index is not None:
                expanded_indices[rq_idx] = expanded_index
        if not expanded_indices:
            return ValidationVerdict.invalid()

        return ValidationVerdict(
            valid=True,
            weight=weight,
            basis_choice=tuple(basis_choice),
            expanded_indices=expanded_indices,
        )
