from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from segmentviz.elements.question import GroupingQuestion, Question, ResponseQuestion
from segmentviz.exceptions import ConfigurationError


@dataclass
class SessionConfig:
    """Configuration of the questions tracked by a statistics instance."""

    grouping_questions: Sequence[GroupingQuestion] = field(default_factory=list)
    response_questions: Sequence[ResponseQuestion] = field(default_factory=list)
    weight_question: Optional[Question] = None
    logger_name: str = "segmentviz.statistics"

    def __post_init__(self) -> None:
        self.grouping_questions = list(self.grouping_questions)
        self.response_questions = list(self.response_questions)
        if not self.response_questions:
            raise ConfigurationError("At least one response question is required")

        grouping_keys = [gq.key for gq in self.grouping_questions]
        response_keys = [rq.key for rq in self.response_questions]
        _check_unique(grouping_keys, "grouping")
        _check_unique(response_keys, "response")

        overlap = set(grouping_keys) & set(response_keys)
        if overlap:
            raise ConfigurationError(
                f"Questions used both for grouping and as response questions: {sorted(overlap)}"
            )
        if self.weight_question is not None and (
            self.weight_question.key in grouping_keys
            or self.weight_question.key in response_keys
        ):
            raise ConfigurationError(
                f"Weight question {self.weight_question.key} must not be a grouping "
                f"or response question"
            )

    def grouping_question(self, key: str) -> GroupingQuestion:
        for gq in self.grouping_questions:
            if gq.key == key:
                return gq
        raise ConfigurationError(f"Grouping question not found in session config: {key}")

    def response_question(self, key: str) -> ResponseQuestion:
        for rq in self.response_questions:
            if rq.key == key:
                return rq
        raise ConfigurationError(f"Response question not found in session config: {key}")

    def grouping_index(self, key: str) -> int:
        for idx, gq in enumerate(self.grouping_questions):
            if gq.key == key:
                return idx
        raise ConfigurationError(f"Grouping question not found in session config: {key}")


def _check_unique(keys: List[str], kind: str) -> None:
    seen = set()
    for key in keys:
        if key in seen:
            raise ConfigurationError(f"Duplicate {kind} question: {key}")
        seen.add(key)
