import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from segmentviz.elements.question import GroupingQuestion, Question, ResponseQuestion
from segmentviz.exceptions import ConfigurationError
from segmentviz.statistics.config import SessionConfig


@dataclass
class SegmentVizConfig:
    """
    Layout configuration of the segment visualization.

    All lengths are in point-radius units. When ``canvas_width`` or
    ``canvas_height`` is omitted it is derived from the fully expanded view
    (every grouping question active, expanded response groups), see
    ``canvas_size``.
    """

    grouping_questions_horizontal: Sequence[Question] = field(default_factory=list)
    grouping_questions_vertical: Sequence[Question] = field(default_factory=list)
    base_segment_width: float = 2.0
    response_gap: float = 1.0
    group_gap_horizontal: float = 4.0
    group_gap_vertical: float = 4.0
    canvas_width: Optional[float] = None
    canvas_height: Optional[float] = None
    min_group_available_width: float = 40.0
    min_group_height: float = 40.0
    synthetic_sample_size: Optional[int] = None
    response_question_keys: Optional[Sequence[str]] = None
    logger_name: str = "segmentviz.segment_viz"

    def __post_init__(self) -> None:
        self.grouping_questions_horizontal = list(self.grouping_questions_horizontal)
        self.grouping_questions_vertical = list(self.grouping_questions_vertical)
        if self.response_question_keys is not None:
            self.response_question_keys = list(self.response_question_keys)
            if not self.response_question_keys:
                raise ConfigurationError("response_question_keys must not be empty")
            _check_unique(self.response_question_keys, "response question key")

        horizontal_keys = [q.key for q in self.grouping_questions_horizontal]
        vertical_keys = [q.key for q in self.grouping_questions_vertical]
        _check_unique(horizontal_keys, "horizontal grouping question")
        _check_unique(vertical_keys, "vertical grouping question")
        overlap = set(horizontal_keys) & set(vertical_keys)
        if overlap:
            raise ConfigurationError(
                f"Grouping questions on both axes: {sorted(overlap)}"
            )

        for name in ("base_segment_width", "response_gap", "group_gap_horizontal", "group_gap_vertical"):
            _check_length(name, getattr(self, name), allow_zero=True)
        for name in ("min_group_available_width", "min_group_height"):
            _check_length(name, getattr(self, name), allow_zero=False)
        for name in ("canvas_width", "canvas_height"):
            if getattr(self, name) is not None:
                _check_length(name, getattr(self, name), allow_zero=False)

        if self.synthetic_sample_size is not None and (
            isinstance(self.synthetic_sample_size, bool)
            or not isinstance(self.synthetic_sample_size, int)
            or self.synthetic_sample_size <= 0
        ):
            raise ConfigurationError(
                f"synthetic_sample_size must be a positive integer, "
                f"got {self.synthetic_sample_size!r}"
            )

    def validate_against(self, session: SessionConfig) -> None:
        """Raise ConfigurationError if any referenced question is absent from ``session``."""
        self.horizontal_questions(session)
        self.vertical_questions(session)
        self.response_questions(session)

    def horizontal_questions(self, session: SessionConfig) -> List[GroupingQuestion]:
        return [session.grouping_question(q.key) for q in self.grouping_questions_horizontal]

    def vertical_questions(self, session: SessionConfig) -> List[GroupingQuestion]:
        return [session.grouping_question(q.key) for q in self.grouping_questions_vertical]

    def response_questions(self, session: SessionConfig) -> List[ResponseQuestion]:
        if self.response_question_keys is None:
            return list(session.response_questions)
        return [session.response_question(key) for key in self.response_question_keys]

    def canvas_size(self, session: SessionConfig) -> Tuple[float, float]:
        """
        Canvas (width, height), deriving missing dimensions from the fully expanded view.

        width  = (cols - 1) * gap_x + cols * ((R - 1) * response_gap + R * base_width
                 + min_group_available_width)
        height = (rows - 1) * gap_y + rows * min_group_height

        with R the largest number of expanded response groups among the
        visualized response questions and cols/rows the number of grid cells
        when every horizontal/vertical grouping question is active.
        """
        width = self.canvas_width
        if width is None:
            cols = math.prod(len(gq.response_groups) for gq in self.horizontal_questions(session))
            max_groups = max(len(rq.expanded) for rq in self.response_questions(session))
            group_width = (
                (max_groups - 1) * self.response_gap
                + max_groups * self.base_segment_width
                + self.min_group_available_width
            )
            width = (cols - 1) * self.group_gap_horizontal + cols * group_width

        height = self.canvas_height
        if height is None:
            rows = math.prod(len(gq.response_groups) for gq in self.vertical_questions(session))
            height = (rows - 1) * self.group_gap_vertical + rows * self.min_group_height

        return float(width), float(height)


def _check_length(name: str, value: float, allow_zero: bool) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if value < 0 or (value == 0 and not allow_zero):
        bound = "non-negative" if allow_zero else "positive"
        raise ConfigurationError(f"{name} must be {bound}, got {value}")


def _check_unique(keys: Sequence[str], kind: str) -> None:
    seen = set()
    for key in keys:
        if key in seen:
            raise ConfigurationError(f"Duplicate {kind}: {key}")
        seen.add(key)
