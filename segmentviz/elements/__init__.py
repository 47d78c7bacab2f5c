from .question import (
    Question,
    ResponseGroup,
    GroupingQuestion,
    ResponseQuestion,
    Group,
)
from .split import (
    ResponseGroupStats,
    ResponseQuestionStats,
    Split,
    SplitDiff,
    ResponseGroupStatsDelta,
)

__all__ = [
    "Question",
    "ResponseGroup",
    "GroupingQuestion",
    "ResponseQuestion",
    "Group",
    "ResponseGroupStats",
    "ResponseQuestionStats",
    "Split",
    "SplitDiff",
    "ResponseGroupStatsDelta",
]
