"""Incremental poll cross-tabulation and dot-chart segment layout."""

__all__ = [
    "Question",
    "ResponseGroup",
    "GroupingQuestion",
    "ResponseQuestion",
    "SessionConfig",
    "Statistics",
    "compute_statistics",
    "RespondentData",
    "ResponseValue",
    "SegmentViz",
    "SegmentVizConfig",
    "SegmentVizError",
    "ConfigurationError",
    "DataIntegrityError",
]


def __getattr__(name):
    if name in {"Question", "ResponseGroup", "GroupingQuestion", "ResponseQuestion"}:
        from .elements.question import (
            Question,
            ResponseGroup,
            GroupingQuestion,
            ResponseQuestion,
        )
        return locals()[name]
    if name in {
        "SessionConfig",
        "Statistics",
        "compute_statistics",
        "RespondentData",
        "ResponseValue",
    }:
        from .statistics import (
            SessionConfig,
            Statistics,
            compute_statistics,
            RespondentData,
            ResponseValue,
        )
        return locals()[name]
    if name in {"SegmentViz", "SegmentVizConfig"}:
        from .segment_viz import SegmentViz, SegmentVizConfig

        return locals()[name]
    if name in {"SegmentVizError", "ConfigurationError", "DataIntegrityError"}:
        from .exceptions import SegmentVizError, ConfigurationError, DataIntegrityError

        return locals()[name]
    raise AttributeError(name)
