__all__ = [
    "SegmentViz",
    "SegmentVizUpdate",
    "QuestionVizUpdate",
    "QuestionVisualization",
    "SegmentVizConfig",
    "SegmentLayoutEngine",
    "ViewLayout",
    "ViewStage",
    "LayoutDiff",
    "BoundsDelta",
    "PointsDelta",
    "PointMove",
    "Point",
    "PointSetDiff",
    "PointSetManager",
    "PointSetMode",
    "RectBounds",
    "ViewKey",
    "build_view_id",
    "enumerate_views",
    "allocate_synthetic_counts",
]

from segmentviz.segment_viz.config import SegmentVizConfig
from segmentviz.segment_viz.geometry import RectBounds
from segmentviz.segment_viz.layout import (
    BoundsDelta,
    LayoutDiff,
    PointMove,
    PointsDelta,
    SegmentLayoutEngine,
    ViewLayout,
    ViewStage,
)
from segmentviz.segment_viz.points import (
    Point,
    PointSetDiff,
    PointSetManager,
    PointSetMode,
)
from segmentviz.segment_viz.segment_viz import (
    QuestionVisualization,
    QuestionVizUpdate,
    SegmentViz,
    SegmentVizUpdate,
)
from segmentviz.segment_viz.synthetic import allocate_synthetic_counts
from segmentviz.segment_viz.views import ViewKey, build_view_id, enumerate_views
