"""
SegmentViz: statistics, point sets and layouts kept in step.

One ``SegmentViz`` owns a ``Statistics`` instance and, per visualized
response question, a ``PointSetManager`` and a ``SegmentLayoutEngine``.
Each ``update`` call pushes a respondent batch through all three and returns
what changed.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

from segmentviz.elements.question import Question, ResponseQuestion
from segmentviz.elements.split import Split
from segmentviz.logger import viz_logger
from segmentviz.segment_viz.config import SegmentVizConfig
from segmentviz.segment_viz.geometry import RectBounds
from segmentviz.segment_viz.layout import LayoutDiff, SegmentLayoutEngine, ViewLayout
from segmentviz.segment_viz.points import PointSetDiff, PointSetManager, PointSetMode
from segmentviz.segment_viz.views import ViewKey
from segmentviz.statistics.config import SessionConfig
from segmentviz.statistics.statistics import Statistics, StatisticsUpdateResult
from segmentviz.statistics.validation import RespondentData


@dataclass(frozen=True)
class QuestionVizUpdate:
    points: PointSetDiff
    layout: Dict[ViewKey, LayoutDiff]


@dataclass(frozen=True)
class SegmentVizUpdate:
    """
    Result of one ``SegmentViz.update`` call.

    Attributes:
        statistics: Counts, split diffs and basis deltas of the batch
        questions: Point and layout changes per response question key
    """

    statistics: StatisticsUpdateResult
    questions: Dict[str, QuestionVizUpdate]


@dataclass
class QuestionVisualization:
    response_question: ResponseQuestion
    points: PointSetManager
    layout: SegmentLayoutEngine

    @property
    def key(self) -> str:
        return self.response_question.key

    @property
    def views(self) -> Dict[ViewKey, ViewLayout]:
        return self.layout.views


class SegmentViz:
    """
    Incrementally updated dot-chart geometry for a poll session.

    Example:
        >>> viz = SegmentViz(session, SegmentVizConfig(
        ...     grouping_questions_horizontal=[age], grouping_questions_vertical=[gender]))
        >>> update = viz.update(batch)
        >>> viz.get_view(opinion, "0,1").segment_groups
    """

    def __init__(
        self,
        session: SessionConfig,
        viz_config: SegmentVizConfig,
        respondents: Optional[Sequence[RespondentData]] = None,
        existing_splits: Optional[Sequence[Split]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        viz_config.validate_against(session)
        self.session = session
        self.viz_config = viz_config
        self.logger = logger or logging.getLogger(viz_config.logger_name)

        self.statistics = Statistics(session, existing_splits=existing_splits)
        self.canvas_width, self.canvas_height = viz_config.canvas_size(session)

        self._visualizations: Dict[str, QuestionVisualization] = {}
        for rq in viz_config.response_questions(session):
            self._visualizations[rq.key] = QuestionVisualization(
                response_question=rq,
                points=PointSetManager(
                    rq.key, viz_config.synthetic_sample_size, logger=self.logger
                ),
                layout=SegmentLayoutEngine(
                    rq,
                    session,
                    viz_config,
                    self.statistics.lattice,
                    canvas_size=(self.canvas_width, self.canvas_height),
                    logger=self.logger,
                ),
            )

        if existing_splits is not None:
            self._refresh(None)
        if respondents:
            self.update(respondents)

    @property
    def is_synthetic(self) -> bool:
        return self.viz_config.synthetic_sample_size is not None

    def update(self, respondents: Sequence[RespondentData]) -> SegmentVizUpdate:
        """
        Apply a respondent batch.

        Raises:
            DataIntegrityError: Propagated from the statistics update
        """
        result = self.statistics.update(respondents)
        questions = self._refresh(result)
        self.logger.info(
            f"SegmentViz update: {result.valid_count} valid, "
            f"{result.invalid_count} invalid respondents"
        )
        return SegmentVizUpdate(statistics=result, questions=questions)

    def _refresh(
        self, result: Optional[StatisticsUpdateResult]
    ) -> Dict[str, QuestionVizUpdate]:
        splits = self.statistics.get_splits()
        basis = self.statistics.basis_split_indices
        updates = {}
        for key, viz in self._visualizations.items():
            if viz.points.mode is PointSetMode.SYNTHETIC:
                point_diff = viz.points.resample(splits, basis)
            elif result is None:
                point_diff = viz.points.sync_counts(splits, basis)
            else:
                point_diff = viz.points.apply_deltas(result.deltas)
            layout_diff = viz.layout.update(viz.points)
            updates[key] = QuestionVizUpdate(points=point_diff, layout=layout_diff)
            viz_logger.info(
                f"{key}: {len(viz.points)} points, {len(layout_diff)} views changed"
            )
        return updates

    def get_statistics(self) -> Statistics:
        return self.statistics

    def get_splits(self) -> Sequence[Split]:
        return self.statistics.get_splits()

    def get_bounding_box(self) -> RectBounds:
        """Fixed outer bounds of the visualization, in point-radius units."""
        return RectBounds(0.0, 0.0, self.canvas_width, self.canvas_height)

    def get_visualization(self, question: Union[Question, str]) -> QuestionVisualization:
        key = question if isinstance(question, str) else question.key
        return self._visualizations[key]

    def get_all_visualizations(self) -> List[QuestionVisualization]:
        return list(self._visualizations.values())

    def get_view(
        self,
        question: Union[Question, str],
        view_id: str = "",
        display: str = "expanded",
    ) -> ViewLayout:
        return self.get_visualization(question).layout.get_view(view_id, display)
