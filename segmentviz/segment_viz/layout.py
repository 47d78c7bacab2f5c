"""
Segment geometry layout for one response question.

For every view the engine keeps a grid of segment groups (one per row and
column of active grouping question combinations). Each segment group maps to
one lattice split and holds one segment per response group. Every update
re-sizes the segments from the current point counts, re-places the points
and reports what changed against the previous layout.

Per view the work runs through the stages
``UNINITIALIZED -> GRID_COMPUTED -> SEGMENTS_SIZED -> POINTS_PLACED``. The
grid only depends on the configuration and is computed once; the two later
stages are redone on every update.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from segmentviz.elements.question import GroupingQuestion, ResponseQuestion
from segmentviz.segment_viz.config import SegmentVizConfig
from segmentviz.segment_viz.geometry import RectBounds, axis_slots, place_points, segment_bounds
from segmentviz.segment_viz.points import Point, PointSetManager
from segmentviz.segment_viz.views import ViewKey, ViewSpec, build_view_id, enumerate_views
from segmentviz.statistics.config import SessionConfig
from segmentviz.statistics.lattice import SplitLattice, generate_cartesian

Position = Tuple[float, float]
# (split index of the segment group, response group index in the view's display)
SegmentKey = Tuple[int, int]


class ViewStage(Enum):
    UNINITIALIZED = 0
    GRID_COMPUTED = 1
    SEGMENTS_SIZED = 2
    POINTS_PLACED = 3


@dataclass
class Segment:
    """One response group inside one segment group."""

    response_group_index: int
    bounds: RectBounds
    points: Tuple[Point, ...] = ()


@dataclass
class SegmentGroup:
    """One grid cell. ``split_index`` is the lattice split it displays."""

    row: int
    column: int
    split_index: int
    bounds: RectBounds
    segments: List[Segment] = field(default_factory=list)


@dataclass
class ViewLayout:
    spec: ViewSpec
    stage: ViewStage = ViewStage.UNINITIALIZED
    segment_groups: List[SegmentGroup] = field(default_factory=list)
    positions: Dict[Point, Position] = field(default_factory=dict)

    @property
    def key(self) -> ViewKey:
        return self.spec.key

    def segment_bounds(self) -> Dict[SegmentKey, RectBounds]:
        return {
            (group.split_index, segment.response_group_index): segment.bounds
            for group in self.segment_groups
            for segment in group.segments
        }


@dataclass(frozen=True)
class BoundsDelta:
    """Segment bounds before and after an update; ``before`` is None for a first layout."""

    before: Optional[RectBounds]
    after: RectBounds


@dataclass(frozen=True)
class PointMove:
    point: Point
    before: Position
    after: Position


@dataclass(frozen=True)
class PointsDelta:
    added: Dict[Point, Position] = field(default_factory=dict)
    removed: Tuple[Point, ...] = ()
    moved: Tuple[PointMove, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed and not self.moved


@dataclass(frozen=True)
class LayoutDiff:
    """Changes of one view caused by one update."""

    view_key: ViewKey
    bounds_delta: Dict[SegmentKey, BoundsDelta] = field(default_factory=dict)
    points_delta: PointsDelta = field(default_factory=PointsDelta)

    @property
    def is_empty(self) -> bool:
        return not self.bounds_delta and self.points_delta.is_empty


class SegmentLayoutEngine:
    """
    Layout of every view of one response question.

    Args:
        response_question: The question whose answers the segments show
        session: Session configuration (for grouping question positions)
        viz_config: Layout configuration
        lattice: Split lattice; used to map grid cells to split indices
        canvas_size: Fixed (width, height); derived from ``viz_config`` if omitted
        logger: Optional logger, defaults to ``viz_config.logger_name``
    """

    def __init__(
        self,
        response_question: ResponseQuestion,
        session: SessionConfig,
        viz_config: SegmentVizConfig,
        lattice: SplitLattice,
        canvas_size: Optional[Tuple[float, float]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.response_question = response_question
        self.session = session
        self.viz_config = viz_config
        self.lattice = lattice
        self.logger = logger or logging.getLogger(viz_config.logger_name)
        self.canvas_width, self.canvas_height = canvas_size or viz_config.canvas_size(session)

        self.horizontal: List[GroupingQuestion] = viz_config.horizontal_questions(session)
        self.vertical: List[GroupingQuestion] = viz_config.vertical_questions(session)
        self._horizontal_positions = [session.grouping_index(gq.key) for gq in self.horizontal]
        self._vertical_positions = [session.grouping_index(gq.key) for gq in self.vertical]

        self.views: Dict[ViewKey, ViewLayout] = {}
        for spec in enumerate_views(len(self.horizontal), len(self.vertical)):
            view = ViewLayout(spec=spec)
            self._compute_grid(view)
            self.views[spec.key] = view

        self.logger.debug(
            f"{response_question.key}: {len(self.views)} views on a "
            f"{self.canvas_width:g} x {self.canvas_height:g} canvas"
        )

    def get_view(self, view_id: str, display: str = "expanded") -> ViewLayout:
        return self.views[ViewKey(view_id, display)]

    def view_for(
        self,
        active_horizontal: Sequence[int],
        active_vertical: Sequence[int],
        display: str = "expanded",
    ) -> ViewLayout:
        view_id = build_view_id(active_horizontal, active_vertical, len(self.horizontal))
        return self.get_view(view_id, display)

    def update(self, point_set: PointSetManager) -> Dict[ViewKey, LayoutDiff]:
        """
        Re-size segments and re-place points in every view.

        Returns:
            One LayoutDiff per view that changed
        """
        diffs: Dict[ViewKey, LayoutDiff] = {}
        for key, view in self.views.items():
            old_bounds = view.segment_bounds()
            old_positions = view.positions

            self._size_segments(view, point_set)
            self._place_points(view)

            diff = _diff_view(key, old_bounds, view.segment_bounds(), old_positions, view.positions)
            if not diff.is_empty:
                diffs[key] = diff

        self.logger.debug(f"{self.response_question.key}: {len(diffs)} views changed")
        return diffs

    def _compute_grid(self, view: ViewLayout) -> None:
        _expect_stage(view, ViewStage.UNINITIALIZED)
        spec = view.spec
        rows = generate_cartesian(
            [range(len(self.vertical[i].response_groups)) for i in spec.active_vertical]
        )
        columns = generate_cartesian(
            [range(len(self.horizontal[i].response_groups)) for i in spec.active_horizontal]
        )
        row_slots = axis_slots(self.canvas_height, len(rows), self.viz_config.group_gap_vertical)
        column_slots = axis_slots(
            self.canvas_width, len(columns), self.viz_config.group_gap_horizontal
        )

        groups = []
        for row_idx, (row_choice, (y, height)) in enumerate(zip(rows, row_slots)):
            for col_idx, (col_choice, (x, width)) in enumerate(zip(columns, column_slots)):
                choice: List[Optional[int]] = [None] * len(self.session.grouping_questions)
                for q_idx, group_index in zip(spec.active_horizontal, col_choice):
                    choice[self._horizontal_positions[q_idx]] = group_index
                for q_idx, group_index in zip(spec.active_vertical, row_choice):
                    choice[self._vertical_positions[q_idx]] = group_index
                groups.append(
                    SegmentGroup(
                        row=row_idx,
                        column=col_idx,
                        split_index=self.lattice.index_of(tuple(choice)),
                        bounds=RectBounds(x, y, width, height),
                    )
                )
        view.segment_groups = groups
        view.stage = ViewStage.GRID_COMPUTED

    def _segment_points(
        self, split_index: int, display: str, point_set: PointSetManager
    ) -> List[List[Point]]:
        rq = self.response_question
        n_segments = len(rq.response_groups(display))
        per_segment: List[List[Point]] = [[] for _ in range(n_segments)]
        for basis_index in self.lattice.splits[split_index].basis_split_indices:
            for expanded_index in range(len(rq.expanded)):
                segment_index = (
                    expanded_index
                    if display == "expanded"
                    else rq.expanded_to_collapsed[expanded_index]
                )
                per_segment[segment_index].extend(
                    point_set.points_for(basis_index, expanded_index)
                )
        for points in per_segment:
            points.sort()
        return per_segment

    def _size_segments(self, view: ViewLayout, point_set: PointSetManager) -> None:
        if view.stage is ViewStage.POINTS_PLACED:
            view.stage = ViewStage.GRID_COMPUTED
        _expect_stage(view, ViewStage.GRID_COMPUTED)

        for group in view.segment_groups:
            per_segment = self._segment_points(group.split_index, view.spec.key.display, point_set)
            bounds = segment_bounds(
                group.bounds,
                [len(points) for points in per_segment],
                self.viz_config.base_segment_width,
                self.viz_config.response_gap,
            )
            group.segments = [
                Segment(response_group_index=idx, bounds=b, points=tuple(points))
                for idx, (b, points) in enumerate(zip(bounds, per_segment))
            ]
        view.stage = ViewStage.SEGMENTS_SIZED

    def _place_points(self, view: ViewLayout) -> None:
        _expect_stage(view, ViewStage.SEGMENTS_SIZED)
        positions: Dict[Point, Position] = {}
        for group in view.segment_groups:
            for segment in group.segments:
                coords = place_points(len(segment.points), segment.bounds)
                for point, (x, y) in zip(segment.points, coords):
                    positions[point] = (float(x), float(y))
        view.positions = positions
        view.stage = ViewStage.POINTS_PLACED


def _expect_stage(view: ViewLayout, stage: ViewStage) -> None:
    if view.stage is not stage:
        raise RuntimeError(
            f"View {view.key} is in stage {view.stage.name}, expected {stage.name}"
        )


def _same_position(a: Position, b: Position) -> bool:
    return math.isclose(a[0], b[0], abs_tol=1e-9) and math.isclose(a[1], b[1], abs_tol=1e-9)


def _diff_view(
    key: ViewKey,
    old_bounds: Dict[SegmentKey, RectBounds],
    new_bounds: Dict[SegmentKey, RectBounds],
    old_positions: Dict[Point, Position],
    new_positions: Dict[Point, Position],
) -> LayoutDiff:
    bounds_delta = {
        segment_key: BoundsDelta(before=old_bounds.get(segment_key), after=after)
        for segment_key, after in new_bounds.items()
        if segment_key not in old_bounds or not old_bounds[segment_key].is_close(after)
    }

    added = {p: pos for p, pos in new_positions.items() if p not in old_positions}
    removed = tuple(sorted(p for p in old_positions if p not in new_positions))
    moved = tuple(
        PointMove(point=p, before=old_positions[p], after=pos)
        for p, pos in sorted(new_positions.items())
        if p in old_positions and not _same_position(old_positions[p], pos)
    )
    return LayoutDiff(
        view_key=key,
        bounds_delta=bounds_delta,
        points_delta=PointsDelta(added=added, removed=removed, moved=moved),
    )
