import pytest

from segmentviz.exceptions import ConfigurationError
from segmentviz.segment_viz.config import SegmentVizConfig
from segmentviz.segment_viz.geometry import RectBounds, axis_slots, grid_shape, place_points, segment_bounds
from segmentviz.segment_viz.layout import SegmentLayoutEngine, ViewStage
from segmentviz.segment_viz.points import PointSetManager
from segmentviz.segment_viz.views import ViewKey, build_view_id, enumerate_views, parse_view_id
from segmentviz.statistics.statistics import Statistics


@pytest.fixture
def viz_config(age, gender):
    return SegmentVizConfig(
        grouping_questions_horizontal=[age.question],
        grouping_questions_vertical=[gender.question],
        base_segment_width=2.0,
        response_gap=1.0,
        group_gap_horizontal=4.0,
        group_gap_vertical=4.0,
        min_group_available_width=40.0,
        min_group_height=40.0,
    )


@pytest.fixture
def engine_setup(session, opinion, viz_config):
    stats = Statistics(session)
    points = PointSetManager(opinion.key)
    engine = SegmentLayoutEngine(opinion, session, viz_config, stats.lattice)
    return stats, points, engine


def _feed(stats, points, engine, batch):
    result = stats.update(batch)
    points.apply_deltas(result.deltas)
    return engine.update(points)


class TestViews:
    def test_view_ids(self):
        assert build_view_id([0], [1], 2) == "0,3"
        assert build_view_id([], [], 2) == ""
        assert build_view_id([1, 0], [2, 0], 2) == "0,1,2,4"
        assert parse_view_id("0,1,2,4", 2) == ((0, 1), (0, 2))
        assert parse_view_id("", 2) == ((), ())

    @pytest.mark.parametrize("h,v", [(0, 0), (1, 1), (2, 1), (2, 3)])
    def test_view_count(self, h, v):
        views = enumerate_views(h, v)
        assert len(views) == 2 ** (h + v) * 2
        assert len({view.key for view in views}) == len(views)


class TestGeometry:
    def test_axis_slots(self):
        assert axis_slots(106.0, 2, 4.0) == [(0.0, 51.0), (55.0, 51.0)]
        assert axis_slots(84.0, 1, 4.0) == [(0.0, 84.0)]

    def test_segment_widths_grow_with_points(self):
        cell = RectBounds(10.0, 0.0, 50.0, 20.0)
        bounds = segment_bounds(cell, [3, 1, 0], base_width=2.0, response_gap=1.0)

        # available = 50 - 2 gaps - 3 base widths = 42
        assert [b.width for b in bounds] == pytest.approx([2 + 31.5, 2 + 10.5, 2.0])
        assert bounds[0].x == 10.0
        assert bounds[1].x == pytest.approx(10.0 + 33.5 + 1.0)
        assert bounds[2].right == pytest.approx(cell.right)

    def test_empty_cell_gets_base_widths(self):
        bounds = segment_bounds(RectBounds(0, 0, 50, 20), [0, 0], 2.0, 1.0)
        assert [b.width for b in bounds] == [2.0, 2.0]

    def test_grid_shape_follows_aspect(self):
        assert grid_shape(4, 10.0, 10.0) == (2, 2)
        assert grid_shape(6, 30.0, 10.0)[0] > grid_shape(6, 10.0, 30.0)[0]
        assert grid_shape(0, 10.0, 10.0) == (0, 0)

    def test_place_points_inside_bounds(self):
        bounds = RectBounds(5.0, 7.0, 20.0, 10.0)
        coords = place_points(13, bounds)

        assert coords.shape == (13, 2)
        assert all(bounds.contains(x, y) for x, y in coords)
        assert len({(x, y) for x, y in coords}) == 13

    def test_tiny_segment_collapses_to_centre(self):
        coords = place_points(3, RectBounds(0.0, 0.0, 1.0, 10.0))
        assert coords.tolist() == [[0.5, 5.0]] * 3


class TestSegmentLayoutEngine:
    def test_canvas_derived_from_expanded_view(self, session, viz_config):
        assert viz_config.canvas_size(session) == (106.0, 84.0)

    def test_grid_computed_at_construction(self, engine_setup):
        _, _, engine = engine_setup

        assert len(engine.views) == 8
        assert all(view.stage is ViewStage.GRID_COMPUTED for view in engine.views.values())

        base = engine.get_view("", "expanded")
        assert [g.split_index for g in base.segment_groups] == [8]
        assert base.segment_groups[0].bounds == RectBounds(0.0, 0.0, 106.0, 84.0)

        full = engine.get_view("0,1", "collapsed")
        assert [g.split_index for g in full.segment_groups] == [0, 3, 1, 4]
        assert full.segment_groups[1].bounds == RectBounds(55.0, 0.0, 51.0, 40.0)

        by_age = engine.view_for([0], [])
        assert [g.split_index for g in by_age.segment_groups] == [2, 5]

    def test_update_places_every_point(self, engine_setup, respondent):
        stats, points, engine = engine_setup
        _feed(stats, points, engine, [respondent(age=1, gender=1, opinion=o) for o in (1, 1, 2)]
              + [respondent(age=3, gender=2, opinion=o) for o in (3, 4, 4, 2)])

        for view in engine.views.values():
            assert view.stage is ViewStage.POINTS_PLACED
            assert len(view.positions) == 7

        base = engine.get_view("", "expanded")
        assert [len(s.points) for s in base.segment_groups[0].segments] == [2, 2, 1, 2]
        collapsed = engine.get_view("", "collapsed")
        assert [len(s.points) for s in collapsed.segment_groups[0].segments] == [4, 3]

        for group in base.segment_groups:
            for segment in group.segments:
                for point in segment.points:
                    assert segment.bounds.contains(*base.positions[point])

    def test_first_update_reports_added_points_and_bounds(self, engine_setup, respondent):
        stats, points, engine = engine_setup
        diffs = _feed(stats, points, engine, [respondent(opinion=1)])

        diff = diffs[ViewKey("", "expanded")]
        assert len(diff.points_delta.added) == 1
        assert diff.points_delta.removed == ()
        assert all(delta.before is None for delta in diff.bounds_delta.values())

    def test_unchanged_points_give_no_diff(self, engine_setup, respondent):
        stats, points, engine = engine_setup
        _feed(stats, points, engine, [respondent(opinion=o) for o in (1, 2, 3)])
        before = {key: dict(view.positions) for key, view in engine.views.items()}

        assert engine.update(points) == {}
        assert {key: view.positions for key, view in engine.views.items()} == before

    def test_layout_is_deterministic(self, session, opinion, viz_config, respondent):
        batch = [respondent(age=a, opinion=o) for a in (1, 3) for o in (1, 2, 2, 4)]
        layouts = []
        for _ in range(2):
            stats = Statistics(session)
            points = PointSetManager(opinion.key)
            engine = SegmentLayoutEngine(opinion, session, viz_config, stats.lattice)
            _feed(stats, points, engine, batch)
            layouts.append({key: view.positions for key, view in engine.views.items()})
        assert layouts[0] == layouts[1]

    def test_shifted_segment_reports_moved_points(self, engine_setup, respondent):
        stats, points, engine = engine_setup
        _feed(stats, points, engine, [respondent(opinion=1), respondent(opinion=2)])
        base_key = ViewKey("", "expanded")
        old_second = engine.views[base_key].segment_groups[0].segments[1].points

        diffs = _feed(stats, points, engine, [respondent(opinion=1)])
        diff = diffs[base_key]

        moved = {move.point for move in diff.points_delta.moved}
        assert set(old_second) <= moved
        assert (8, 1) in diff.bounds_delta
        assert diff.bounds_delta[(8, 1)].before.x < diff.bounds_delta[(8, 1)].after.x
        assert len(diff.points_delta.added) == 1


class TestSegmentVizConfig:
    def test_axes_must_be_disjoint(self, age):
        with pytest.raises(ConfigurationError):
            SegmentVizConfig(
                grouping_questions_horizontal=[age.question],
                grouping_questions_vertical=[age.question],
            )

    def test_duplicates_rejected(self, age):
        with pytest.raises(ConfigurationError):
            SegmentVizConfig(grouping_questions_horizontal=[age.question, age.question])

    @pytest.mark.parametrize(
        "field,value",
        [
            ("response_gap", -1.0),
            ("group_gap_vertical", -0.5),
            ("min_group_height", 0.0),
            ("min_group_available_width", -3.0),
            ("canvas_width", 0.0),
            ("synthetic_sample_size", 0),
            ("synthetic_sample_size", 2.5),
        ],
    )
    def test_invalid_lengths(self, field, value):
        with pytest.raises(ConfigurationError):
            SegmentVizConfig(**{field: value})

    def test_questions_must_exist_in_session(self, session, opinion):
        from segmentviz.elements.question import Question

        config = SegmentVizConfig(grouping_questions_horizontal=[Question("region")])
        with pytest.raises(ConfigurationError):
            config.validate_against(session)

        config = SegmentVizConfig(response_question_keys=["missing||"])
        with pytest.raises(ConfigurationError):
            config.validate_against(session)

    def test_explicit_canvas_size_wins(self, session, age):
        config = SegmentVizConfig(
            grouping_questions_horizontal=[age.question], canvas_width=300.0
        )
        width, height = config.canvas_size(session)
        assert width == 300.0
        assert height == 40.0
