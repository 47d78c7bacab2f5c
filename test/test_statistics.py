import pytest

from segmentviz.exceptions import ConfigurationError, DataIntegrityError
from segmentviz.statistics.lattice import build_split_lattice
from segmentviz.statistics.statistics import Statistics, compute_statistics
from segmentviz.statistics.update import (
    BasisResponse,
    propagate_to_split,
    update_all_splits,
    update_basis_split,
)

YOUNG_MALE, OLD_FEMALE, ALL = 0, 4, 8


@pytest.fixture
def scenario(respondent):
    """3 young males and 4 old females."""
    young_males = [respondent(age=1, gender=1, opinion=o) for o in (1, 1, 2)]
    old_females = [respondent(age=3, gender=2, opinion=o) for o in (3, 4, 4, 2)]
    return young_males + old_females


class TestUpdateBasisSplit:
    def test_counts_and_proportions(self, age, gender, opinion):
        lattice = build_split_lattice([age, gender], [opinion])
        split = lattice.splits[YOUNG_MALE]

        updated, diff = update_basis_split(
            YOUNG_MALE,
            split,
            [BasisResponse(1.0, {0: 0}), BasisResponse(1.0, {0: 0}), BasisResponse(2.0, {0: 2})],
            [opinion],
        )

        assert updated.total_count == 3
        assert updated.total_weight == 4.0
        rq = updated.response_questions[0]
        assert [rg.total_count for rg in rq.expanded] == [2, 0, 1, 0]
        assert [rg.proportion for rg in rq.expanded] == [0.5, 0.0, 0.5, 0.0]
        assert [rg.total_weight for rg in rq.collapsed] == [2.0, 2.0]
        assert [rg.proportion for rg in rq.collapsed] == [0.5, 0.5]

        assert diff.split_index == YOUNG_MALE
        assert diff.total_count == 3
        assert diff.response_questions[0].expanded[2].total_weight == 2.0

    def test_input_split_untouched(self, age, gender, opinion):
        lattice = build_split_lattice([age, gender], [opinion])
        split = lattice.splits[YOUNG_MALE]

        update_basis_split(YOUNG_MALE, split, [BasisResponse(1.0, {0: 1})], [opinion])

        assert split == build_split_lattice([age, gender], [opinion]).splits[YOUNG_MALE]

    def test_diff_holds_deltas_not_snapshots(self, age, gender, opinion):
        lattice = build_split_lattice([age, gender], [opinion])
        first, _ = update_basis_split(
            YOUNG_MALE, lattice.splits[YOUNG_MALE], [BasisResponse(1.0, {0: 0})], [opinion]
        )
        _, diff = update_basis_split(YOUNG_MALE, first, [BasisResponse(1.0, {0: 1})], [opinion])

        expanded = diff.response_questions[0].expanded
        assert diff.total_count == 1
        assert [rg.total_count for rg in expanded] == [0, 1, 0, 0]
        assert expanded[0].proportion == pytest.approx(-0.5)
        assert expanded[1].proportion == pytest.approx(0.5)

    @pytest.mark.parametrize("weight", [0.0, -1.0])
    def test_non_positive_weight_is_fatal(self, age, gender, opinion, weight):
        lattice = build_split_lattice([age, gender], [opinion])
        with pytest.raises(DataIntegrityError):
            update_basis_split(
                YOUNG_MALE, lattice.splits[YOUNG_MALE], [BasisResponse(weight, {0: 0})], [opinion]
            )


class TestPropagation:
    def test_proportion_identity(self, age, gender, opinion):
        lattice = build_split_lattice([age, gender], [opinion])
        splits = list(lattice.splits)
        splits[0], _ = update_basis_split(
            0, splits[0], [BasisResponse(1.5, {0: 0}), BasisResponse(0.5, {0: 3})], [opinion]
        )
        splits[3], _ = update_basis_split(
            3, splits[3], [BasisResponse(3.0, {0: 3}), BasisResponse(1.0, {0: 1})], [opinion]
        )

        aggregate, diff = propagate_to_split(6, splits[6], [splits[0], splits[3]])

        assert aggregate.total_count == 4
        assert aggregate.total_weight == pytest.approx(6.0)
        rq = aggregate.response_questions[0]
        for g_idx, rg in enumerate(rq.expanded):
            summed = splits[0].response_questions[0].expanded[g_idx].total_weight + (
                splits[3].response_questions[0].expanded[g_idx].total_weight
            )
            assert rg.total_weight == pytest.approx(summed)
            assert rg.proportion * rq.total_weight == pytest.approx(summed)
        assert sum(rg.proportion for rg in rq.collapsed) == pytest.approx(1.0)
        assert diff.total_count == 4


class TestStatistics:
    def test_age_gender_scenario(self, session, scenario):
        stats = Statistics(session)
        result = stats.update(scenario)
        splits = stats.get_splits()

        assert result.valid_count == 7
        assert result.invalid_count == 0
        assert result.total_processed == 7
        assert splits[YOUNG_MALE].total_count == 3
        assert splits[OLD_FEMALE].total_count == 4
        assert splits[ALL].total_count == 7

        everyone = splits[ALL].response_questions[0]
        assert [rg.total_count for rg in everyone.expanded] == [2, 2, 1, 2]
        assert [rg.proportion for rg in everyone.expanded] == pytest.approx(
            [2 / 7, 2 / 7, 1 / 7, 2 / 7]
        )
        assert [rg.proportion for rg in everyone.collapsed] == pytest.approx([4 / 7, 3 / 7])

        # Weighted union of the two basis splits
        ym = splits[YOUNG_MALE].response_questions[0]
        of = splits[OLD_FEMALE].response_questions[0]
        for g_idx, rg in enumerate(everyone.expanded):
            expected = (3 / 7) * ym.expanded[g_idx].proportion + (4 / 7) * of.expanded[g_idx].proportion
            assert rg.proportion == pytest.approx(expected)

    def test_partition_invariant(self, session, respondent):
        batch = [
            respondent(age=a, gender=g, opinion=o)
            for a in (1, 2, 3, 4)
            for g in (1, 2)
            for o in (1, 2, 3, 4, None)
        ]
        stats = Statistics(session)
        result = stats.update(batch)

        basis_total = sum(stats.splits[i].total_count for i in stats.basis_split_indices)
        assert basis_total == result.valid_count == 32
        assert result.invalid_count == 8

    def test_aggregation_identity(self, weighted_session, respondent):
        batch = [
            respondent(age=a, gender=g, opinion=o, weight=w)
            for a, g, o, w in [
                (1, 1, 1, 0.5),
                (2, 2, 2, 1.5),
                (3, 1, 3, 2.0),
                (4, 2, 4, 0.25),
                (1, 2, 1, 3.0),
                (3, 2, 2, 1.0),
            ]
        ]
        stats = Statistics(weighted_session, respondents=batch)

        for split in stats.splits:
            if split.is_basis:
                continue
            basis = [stats.splits[i] for i in split.basis_split_indices]
            assert split.total_weight == pytest.approx(sum(b.total_weight for b in basis))
            rq = split.response_questions[0]
            for g_idx, rg in enumerate(rq.expanded):
                group_weight = sum(b.response_questions[0].expanded[g_idx].total_weight for b in basis)
                assert rg.proportion * rq.total_weight == pytest.approx(group_weight)

    def test_empty_batch_is_idempotent(self, session, scenario):
        stats = Statistics(session, respondents=scenario)
        before = stats.get_splits()

        result = stats.update([])

        assert stats.get_splits() == before
        assert all(diff.is_zero for diff in result.diffs)
        assert result.deltas == ()
        assert len(result.diffs) == 9

    def test_untouched_splits_get_zero_diffs(self, session, respondent):
        stats = Statistics(session)
        result = stats.update([respondent(age=1, gender=1)])

        changed = {d.split_index for d in result.diffs if not d.is_zero}
        assert changed == {0, 2, 6, 8}

    def test_deltas_for_basis_splits(self, session, respondent):
        stats = Statistics(session)
        stats.update([respondent(age=1, gender=1, opinion=2)])
        result = stats.update([respondent(age=1, gender=1, opinion=2), respondent(age=3, gender=2, opinion=1)])

        by_split = {(d.split_index, d.expanded_group_index): d for d in result.deltas}
        assert set(by_split) == {(0, 1), (4, 0)}
        assert (by_split[(0, 1)].count_before, by_split[(0, 1)].count_after) == (1, 2)
        assert by_split[(4, 0)].delta == 1

    def test_cumulative_counts(self, session, respondent):
        stats = Statistics(session)
        stats.update([respondent(), respondent(age=None)])
        stats.update([respondent()])

        assert stats.valid_count == 2
        assert stats.invalid_count == 1
        assert stats.total_processed == 3

    def test_integrity_error_propagates(self, weighted_session, respondent):
        stats = Statistics(weighted_session)
        with pytest.raises(DataIntegrityError):
            stats.update([respondent(weight=-2.0)])

    def test_update_all_splits_rejects_aggregate_index(self, age, gender, opinion):
        lattice = build_split_lattice([age, gender], [opinion])
        with pytest.raises(ValueError):
            update_all_splits(
                lattice.splits,
                lattice.basis_split_indices,
                [(ALL, BasisResponse(1.0, {0: 0}))],
                [opinion],
            )


def test_compute_statistics_resumes_from_stored_splits(session, scenario):
    first = compute_statistics(session, scenario[:4])
    resumed = compute_statistics(session, scenario[4:], existing_splits=first.splits)
    one_shot = compute_statistics(session, scenario)

    assert resumed.valid_count == 3
    for a, b in zip(resumed.splits, one_shot.splits):
        assert a.total_count == b.total_count
        assert a.total_weight == pytest.approx(b.total_weight)
        assert [rg.proportion for rg in a.response_questions[0].expanded] == pytest.approx(
            [rg.proportion for rg in b.response_questions[0].expanded]
        )


def test_stored_splits_must_fit_configuration(session, age, opinion, scenario):
    from segmentviz.statistics.config import SessionConfig

    stored = compute_statistics(session, scenario).splits
    smaller = SessionConfig(grouping_questions=[age], response_questions=[opinion])
    with pytest.raises(ConfigurationError):
        Statistics(smaller, existing_splits=stored)


def test_compute_statistics_is_traced(session, scenario):
    from segmentviz.logger import viz_logger

    viz_logger.clear()
    compute_statistics(session, scenario)

    transcript = viz_logger.get_transcript()
    assert "Executing compute_statistics" in transcript
    assert "Split statistics after update" in transcript
    assert "compute_statistics completed successfully" in transcript


def test_skipped_respondents_are_reported(session, respondent):
    from segmentviz.logger import viz_logger

    viz_logger.clear()
    Statistics(session).update([respondent(), respondent(age=None), respondent(opinion=9)])

    assert "Skipped 2 of 3 respondents failing validation" in viz_logger.get_transcript()
