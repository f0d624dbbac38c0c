"""
Unit tests for growth series aggregation.

Tests cover:
- Child filter, visit deduplication and age ordering
- Single-child series with gaps
- Multi-child age rows and same-age collisions
- Axis domains (padding, floor at zero, percentile mode)
- Idempotence and input-order independence
"""
from datetime import date

import pytest

from services.growth import (
    AgeRow,
    AxisDomain,
    GrowthMetric,
    GrowthPoint,
    GrowthSeriesAggregator,
    SeriesMode,
    build_series,
    compute_axis_domain,
)


@pytest.fixture
def family_points(make_point):
    """Two children measured at partly overlapping ages."""
    return [
        make_point(1, child_id=1, age_months=0, visit_date=date(2024, 1, 1), child_name="Ella", weight=8.0, height=20.0),
        make_point(2, child_id=1, age_months=6, visit_date=date(2024, 7, 1), child_name="Ella", weight=16.0, height=26.0),
        make_point(3, child_id=2, age_months=6, visit_date=date(2023, 3, 1), child_name="Matt", weight=17.0),
        make_point(4, child_id=2, age_months=12, visit_date=date(2023, 9, 1), child_name="Matt", weight=21.0, head=18.0),
    ]


# =============================================================================
# FILTER, DEDUPLICATE, SORT
# =============================================================================

class TestPointPreparation:
    """Tests for filtering, deduplication and ordering."""

    def test_child_filter(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT, child_filter=2)
        assert {p.child_id for p in output.points} == {2}

    def test_duplicate_visit_kept_once_first_wins(self, growth_aggregator, make_point):
        points = [
            make_point(7, age_months=3, weight=12.0),
            make_point(7, age_months=3, weight=12.5),
        ]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)

        assert len(output.points) == 1
        assert output.points[0].get(GrowthMetric.WEIGHT) == 12.0

    def test_birth_points_dedup_per_child(self, growth_aggregator, make_point):
        """Points without a visit id are distinct per child."""
        points = [
            make_point(None, child_id=1, weight=7.5),
            make_point(None, child_id=2, weight=8.1),
        ]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)
        assert len(output.points) == 2

    def test_sorted_by_age(self, growth_aggregator, make_point):
        points = [
            make_point(3, age_months=12, weight=20.0),
            make_point(1, age_months=0, weight=7.0),
            make_point(2, age_months=6, weight=15.0),
        ]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)
        assert [p.age_months for p in output.points] == [0, 6, 12]

    def test_input_order_does_not_matter(self, growth_aggregator, family_points):
        forward = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        backward = growth_aggregator.build_series(list(reversed(family_points)), GrowthMetric.WEIGHT)

        assert forward.points == backward.points
        assert forward.rows == backward.rows
        assert forward.left == backward.left

    def test_rerunning_on_output_is_stable(self, growth_aggregator, family_points):
        first = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        second = growth_aggregator.build_series(first.points, GrowthMetric.WEIGHT)

        assert second.points == first.points
        assert second.values == first.values
        assert second.rows == first.rows
        assert second.children == first.children
        assert (second.left, second.right) == (first.left, first.right)


# =============================================================================
# SINGLE CHILD
# =============================================================================

class TestSingleChild:
    """Tests for the single-child series shape."""

    def test_values_follow_age(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT, child_filter=1)

        assert not output.multi_child
        assert not output.connect_gaps
        assert [(v.age_months, v.value) for v in output.values] == [(0, 8.0), (6, 16.0)]

    def test_missing_value_is_a_gap(self, growth_aggregator, make_point):
        points = [
            make_point(1, age_months=0, weight=7.0),
            make_point(2, age_months=2, height=23.0),  # no weight this visit
            make_point(3, age_months=4, weight=13.0),
        ]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)

        assert [v.value for v in output.values] == [7.0, None, 13.0]

    def test_point_without_any_measurement_is_dropped(self, growth_aggregator, make_point):
        points = [
            make_point(1, age_months=0, weight=7.0),
            make_point(2, age_months=2),
        ]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)

        assert [v.visit_id for v in output.values] == [1]

    def test_percentile_mode_reads_percentiles(self, growth_aggregator, make_point):
        points = [make_point(1, age_months=1, weight=9.0, weight_pct=42.0)]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT, mode=SeriesMode.PERCENTILE)

        assert output.values[0].value == 42.0

    def test_one_child_without_filter_is_not_multi_child(self, growth_aggregator, make_point):
        points = [make_point(1, age_months=1, weight=9.0)]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)
        assert not output.multi_child


# =============================================================================
# MULTI CHILD
# =============================================================================

class TestMultiChild:
    """Tests for the age-indexed multi-child rows."""

    def test_multi_child_when_unfiltered(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        assert output.multi_child
        assert output.connect_gaps

    def test_rows_cover_union_of_ages(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        assert [row.age_months for row in output.rows] == [0, 6, 12]

    def test_every_row_has_a_cell_per_metric_and_child(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        expected_keys = {(metric, child) for metric in GrowthMetric for child in (1, 2)}

        for row in output.rows:
            assert set(row.values) == expected_keys

    def test_absent_child_is_null(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        first = output.rows[0]

        assert first.get(GrowthMetric.WEIGHT, 1) == 8.0
        assert first.get(GrowthMetric.WEIGHT, 2) is None

    def test_shared_age_holds_both_children(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        six_months = output.rows[1]

        assert six_months.get(GrowthMetric.WEIGHT, 1) == 16.0
        assert six_months.get(GrowthMetric.WEIGHT, 2) == 17.0

    def test_same_age_collision_keeps_latest_visit(self, growth_aggregator, family_points, make_point):
        points = family_points + [
            make_point(5, child_id=1, age_months=6, visit_date=date(2024, 7, 20), child_name="Ella", weight=16.4),
        ]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)

        assert output.rows[1].get(GrowthMetric.WEIGHT, 1) == 16.4

    def test_children_ordered_by_id_with_palette_colors(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(list(reversed(family_points)), GrowthMetric.WEIGHT)

        assert [(c.id, c.name) for c in output.children] == [(1, "Ella"), (2, "Matt")]
        assert [c.color for c in output.children] == ["#3b82f6", "#10b981"]

    def test_row_record_uses_column_prefixes(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        record = output.rows[2].to_record()

        assert record["age_months"] == 12
        assert record["weight_2"] == 21.0
        assert record["head_2"] == 18.0
        assert record["weight_1"] is None
        assert set(record) == {
            "age_months",
            "weight_1", "height_1", "head_1", "bmi_1",
            "weight_2", "height_2", "head_2", "bmi_2",
        }

    def test_age_row_get_accepts_metric_value(self):
        row = AgeRow(age_months=3, values={(GrowthMetric.BMI, 4): 16.2})
        assert row.get("bmi", 4) == 16.2


# =============================================================================
# AXIS DOMAINS
# =============================================================================

class TestAxisDomains:
    """Tests for padded left/right axis domains."""

    def test_padding_is_ten_percent_of_range(self, growth_aggregator, make_point):
        points = [
            make_point(1, age_months=0, weight=10.0),
            make_point(2, age_months=1, weight=12.0),
            make_point(3, age_months=2, weight=14.0),
        ]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)

        assert output.left.as_list() == pytest.approx([9.6, 14.4])

    def test_no_values_gives_default_domain(self, growth_aggregator):
        output = growth_aggregator.build_series([], GrowthMetric.WEIGHT)

        assert output.left == AxisDomain(0, 100)
        assert output.right == AxisDomain(0, 100)
        assert output.is_empty()

    def test_right_axis_default_when_only_left_metrics_visible(self, growth_aggregator, make_point):
        points = [make_point(1, age_months=0, weight=10.0, head=14.0)]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)
        assert output.right == AxisDomain(0, 100)

    def test_single_value_padded_by_its_magnitude(self, growth_aggregator, make_point):
        output = growth_aggregator.build_series([make_point(1, weight=10.0)], GrowthMetric.WEIGHT)
        assert output.left.as_list() == pytest.approx([9.0, 11.0])

    def test_left_axis_floors_at_zero(self, growth_aggregator, make_point):
        points = [make_point(1, age_months=0, weight=1.0), make_point(2, age_months=1, weight=20.0)]
        output = growth_aggregator.build_series(points, GrowthMetric.WEIGHT)
        assert output.left.as_list() == pytest.approx([0.0, 21.9])

    def test_right_axis_does_not_floor(self, growth_aggregator, make_point):
        points = [make_point(1, age_months=0, head=1.0), make_point(2, age_months=1, head=20.0)]
        output = growth_aggregator.build_series(points, GrowthMetric.HEAD_CIRCUMFERENCE)
        assert output.right.as_list() == pytest.approx([-0.9, 21.9])

    def test_visible_metrics_share_an_axis(self, growth_aggregator, make_point):
        points = [make_point(1, age_months=0, weight=10.0, height=30.0)]
        output = growth_aggregator.build_series(
            points, GrowthMetric.WEIGHT, visible_metrics=[GrowthMetric.HEIGHT, GrowthMetric.WEIGHT]
        )

        assert output.visible_metrics == (GrowthMetric.WEIGHT, GrowthMetric.HEIGHT)
        assert output.left.as_list() == pytest.approx([8.0, 32.0])

    def test_multi_child_domain_scans_rows(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT)
        # weights 8, 16, 17, 21 -> range 13, padding 1.3
        assert output.left.as_list() == pytest.approx([6.7, 22.3])

    def test_percentile_mode_fixed_domain(self, growth_aggregator, family_points):
        output = growth_aggregator.build_series(family_points, GrowthMetric.WEIGHT, mode=SeriesMode.PERCENTILE)
        assert output.left == AxisDomain(0, 100)
        assert output.right == AxisDomain(0, 100)

    def test_custom_padding_ratio(self, make_point):
        aggregator = GrowthSeriesAggregator(padding_ratio=0.5)
        points = [make_point(1, age_months=0, weight=10.0), make_point(2, age_months=1, weight=14.0)]
        output = aggregator.build_series(points, GrowthMetric.WEIGHT)
        assert output.left.as_list() == pytest.approx([8.0, 16.0])

    def test_compute_axis_domain_directly(self):
        assert compute_axis_domain([]) == AxisDomain(0, 100)
        assert compute_axis_domain([5.0, 15.0], floor_at_zero=True).as_list() == pytest.approx([4.0, 16.0])


# =============================================================================
# WIRE RECORDS
# =============================================================================

class TestGrowthPointRecords:
    """Tests for GrowthPoint.from_record / to_record."""

    def test_from_record_parses_strings(self):
        point = GrowthPoint.from_record({
            "visit_id": 3,
            "child_id": 1,
            "age_months": 4,
            "visit_date": "2024-05-01",
            "weight_value": "13.25",
            "bmi_value": "abc",
        })

        assert point.visit_date == date(2024, 5, 1)
        assert point.get(GrowthMetric.WEIGHT) == 13.25
        assert point.get(GrowthMetric.BMI) is None

    def test_from_record_bad_date_returns_none(self):
        assert GrowthPoint.from_record({"child_id": 1, "visit_date": "someday"}) is None

    def test_to_record_flat_fields(self, make_point):
        record = make_point(9, child_id=2, age_months=5, weight=14.0, weight_pct=51.0).to_record()

        assert record["visit_id"] == 9
        assert record["visit_date"] == "2024-01-01"
        assert record["weight_value"] == 14.0
        assert record["weight_percentile"] == 51.0
        assert record["head_circumference_value"] is None

    def test_module_level_build_series(self, family_points):
        output = build_series(family_points, GrowthMetric.HEIGHT, child_filter=1)
        assert [v.value for v in output.values] == [20.0, 26.0]
