"""
Unit tests for weight velocity.
"""
from datetime import date

from services.growth import VelocityPoint, calculate_weight_velocity


def test_velocity_per_thirty_days(make_point):
    points = [
        make_point(1, visit_date=date(2024, 1, 1), weight=10.0),
        make_point(2, age_months=1, visit_date=date(2024, 1, 31), weight=12.0),
        make_point(3, age_months=2, visit_date=date(2024, 3, 1), weight=13.0),
    ]
    velocities = calculate_weight_velocity(points)

    assert velocities == [
        VelocityPoint(child_id=1, visit_date=date(2024, 1, 31), velocity=2.0, days=30),
        VelocityPoint(child_id=1, visit_date=date(2024, 3, 1), velocity=1.0, days=30),
    ]


def test_ordered_by_visit_date_not_input_order(make_point):
    points = [
        make_point(2, age_months=1, visit_date=date(2024, 1, 31), weight=12.0),
        make_point(1, visit_date=date(2024, 1, 1), weight=10.0),
    ]
    assert calculate_weight_velocity(points)[0].velocity == 2.0


def test_same_day_counts_as_one_day(make_point):
    points = [
        make_point(1, visit_date=date(2024, 1, 1), weight=10.0),
        make_point(2, visit_date=date(2024, 1, 1), weight=10.5),
    ]
    velocity = calculate_weight_velocity(points)[0]

    assert velocity.days == 1
    assert velocity.velocity == 15.0


def test_single_point_gives_nothing(make_point):
    assert calculate_weight_velocity([make_point(1, weight=10.0)]) == []


def test_points_without_weight_ignored(make_point):
    points = [
        make_point(1, visit_date=date(2024, 1, 1), weight=10.0),
        make_point(2, visit_date=date(2024, 1, 15), height=22.0),
        make_point(3, visit_date=date(2024, 1, 31), weight=11.0),
    ]
    velocities = calculate_weight_velocity(points)

    assert len(velocities) == 1
    assert velocities[0].days == 30


def test_children_kept_separate(make_point):
    points = [
        make_point(1, child_id=2, visit_date=date(2024, 1, 1), weight=20.0),
        make_point(2, child_id=1, visit_date=date(2024, 1, 1), weight=10.0),
        make_point(3, child_id=2, visit_date=date(2024, 1, 31), weight=21.0),
        make_point(4, child_id=1, visit_date=date(2024, 1, 31), weight=11.5),
    ]
    velocities = calculate_weight_velocity(points)

    assert [(v.child_id, v.velocity) for v in velocities] == [(1, 1.5), (2, 1.0)]


def test_weight_loss_is_negative(make_point):
    points = [
        make_point(1, visit_date=date(2024, 1, 1), weight=12.0),
        make_point(2, visit_date=date(2024, 1, 31), weight=11.0),
    ]
    assert calculate_weight_velocity(points)[0].velocity == -1.0


def test_velocity_rounds_half_up(make_point):
    points = [
        make_point(1, visit_date=date(2024, 1, 1), weight=10.0),
        make_point(2, age_months=1, visit_date=date(2024, 1, 31), weight=10.25),
    ]
    assert calculate_weight_velocity(points)[0].velocity == 0.3
