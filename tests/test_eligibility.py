from datetime import datetime, timedelta, timezone

import pytest

from app.services.eligibility import (
    day_of_week,
    is_applicable,
    is_promotion_currently_valid,
    is_promotion_valid_at_time,
    parse_hhmm,
)
from app.services.discount_calculator import compute_discount
from factories import NOW, build_order, build_promotion


WEEKDAYS_9_TO_5 = {"days_of_week": [1, 2, 3, 4, 5], "hours_of_day": {"start": "09:00", "end": "17:00"}}


def test_day_of_week_starts_on_sunday():
    assert day_of_week(datetime(2024, 6, 2, tzinfo=timezone.utc)) == 0  # Sunday
    assert day_of_week(NOW) == 1  # Monday
    assert day_of_week(datetime(2024, 6, 8, tzinfo=timezone.utc)) == 6  # Saturday


@pytest.mark.parametrize("text, expected", [("09:00", 540), ("17:00", 1020), ("00:00", 0), ("25:00", None), ("abc", None)])
def test_parse_hhmm(text, expected):
    assert parse_hhmm(text) == expected


def test_inactive_promotion_is_not_valid():
    assert not is_promotion_currently_valid(build_promotion(active=False), NOW)


def test_future_and_expired_promotions_are_not_valid():
    future = build_promotion(start_date=NOW + timedelta(hours=1))
    expired = build_promotion(end_date=NOW - timedelta(seconds=1))
    open_ended = build_promotion(end_date=None)

    assert not is_promotion_currently_valid(future, NOW)
    assert not is_promotion_currently_valid(expired, NOW)
    assert is_promotion_currently_valid(open_ended, NOW)


def test_naive_dates_are_read_as_utc():
    promo = build_promotion(start_date=datetime(2024, 6, 3, 11, 0), end_date=datetime(2024, 6, 3, 13, 0))
    assert is_promotion_currently_valid(promo, NOW)


def test_usage_cap_reached_is_not_valid():
    assert not is_promotion_currently_valid(build_promotion(usage_limit_total=1, usage_count=1), NOW)
    assert is_promotion_currently_valid(build_promotion(usage_limit_total=2, usage_count=1), NOW)


def test_time_window_saturday_is_outside_weekdays():
    promo = build_promotion(time_window=WEEKDAYS_9_TO_5)
    saturday_10 = datetime(2024, 6, 8, 10, 0, tzinfo=timezone.utc)
    assert not is_promotion_valid_at_time(promo, saturday_10)


def test_time_window_bounds_are_inclusive():
    promo = build_promotion(time_window=WEEKDAYS_9_TO_5)
    monday = datetime(2024, 6, 3, tzinfo=timezone.utc)

    assert is_promotion_valid_at_time(promo, monday.replace(hour=16, minute=59))
    assert is_promotion_valid_at_time(promo, monday.replace(hour=17, minute=0))
    assert is_promotion_valid_at_time(promo, monday.replace(hour=9, minute=0))
    assert not is_promotion_valid_at_time(promo, monday.replace(hour=8, minute=59))
    assert not is_promotion_valid_at_time(promo, monday.replace(hour=17, minute=1))


def test_time_window_crossing_midnight_never_matches():
    promo = build_promotion(time_window={"hours_of_day": {"start": "22:00", "end": "02:00"}})
    late = datetime(2024, 6, 3, 23, 0, tzinfo=timezone.utc)
    early = datetime(2024, 6, 3, 1, 0, tzinfo=timezone.utc)

    assert not is_promotion_valid_at_time(promo, late)
    assert not is_promotion_valid_at_time(promo, early)


def test_min_order_amount():
    promo = build_promotion(conditions=[{"type": "min_order_amount", "value": 40000}])

    assert is_applicable(promo, build_order((1, None, 45000, 1)), NOW)
    assert is_applicable(promo, build_order((1, None, 20000, 2)), NOW)
    assert not is_applicable(promo, build_order((1, None, 39999, 1)), NOW)


def test_min_items_count():
    promo = build_promotion(conditions=[{"type": "min_items_count", "value": 3}])

    assert is_applicable(promo, build_order((1, None, 100, 2), (2, None, 100, 1)), NOW)
    assert not is_applicable(promo, build_order((1, None, 100, 2)), NOW)


def test_every_targeting_condition_must_match():
    promo = build_promotion(
        conditions=[
            {"type": "product_ids", "ids": [10]},
            {"type": "category_ids", "ids": [5]},
        ]
    )

    assert is_applicable(promo, build_order((10, 1, 100, 1), (20, 5, 100, 1)), NOW)
    assert not is_applicable(promo, build_order((10, 1, 100, 1)), NOW)
    assert not is_applicable(promo, build_order((20, 5, 100, 1)), NOW)


def test_scoped_discount_without_scope_is_not_applicable():
    promo = build_promotion(config={"kind": "percentage", "value": 10, "applies_to": "products"})
    assert not is_applicable(promo, build_order((1, 1, 1000, 1)), NOW)

    promo = build_promotion(config={"kind": "fixed_amount", "value": 500, "applies_to": "category"})
    assert not is_applicable(promo, build_order((1, 1, 1000, 1)), NOW)


def test_scoped_discount_with_targeting_condition_is_applicable():
    promo = build_promotion(
        conditions=[{"type": "category_ids", "ids": [1]}],
        config={"kind": "percentage", "value": 10, "applies_to": "category"},
    )
    assert is_applicable(promo, build_order((1, 1, 1000, 1)), NOW)


def test_customer_limit():
    promo = build_promotion(max_uses_per_customer=2)
    order = build_order((1, None, 1000, 1), customer_phone="+221700000000")

    assert is_applicable(promo, order, NOW, customer_usage_count=1)
    assert not is_applicable(promo, order, NOW, customer_usage_count=2)


def test_scope_listed_only_in_discount_config_is_applicable():
    # ids held by the config alone scope the discount without any targeting condition
    promo = build_promotion(
        config={"kind": "percentage", "value": 10, "applies_to": "products", "product_ids": [1]},
    )
    assert promo.conditions == []
    assert is_applicable(promo, build_order((1, 1, 10000, 1)), NOW)
    assert compute_discount(promo, build_order((1, 1, 10000, 1), (2, 1, 5000, 1))) == 1000
