from app.services.discount_calculator import compute_discount, is_shipping_promotion, round_amount
from factories import build_order, build_promotion


def test_percentage_on_total():
    promo = build_promotion(config={"kind": "percentage", "value": 10, "applies_to": "total"})
    assert compute_discount(promo, build_order((1, None, 45000, 1))) == 4500


def test_percentage_respects_max_discount_amount():
    promo = build_promotion(
        config={"kind": "percentage", "value": 50, "applies_to": "total", "max_discount_amount": 20000}
    )
    assert compute_discount(promo, build_order((1, None, 100000, 1))) == 20000


def test_percentage_rounds_to_whole_units():
    promo = build_promotion(config={"kind": "percentage", "value": 15, "applies_to": "total"})
    # 15% of 1003 = 150.45
    assert compute_discount(promo, build_order((1, None, 1003, 1))) == 150
    assert round_amount(2.5) == 3
    assert round_amount(2.49) == 2


def test_percentage_on_products_only_counts_listed_products():
    promo = build_promotion(
        config={"kind": "percentage", "value": 20, "applies_to": "products", "product_ids": [1]}
    )
    order = build_order((1, None, 1000, 2), (2, None, 5000, 1))
    assert compute_discount(promo, order) == 400


def test_percentage_on_category():
    promo = build_promotion(
        config={"kind": "percentage", "value": 10, "applies_to": "category", "category_ids": [7]}
    )
    order = build_order((1, 7, 3000, 1), (2, 8, 5000, 1), (3, 7, 2000, 1))
    assert compute_discount(promo, order) == 500


def test_scope_falls_back_to_targeting_conditions():
    promo = build_promotion(
        conditions=[{"type": "product_ids", "ids": [2]}],
        config={"kind": "percentage", "value": 50, "applies_to": "products"},
    )
    order = build_order((1, None, 1000, 1), (2, None, 3000, 1))
    assert compute_discount(promo, order) == 1500


def test_shipping_scope_is_never_a_line_discount():
    promo = build_promotion(config={"kind": "percentage", "value": 100, "applies_to": "shipping"})
    assert compute_discount(promo, build_order((1, None, 1000, 1))) == 0
    assert is_shipping_promotion(promo)
    assert is_shipping_promotion(build_promotion(config={"kind": "free_shipping"}))
    assert not is_shipping_promotion(build_promotion())


def test_fixed_amount_is_capped_at_scope():
    promo = build_promotion(config={"kind": "fixed_amount", "value": 5000, "applies_to": "total"})
    assert compute_discount(promo, build_order((1, None, 45000, 1))) == 5000
    assert compute_discount(promo, build_order((1, None, 3000, 1))) == 3000

    scoped = build_promotion(
        config={"kind": "fixed_amount", "value": 5000, "applies_to": "products", "product_ids": [2]}
    )
    assert compute_discount(scoped, build_order((1, None, 45000, 1), (2, None, 1200, 1))) == 1200


def test_buy_two_get_one_gives_cheapest_unit():
    promo = build_promotion(config={"kind": "buy_x_get_y", "buy_quantity": 2, "get_quantity": 1})
    order = build_order((1, None, 10000, 1), (2, None, 8000, 1), (3, None, 12000, 1))
    assert compute_discount(promo, order) == 8000


def test_buy_x_get_y_scoped_to_products():
    promo = build_promotion(
        config={"kind": "buy_x_get_y", "buy_quantity": 1, "get_quantity": 1, "product_ids": [1]}
    )
    order = build_order((1, None, 900, 5), (2, None, 100, 10))
    # 5 units -> 2 full cycles -> 2 free units at 900
    assert compute_discount(promo, order) == 1800


def test_buy_x_get_y_scope_falls_back_to_targeting_conditions():
    promo = build_promotion(
        conditions=[{"type": "category_ids", "ids": [3]}],
        config={"kind": "buy_x_get_y", "buy_quantity": 2, "get_quantity": 1},
    )
    # pizzas (category 3) only: the 500 fries unit from category 4 is not given away
    order = build_order((1, 3, 9000, 3), (2, 4, 500, 1))
    assert compute_discount(promo, order) == 9000


def test_buy_x_get_y_without_enough_units():
    promo = build_promotion(config={"kind": "buy_x_get_y", "buy_quantity": 2, "get_quantity": 1})
    assert compute_discount(promo, build_order((1, None, 1000, 2))) == 0
    assert compute_discount(promo, build_order()) == 0


def test_discount_never_negative_nor_above_subtotal():
    order = build_order((1, None, 700, 1))
    configs = [
        {"kind": "percentage", "value": 100, "applies_to": "total"},
        {"kind": "fixed_amount", "value": 10**6, "applies_to": "total"},
        {"kind": "buy_x_get_y", "buy_quantity": 1, "get_quantity": 1},
        {"kind": "free_shipping"},
    ]
    for config in configs:
        discount = compute_discount(build_promotion(config=config), order)
        assert 0 <= discount <= order.subtotal
