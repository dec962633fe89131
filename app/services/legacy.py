"""
One-time adapter for promotion records saved by older versions of the storefront.

Two historical shapes exist besides the canonical one:

* ``status`` enum + object-shaped ``conditions`` + a ``discount`` object
  (``{"type": "percentage", "value": 10, "applies_to": "total"}``);
* ``active`` boolean + flat ``config`` holding ``discount_type``,
  ``discount_value`` and the order conditions themselves.

``from_legacy`` turns either into the keyword arguments of ``Promotion``.
"""
import logging
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

_CONDITION_KEYS = ("min_order_amount", "min_items_count")


def _parse_datetime(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    # "2024-05-01T00:00:00Z" (JS toISOString)
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _int_ids(values: Any) -> list[int]:
    ids = []
    for value in values or []:
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            logger.warning(f"Dropping non-numeric id {value!r} from legacy promotion")
    return ids


def _conditions_from(source: dict) -> list[dict]:
    conditions = []
    for key in _CONDITION_KEYS:
        if source.get(key):
            conditions.append({"type": key, "value": int(source[key])})
    for key in ("product_ids", "category_ids"):
        ids = _int_ids(source.get(key))
        if ids:
            conditions.append({"type": key, "ids": ids})
    return conditions


def _time_window_from(source: dict) -> dict | None:
    window = {}
    if source.get("days_of_week"):
        window["days_of_week"] = [int(d) for d in source["days_of_week"]]
    if source.get("hours_of_day"):
        window["hours_of_day"] = dict(source["hours_of_day"])
    return window or None


def _discount_config(
    discount_type: str | None,
    value: Any,
    applies_to: str | None,
    max_discount_amount: Any,
    scope: dict,
) -> dict:
    product_ids = _int_ids(scope.get("product_ids")) or None
    category_ids = _int_ids(scope.get("category_ids")) or None

    if discount_type == "free_shipping":
        return {"kind": "free_shipping"}

    if discount_type == "buy_x_get_y":
        return {
            "kind": "buy_x_get_y",
            "buy_quantity": int(scope.get("buy_quantity") or 1),
            "get_quantity": int(scope.get("get_quantity") or 1),
            "product_ids": product_ids,
            "category_ids": category_ids,
        }

    config = {
        "kind": "fixed_amount" if discount_type == "fixed_amount" else "percentage",
        "value": value or 0,
        "applies_to": applies_to or "total",
        "product_ids": product_ids,
        "category_ids": category_ids,
    }
    if config["kind"] == "fixed_amount":
        config["value"] = int(config["value"])
    elif max_discount_amount:
        config["max_discount_amount"] = int(max_discount_amount)
    return config


def is_canonical(record: dict) -> bool:
    return isinstance(record.get("conditions"), list) and "kind" in (record.get("config") or {})


def from_legacy(record: dict) -> dict:
    """Keyword arguments for ``Promotion`` built from a record of any known shape."""
    if is_canonical(record):
        return dict(record)

    conditions = record.get("conditions")
    conditions = conditions if isinstance(conditions, dict) else {}
    config = record.get("config") or {}
    discount = record.get("discount") or {}

    if "active" in record:
        active = bool(record["active"])
    else:
        active = record.get("status") == "active"

    data: dict[str, Any] = {
        "name": record.get("name") or "Promotion",
        "description": record.get("description"),
        "active": active,
        "priority": int(record.get("priority") or 0),
        "stackable": bool(record.get("stackable", True)),
        "usage_count": int(record.get("usage_count") or 0),
        "visuals": record.get("visuals"),
    }

    start = _parse_datetime(record.get("start_date") or conditions.get("start_date"))
    data["start_date"] = start or _parse_datetime(record.get("created_at")) or datetime.now(timezone.utc)
    data["end_date"] = _parse_datetime(record.get("end_date") or conditions.get("end_date"))

    usage_limit = record.get("usage_limit") or conditions.get("max_uses_total")
    data["usage_limit_total"] = int(usage_limit) if usage_limit else None
    per_customer = conditions.get("max_uses_per_customer") or config.get("max_uses_per_customer")
    data["max_uses_per_customer"] = int(per_customer) if per_customer else None
    data["promo_code"] = conditions.get("promo_code") or config.get("promo_code") or None

    if config:
        # flat config variant: conditions live inside config
        scope = dict(config.get("buy_x_get_y_config") or {})
        scope.setdefault("product_ids", config.get("product_ids"))
        scope.setdefault("category_ids", config.get("category_ids"))
        listed = record.get("conditions") if isinstance(record.get("conditions"), list) else []
        data["conditions"] = list(listed) + _conditions_from(config)
        data["time_window"] = _time_window_from(config)
        data["config"] = _discount_config(
            config.get("discount_type"),
            config.get("discount_value"),
            config.get("applies_to"),
            config.get("max_discount_amount"),
            scope,
        )
    else:
        legacy_type = record.get("type")
        if legacy_type in ("buy_x_get_y", "free_shipping"):
            discount_type = legacy_type
        else:
            discount_type = discount.get("type")
        applies_to = "shipping" if legacy_type == "free_shipping" else discount.get("applies_to")
        data["conditions"] = _conditions_from(conditions)
        data["time_window"] = _time_window_from(conditions)
        data["config"] = _discount_config(
            discount_type,
            discount.get("value"),
            applies_to,
            discount.get("max_discount_amount"),
            conditions,
        )

    return data
