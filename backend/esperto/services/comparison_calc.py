"""
Totals for a shopping-list comparison.

Prices are keyed by store id; missing, zero or negative prices are ignored.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional

TWO_PLACES = Decimal("0.01")


def _round(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _valid_price(value) -> Optional[Decimal]:
    if value is None:
        return None
    price = Decimal(str(value))
    if price.is_nan() or price <= 0:
        return None
    return price


def calculate_totals_by_store(
    items: Iterable[tuple[Mapping[int, object], Decimal]],
    store_ids: list[int],
) -> dict[int, Decimal]:
    """Basket total per store. `items` are (prices by store id, quantity) pairs."""
    items = list(items)
    totals = {}
    for store_id in store_ids:
        total = Decimal("0")
        for prices, quantity in items:
            price = _valid_price(prices.get(store_id))
            if price is not None:
                total += price * Decimal(str(quantity or 1))
        totals[store_id] = _round(total)
    return totals


def calculate_optimal_total(
    items: Iterable[tuple[Mapping[int, object], Decimal]],
    store_ids: list[int],
) -> Decimal:
    """Basket total buying every product at its cheapest store."""
    total = Decimal("0")
    for prices, quantity in items:
        candidates = [p for p in (_valid_price(prices.get(s)) for s in store_ids) if p is not None]
        if candidates:
            total += min(candidates) * Decimal(str(quantity or 1))
    return _round(total)


def summarize_totals(totals: Mapping[int, Decimal]) -> dict[str, Decimal]:
    values = list(totals.values())
    if not values:
        zero = _round(Decimal("0"))
        return {"highest": zero, "lowest": zero, "average": zero}
    return {
        "highest": _round(max(values)),
        "lowest": _round(min(values)),
        "average": _round(sum(values, Decimal("0")) / len(values)),
    }
