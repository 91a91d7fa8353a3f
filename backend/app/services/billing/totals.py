from decimal import Decimal, InvalidOperation
from typing import Iterable


def _field(item, name: str):
    if isinstance(item, dict):
        return item[name]
    return getattr(item, name)


def calculate_service_total(order_items: Iterable) -> int:
    """Sum of price * quantity over ordered menu items (dicts or objects)."""
    return sum(_field(i, 'price') * _field(i, 'quantity') for i in order_items)


def clamp_discount(discount_percent) -> Decimal:
    """Coerce a discount percentage into [0, 100]; anything unparsable is 0."""
    if discount_percent is None or isinstance(discount_percent, bool):
        return Decimal(0)
    try:
        value = Decimal(str(discount_percent).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if not value.is_finite():
        return Decimal(0)
    return min(Decimal(100), max(Decimal(0), value))


def assemble_bill(session_cost, service_total, discount_percent=0) -> Decimal:
    """Payable amount after a percentage discount.

    The result is not rounded again: a 15% discount on 45 500 pays 38 675.
    """
    discount = clamp_discount(discount_percent)
    gross = Decimal(str(session_cost)) + Decimal(str(service_total))
    return gross * (1 - discount / 100)
