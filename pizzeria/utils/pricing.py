"""Server-side order pricing. Client prices are advisory only."""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pizzeria.model.menu import ChoiceItem, MenuItem
from pizzeria.utils.helper import money

logger = logging.getLogger(__name__)

# a legacy client price is trusted only within this band around the base price
MIN_PRICE_RATIO = Decimal("0.5")
MAX_PRICE_RATIO = Decimal("2")


def choice_item_ids(options: Any) -> List[int]:
    """Choice item ids from the array-of-choices option shape; [] for the legacy object shape."""
    if not isinstance(options, list):
        return []
    ids = []
    for entry in options:
        if isinstance(entry, dict):
            raw = entry.get("choiceItemId", entry.get("itemId"))
            if isinstance(raw, int) and not isinstance(raw, bool):
                ids.append(raw)
            elif isinstance(raw, str) and raw.isdigit():
                ids.append(int(raw))
    return ids


def unit_price(menu_item: MenuItem, options: Any, client_price: Optional[float],
               choice_items: Dict[int, ChoiceItem]) -> Decimal:
    base = money(menu_item.base_price)
    if isinstance(options, list):
        extras = sum(
            (money(choice_items[i].price) for i in choice_item_ids(options) if i in choice_items),
            Decimal("0.00"),
        )
        return money(base + extras)

    # legacy {size, toppings} objects carry no ids, so fall back to a bounded client price
    if client_price is not None and base > 0:
        price = money(client_price)
        if base * MIN_PRICE_RATIO <= price <= base * MAX_PRICE_RATIO:
            return price
        logger.warning("Client price %s for menu item %s outside allowed band, using base %s",
                       price, menu_item.id, base)
    return base


def subtotal(lines: Iterable[Tuple[Decimal, int]]) -> Decimal:
    return money(sum((price * qty for price, qty in lines), Decimal("0.00")))


def compute_totals(items_subtotal: Decimal, discount: Decimal, delivery_fee: Decimal,
                   delivery_discount: Decimal, tip: Decimal, tax_rate: Decimal) -> Dict[str, Decimal]:
    discounted = max(Decimal("0.00"), money(items_subtotal - discount))
    tax = money(discounted * tax_rate)
    fee = max(Decimal("0.00"), money(delivery_fee - delivery_discount))
    total = money(discounted + tax + fee + tip)
    return {
        "subtotal": money(items_subtotal),
        "discount": money(min(discount, items_subtotal) + delivery_discount),
        "tax": tax,
        "delivery_fee": fee,
        "tip": money(tip),
        "total": total,
    }
