"""
Order-target translation of rotation decisions.

Rather than liquidating everything up front, a rotation sells only the
holdings that are not the new target and then trades the difference
between the current and the target quantity of the winner.
"""

from __future__ import annotations

from etfrotation.models.enums import RotationAction, TradeSide
from etfrotation.models.types import OrderIntent, RotationDecision

# Quantity changes below this are not worth an order
MIN_ORDER_QUANTITY = 1e-9


def plan_orders(decision: RotationDecision, holdings: dict[str, float]) -> list[OrderIntent]:
    """Orders that move ``holdings`` (symbol -> quantity) to the decided target.

    Sells come before buys so the proceeds fund the new position.
    """
    if decision.action == RotationAction.HOLD:
        return []

    target_symbol = decision.symbol if decision.action == RotationAction.ROTATE else None

    orders: list[OrderIntent] = []
    for symbol, quantity in holdings.items():
        if symbol == target_symbol or abs(quantity) < MIN_ORDER_QUANTITY:
            continue
        side = TradeSide.SELL if quantity > 0 else TradeSide.BUY
        orders.append(OrderIntent(symbol, side, abs(quantity), tag="liquidate"))

    if target_symbol is None:
        return orders

    delta = decision.target_quantity - holdings.get(target_symbol, 0.0)
    if delta > MIN_ORDER_QUANTITY:
        orders.append(OrderIntent(target_symbol, TradeSide.BUY, delta))
    elif delta < -MIN_ORDER_QUANTITY:
        # Trim before any buy so cash is available
        orders.insert(0, OrderIntent(target_symbol, TradeSide.SELL, -delta))
    return orders
