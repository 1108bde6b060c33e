# ============================================================================
# itBit Gateway v1.0.0
# Domain Model - Exchange-Neutral Trading Records
# ============================================================================
#
# Purpose: What the trading engine sees, independent of itBit's JSON shapes
#
# MANDATE:
#   - All monetary values are Decimal
#   - Values the exchange does not supply (remaining quantity, totals) are
#     computed here, never trusted from the wire
#
# ============================================================================

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List


# ============================================================================
# Enums
# ============================================================================

class OrderSide(Enum):
    """Order side."""
    BUY = "BUY"
    SELL = "SELL"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class Order:
    """
    One of your open orders.

    remaining_quantity and total are derived: itBit only reports the
    original amount, the filled amount and the price.
    """
    id: str
    created_at: datetime
    market_id: str
    side: OrderSide
    price: Decimal
    remaining_quantity: Decimal
    original_quantity: Decimal
    total: Decimal

    @classmethod
    def from_fill(
        cls,
        order_id: str,
        created_at: datetime,
        market_id: str,
        side: OrderSide,
        price: Decimal,
        original_quantity: Decimal,
        filled_quantity: Decimal
    ) -> "Order":
        return cls(
            id=order_id,
            created_at=created_at,
            market_id=market_id,
            side=side,
            price=price,
            remaining_quantity=original_quantity - filled_quantity,
            original_quantity=original_quantity,
            total=price * original_quantity,
        )


@dataclass(frozen=True)
class MarketOrder:
    """One price level of a market order book."""
    side: OrderSide
    price: Decimal
    quantity: Decimal
    total: Decimal

    @classmethod
    def from_level(cls, side: OrderSide, price: Decimal, quantity: Decimal) -> "MarketOrder":
        return cls(side=side, price=price, quantity=quantity, total=price * quantity)


@dataclass(frozen=True)
class MarketOrderBook:
    """Bids (buy_orders) and asks (sell_orders) for one market."""
    market_id: str
    sell_orders: List[MarketOrder]
    buy_orders: List[MarketOrder]


@dataclass(frozen=True)
class BalanceInfo:
    """
    Wallet balances keyed by currency code.

    on_hold is always empty: itBit does not report held amounts.
    """
    available: Dict[str, Decimal]
    on_hold: Dict[str, Decimal] = field(default_factory=dict)
