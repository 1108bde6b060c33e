"""
============================================================================
itBit Gateway - Wire Schemas for itBit REST API v1 Responses
============================================================================

Typed parsing targets for the JSON itBit sends back. Field names follow
the wire (camelCase aliases); no behaviour lives here beyond field access.

Input Constraints: Decimal for every numeric field, parsed at full precision
Side Effects: None (pure validation)

Unknown fields are ignored so additive API changes do not break parsing.
============================================================================
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ItBitRecord(BaseModel):
    """Base for all itBit wire records."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )


# ============================================================================
# ORDERS
# ============================================================================

class ItBitYourOrder(ItBitRecord):
    """
    One order from GET wallets/{walletId}/orders.

    Example:
        {"id": "...", "side": "buy", "instrument": "XBTUSD", "type": "limit",
         "amount": "1.5", "price": "250.00", "amountFilled": "0.5",
         "createdTime": "2015-10-01T18:10:39.3930000Z", "status": "open"}
    """

    id: str
    wallet_id: Optional[str] = Field(default=None, alias="walletId")
    side: str
    instrument: Optional[str] = None
    type: Optional[str] = None
    amount: Decimal
    display_amount: Optional[Decimal] = Field(default=None, alias="displayAmount")
    price: Decimal
    volume_weighted_average_price: Optional[Decimal] = Field(
        default=None, alias="volumeWeightedAveragePrice"
    )
    amount_filled: Decimal = Field(alias="amountFilled")
    created_time: str = Field(alias="createdTime")
    status: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    client_order_identifier: Optional[str] = Field(
        default=None, alias="clientOrderIdentifier"
    )


class ItBitNewOrderResponse(ItBitRecord):
    """
    Body of a 201 from POST wallets/{walletId}/orders.

    Same shape as ItBitYourOrder; only the id is required here.
    """

    id: str
    wallet_id: Optional[str] = Field(default=None, alias="walletId")
    side: Optional[str] = None
    instrument: Optional[str] = None
    amount: Optional[Decimal] = None
    price: Optional[Decimal] = None
    status: Optional[str] = None


# ============================================================================
# MARKET DATA
# ============================================================================

class ItBitOrderBook(ItBitRecord):
    """
    GET markets/{marketId}/order_book.

    Each level is a two-element [price, amount] array.
    """

    bids: List[Tuple[Decimal, Decimal]]
    asks: List[Tuple[Decimal, Decimal]]


class ItBitTicker(ItBitRecord):
    """GET markets/{marketId}/ticker. Only last_price is used downstream."""

    pair: Optional[str] = None
    bid: Optional[Decimal] = None
    bid_amt: Optional[Decimal] = Field(default=None, alias="bidAmt")
    ask: Optional[Decimal] = None
    ask_amt: Optional[Decimal] = Field(default=None, alias="askAmt")
    last_price: Decimal = Field(alias="lastPrice")
    last_amt: Optional[Decimal] = Field(default=None, alias="lastAmt")
    volume_24h: Optional[Decimal] = Field(default=None, alias="volume24h")
    volume_today: Optional[Decimal] = Field(default=None, alias="volumeToday")
    high_24h: Optional[Decimal] = Field(default=None, alias="high24h")
    low_24h: Optional[Decimal] = Field(default=None, alias="low24h")
    high_today: Optional[Decimal] = Field(default=None, alias="highToday")
    low_today: Optional[Decimal] = Field(default=None, alias="lowToday")
    open_today: Optional[Decimal] = Field(default=None, alias="openToday")
    vwap_today: Optional[Decimal] = Field(default=None, alias="vwapToday")
    vwap_24h: Optional[Decimal] = Field(default=None, alias="vwap24h")
    server_time_utc: Optional[str] = Field(default=None, alias="serverTimeUTC")


# ============================================================================
# WALLETS
# ============================================================================

class ItBitBalance(ItBitRecord):
    """One currency balance inside a wallet."""

    currency: str
    available_balance: Decimal = Field(alias="availableBalance")
    total_balance: Optional[Decimal] = Field(default=None, alias="totalBalance")


class ItBitWallet(ItBitRecord):
    """One wallet from GET wallets?userId=..."""

    id: str
    user_id: Optional[str] = Field(default=None, alias="userId")
    name: Optional[str] = None
    balances: List[ItBitBalance] = Field(default_factory=list)
