# ============================================================================
# itBit Gateway v1.0.0
# Response Adapter - itBit JSON to Domain Model
# ============================================================================
#
# Reliability Level: High (read path)
# Purpose: Turn raw itBit response bodies into exchange-neutral records
#
# MANDATE:
#   - Pure: no I/O, no state
#   - Decimals keep full precision (json floats parsed as Decimal)
#   - Unknown order sides are fatal, never defaulted
#   - Only the FIRST wallet is used (single-wallet adapter)
#
# Error Codes:
#   - ITBIT-ADP-001: Response could not be adapted
#
# ============================================================================

import json
import logging
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional, Tuple, Type, TypeVar

from pydantic import TypeAdapter

from itbit_gateway.errors import ErrorCode, TradingApiError
from itbit_gateway.exchange.models import (
    BalanceInfo,
    MarketOrder,
    MarketOrderBook,
    Order,
    OrderSide,
)
from itbit_gateway.exchange.transport import ExchangeResponse
from itbit_gateway.schemas.itbit import (
    ItBitNewOrderResponse,
    ItBitOrderBook,
    ItBitRecord,
    ItBitTicker,
    ItBitWallet,
    ItBitYourOrder,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=ItBitRecord)

_SIDES = {
    "buy": OrderSide.BUY,
    "sell": OrderSide.SELL,
}

_FRACTION = re.compile(r"\.(\d+)")


# ============================================================================
# Parsing Helpers
# ============================================================================

def _fail(
    message: str,
    response: Optional[ExchangeResponse],
    cause: Optional[Exception] = None
) -> TradingApiError:
    logger.error(
        f"[{ErrorCode.ADAPTATION_FAILED}] {message} | "
        f"response={response!r} | error={cause}"
    )
    return TradingApiError(message, ErrorCode.ADAPTATION_FAILED, response)


def _load(raw_body: str, response: Optional[ExchangeResponse]) -> Any:
    try:
        return json.loads(raw_body, parse_float=Decimal)
    except (TypeError, ValueError) as e:
        raise _fail("Response body is not valid JSON", response, e) from e


def parse_record(
    raw_body: str,
    shape: Type[RecordT],
    response: Optional[ExchangeResponse] = None
) -> RecordT:
    """
    Parse a JSON object body into one wire record.

    Raises:
            TradingApiError: Invalid JSON or shape mismatch (ITBIT-ADP-001)
    """
    data = _load(raw_body, response)
    try:
        return shape.model_validate(data)
    except ValueError as e:
        raise _fail(f"Response does not match {shape.__name__}", response, e) from e


def parse_records(
    raw_body: str,
    shape: Type[RecordT],
    response: Optional[ExchangeResponse] = None
) -> List[RecordT]:
    """Parse a JSON array body into a list of wire records."""
    data = _load(raw_body, response)
    try:
        return TypeAdapter(List[shape]).validate_python(data)
    except ValueError as e:
        raise _fail(f"Response does not match List[{shape.__name__}]", response, e) from e


def parse_timestamp(value: str) -> datetime:
    """
    Parse itBit's ISO-8601 timestamps into an aware UTC datetime.

    itBit sends 7 fractional digits ("2015-10-01T18:10:39.3930000Z");
    anything past microseconds is dropped.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    match = _FRACTION.search(text)
    if match:
        digits = match.group(1)[:6].ljust(6, "0")
        text = f"{text[:match.start()]}.{digits}{text[match.end():]}"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def adapt_side(value: str, response: Optional[ExchangeResponse] = None) -> OrderSide:
    """
    Map itBit's "buy"/"sell" to OrderSide.

    Raises:
        TradingApiError: Any other value (ITBIT-ADP-001)
    """
    side = _SIDES.get(value)
    if side is None:
        raise _fail(f"Unrecognised order side received. Value: {value}", response)
    return side


# ============================================================================
# Adapters
# ============================================================================

def adapt_new_order_id(
    raw_body: str,
    response: Optional[ExchangeResponse] = None
) -> str:
    """Extract the exchange-assigned id from a create-order response."""
    return parse_record(raw_body, ItBitNewOrderResponse, response).id


def adapt_open_orders(
    raw_body: str,
    market_id: str,
    response: Optional[ExchangeResponse] = None
) -> List[Order]:
    """
    Adapt a list of your orders.

    remaining = amount - amountFilled, total = price * amount.
    """
    orders: List[Order] = []
    for wire_order in parse_records(raw_body, ItBitYourOrder, response):
        side = adapt_side(wire_order.side, response)
        try:
            created_at = parse_timestamp(wire_order.created_time)
        except ValueError as e:
            raise _fail(
                f"Unparseable createdTime for order {wire_order.id}: "
                f"{wire_order.created_time}",
                response,
                e
            ) from e

        orders.append(Order.from_fill(
            order_id=wire_order.id,
            created_at=created_at,
            market_id=market_id,
            side=side,
            price=wire_order.price,
            original_quantity=wire_order.amount,
            filled_quantity=wire_order.amount_filled,
        ))
    return orders


def adapt_order_book(
    raw_body: str,
    market_id: str,
    response: Optional[ExchangeResponse] = None
) -> MarketOrderBook:
    """Adapt [price, amount] bids/asks into priced MarketOrder levels."""
    book = parse_record(raw_body, ItBitOrderBook, response)

    buy_orders = [
        MarketOrder.from_level(OrderSide.BUY, price, amount)
        for price, amount in book.bids
    ]
    sell_orders = [
        MarketOrder.from_level(OrderSide.SELL, price, amount)
        for price, amount in book.asks
    ]
    return MarketOrderBook(
        market_id=market_id,
        sell_orders=sell_orders,
        buy_orders=buy_orders,
    )


def adapt_last_price(
    raw_body: str,
    response: Optional[ExchangeResponse] = None
) -> Decimal:
    """Parse the full ticker and surface lastPrice only."""
    return parse_record(raw_body, ItBitTicker, response).last_price


def adapt_wallets(
    raw_body: str,
    response: Optional[ExchangeResponse] = None
) -> Tuple[str, BalanceInfo]:
    """
    Adapt the wallet list.

    Returns:
        (first wallet id, balances of the first wallet). Every other
        wallet is ignored.
    """
    wallets = parse_records(raw_body, ItBitWallet, response)
    if not wallets:
        raise _fail("No wallets returned by exchange", response)

    wallet = wallets[0]
    available = {
        balance.currency: balance.available_balance
        for balance in wallet.balances
    }
    return wallet.id, BalanceInfo(available=available, on_hold={})
