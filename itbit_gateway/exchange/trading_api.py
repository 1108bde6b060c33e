# ============================================================================
# itBit Gateway v1.0.0
# Trading API - Exchange-Neutral Operations
# ============================================================================
#
# Purpose: The contract a trading engine drives; one implementation per
#          exchange
#
# ============================================================================

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from itbit_gateway.exchange.decimal_gateway import Number
from itbit_gateway.exchange.models import (
    BalanceInfo,
    MarketOrderBook,
    Order,
    OrderSide,
)


# =============================================================================
# Trading API (Abstract Base Class)
# =============================================================================

class TradingApi(ABC):
    """
    Abstract interface for exchange adapters.

    Implementations raise ExchangeTimeoutError for conditions worth
    retrying later and TradingApiError for everything that is not.
    """

    @abstractmethod
    def get_impl_name(self) -> str:
        """Human-readable adapter name."""
        pass

    @abstractmethod
    def create_order(
        self,
        market_id: str,
        side: OrderSide,
        quantity: Number,
        price: Number
    ) -> str:
        """Place a limit order. Returns the exchange order id."""
        pass

    @abstractmethod
    def cancel_order(self, order_id: str, market_id: Optional[str] = None) -> bool:
        """Cancel an order. True only if the exchange accepted the cancel."""
        pass

    @abstractmethod
    def get_your_open_orders(self, market_id: str) -> List[Order]:
        """Open orders for the account on one market."""
        pass

    @abstractmethod
    def get_market_orders(self, market_id: str) -> MarketOrderBook:
        """Public order book."""
        pass

    @abstractmethod
    def get_latest_market_price(self, market_id: str) -> Decimal:
        """Last traded price."""
        pass

    @abstractmethod
    def get_balance_info(self) -> BalanceInfo:
        """Account balances."""
        pass

    @abstractmethod
    def get_percentage_of_buy_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        """Buy fee as a fraction (0.0025 means 0.25%)."""
        pass

    @abstractmethod
    def get_percentage_of_sell_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        """Sell fee as a fraction (0.0025 means 0.25%)."""
        pass
