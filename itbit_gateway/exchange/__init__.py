# ============================================================================
# itBit Gateway v1.0.0
# Exchange Integration Module - itBit Connectivity
# ============================================================================
#
# Purpose: itBit REST API v1 adapter for the trading engine
#
# Components:
#   - DecimalGateway: Lossless parsing, half-even outgoing formatting
#   - NonceCounter: Strictly increasing, lock-protected nonce
#   - ItBitSigner: SHA-256 + HMAC-SHA512 request signing
#   - ItBitTransport: HTTP execution and failure classification
#   - response_adapter: itBit JSON to domain records
#   - ItBitTradingGateway: TradingApi implementation
#
# MANDATE:
#   - LIMIT orders only
#   - All numeric values are Decimal
#   - No retries inside the adapter
#
# ============================================================================

from itbit_gateway.exchange.decimal_gateway import DecimalGateway
from itbit_gateway.exchange.nonce import NonceCounter
from itbit_gateway.exchange.hmac_signer import ItBitSigner, SignedRequest
from itbit_gateway.exchange.transport import ExchangeResponse, ItBitTransport
from itbit_gateway.exchange.models import (
    BalanceInfo,
    MarketOrder,
    MarketOrderBook,
    Order,
    OrderSide,
)
from itbit_gateway.exchange import response_adapter
from itbit_gateway.exchange.trading_api import TradingApi
from itbit_gateway.exchange.gateway import ItBitTradingGateway, WalletState

__all__ = [
    # Decimal handling
    'DecimalGateway',
    # Signing
    'NonceCounter',
    'ItBitSigner',
    'SignedRequest',
    # Transport
    'ExchangeResponse',
    'ItBitTransport',
    # Domain model
    'BalanceInfo',
    'MarketOrder',
    'MarketOrderBook',
    'Order',
    'OrderSide',
    # Adapter
    'response_adapter',
    'TradingApi',
    'ItBitTradingGateway',
    'WalletState',
]

__version__ = '1.0.0'
