# ============================================================================
# itBit Gateway v1.0.0
# Pydantic Schemas - itBit Wire Shapes
# ============================================================================

from itbit_gateway.schemas.itbit import (
    ItBitRecord,
    ItBitYourOrder,
    ItBitNewOrderResponse,
    ItBitOrderBook,
    ItBitTicker,
    ItBitBalance,
    ItBitWallet,
)

__all__ = [
    "ItBitRecord",
    "ItBitYourOrder",
    "ItBitNewOrderResponse",
    "ItBitOrderBook",
    "ItBitTicker",
    "ItBitBalance",
    "ItBitWallet",
]
