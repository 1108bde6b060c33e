# ============================================================================
# itBit Gateway v1.0.0
# ============================================================================
#
# Trading adapter for the itBit REST API v1.
#
#   from itbit_gateway.config import ItBitConfig
#   from itbit_gateway.exchange import ItBitTradingGateway
#
# ============================================================================

__version__ = '1.0.0'
