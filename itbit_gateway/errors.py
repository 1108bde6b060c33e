# ============================================================================
# itBit Gateway v1.0.0
# Exchange Errors - Failure Taxonomy
# ============================================================================
#
# Purpose: Typed failures surfaced to the trading engine
#
# Taxonomy:
#   - ExchangeTimeoutError: socket timeout or HTTP 502/503/504 (retryable)
#   - TradingApiError: anything the caller cannot recover from by retrying
#   - ConfigurationError: adapter could not be constructed
#
# Soft exchange errors (HTTP 401/404/422) are NOT exceptions. They come back
# as ExchangeResponse objects and callers inspect the status code.
#
# Error Codes:
#   - ITBIT-CFG-001: Configuration missing or invalid
#   - ITBIT-SIG-001: Request could not be signed
#   - ITBIT-TRN-001: Unexpected I/O failure
#   - ITBIT-TRN-002: Socket timeout
#   - ITBIT-TRN-003: HTTP 50x from exchange
#   - ITBIT-TRN-004: Malformed URL or unsupported HTTP method
#   - ITBIT-ADP-001: Response could not be adapted
#   - ITBIT-GW-001: Unexpected response status
#   - ITBIT-GW-002: Unexpected error inside a trading operation
#
# ============================================================================

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from itbit_gateway.exchange.transport import ExchangeResponse


class ErrorCode:
    """Gateway error codes for audit logging."""
    CONFIG_INVALID = "ITBIT-CFG-001"
    SIGNING_FAILED = "ITBIT-SIG-001"
    UNEXPECTED_IO = "ITBIT-TRN-001"
    SOCKET_TIMEOUT = "ITBIT-TRN-002"
    GATEWAY_50X = "ITBIT-TRN-003"
    MALFORMED_REQUEST = "ITBIT-TRN-004"
    ADAPTATION_FAILED = "ITBIT-ADP-001"
    UNEXPECTED_STATUS = "ITBIT-GW-001"
    UNEXPECTED_ERROR = "ITBIT-GW-002"


class ExchangeGatewayError(Exception):
    """
    Base exception for all gateway failures.

    Carries an error code and, where one was received, the exchange
    response that caused the failure.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        response: Optional["ExchangeResponse"] = None
    ):
        self.message = message
        self.error_code = error_code
        self.response = response
        super().__init__(f"[{error_code}] {message}")


class ExchangeTimeoutError(ExchangeGatewayError):
    """
    Raised when the exchange could not be reached in time.

    Covers socket/connect timeouts and HTTP 502/503/504. The trading
    engine owns the retry policy; this adapter never retries.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.SOCKET_TIMEOUT,
        response: Optional["ExchangeResponse"] = None
    ):
        super().__init__(message, error_code, response)


class TradingApiError(ExchangeGatewayError):
    """Raised for fatal, non-retryable failures."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.UNEXPECTED_ERROR,
        response: Optional["ExchangeResponse"] = None
    ):
        super().__init__(message, error_code, response)


class ConfigurationError(TradingApiError):
    """
    Raised when adapter configuration is missing or invalid.

    Construction aborts; no partially configured gateway is ever returned.
    """

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_INVALID)
