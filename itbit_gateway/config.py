"""
============================================================================
itBit Gateway - Configuration
============================================================================

Loads the credentials, fee percentages and connection timeout the gateway
needs. Values are read once at startup and never change afterwards.

Two sources are supported:
- Environment variables (optionally from a .env file via python-dotenv)
- An itbit-config.properties file using the historical key names
  (Java .properties syntax: "key=value" or "key: value", no "${VAR}"
  expansion)

ENVIRONMENT VARIABLES:
    - ITBIT_USER_ID: itBit user id (REQUIRED)
    - ITBIT_API_KEY: API key (REQUIRED)
    - ITBIT_API_SECRET: API secret (REQUIRED, never logged)
    - ITBIT_BUY_FEE: Buy fee in percent, e.g. "0.25" (REQUIRED)
    - ITBIT_SELL_FEE: Sell fee in percent, e.g. "0.25" (REQUIRED)
    - ITBIT_CONNECTION_TIMEOUT: Connect/read timeout in seconds (REQUIRED)

PROPERTIES FILE KEYS:
    userId, key, secret, buy-fee, sell-fee, connection-timeout

ERROR CODES:
    - ITBIT-CFG-001: Required configuration missing or invalid

============================================================================
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional
import logging
import os

from dotenv import load_dotenv
from jproperties import Properties, PropertyError

from itbit_gateway.errors import ConfigurationError, ErrorCode

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Source Key Names
# =============================================================================

ENV_KEYS = {
    "user_id": "ITBIT_USER_ID",
    "api_key": "ITBIT_API_KEY",
    "api_secret": "ITBIT_API_SECRET",
    "buy_fee_percent": "ITBIT_BUY_FEE",
    "sell_fee_percent": "ITBIT_SELL_FEE",
    "connection_timeout_seconds": "ITBIT_CONNECTION_TIMEOUT",
}

PROPERTIES_KEYS = {
    "user_id": "userId",
    "api_key": "key",
    "api_secret": "secret",
    "buy_fee_percent": "buy-fee",
    "sell_fee_percent": "sell-fee",
    "connection_timeout_seconds": "connection-timeout",
}

DEFAULT_PROPERTIES_FILE = "itbit/itbit-config.properties"


# =============================================================================
# Credentials
# =============================================================================

@dataclass(frozen=True)
class Credentials:
    """
    itBit API credentials.

    The secret is excluded from repr() so a logged Credentials object never
    leaks it.
    """
    user_id: str
    api_key: str
    api_secret: str = field(repr=False)

    def redacted_key(self) -> str:
        """Return first 4 and last 4 characters of the API key."""
        if len(self.api_key) > 8:
            return f"{self.api_key[:4]}...{self.api_key[-4:]}"
        return "[REDACTED]"


# =============================================================================
# ItBitConfig Class
# =============================================================================

@dataclass(frozen=True)
class ItBitConfig:
    """
    Gateway configuration.

    ============================================================================
    CONFIGURATION PARAMETERS:
    ============================================================================
    - user_id: itBit user id, sent when listing wallets
    - api_key: API key, sent in the Authorization header
    - api_secret: HMAC-SHA512 key (never logged)
    - buy_fee_percent: Buy fee in percent (0.25 means 0.25%)
    - sell_fee_percent: Sell fee in percent
    - connection_timeout_seconds: Applied to both connect and read
    ============================================================================
    """

    user_id: str
    api_key: str
    api_secret: str = field(repr=False)
    buy_fee_percent: Decimal = Decimal("0")
    sell_fee_percent: Decimal = Decimal("0")
    connection_timeout_seconds: int = 0

    @property
    def credentials(self) -> Credentials:
        return Credentials(
            user_id=self.user_id,
            api_key=self.api_key,
            api_secret=self.api_secret,
        )

    def validate(self) -> None:
        """
        Validate configuration completeness.

        Raises:
            ConfigurationError: If anything is missing or invalid (ITBIT-CFG-001)
        """
        errors: List[str] = []

        for name in ("user_id", "api_key", "api_secret"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"{name} cannot be empty")

        for name in ("buy_fee_percent", "sell_fee_percent"):
            value = getattr(self, name)
            if not isinstance(value, Decimal) or not value.is_finite():
                errors.append(f"{name} must be a finite Decimal, got: {value!r}")
            elif value < Decimal("0"):
                errors.append(f"{name} must be non-negative, got: {value}")

        timeout = self.connection_timeout_seconds
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
            errors.append(
                f"connection_timeout_seconds must be a positive integer, got: {timeout!r}"
            )

        if errors:
            error_msg = "itBit configuration validation failed: " + "; ".join(errors)
            logger.error(f"[{ErrorCode.CONFIG_INVALID}] {error_msg}")
            raise ConfigurationError(error_msg)

        logger.info(
            f"[ITBIT-CONFIG] Configuration validated | "
            f"user_id={self.user_id} | "
            f"api_key={self.credentials.redacted_key()} | "
            f"buy_fee_percent={self.buy_fee_percent} | "
            f"sell_fee_percent={self.sell_fee_percent} | "
            f"connection_timeout_seconds={self.connection_timeout_seconds}"
        )

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, Optional[str]],
        key_names: Mapping[str, str],
        source: str,
        validate: bool = True
    ) -> "ItBitConfig":
        """
        Build configuration from raw string values.

        Args:
            values: Raw values keyed by source key name
            key_names: Maps each config field to its source key name
            source: Human-readable source for error messages
            validate: Whether to validate after loading (default: True)

        Raises:
            ConfigurationError: If a value is missing or cannot be parsed
        """
        raw: Dict[str, str] = {}
        errors: List[str] = []

        for field_name, key in key_names.items():
            value = values.get(key)
            if value is None or not str(value).strip():
                errors.append(
                    f"{key} cannot be null or zero length! "
                    f"HINT: is the value set in {source}?"
                )
            else:
                raw[field_name] = str(value).strip()

        if errors:
            error_msg = "; ".join(errors)
            logger.error(f"[{ErrorCode.CONFIG_INVALID}] {error_msg}")
            raise ConfigurationError(error_msg)

        fees: Dict[str, Decimal] = {}
        for field_name in ("buy_fee_percent", "sell_fee_percent"):
            try:
                fees[field_name] = Decimal(raw[field_name])
            except InvalidOperation:
                errors.append(
                    f"{key_names[field_name]} is not a number: {raw[field_name]!r}"
                )

        timeout_key = key_names["connection_timeout_seconds"]
        try:
            timeout = int(raw["connection_timeout_seconds"])
        except ValueError:
            errors.append(
                f"{timeout_key} is not an integer: {raw['connection_timeout_seconds']!r}"
            )
            timeout = 0

        if errors:
            error_msg = "; ".join(errors)
            logger.error(f"[{ErrorCode.CONFIG_INVALID}] {error_msg}")
            raise ConfigurationError(error_msg)

        logger.info(
            f"[ITBIT-CONFIG] Loading configuration | source={source} | "
            f"{key_names['buy_fee_percent']}={fees['buy_fee_percent']}% | "
            f"{key_names['sell_fee_percent']}={fees['sell_fee_percent']}% | "
            f"{timeout_key}={timeout}"
        )

        config = cls(
            user_id=raw["user_id"],
            api_key=raw["api_key"],
            api_secret=raw["api_secret"],
            buy_fee_percent=fees["buy_fee_percent"],
            sell_fee_percent=fees["sell_fee_percent"],
            connection_timeout_seconds=timeout,
        )

        if validate:
            config.validate()

        return config

    @classmethod
    def from_environment(cls, validate: bool = True) -> "ItBitConfig":
        """
        Load configuration from ITBIT_* environment variables.

        A .env file in the working directory is loaded first; variables
        already set in the process environment win.

        Raises:
            ConfigurationError: If required configuration is missing
        """
        load_dotenv()
        return cls.from_mapping(os.environ, ENV_KEYS, "the environment", validate)

    @classmethod
    def from_properties_file(
        cls,
        path: str = DEFAULT_PROPERTIES_FILE,
        validate: bool = True
    ) -> "ItBitConfig":
        """
        Load configuration from an itbit-config.properties file.

        Values are taken literally: a secret containing "$" or "${...}"
        is never expanded.

        Raises:
            ConfigurationError: If the file is missing, unreadable or incomplete
        """
        if not os.path.isfile(path):
            error_msg = f"Cannot find itBit config at: {path}"
            logger.error(f"[{ErrorCode.CONFIG_INVALID}] {error_msg}")
            raise ConfigurationError(error_msg)

        properties = Properties()
        try:
            with open(path, "rb") as properties_file:
                properties.load(properties_file, "utf-8")
        except (PropertyError, UnicodeDecodeError) as e:
            error_msg = f"Cannot parse itBit config at: {path}"
            logger.error(f"[{ErrorCode.CONFIG_INVALID}] {error_msg} | error={type(e).__name__}")
            raise ConfigurationError(error_msg) from e

        values = {key: entry.data for key, entry in properties.items()}
        return cls.from_mapping(values, PROPERTIES_KEYS, path, validate)

    def to_dict(self) -> dict:
        """
        Convert configuration to a dictionary for logging.

        The secret is never included.
        """
        return {
            "user_id": self.user_id,
            "api_key": self.credentials.redacted_key(),
            "buy_fee_percent": str(self.buy_fee_percent),
            "sell_fee_percent": str(self.sell_fee_percent),
            "connection_timeout_seconds": self.connection_timeout_seconds,
        }
