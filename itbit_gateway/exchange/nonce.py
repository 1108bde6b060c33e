# ============================================================================
# itBit Gateway v1.0.0
# Nonce Counter - Replay Protection
# ============================================================================
#
# Reliability Level: Mission-Critical (replay protection)
# Purpose: Strictly increasing nonce for signed itBit requests
#
# MANDATE:
#   - Seeded from wall-clock seconds so a restarted process starts above
#     every nonce the exchange accepted before
#   - +1 per signed call attempt, never rolled back on failure
#   - Owned by one signer, or shared explicitly between gateways that use
#     the same API key (never a module global)
#
# ============================================================================

import threading
import time
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class NonceCounter:
    """
    Thread-safe, strictly increasing nonce.

    The first call to next() returns seed + 1.

    Example Usage:
        nonce = NonceCounter()
        signer = ItBitSigner(credentials, nonce_counter=nonce)
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Starting value (default: seconds since the epoch)
        """
        if seed is None:
            seed = int(time.time())
        if seed < 0:
            raise ValueError(f"Nonce seed must be non-negative, got: {seed}")

        self._value = seed
        self._lock = threading.Lock()

        logger.debug(f"[ITBIT-NONCE] Counter seeded | seed={seed}")

    def next(self) -> int:
        """Advance the counter by exactly one and return the new value."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def current(self) -> int:
        """Last value handed out (or the seed if none yet)."""
        with self._lock:
            return self._value
