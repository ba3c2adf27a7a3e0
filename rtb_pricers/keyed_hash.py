# ============================================================================
# RTB Pricers v1.0.0
# Keyed Hash - HMAC Primitive
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: HMAC digests for keystream (pad) and integrity tag derivation
#
# THREAD SAFETY:
#   The key is absorbed once into a prototype HMAC object. Every digest()
#   call works on a copy of that prototype, so no input from one call can
#   leak into another and one KeyedHash can be shared across threads.
#
# ============================================================================

import hashlib
import hmac
from typing import Callable, Union

from rtb_pricers.errors import PricerConfigurationError

DigestMod = Union[str, Callable]

# Hash used for both the IV and the HMAC contexts (16-byte digests)
DEFAULT_DIGESTMOD = "md5"

# Pad is 8 bytes, so the HMAC digest must be at least that long
MIN_DIGEST_SIZE = 8


def hash16(data: bytes) -> bytes:
    """Return the 16-byte MD5 digest used as the token IV."""
    return hashlib.md5(data).digest()


class KeyedHash:
    """
    HMAC bound to a single secret key.

    Example Usage:
        keyed = KeyedHash(bytes.fromhex("00112233..."))
        pad = keyed.digest(iv)[:8]
    """

    def __init__(self, key: bytes, digestmod: DigestMod = DEFAULT_DIGESTMOD):
        """
        Raises:
            PricerConfigurationError: If digestmod is unknown or its digest
                is shorter than the 8-byte pad
        """
        try:
            self._prototype = hmac.new(key, digestmod=digestmod)
        except (ValueError, TypeError) as e:
            raise PricerConfigurationError(
                f"Unsupported HMAC digest: {digestmod!r} ({e})"
            ) from e

        if self._prototype.digest_size < MIN_DIGEST_SIZE:
            raise PricerConfigurationError(
                f"HMAC digest too short: {self._prototype.digest_size} bytes "
                f"(minimum {MIN_DIGEST_SIZE})"
            )

    @property
    def digest_size(self) -> int:
        return self._prototype.digest_size

    @property
    def name(self) -> str:
        return self._prototype.name

    def digest(self, *parts: bytes) -> bytes:
        """
        Compute HMAC(key, part_1 || part_2 || ...) on a fresh context.

        Args:
            parts: Message fragments, hashed in order

        Returns:
            Full-length HMAC digest
        """
        context = self._prototype.copy()
        for part in parts:
            context.update(part)
        return context.digest()
