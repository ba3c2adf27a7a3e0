# ============================================================================
# RTB Pricers v1.0.0
# DoubleClick Pricer - Price Confirmation Codec
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Encrypts and decrypts winning prices with the DoubleClick scheme
#
# Price Token Construction:
#   iv        = md5(seed)
#   pad       = hmac(e_key, iv)[:8]
#   enc_price = pad XOR price_micros
#   signature = hmac(i_key, price_micros || iv)[:4]
#   token     = websafe_base64(iv || enc_price || signature)
#
# Reference: https://developers.google.com/ad-exchange/rtb/response-guide/decrypt-price
#
# Error Codes:
#   - PRICER-KEY-001: Key source string could not be decoded
#   - PRICER-PRICE-001: Price negative, not finite, or beyond 64-bit micros
#   - PRICER-TOKEN-001: Token is not valid base64url or is too short
#   - PRICER-TOKEN-002: Integrity tag mismatch (failed to decrypt)
#
# ============================================================================

import hmac
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from rtb_pricers.base import Pricer
from rtb_pricers.envelope import (
    PRICE_SIZE,
    TAG_SIZE,
    PriceToken,
    decode_token,
    encode_token,
    xor_bytes,
)
from rtb_pricers.errors import (
    IntegrityVerificationError,
    MalformedTokenError,
    PricerErrorCode,
)
from rtb_pricers.keyed_hash import DEFAULT_DIGESTMOD, DigestMod, KeyedHash, hash16
from rtb_pricers.keys import KeyDecodingMode, decode_key
from rtb_pricers.scaling import (
    DEFAULT_SCALE_FACTOR,
    apply_scale_factor,
    remove_scale_factor,
    validate_scale_factor,
)

if TYPE_CHECKING:
    from rtb_pricers.config import PricerConfig

logger = logging.getLogger(__name__)


@dataclass
class DecryptResult:
    """
    Result of a non-raising decryption attempt.

    price is 0.0 whenever success is False.
    """
    success: bool
    price: float
    error_code: Optional[str]
    error_message: Optional[str]


class DoubleClickPricer(Pricer):
    """
    DoubleClick price confirmation codec.

    Holds one HMAC context per key and a scale factor. Every HMAC is computed
    on a fresh copy of the keyed context, so a single instance is safe to share
    across threads.

    Example Usage:
        pricer = DoubleClickPricer(
            encryption_key="652f83ada0545157a1b7fb0c0e09f59e...",
            integrity_key="fd6b19cf5a9e4b2d2a1e27bf14f79a15...",
        )
        token = pricer.encrypt("bid-request-id", 2.50)
        price = pricer.decrypt(token)  # 2.5
    """

    def __init__(
        self,
        encryption_key: str,
        integrity_key: str,
        is_base64_keys: bool = False,
        key_decoding_mode: Union[str, KeyDecodingMode] = KeyDecodingMode.HEX,
        scale_factor: float = DEFAULT_SCALE_FACTOR,
        debug: bool = False,
        digestmod: DigestMod = DEFAULT_DIGESTMOD,
        diagnostics: Optional[logging.Logger] = None,
    ):
        """
        Decode both keys and bind them to HMAC contexts.

        Args:
            encryption_key: Encryption key string
            integrity_key: Integrity key string
            is_base64_keys: Key strings are web-safe base64 (overrides
                key_decoding_mode)
            key_decoding_mode: Encoding of the key material (hex or base64web)
            scale_factor: Multiplier applied to prices before masking.
                Micros are integers, so a factor below 1,000,000 rounds
                away sub-micro digits.
            debug: Trace intermediate values at DEBUG level
            digestmod: Hash behind both HMACs (MD5 unless the exchange
                specifies otherwise)
            diagnostics: Logger that receives debug traces

        Raises:
            KeyDecodingError: If either key string is malformed
            PricerConfigurationError: If the scale factor is not positive,
                or digestmod is unknown or too short for the 8-byte pad
        """
        self.key_decoding_mode = KeyDecodingMode.parse(key_decoding_mode)
        self.scale_factor = validate_scale_factor(scale_factor)
        self.is_debug_mode = debug
        self._log = diagnostics or logger

        encryption_bytes = decode_key(encryption_key, self.key_decoding_mode, is_base64_keys)
        integrity_bytes = decode_key(integrity_key, self.key_decoding_mode, is_base64_keys)

        self._encryption_hash = KeyedHash(encryption_bytes, digestmod)
        self._integrity_hash = KeyedHash(integrity_bytes, digestmod)

        if self.is_debug_mode:
            self._log.debug(
                f"[PRICER] Keys decoded | "
                f"mode={self.key_decoding_mode.value} | "
                f"is_base64_keys={is_base64_keys} | "
                f"hmac={self._encryption_hash.name}"
            )
            self._log.debug(f"[PRICER] Encryption key (bytes) | {encryption_bytes.hex()}")
            self._log.debug(f"[PRICER] Integrity key (bytes) | {integrity_bytes.hex()}")

    @classmethod
    def from_config(cls, config: "PricerConfig", **kwargs) -> "DoubleClickPricer":
        """Build a pricer from a validated PricerConfig."""
        return cls(
            encryption_key=config.encryption_key,
            integrity_key=config.integrity_key,
            is_base64_keys=config.is_base64_keys,
            key_decoding_mode=config.key_decoding_mode,
            scale_factor=config.scale_factor,
            debug=config.debug,
            **kwargs,
        )

    def _debug_enabled(self, debug: Optional[bool]) -> bool:
        if debug is None:
            return self.is_debug_mode
        return debug

    def _pad(self, iv: bytes) -> bytes:
        # pad = hmac(e_key, iv), first 8 bytes
        return self._encryption_hash.digest(iv)[:PRICE_SIZE]

    def _signature(self, micros: bytes, iv: bytes) -> bytes:
        # signature = hmac(i_key, data || iv), first 4 bytes
        return self._integrity_hash.digest(micros, iv)[:TAG_SIZE]

    def encrypt(self, seed: str, price: float, debug: Optional[bool] = None) -> str:
        """
        Encrypt a clear price under a seed.

        Same seed, price and keys always produce the same token.

        Raises:
            PriceOutOfRangeError: If the price cannot be scaled to micros
        """
        trace = self._debug_enabled(debug)

        data = apply_scale_factor(price, self.scale_factor)
        iv = hash16(seed.encode("utf-8"))
        pad = self._pad(iv)
        encoded = xor_bytes(pad, data)
        signature = self._signature(data, iv)

        token = encode_token(PriceToken(iv=iv, masked_price=encoded, tag=signature))

        if trace:
            self._log.debug(
                f"[PRICER] Encrypt | seed={seed} | price={price} | "
                f"micros={data.hex()} | iv={iv.hex()} | pad={pad.hex()} | "
                f"encoded={encoded.hex()} | signature={signature.hex()} | "
                f"token={token}"
            )

        return token

    def decrypt_micros(self, token: str, debug: Optional[bool] = None) -> int:
        """
        Verify a token and return its price in integer micros.

        Raises:
            MalformedTokenError: If the token is not base64url or too short
            IntegrityVerificationError: If the integrity tag does not match
        """
        trace = self._debug_enabled(debug)

        envelope = decode_token(token)
        pad = self._pad(envelope.iv)
        micros = xor_bytes(pad, envelope.masked_price)
        expected = self._signature(micros, envelope.iv)

        if trace:
            self._log.debug(
                f"[PRICER] Decrypt | token={token} | iv={envelope.iv.hex()} | "
                f"encoded={envelope.masked_price.hex()} | "
                f"signature={envelope.tag.hex()} | pad={pad.hex()}"
            )

        if not hmac.compare_digest(expected, envelope.tag):
            self._log.warning(
                f"[{PricerErrorCode.INTEGRITY_FAILURE}] Price token signature mismatch | "
                f"iv={envelope.iv.hex()}"
            )
            raise IntegrityVerificationError("Failed to decrypt")

        return int.from_bytes(micros, "big")

    def decrypt(self, token: str, debug: Optional[bool] = None) -> float:
        """
        Verify a token and return the clear price.

        Raises:
            MalformedTokenError: If the token is not base64url or too short
            IntegrityVerificationError: If the integrity tag does not match
        """
        return remove_scale_factor(self.decrypt_micros(token, debug), self.scale_factor)

    def try_decrypt(self, token: str, debug: Optional[bool] = None) -> DecryptResult:
        """
        Decrypt without raising on bad tokens.

        Returns:
            DecryptResult with the price on success, or price 0.0 and the
            error code on failure
        """
        try:
            price = self.decrypt(token, debug)
        except (MalformedTokenError, IntegrityVerificationError) as e:
            return DecryptResult(
                success=False,
                price=0.0,
                error_code=e.error_code,
                error_message=e.message,
            )
        return DecryptResult(success=True, price=price, error_code=None, error_message=None)
