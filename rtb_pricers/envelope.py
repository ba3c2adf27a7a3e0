# ============================================================================
# RTB Pricers v1.0.0
# Price Token Envelope
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Fixed 28-byte layout of an encrypted price and its wire encoding
#
# LAYOUT:
#   offset  0..16  IV            (MD5 of the seed)
#   offset 16..24  masked price  (big-endian micros XOR pad)
#   offset 24..28  tag           (truncated integrity HMAC)
#
# WIRE FORMAT:
#   Web-safe base64 of the 28 bytes. Producers strip "=" padding, consumers
#   accept tokens with or without it.
#
# Error Codes:
#   - PRICER-TOKEN-001: Token is not valid base64url or is too short
#
# ============================================================================

import logging
from dataclasses import dataclass

from rtb_pricers.base64url import decode_websafe, encode_websafe
from rtb_pricers.errors import MalformedTokenError, PricerErrorCode

logger = logging.getLogger(__name__)

IV_SIZE = 16
PRICE_SIZE = 8
TAG_SIZE = 4
ENVELOPE_SIZE = IV_SIZE + PRICE_SIZE + TAG_SIZE


@dataclass(frozen=True)
class PriceToken:
    """
    Decoded price token.

    Attributes:
        iv: 16-byte deterministic nonce derived from the seed
        masked_price: 8-byte micros XOR keystream
        tag: 4-byte integrity tag
    """
    iv: bytes
    masked_price: bytes
    tag: bytes

    def __post_init__(self) -> None:
        if len(self.iv) != IV_SIZE:
            raise MalformedTokenError(f"IV must be {IV_SIZE} bytes, got {len(self.iv)}")
        if len(self.masked_price) != PRICE_SIZE:
            raise MalformedTokenError(
                f"Masked price must be {PRICE_SIZE} bytes, got {len(self.masked_price)}"
            )
        if len(self.tag) != TAG_SIZE:
            raise MalformedTokenError(f"Tag must be {TAG_SIZE} bytes, got {len(self.tag)}")

    def pack(self) -> bytes:
        """Concatenate IV || masked price || tag."""
        return self.iv + self.masked_price + self.tag

    @classmethod
    def unpack(cls, data: bytes) -> "PriceToken":
        """
        Split raw envelope bytes into their fields.

        Only the first 28 bytes are consumed; trailing bytes are ignored.

        Raises:
            MalformedTokenError: If fewer than 28 bytes are supplied
        """
        if len(data) < ENVELOPE_SIZE:
            raise MalformedTokenError(
                f"Token must decode to at least {ENVELOPE_SIZE} bytes, got {len(data)}"
            )
        if len(data) > ENVELOPE_SIZE:
            logger.debug(
                f"[PRICER] Ignoring trailing token bytes | "
                f"length={len(data)} | consumed={ENVELOPE_SIZE}"
            )
        return cls(
            iv=bytes(data[0:IV_SIZE]),
            masked_price=bytes(data[IV_SIZE:IV_SIZE + PRICE_SIZE]),
            tag=bytes(data[IV_SIZE + PRICE_SIZE:ENVELOPE_SIZE]),
        )


def xor_bytes(left: bytes, right: bytes) -> bytes:
    """Byte-wise XOR of two equal-length byte strings."""
    if len(left) != len(right):
        raise ValueError(f"XOR operands differ in length: {len(left)} != {len(right)}")
    return bytes(a ^ b for a, b in zip(left, right))


def encode_token(token: PriceToken) -> str:
    """Encode a PriceToken as unpadded web-safe base64."""
    return encode_websafe(token.pack())


def decode_token(text: str) -> PriceToken:
    """
    Decode web-safe base64 text into a PriceToken.

    Raises:
        MalformedTokenError: If the text is not base64url or too short
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedTokenError("Token is empty")

    try:
        raw = decode_websafe(text)
    except ValueError as e:
        logger.warning(
            f"[{PricerErrorCode.MALFORMED_TOKEN}] Token is not web-safe base64 | "
            f"length={len(text)} | error={e}"
        )
        raise MalformedTokenError(f"Token is not valid web-safe base64: {e}") from e

    return PriceToken.unpack(raw)
