# ============================================================================
# RTB Pricers v1.0.0
# Key Decoding
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Turns exchange-issued key strings into raw HMAC key bytes
#
# Exchanges distribute the encryption and integrity keys as text. The text is
# either hex digits or web-safe base64, selected by KeyDecodingMode. The
# is_base64 flag forces the web-safe base64 path whatever the mode says;
# keys are only ever decoded once.
#
# Error Codes:
#   - PRICER-KEY-001: Key source string could not be decoded
#
# ============================================================================

import binascii
import logging
from enum import Enum
from typing import Union

from rtb_pricers.base64url import decode_websafe
from rtb_pricers.errors import KeyDecodingError, PricerErrorCode

logger = logging.getLogger(__name__)


class KeyDecodingMode(Enum):
    """
    Encoding of the key source strings.

    HEX: key is hexadecimal digits (two per byte)
    BASE64_WEB: key is RFC 4648 web-safe base64, padding optional
    """
    HEX = "hex"
    BASE64_WEB = "base64web"

    @classmethod
    def parse(cls, value: Union[str, "KeyDecodingMode"]) -> "KeyDecodingMode":
        """
        Resolve a mode from its name or value, case-insensitively.

        Accepts "hex", "hexa", "base64web", "base64" and the enum itself.

        Raises:
            KeyDecodingError: If the value is not a known mode
        """
        if isinstance(value, cls):
            return value

        normalized = str(value).strip().lower()
        aliases = {
            "hex": cls.HEX,
            "hexa": cls.HEX,
            "base64web": cls.BASE64_WEB,
            "base64": cls.BASE64_WEB,
            "base64_web": cls.BASE64_WEB,
        }
        if normalized not in aliases:
            raise KeyDecodingError(f"Unknown key decoding mode: '{value}'")
        return aliases[normalized]


def decode_key(
    source: str,
    mode: Union[str, KeyDecodingMode] = KeyDecodingMode.HEX,
    is_base64: bool = False,
) -> bytes:
    """
    Decode a key source string into raw key bytes.

    Args:
        source: Key text as issued by the exchange
        mode: Encoding of the key material (hex or web-safe base64)
        is_base64: Decode as web-safe base64 regardless of mode

    Returns:
        Raw key bytes

    Raises:
        KeyDecodingError: If the string is empty, has odd-length hex,
            or contains characters outside the selected alphabet
    """
    mode = KeyDecodingMode.parse(mode)
    if is_base64:
        mode = KeyDecodingMode.BASE64_WEB

    if source is None or not source.strip():
        raise KeyDecodingError("Key source string is empty")

    text = source.strip()

    try:
        if mode is KeyDecodingMode.HEX:
            key = bytes.fromhex(text)
        else:
            key = decode_websafe(text)
    except (ValueError, binascii.Error) as e:
        logger.error(
            f"[{PricerErrorCode.KEY_DECODING}] Key decoding failed | "
            f"mode={mode.value} | is_base64={is_base64} | "
            f"length={len(text)} | error={e}"
        )
        raise KeyDecodingError(
            f"Cannot decode key as {mode.value}: {e}"
        ) from e

    if not key:
        raise KeyDecodingError("Decoded key is empty")

    return key
