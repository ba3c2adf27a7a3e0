"""
Web-safe base64 helpers.

Exchanges hand out both keys and price tokens as RFC 4648 "URL and filename
safe" base64, frequently with the trailing ``=`` padding stripped. These
helpers repair the padding and reject anything outside the alphabet instead
of silently discarding it the way ``base64.urlsafe_b64decode`` does.
"""

import base64
import binascii
import re

# Web-safe alphabet, padding allowed only at the end
_WEBSAFE_PATTERN = re.compile(r"^[A-Za-z0-9_-]*={0,2}$")


def add_base64_padding(text: str) -> str:
    """
    Append the ``=`` characters a base64 string is missing.

    Strings whose length is already a multiple of four are returned as-is.
    """
    missing = -len(text) % 4
    if missing:
        return text + "=" * missing
    return text


def encode_websafe(data: bytes, padding: bool = False) -> str:
    """Encode bytes as web-safe base64, stripping ``=`` unless padding is requested."""
    encoded = base64.urlsafe_b64encode(data).decode("ascii")
    if padding:
        return encoded
    return encoded.rstrip("=")


def decode_websafe(text: str) -> bytes:
    """
    Decode web-safe base64 text, tolerating missing padding.

    Raises:
        ValueError: If the text contains characters outside the web-safe
            alphabet or has an impossible length.
    """
    text = text.strip()
    if not _WEBSAFE_PATTERN.match(text):
        raise ValueError("Invalid character in web-safe base64 input")

    try:
        return base64.b64decode(
            add_base64_padding(text), altchars=b"-_", validate=True
        )
    except binascii.Error as e:
        raise ValueError(f"Invalid web-safe base64 input: {e}") from e
