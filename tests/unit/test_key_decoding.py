"""
Unit Tests for Key Decoding

Tests the key decoding module:
- Hex and web-safe base64 key strings
- is_base64 forces a single web-safe base64 decode
- Malformed keys fail with PRICER-KEY-001
"""

import base64
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from rtb_pricers.base64url import add_base64_padding, decode_websafe, encode_websafe
from rtb_pricers.errors import KeyDecodingError, PricerErrorCode
from rtb_pricers.keys import KeyDecodingMode, decode_key


RAW_KEY = bytes(range(32))


# =============================================================================
# KeyDecodingMode
# =============================================================================

class TestKeyDecodingMode:

    @pytest.mark.parametrize("value,expected", [
        ("hex", KeyDecodingMode.HEX),
        ("HEXA", KeyDecodingMode.HEX),
        (" base64web ", KeyDecodingMode.BASE64_WEB),
        ("base64", KeyDecodingMode.BASE64_WEB),
        (KeyDecodingMode.BASE64_WEB, KeyDecodingMode.BASE64_WEB),
    ])
    def test_parse_accepts_names_and_aliases(self, value, expected) -> None:
        assert KeyDecodingMode.parse(value) is expected

    def test_parse_rejects_unknown_mode(self) -> None:
        with pytest.raises(KeyDecodingError) as exc_info:
            KeyDecodingMode.parse("rot13")
        assert exc_info.value.error_code == PricerErrorCode.KEY_DECODING


# =============================================================================
# decode_key
# =============================================================================

class TestDecodeKey:

    def test_hex_key(self) -> None:
        assert decode_key(RAW_KEY.hex(), KeyDecodingMode.HEX) == RAW_KEY

    def test_hex_key_is_case_insensitive(self) -> None:
        assert decode_key(RAW_KEY.hex().upper(), "hex") == RAW_KEY

    def test_base64web_key_with_padding(self) -> None:
        source = base64.urlsafe_b64encode(RAW_KEY).decode()
        assert source.endswith("=")
        assert decode_key(source, KeyDecodingMode.BASE64_WEB) == RAW_KEY

    def test_base64web_key_without_padding(self) -> None:
        source = base64.urlsafe_b64encode(RAW_KEY).decode().rstrip("=")
        assert decode_key(source, KeyDecodingMode.BASE64_WEB) == RAW_KEY

    @pytest.mark.parametrize("mode", [KeyDecodingMode.BASE64_WEB, KeyDecodingMode.HEX])
    def test_base64_flag_decodes_websafe_key_once(self, mode: KeyDecodingMode) -> None:
        source = base64.urlsafe_b64encode(RAW_KEY).decode()
        assert decode_key(source, mode, is_base64=True) == RAW_KEY

    def test_base64_flag_rejects_non_base64_text(self) -> None:
        with pytest.raises(KeyDecodingError):
            decode_key("not*valid$base64", KeyDecodingMode.HEX, is_base64=True)

    def test_odd_length_hex_fails(self) -> None:
        with pytest.raises(KeyDecodingError):
            decode_key("abc", KeyDecodingMode.HEX)

    def test_non_hex_characters_fail(self) -> None:
        with pytest.raises(KeyDecodingError):
            decode_key("zz" * 16, KeyDecodingMode.HEX)

    def test_invalid_base64_alphabet_fails(self) -> None:
        with pytest.raises(KeyDecodingError):
            decode_key("not*valid$base64", KeyDecodingMode.BASE64_WEB)

    def test_standard_alphabet_is_rejected(self) -> None:
        with pytest.raises(KeyDecodingError):
            decode_key("ab+/cd==", KeyDecodingMode.BASE64_WEB)

    @pytest.mark.parametrize("source", ["", "   "])
    def test_empty_key_fails(self, source: str) -> None:
        with pytest.raises(KeyDecodingError):
            decode_key(source, KeyDecodingMode.HEX)


# =============================================================================
# Web-safe base64 helpers
# =============================================================================

class TestBase64Url:

    @pytest.mark.parametrize("text,expected", [
        ("", ""),
        ("abcd", "abcd"),
        ("abcde", "abcde==="),
        ("abcdef", "abcdef=="),
        ("abcdefg", "abcdefg="),
    ])
    def test_add_base64_padding(self, text: str, expected: str) -> None:
        assert add_base64_padding(text) == expected

    def test_encode_strips_padding_by_default(self) -> None:
        assert encode_websafe(b"\xfb\xff") == "-_8"
        assert encode_websafe(b"\xfb\xff", padding=True) == "-_8="

    def test_decode_accepts_missing_padding(self) -> None:
        assert decode_websafe("-_8") == b"\xfb\xff"

    def test_decode_rejects_impossible_length(self) -> None:
        with pytest.raises(ValueError):
            decode_websafe("abcde")
