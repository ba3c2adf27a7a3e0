"""
Unit Tests for the Price Token Envelope and Scale Factor Conversion

Tests:
- 28-byte IV || masked price || tag layout
- Web-safe base64 wire encoding with and without padding
- Short, malformed and over-long tokens
- Price to micros conversion, rounding and 64-bit range
"""

import base64
import os
import sys
from decimal import Decimal, getcontext, localcontext

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from rtb_pricers.envelope import (
    ENVELOPE_SIZE,
    PriceToken,
    decode_token,
    encode_token,
    xor_bytes,
)
from rtb_pricers.errors import (
    MalformedTokenError,
    PriceOutOfRangeError,
    PricerConfigurationError,
    PricerErrorCode,
)
from rtb_pricers.scaling import (
    MAX_MICROS,
    apply_scale_factor,
    price_to_micros,
    remove_scale_factor,
    validate_scale_factor,
)


IV = bytes(range(16))
MASKED = bytes(range(100, 108))
TAG = b"\xde\xad\xbe\xef"


# =============================================================================
# Envelope Layout
# =============================================================================

class TestPriceToken:

    def test_pack_layout(self) -> None:
        packed = PriceToken(iv=IV, masked_price=MASKED, tag=TAG).pack()

        assert len(packed) == ENVELOPE_SIZE == 28
        assert packed[0:16] == IV
        assert packed[16:24] == MASKED
        assert packed[24:28] == TAG

    def test_unpack_splits_fields(self) -> None:
        token = PriceToken.unpack(IV + MASKED + TAG)

        assert token.iv == IV
        assert token.masked_price == MASKED
        assert token.tag == TAG

    def test_unpack_ignores_trailing_bytes(self) -> None:
        token = PriceToken.unpack(IV + MASKED + TAG + b"extra")
        assert token.pack() == IV + MASKED + TAG

    def test_unpack_rejects_short_input(self) -> None:
        with pytest.raises(MalformedTokenError) as exc_info:
            PriceToken.unpack(IV + MASKED)
        assert exc_info.value.error_code == PricerErrorCode.MALFORMED_TOKEN

    @pytest.mark.parametrize("iv,masked,tag", [
        (IV[:15], MASKED, TAG),
        (IV, MASKED + b"\x00", TAG),
        (IV, MASKED, TAG[:3]),
    ])
    def test_field_sizes_are_enforced(self, iv, masked, tag) -> None:
        with pytest.raises(MalformedTokenError):
            PriceToken(iv=iv, masked_price=masked, tag=tag)


# =============================================================================
# Wire Encoding
# =============================================================================

class TestTokenEncoding:

    def test_encode_is_unpadded_websafe(self) -> None:
        text = encode_token(PriceToken(iv=IV, masked_price=MASKED, tag=TAG))

        assert len(text) == 38
        assert "=" not in text
        assert "+" not in text and "/" not in text

    def test_decode_accepts_padded_and_unpadded(self) -> None:
        raw = IV + MASKED + TAG
        padded = base64.urlsafe_b64encode(raw).decode()

        assert decode_token(padded).pack() == raw
        assert decode_token(padded.rstrip("=")).pack() == raw

    @pytest.mark.parametrize("text", ["", "   ", "!!!not-base64!!!", "abcde"])
    def test_decode_rejects_malformed_text(self, text: str) -> None:
        with pytest.raises(MalformedTokenError):
            decode_token(text)

    def test_decode_rejects_short_payload(self) -> None:
        text = base64.urlsafe_b64encode(b"\x00" * 27).decode()
        with pytest.raises(MalformedTokenError):
            decode_token(text)

    def test_xor_is_self_inverse(self) -> None:
        pad = b"\x0f" * 8
        assert xor_bytes(pad, xor_bytes(pad, MASKED)) == MASKED

    def test_xor_rejects_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            xor_bytes(b"\x00" * 8, b"\x00" * 7)


# =============================================================================
# Scale Factor Conversion
# =============================================================================

class TestScaling:

    def test_two_fifty_is_exact(self) -> None:
        assert price_to_micros(2.50) == 2_500_000

    def test_float_noise_is_rounded(self) -> None:
        # 0.1 + 0.2 == 0.30000000000000004
        assert price_to_micros(0.1 + 0.2) == 300_000

    def test_half_micro_rounds_to_even(self) -> None:
        assert price_to_micros(Decimal("0.0000025")) == 2
        assert price_to_micros(Decimal("0.0000035")) == 4

    def test_big_endian_encoding(self) -> None:
        assert apply_scale_factor(1) == (1_000_000).to_bytes(8, "big")
        assert apply_scale_factor(0) == b"\x00" * 8

    def test_custom_scale_factor(self) -> None:
        assert price_to_micros(1.2345, scale_factor=100) == 123
        assert remove_scale_factor(123, scale_factor=100) == pytest.approx(1.23)

    def test_remove_scale_factor_accepts_bytes(self) -> None:
        assert remove_scale_factor((2_500_000).to_bytes(8, "big")) == 2.5

    def test_caller_decimal_precision_is_ignored(self) -> None:
        with localcontext() as ctx:
            ctx.prec = 6
            assert price_to_micros(12.345678) == 12_345_678
            assert price_to_micros(MAX_MICROS, scale_factor=1) == MAX_MICROS
            assert getcontext().prec == 6

    def test_max_micros_fits(self) -> None:
        assert price_to_micros(MAX_MICROS, scale_factor=1) == MAX_MICROS

    def test_overflow_is_rejected(self) -> None:
        with pytest.raises(PriceOutOfRangeError):
            price_to_micros(MAX_MICROS + 1, scale_factor=1)

    def test_very_large_price_is_rejected(self) -> None:
        with pytest.raises(PriceOutOfRangeError):
            price_to_micros(1e300)

    @pytest.mark.parametrize("price", [-0.01, float("nan"), float("inf"), "abc"])
    def test_invalid_prices_are_rejected(self, price) -> None:
        with pytest.raises(PriceOutOfRangeError) as exc_info:
            price_to_micros(price)
        assert exc_info.value.error_code == PricerErrorCode.PRICE_OUT_OF_RANGE

    @pytest.mark.parametrize("scale", [0, -1, float("nan"), float("inf"), "x"])
    def test_invalid_scale_factor(self, scale) -> None:
        with pytest.raises(PricerConfigurationError):
            validate_scale_factor(scale)
