# ============================================================================
# RTB Pricers v1.0.0
# Scale Factor Conversion
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Converts clear prices to 8-byte big-endian micros and back
#
# DECIMAL INTEGRITY:
#   - Prices pass through decimal.Decimal via str() before scaling, so
#     2.50 * 1,000,000 is exactly 2,500,000 and not 2,499,999.9999...
#   - Scaled values are rounded with ROUND_HALF_EVEN
#   - Micros must fit an unsigned 64-bit integer
#
# Error Codes:
#   - PRICER-PRICE-001: Price negative, not finite, or beyond 64-bit micros
#   - PRICER-CFG-001: Scale factor not finite or not positive
#
# ============================================================================

import logging
import math
from decimal import Context, Decimal, ROUND_HALF_EVEN, InvalidOperation, localcontext
from typing import Union

from rtb_pricers.errors import (
    PriceOutOfRangeError,
    PricerConfigurationError,
    PricerErrorCode,
)

logger = logging.getLogger(__name__)

# Default price -> micros multiplier
DEFAULT_SCALE_FACTOR = 1_000_000.0

# Largest micros value an 8-byte unsigned integer can carry
MAX_MICROS = 2 ** 64 - 1

MICROS_SIZE = 8

# Scaling arithmetic runs in its own context, not the caller's. 40 digits
# hold any 64-bit micros value plus the fractional digits of a float price.
DECIMAL_CONTEXT = Context(prec=40, rounding=ROUND_HALF_EVEN)

Number = Union[int, float, Decimal]


def validate_scale_factor(scale_factor: Number) -> float:
    """
    Check that a scale factor is a finite number greater than zero.

    Returns:
        The scale factor as float

    Raises:
        PricerConfigurationError: If the scale factor is unusable
    """
    try:
        value = float(scale_factor)
    except (TypeError, ValueError) as e:
        raise PricerConfigurationError(
            f"Scale factor must be a number, got: {scale_factor!r}"
        ) from e

    if not math.isfinite(value) or value <= 0:
        raise PricerConfigurationError(
            f"Scale factor must be finite and > 0, got: {scale_factor}"
        )
    return value


def price_to_micros(price: Number, scale_factor: Number = DEFAULT_SCALE_FACTOR) -> int:
    """
    Scale a clear price into integer micros.

    Raises:
        PriceOutOfRangeError: If the price is negative, NaN, infinite, or
            its micros exceed the unsigned 64-bit range
    """
    try:
        decimal_price = Decimal(str(price))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise PriceOutOfRangeError(f"Price is not a number: {price!r}") from e

    if not decimal_price.is_finite():
        raise PriceOutOfRangeError(f"Price must be finite, got: {price}")
    if decimal_price < 0:
        raise PriceOutOfRangeError(f"Price must be non-negative, got: {price}")

    with localcontext(DECIMAL_CONTEXT):
        scaled = decimal_price * Decimal(str(scale_factor))

        # Quantizing needs every integer digit to fit the decimal context
        if scaled <= MAX_MICROS + 1:
            micros = scaled.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)
        else:
            micros = scaled

    if micros > MAX_MICROS:
        logger.warning(
            f"[{PricerErrorCode.PRICE_OUT_OF_RANGE}] Price overflows micros | "
            f"price={price} | scale_factor={scale_factor}"
        )
        raise PriceOutOfRangeError(
            f"Price {price} at scale factor {scale_factor} exceeds "
            f"the unsigned 64-bit micros range"
        )

    return int(micros)


def apply_scale_factor(price: Number, scale_factor: Number = DEFAULT_SCALE_FACTOR) -> bytes:
    """Scale a price and encode the micros as 8 big-endian bytes."""
    return price_to_micros(price, scale_factor).to_bytes(MICROS_SIZE, "big")


def remove_scale_factor(micros: Union[int, bytes], scale_factor: Number = DEFAULT_SCALE_FACTOR) -> float:
    """
    Convert micros (an int or its 8-byte big-endian form) back to a price.
    """
    if isinstance(micros, (bytes, bytearray)):
        micros = int.from_bytes(micros, "big")
    return micros / float(scale_factor)
