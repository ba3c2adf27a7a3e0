# ============================================================================
# RTB Pricers v1.0.0
# Pricer Errors
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Stable error codes and exception hierarchy for price tokens
#
# Error Codes:
#   - PRICER-KEY-001: Key source string could not be decoded
#   - PRICER-PRICE-001: Price negative, not finite, or beyond 64-bit micros
#   - PRICER-TOKEN-001: Token is not valid base64url or is too short
#   - PRICER-TOKEN-002: Integrity tag mismatch (failed to decrypt)
#   - PRICER-CFG-001: Invalid or missing pricer configuration
#
# ============================================================================

from typing import Optional


class PricerErrorCode:
    """Pricer-specific error codes for audit logging."""
    KEY_DECODING = "PRICER-KEY-001"
    PRICE_OUT_OF_RANGE = "PRICER-PRICE-001"
    MALFORMED_TOKEN = "PRICER-TOKEN-001"
    INTEGRITY_FAILURE = "PRICER-TOKEN-002"
    CONFIG_INVALID = "PRICER-CFG-001"


class PricerError(Exception):
    """
    Base exception for all pricer errors.

    Carries a stable error code so callers and log pipelines can match on
    the failure kind without parsing messages.
    """

    error_code = "PRICER-000"

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code or self.error_code
        self.message = message
        super().__init__(f"[{self.error_code}] {message}")


class KeyDecodingError(PricerError):
    """Raised when an encryption or integrity key string is malformed."""
    error_code = PricerErrorCode.KEY_DECODING


class PriceOutOfRangeError(PricerError):
    """Raised when a price cannot be represented as unsigned 64-bit micros."""
    error_code = PricerErrorCode.PRICE_OUT_OF_RANGE


class MalformedTokenError(PricerError):
    """Raised when a token is not base64url or decodes to fewer than 28 bytes."""
    error_code = PricerErrorCode.MALFORMED_TOKEN


class IntegrityVerificationError(PricerError):
    """Raised when the recomputed integrity tag does not match the token's tag."""
    error_code = PricerErrorCode.INTEGRITY_FAILURE


class PricerConfigurationError(PricerError):
    """Raised when pricer configuration is missing or invalid."""
    error_code = PricerErrorCode.CONFIG_INVALID
