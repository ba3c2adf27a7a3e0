# ============================================================================
# RTB Pricers v1.0.0
# Real-Time Bidding Price Encryption
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Encrypt winning prices into URL-safe tokens and verify them back
#
# Components:
#   - DoubleClickPricer: HMAC keystream + truncated HMAC tag price codec
#   - PriceToken: 28-byte IV || masked price || tag envelope
#   - KeyDecodingMode / decode_key: hex and web-safe base64 key strings
#   - PricerConfig: Environment (.env) backed configuration
#
# ============================================================================

from rtb_pricers.base import Pricer
from rtb_pricers.config import PricerConfig, get_pricer_config, reset_pricer_config
from rtb_pricers.doubleclick import DecryptResult, DoubleClickPricer
from rtb_pricers.envelope import ENVELOPE_SIZE, PriceToken, decode_token, encode_token
from rtb_pricers.errors import (
    IntegrityVerificationError,
    KeyDecodingError,
    MalformedTokenError,
    PriceOutOfRangeError,
    PricerConfigurationError,
    PricerError,
    PricerErrorCode,
)
from rtb_pricers.keyed_hash import KeyedHash
from rtb_pricers.keys import KeyDecodingMode, decode_key
from rtb_pricers.scaling import DEFAULT_SCALE_FACTOR, apply_scale_factor, remove_scale_factor

__all__ = [
    # Pricers
    'Pricer',
    'DoubleClickPricer',
    'DecryptResult',
    # Envelope
    'PriceToken',
    'ENVELOPE_SIZE',
    'encode_token',
    'decode_token',
    # Keys
    'KeyDecodingMode',
    'KeyedHash',
    'decode_key',
    # Scaling
    'DEFAULT_SCALE_FACTOR',
    'apply_scale_factor',
    'remove_scale_factor',
    # Configuration
    'PricerConfig',
    'get_pricer_config',
    'reset_pricer_config',
    # Errors
    'PricerError',
    'PricerErrorCode',
    'KeyDecodingError',
    'PriceOutOfRangeError',
    'MalformedTokenError',
    'IntegrityVerificationError',
    'PricerConfigurationError',
]

__version__ = '1.0.0'
