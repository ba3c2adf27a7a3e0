"""
============================================================================
RTB Pricers - Configuration
============================================================================

Reliability Level: L6 Critical

This module provides configuration management for price codecs:
- Environment variable parsing with type safety (.env supported)
- Default values for optional configuration
- Validation of required configuration
- Fail-closed behavior on missing keys (PRICER-CFG-001)

ENVIRONMENT VARIABLES:
    - PRICER_ENCRYPTION_KEY: Encryption key string (REQUIRED)
    - PRICER_INTEGRITY_KEY: Integrity key string (REQUIRED)
    - PRICER_KEY_DECODING_MODE: "hex" or "base64web" (default: hex)
    - PRICER_BASE64_KEYS: Keys are web-safe base64 whatever the mode (default: false)
    - PRICER_SCALE_FACTOR: Price to micros multiplier (default: 1000000)
    - PRICER_DEBUG: Emit debug traces of intermediate values (default: false)

ERROR CODES:
    - PRICER-CFG-001: Required configuration missing or invalid

============================================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging
import math
import os

from dotenv import find_dotenv, load_dotenv

from rtb_pricers.errors import PricerConfigurationError, PricerErrorCode, KeyDecodingError
from rtb_pricers.keys import KeyDecodingMode
from rtb_pricers.scaling import DEFAULT_SCALE_FACTOR

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Environment Variable Names
# =============================================================================

ENV_ENCRYPTION_KEY = "PRICER_ENCRYPTION_KEY"
ENV_INTEGRITY_KEY = "PRICER_INTEGRITY_KEY"
ENV_KEY_DECODING_MODE = "PRICER_KEY_DECODING_MODE"
ENV_BASE64_KEYS = "PRICER_BASE64_KEYS"
ENV_SCALE_FACTOR = "PRICER_SCALE_FACTOR"
ENV_DEBUG = "PRICER_DEBUG"

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _redact(value: Optional[str]) -> str:
    """Show the first and last two characters of a secret only."""
    if not value:
        return "[MISSING]"
    if len(value) <= 8:
        return "[REDACTED]"
    return f"{value[:2]}...{value[-2:]}"


def _parse_bool(name: str, raw: Optional[str], default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    logger.warning(
        f"[PRICER-CONFIG] Invalid {name} value: {raw}, using default: {default}"
    )
    return default


# =============================================================================
# PricerConfig Class
# =============================================================================

@dataclass
class PricerConfig:
    """
    Price codec configuration.

    ============================================================================
    CONFIGURATION PARAMETERS:
    ============================================================================
    - encryption_key: Encryption key source string (REQUIRED)
    - integrity_key: Integrity key source string (REQUIRED)
    - key_decoding_mode: How key strings are decoded (default: HEX)
    - is_base64_keys: Decode keys as web-safe base64 (default: False)
    - scale_factor: Price to micros multiplier (default: 1,000,000)
    - debug: Emit debug traces (default: False)
    ============================================================================
    """

    encryption_key: str = ""
    integrity_key: str = ""
    key_decoding_mode: KeyDecodingMode = KeyDecodingMode.HEX
    is_base64_keys: bool = False
    scale_factor: float = DEFAULT_SCALE_FACTOR
    debug: bool = False

    def validate(self) -> None:
        """
        Validate configuration completeness.

        Raises:
            PricerConfigurationError: If keys are missing or scale factor invalid
        """
        errors: List[str] = []

        if not self.encryption_key or not self.encryption_key.strip():
            errors.append(f"{ENV_ENCRYPTION_KEY} must be set")
        if not self.integrity_key or not self.integrity_key.strip():
            errors.append(f"{ENV_INTEGRITY_KEY} must be set")

        try:
            scale = float(self.scale_factor)
        except (TypeError, ValueError):
            scale = float("nan")
        if not math.isfinite(scale) or scale <= 0:
            errors.append(
                f"{ENV_SCALE_FACTOR} must be finite and positive, got: {self.scale_factor}"
            )

        if errors:
            error_msg = "Pricer configuration validation failed: " + "; ".join(errors)
            logger.error(f"[{PricerErrorCode.CONFIG_INVALID}] {error_msg}")
            raise PricerConfigurationError(error_msg)

        logger.info(
            f"[PRICER-CONFIG] Configuration validated | "
            f"key_decoding_mode={self.key_decoding_mode.value} | "
            f"is_base64_keys={self.is_base64_keys} | "
            f"scale_factor={self.scale_factor} | "
            f"debug={self.debug}"
        )

    @classmethod
    def from_environment(cls, validate: bool = True, dotenv: bool = True) -> "PricerConfig":
        """
        Load configuration from environment variables.

        Args:
            validate: Whether to validate configuration after loading
            dotenv: Whether to load .env from the working directory first
                (existing variables win)

        Returns:
            PricerConfig instance with values from environment

        Raises:
            PricerConfigurationError: If required configuration is missing
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        encryption_key = os.environ.get(ENV_ENCRYPTION_KEY, "").strip()
        integrity_key = os.environ.get(ENV_INTEGRITY_KEY, "").strip()

        mode_str = os.environ.get(ENV_KEY_DECODING_MODE, KeyDecodingMode.HEX.value)
        try:
            key_decoding_mode = KeyDecodingMode.parse(mode_str)
        except KeyDecodingError as e:
            raise PricerConfigurationError(
                f"Invalid {ENV_KEY_DECODING_MODE} value: {mode_str}"
            ) from e

        is_base64_keys = _parse_bool(ENV_BASE64_KEYS, os.environ.get(ENV_BASE64_KEYS), False)
        debug = _parse_bool(ENV_DEBUG, os.environ.get(ENV_DEBUG), False)

        scale_str = os.environ.get(ENV_SCALE_FACTOR, str(DEFAULT_SCALE_FACTOR))
        try:
            scale_factor = float(scale_str.strip())
        except ValueError:
            logger.warning(
                f"[PRICER-CONFIG] Invalid {ENV_SCALE_FACTOR} value: {scale_str}, "
                f"using default: {DEFAULT_SCALE_FACTOR}"
            )
            scale_factor = DEFAULT_SCALE_FACTOR

        logger.info(
            f"[PRICER-CONFIG] Loading configuration from environment | "
            f"{ENV_ENCRYPTION_KEY}={_redact(encryption_key)} | "
            f"{ENV_INTEGRITY_KEY}={_redact(integrity_key)} | "
            f"{ENV_KEY_DECODING_MODE}={key_decoding_mode.value} | "
            f"{ENV_SCALE_FACTOR}={scale_factor}"
        )

        config = cls(
            encryption_key=encryption_key,
            integrity_key=integrity_key,
            key_decoding_mode=key_decoding_mode,
            is_base64_keys=is_base64_keys,
            scale_factor=scale_factor,
            debug=debug,
        )

        if validate:
            config.validate()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Configuration as a dictionary with keys redacted, for logging."""
        return {
            "encryption_key": _redact(self.encryption_key),
            "integrity_key": _redact(self.integrity_key),
            "key_decoding_mode": self.key_decoding_mode.value,
            "is_base64_keys": self.is_base64_keys,
            "scale_factor": self.scale_factor,
            "debug": self.debug,
        }


# =============================================================================
# Global Configuration Instance
# =============================================================================

_pricer_config: Optional[PricerConfig] = None


def get_pricer_config() -> PricerConfig:
    """
    Get or load the process-wide pricer configuration.

    Raises:
        PricerConfigurationError: If required configuration is missing
    """
    global _pricer_config
    if _pricer_config is None:
        _pricer_config = PricerConfig.from_environment(validate=True)
    return _pricer_config


def reset_pricer_config() -> None:
    """Drop the cached configuration (used by tests)."""
    global _pricer_config
    _pricer_config = None
