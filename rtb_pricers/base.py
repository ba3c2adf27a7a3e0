"""
============================================================================
Base Pricer - Abstract Interface for Exchange Price Codecs
============================================================================

Reliability Level: L6 Critical

PRICER INTERFACE:
    Every exchange-specific price codec implements this interface so a
    bidder can hold one pricer per exchange and swap them freely.

Key Constraints:
- encrypt() is deterministic for a given seed, price and key pair
- decrypt() never returns an unverified price
============================================================================
"""

from abc import ABC, abstractmethod


class Pricer(ABC):
    """
    Abstract base class for price encryption codecs.
    """

    @abstractmethod
    def encrypt(self, seed: str, price: float) -> str:
        """
        Encrypt a clear price into a URL-safe token.

        Args:
            seed: Per-request value the token nonce is derived from
            price: Clear price in currency units

        Returns:
            Encrypted price token
        """
        pass

    @abstractmethod
    def decrypt(self, token: str) -> float:
        """
        Verify and decrypt a price token.

        Args:
            token: Encrypted price token

        Returns:
            Clear price in currency units
        """
        pass
