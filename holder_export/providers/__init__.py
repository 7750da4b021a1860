"""Upstream data providers.

This module contains providers for:
- Token accounts of a mint (Helius DAS getTokenAccounts)
"""

from .base import BaseProvider
from .helius import HeliusTokenAccountsProvider

__all__ = ["BaseProvider", "HeliusTokenAccountsProvider"]
