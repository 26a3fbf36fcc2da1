"""
Market data package.

Provides:
- ImmutableRatesProvider: Multi-curve rates snapshot for one valuation date
"""

from .rates_provider import ImmutableRatesProvider

__all__ = [
    "ImmutableRatesProvider",
]
