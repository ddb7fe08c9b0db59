"""Bagel Shop API: cart pricing, promo codes and checkout"""

__version__ = "1.0.0"
