"""Conversational configure-price-quote engine for industrial pumps."""

__version__ = "0.1.0"
