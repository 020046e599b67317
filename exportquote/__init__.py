"""
Export quotation engine.

Pure calculation core: landed cost -> sell price -> profit for a shipment of
packaged goods, computed from a read-only reference snapshot and a set of
trade parameters. No I/O, no shared state.
"""

from .quote_engine import QuoteEngine, calculate_quote, preflight

__all__ = ["QuoteEngine", "calculate_quote", "preflight"]
