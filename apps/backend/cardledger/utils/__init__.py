"""
Utils package
"""

from .money import quantize_amount, to_money

__all__ = [
    "quantize_amount",
    "to_money",
]
