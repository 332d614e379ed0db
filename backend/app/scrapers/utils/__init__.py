"""Crawler utilities for data normalization."""

from .normalizer import PriceNormalizer

__all__ = [
    "PriceNormalizer",
]
