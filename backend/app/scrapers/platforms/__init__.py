"""Helpers for e-commerce platforms shared by several retailers."""
