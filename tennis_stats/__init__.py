"""Synthetic tennis dataset generation and aggregate statistics."""

__version__ = '0.1.0'
