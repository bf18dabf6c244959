"""Synthetic market data used in place of a live feed."""

from .synthetic import generate_random_walk, generate_trend
