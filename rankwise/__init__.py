"""Rankwise: deterministic scoring and ranking of candidate answers."""

__version__ = "0.1.0"
