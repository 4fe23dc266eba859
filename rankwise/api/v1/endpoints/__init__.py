"""API v1 endpoints package."""

from rankwise.api.v1.endpoints import answers

__all__ = ["answers"]
