"""API version 1."""

from rankwise.api.v1.router import router

__all__ = ["router"]
