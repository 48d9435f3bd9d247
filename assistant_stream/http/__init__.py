"""HTTP endpoints for the assistant stream service."""

from .api import HeaderSessionProvider, create_app, router

__all__ = ["HeaderSessionProvider", "create_app", "router"]
