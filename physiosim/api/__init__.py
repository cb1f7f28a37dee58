"""API package exposing FastAPI routers and schemas."""

from .routes import api_router, configure_services, get_services

__all__ = ["api_router", "configure_services", "get_services"]
