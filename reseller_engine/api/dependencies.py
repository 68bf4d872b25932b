"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from reseller_engine.infrastructure.clients.renderer import RendererClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_renderer_client() -> RendererClient:
    """Provide document renderer webhook client instance"""
    return RendererClient()
