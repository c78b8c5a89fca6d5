"""HTTP API for the flow engine."""

from .endpoints import router, init_dependencies

__all__ = ["router", "init_dependencies"]
