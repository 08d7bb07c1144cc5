"""HTTP API for scheduling captures and browsing screenshots."""

from exactshot.api.endpoints import create_api_router, install_http_middleware

__all__ = ["create_api_router", "install_http_middleware"]
