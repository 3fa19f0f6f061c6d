"""
Endpoint handlers for the gateway.
"""
from .auth import router as auth_router
from .health import router as health_router
from .settings_routes import router as settings_router

__all__ = [
    'auth_router',
    'health_router',
    'settings_router',
]
