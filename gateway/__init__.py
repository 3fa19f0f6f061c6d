"""
TinyClaw gateway - HTTP surface of the auth broker.

Serves the OAuth start/callback/status/disconnect routes and the raw
settings document to the dashboard.
"""
from .app import create_app
from .server import GatewayServer

__version__ = "1.0.0"

__all__ = [
    'GatewayServer',
    'create_app',
]
