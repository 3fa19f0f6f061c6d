"""
FastAPI application initialization and configuration.
"""
import logging
from typing import Optional

import httpx
from fastapi import FastAPI

from oauth import AuthBroker
from utils.storage import SettingsStore
from .middleware import log_requests_middleware
from .endpoints import auth_router, health_router, settings_router

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[SettingsStore] = None,
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the gateway app around an auth broker

    Args:
        store: Settings store (defaults to SETTINGS_FILE)
        base_url: Public base URL for redirect URIs (defaults to PUBLIC_BASE_URL)
        transport: Optional httpx transport for the token exchange
    """
    broker_kwargs = {"store": store, "transport": transport}
    if base_url is not None:
        broker_kwargs["base_url"] = base_url

    app = FastAPI(title="TinyClaw Auth Broker", version="1.0.0")
    app.state.broker = AuthBroker(**broker_kwargs)

    # Add middleware
    app.middleware("http")(log_requests_middleware)

    # Register routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(settings_router)

    logger.debug("FastAPI application initialized with all routers and middleware")
    return app
