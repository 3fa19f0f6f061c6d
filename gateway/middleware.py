"""
FastAPI middleware for request logging and timing.
"""
import time
import logging
from fastapi import Request

from settings import API_PREFIX

logger = logging.getLogger(__name__)


async def log_requests_middleware(request: Request, call_next):
    """Middleware for request logging and timing

    Only the path is logged: callback query strings carry codes and state.
    """
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    # Dashboard polling of /status is noisy, keep it at debug
    if request.url.path.startswith(API_PREFIX + "/"):
        level = logging.DEBUG if request.url.path.endswith("/status") else logging.INFO
        logger.log(level, f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")

    return response
