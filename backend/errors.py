"""
Error taxonomy shared by services and routers.

Services raise these; a single exception handler registered in server.py
turns them into JSON responses.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Bad or missing input, rejected before any write"""
    status_code = 400


class AuthRequiredError(ValidationError):
    """Action attempted without an authenticated identity"""
    status_code = 401


class PermissionDeniedError(MarketplaceError):
    status_code = 403


class NotFoundError(MarketplaceError):
    status_code = 404


class InvalidTransitionError(MarketplaceError):
    """Illegal order status change"""
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change order status from {current} to {requested}")
        self.current = current
        self.requested = requested


class StoreError(MarketplaceError):
    """Persistence or network failure; the cause is chained on __cause__"""
    status_code = 503
    public_message = "The service is temporarily unavailable, please try again"


async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if isinstance(exc, StoreError):
        logger.error(f"Store error on {request.method} {request.url.path}: {exc.message}", exc_info=exc.__cause__)
        detail = StoreError.public_message
    else:
        detail = exc.message
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})
