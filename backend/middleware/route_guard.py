"""
Route guard for the web page paths.

Signed-out visitors are sent to the login page from protected paths, and
signed-in visitors are sent to the dashboard from the public auth pages.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from config import DASHBOARD_PATH, GUARDED_PREFIXES, LOGIN_PATH, PUBLIC_PATHS, SESSION_COOKIE_NAME

logger = logging.getLogger(__name__)


class GuardAction(str, Enum):
    PASS = "pass"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    action: GuardAction
    location: Optional[str] = None


PASS_THROUGH = GuardDecision(GuardAction.PASS)


def is_guarded(path: str, prefixes: Iterable[str] = GUARDED_PREFIXES) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in prefixes)


def guard_request(path: str, credential: Optional[str],
                  public_paths: Iterable[str] = PUBLIC_PATHS,
                  prefixes: Iterable[str] = GUARDED_PREFIXES) -> GuardDecision:
    if not is_guarded(path, prefixes):
        return PASS_THROUGH
    if path in public_paths:
        if credential:
            return GuardDecision(GuardAction.REDIRECT, DASHBOARD_PATH)
        return PASS_THROUGH
    if not credential:
        return GuardDecision(GuardAction.REDIRECT, LOGIN_PATH)
    return PASS_THROUGH


class RouteGuardMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, cookie_name: str = SESSION_COOKIE_NAME):
        super().__init__(app)
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next):
        decision = guard_request(request.url.path, request.cookies.get(self.cookie_name))
        if decision.action == GuardAction.REDIRECT:
            logger.debug(f"Redirecting {request.url.path} -> {decision.location}")
            return RedirectResponse(url=str(request.url.replace(path=decision.location, query="")),
                                    status_code=307)
        return await call_next(request)
