"""
Client for the hosted identity provider.

Sign-up, password reset and social login all happen on the provider side;
this backend only exchanges a provider session id for the user's profile.
"""
import logging
from typing import Optional

import httpx

from config import AUTH_SERVICE_URL, AUTH_SERVICE_TIMEOUT
from errors import AuthRequiredError

logger = logging.getLogger(__name__)


class IdentityProvider:
    def __init__(self, base_url: str = AUTH_SERVICE_URL, timeout: float = AUTH_SERVICE_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch_session_data(self, session_id: str) -> dict:
        """Return {email, name, picture} for a provider session id"""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/auth/v1/session-data",
                    headers={"X-Session-ID": session_id},
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPError as e:
                logger.error(f"Auth error: {e}")
                raise AuthRequiredError("Invalid session_id") from e

        if not data.get("email"):
            raise AuthRequiredError("Identity provider returned no email")
        return data


identity_provider = IdentityProvider()


def get_identity_provider() -> IdentityProvider:
    return identity_provider
