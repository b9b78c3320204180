"""
Credential providers for upstream APIs.

A provider turns configuration into the value of an ``Authorization``
header. Static tokens are used for the ZGW APIs; the Graph API needs an
OAuth client-credentials token.
"""

import json
import logging
import time
from typing import AsyncGenerator, Optional

import httpx

from core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
TOKEN_ENDPOINT = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"

# Refresh this many seconds before the token actually expires
EXPIRY_MARGIN = 60


def token_header(token: str) -> str:
    """``Authorization`` value for ZGW style APIs"""
    return f"Token {token}"


def bearer_header(token: str) -> str:
    """``Authorization`` value for bearer tokens"""
    return f"Bearer {token}"


class ClientCredentialsProvider:
    """
    Acquire bearer tokens with the OAuth 2.0 client-credentials flow.

    Tokens are cached until shortly before they expire.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        scope: str = GRAPH_SCOPE
    ):
        self.client = client
        self.token_url = TOKEN_ENDPOINT.format(tenant_id=tenant_id)
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self._token: Optional[str] = None
        self._expires_at = 0.0

    async def get_token(self) -> str:
        """Return a valid access token, requesting a new one when needed."""
        if self._token and time.monotonic() < self._expires_at:
            return self._token

        try:
            response = await self.client.post(
                self.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "scope": self.scope,
                }
            )
        except httpx.TransportError as e:
            raise AuthenticationError(
                "Token request failed",
                context={"token_url": self.token_url},
                original_exception=e
            )

        if not response.is_success:
            logger.error(f"Token request failed with status {response.status_code}: {response.text}")
            raise AuthenticationError(
                "Token request was rejected",
                context={
                    "token_url": self.token_url,
                    "status_code": response.status_code
                }
            )

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise AuthenticationError(
                "Token response is not valid JSON",
                context={"token_url": self.token_url},
                original_exception=e
            )

        token = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthenticationError(
                "Token response has no access_token",
                context={"token_url": self.token_url}
            )

        try:
            expires_in = float(body.get("expires_in", 3600))
        except (TypeError, ValueError) as e:
            raise AuthenticationError(
                "Token response has an invalid expires_in",
                context={"token_url": self.token_url, "expires_in": body.get("expires_in")},
                original_exception=e
            )

        self._token = token
        self._expires_at = time.monotonic() + max(expires_in - EXPIRY_MARGIN, 0)
        logger.debug("Acquired client-credentials token")
        return token

    async def authorization(self) -> str:
        return bearer_header(await self.get_token())


class ClientCredentialsAuth(httpx.Auth):
    """
    httpx auth flow that asks the provider for a token on every request.

    Long listings keep working after the first token expires, because the
    provider refreshes it once its cached lifetime has passed.
    """

    def __init__(self, provider: ClientCredentialsProvider):
        self.provider = provider

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        request.headers["Authorization"] = await self.provider.authorization()
        yield request
