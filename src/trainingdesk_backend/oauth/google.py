"""
Async client for the Google OAuth 2.0 / OpenID Connect endpoints.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from trainingdesk_types.auth import OAuthUserInfo

logger = logging.getLogger(__name__)

AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

DEFAULT_SCOPE = "openid email profile"


class OAuthError(Exception):
    """Code exchange or userinfo lookup failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GoogleOAuthClient:
    """
    Authorization-code flow against Google.

    Handles building the authorization URL, exchanging the code for an access
    token and reading the OpenID userinfo document.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def authorization_url(self, redirect_uri: str, state: str, hosted_domain: Optional[str] = None) -> str:
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "scope": DEFAULT_SCOPE,
            "redirect_uri": redirect_uri,
            "state": state,
            "prompt": "select_account",
        }
        if hosted_domain:
            # only a hint for the account chooser; the domain is enforced on callback
            params["hd"] = hosted_domain
        return f"{AUTHORIZATION_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        """
        Exchange an authorization code for an access token.

        Raises:
            OAuthError: If the token endpoint rejects the code or is unreachable.
        """
        client = await self._ensure_client()
        try:
            resp = await client.post(
                TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise OAuthError(f"Token endpoint unreachable: {e}") from e

        if not resp.is_success:
            raise OAuthError(f"Token exchange failed: {resp.status_code} {resp.text}", resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise OAuthError(f"Invalid token response: {e}", resp.status_code) from e
        if not isinstance(data, dict):
            raise OAuthError(f"Invalid token response: expected an object, got {type(data).__name__}", resp.status_code)

        access_token = data.get("access_token")

        if not access_token:
            raise OAuthError("Token response did not contain an access_token", resp.status_code)
        return access_token

    async def fetch_userinfo(self, access_token: str) -> OAuthUserInfo:
        """
        Read the OpenID userinfo document for ``access_token``.

        Raises:
            OAuthError: If the request fails or the document is unreadable.
        """
        client = await self._ensure_client()
        try:
            resp = await client.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise OAuthError(f"Userinfo endpoint unreachable: {e}") from e

        if not resp.is_success:
            raise OAuthError(f"Userinfo request failed: {resp.status_code}", resp.status_code)

        try:
            return OAuthUserInfo.model_validate(resp.json())
        except ValueError as e:
            raise OAuthError(f"Invalid userinfo response: {e}", resp.status_code) from e

    async def authenticate(self, code: str, redirect_uri: str) -> OAuthUserInfo:
        access_token = await self.exchange_code(code, redirect_uri)
        return await self.fetch_userinfo(access_token)
