"""
Async HTTP client for the course-management API.

This module provides a thin async HTTP client built on httpx with:
- Pluggable authentication (Basic credentials by default)
- Response parsing and error mapping
- Timeout configuration

Requests are issued exactly once; there is no retry loop.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import base64
import logging

import httpx

from trainingdesk_client.exceptions import (
    CourseApiError,
    InvalidResponseError,
    NetworkError,
    TimeoutError as ClientTimeoutError,
    exception_from_response,
)

logger = logging.getLogger(__name__)


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_authorization(self) -> Optional[str]:
        """Get the value for the Authorization header."""
        ...

    @abstractmethod
    def is_authenticated(self) -> bool:
        """Check if credentials are configured."""
        ...


class BasicAuthProvider(AuthProvider):
    """HTTP Basic credentials from configuration."""

    def __init__(self, username: Optional[str] = None, password: Optional[str] = None):
        self._username = username or ""
        self._password = password or ""

    async def get_authorization(self) -> Optional[str]:
        if not self.is_authenticated():
            return None
        credentials = f"{self._username}:{self._password}".encode("utf-8")
        return f"Basic {base64.b64encode(credentials).decode('ascii')}"

    def is_authenticated(self) -> bool:
        return bool(self._username)


class AsyncHTTPClient:
    """
    Async HTTP client for course backend requests.

    This client handles:
    - Base URL management
    - Authentication header injection
    - Response parsing and error handling
    """

    def __init__(
        self,
        base_url: str,
        auth_provider: Optional[AuthProvider] = None,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            base_url: Base URL for the API (e.g., "https://cms.example.com/wp-json/graston/v1")
            auth_provider: Authentication provider, Basic credentials by default
            timeout: Request timeout in seconds
            headers: Additional headers to include in all requests
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.auth_provider = auth_provider or BasicAuthProvider()
        self.timeout = timeout
        self._default_headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _build_headers(self, extra_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Build request headers."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self._default_headers,
        }
        if extra_headers:
            headers.update(extra_headers)
        return headers

    async def _add_auth_header(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Add authentication header if available."""
        if self.auth_provider and self.auth_provider.is_authenticated():
            authorization = await self.auth_provider.get_authorization()
            if authorization:
                headers["Authorization"] = authorization
        return headers

    def _handle_error_response(self, response: httpx.Response) -> None:
        """Convert HTTP error responses to appropriate exceptions."""
        status_code = response.status_code

        # WordPress REST errors look like {"code": ..., "message": ...}
        try:
            error_data = response.json()
            detail = error_data.get("message") or error_data.get("detail") or str(error_data)
            error_code = error_data.get("code") or error_data.get("error_code")
        except Exception:
            detail = response.text or f"HTTP {status_code}"
            error_code = None

        raise exception_from_response(
            status_code,
            f"API request failed: {status_code} {response.reason_phrase}: {detail}",
            error_code=error_code if isinstance(error_code, str) else None,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        """
        Make a single HTTP request.

        Raises:
            CourseApiError: On HTTP errors
            NetworkError: On connection failures
            TimeoutError: On request timeout
        """
        request_headers = self._build_headers(headers)
        if authenticated:
            request_headers = await self._add_auth_header(request_headers)

        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            # a malformed base URL only surfaces once the client is built
            client = await self._get_client()
            response = await client.request(
                method=method,
                url=path,
                params=params,
                headers=request_headers,
            )
        except httpx.TimeoutException as e:
            raise ClientTimeoutError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Connection failed: {e}") from e
        except httpx.InvalidURL as e:
            raise NetworkError(f"Invalid backend URL: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")

        if not response.is_success:
            self._handle_error_response(response)

        return response

    async def get(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self._request(
            "GET",
            path,
            params=params,
            headers=headers,
            authenticated=authenticated,
        )

    async def get_json(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make a GET request and decode the JSON body."""
        response = await self.get(path, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"Invalid JSON from {path}: {e}",
                status_code=response.status_code,
            ) from e


__all__ = [
    "AuthProvider",
    "BasicAuthProvider",
    "AsyncHTTPClient",
    "CourseApiError",
]
