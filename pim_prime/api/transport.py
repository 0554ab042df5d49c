"""
REST Transport

Thin wrapper over httpx that attaches the session's bearer token and maps
every transport failure and non-2xx response to TransportError.
Calls are made once; nothing here retries.
"""

import logging
from typing import Any, Dict, Iterator, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from pim_prime.core.session import AuthSession, TokenAudience
from shared.pim_core.exceptions import TransportError

logger = logging.getLogger(__name__)

AUTHORIZATION_PROVIDER = "providers/Microsoft.Authorization"

ModelT = TypeVar("ModelT", bound=BaseModel)


def odata_literal(value: str) -> str:
    """Quote a string for an OData $filter expression."""
    return "'" + value.replace("'", "''") + "'"


def parse_body(model: Type[ModelT], body: Dict[str, Any], operation: str) -> ModelT:
    """Validate a response body, reporting shape mismatches as TransportError."""
    try:
        return model.model_validate(body)
    except SchemaError as e:
        raise TransportError(
            f"{operation}: unexpected response shape ({e.error_count()} errors)",
            operation=operation,
        ) from e


def _error_detail(response: httpx.Response) -> str:
    """Pull the service's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message") or ""
        return f"{code}: {message}" if code else message
    return response.reason_phrase


class RestClient:
    """
    Synchronous JSON client for one remote service.

    Features:
    - Bearer token from the explicit session on every call
    - Relative paths joined to the base URL, absolute URLs passed through
    - ``nextLink`` / ``@odata.nextLink`` pagination
    """

    def __init__(
        self,
        base_url: str,
        audience: TokenAudience,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: Service root, e.g. https://management.azure.com
            audience: Which token the session must supply
            client: Pre-built httpx client (tests pass one with a MockTransport)
            timeout: Seconds; None keeps httpx's default
        """
        self.base_url = base_url.rstrip("/")
        self.audience = audience

        if client is None:
            kwargs: Dict[str, Any] = {"base_url": self.base_url}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = httpx.Client(**kwargs)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client

    def request(
        self,
        session: AuthSession,
        method: str,
        url: str,
        operation: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Issue one request and return the decoded JSON body.

        Raises:
            TransportError: network failure, missing token or non-2xx status
        """
        headers = session.authorization_header(self.audience)
        if not url.startswith(("http://", "https://")):
            url = f"{self.base_url}/{url.lstrip('/')}"

        logger.debug(f"{operation}: {method} {url}")

        try:
            response = self._client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise TransportError(
                f"{operation}: {e}", operation=operation
            ) from e

        if response.is_error:
            raise TransportError(
                f"{operation}: HTTP {response.status_code} {_error_detail(response)}",
                operation=operation,
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{operation}: response is not JSON",
                operation=operation,
                status_code=response.status_code,
            ) from e

    def get(self, session: AuthSession, url: str, operation: str, params=None) -> Dict[str, Any]:
        return self.request(session, "GET", url, operation, params=params)

    def put(self, session: AuthSession, url: str, operation: str, body: Dict[str, Any], params=None) -> Dict[str, Any]:
        return self.request(session, "PUT", url, operation, params=params, json=body)

    def patch(self, session: AuthSession, url: str, operation: str, body: Dict[str, Any], params=None) -> Dict[str, Any]:
        return self.request(session, "PATCH", url, operation, params=params, json=body)

    def iter_pages(
        self,
        session: AuthSession,
        url: str,
        operation: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Yield each page body, following next links until exhausted."""
        next_url: Optional[str] = url
        page_params = params
        while next_url:
            page = self.get(session, next_url, operation, params=page_params)
            yield page
            next_url = page.get("nextLink") or page.get("@odata.nextLink")
            # Next links already carry the query string
            page_params = None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


__all__ = ["RestClient", "AUTHORIZATION_PROVIDER", "odata_literal", "parse_body"]
