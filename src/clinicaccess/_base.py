"""Base HTTP client for ClinicAccess API operations.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, NamedTuple, Callable, TypeVar
from urllib.parse import urljoin

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import DEFAULT_ENDPOINTS, Endpoints
from .exceptions import (
    ClinicAccessError,
    NetworkError,
    TimeoutError as AccessTimeoutError,
    TransportError,
    create_error_from_response,
    is_retryable_error,
)

logger = logging.getLogger(__name__)

# HTTP Error Status Constants
HTTP_SUCCESS_THRESHOLD = 400
MAX_BACKOFF_SECONDS = 10.0

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})

USER_AGENT = "ClinicAccess-Python-SDK/1.0.0"

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_model(model: type[ModelT], data: Any) -> ModelT:
    """Validate a response body against a model.

    Raises:
        TransportError: If the body does not have the expected shape.

    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise TransportError(
            f"Malformed {model.__name__} response", "MALFORMED_RESPONSE", e.errors()
        ) from e


def parse_model_list(model: type[ModelT], data: Any) -> list[ModelT]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise TransportError(
            f"Expected a list of {model.__name__}", "MALFORMED_RESPONSE"
        )
    return [parse_model(model, item) for item in data]


class RequestConfig(NamedTuple):
    """Configuration for HTTP requests."""

    json_data: dict[str, Any] | None = None
    params: dict[str, Any] | None = None
    timeout: float | None = None
    retries: int | None = None
    accept_statuses: tuple[int, ...] = ()


class BaseClient:
    """Base HTTP client for making API requests."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retries: int = 3,
        api_key: str | None = None,
        *,
        backoff: float = 1.0,
        endpoints: Endpoints | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize base HTTP client.

        Args:
            base_url: The base URL of the API
            timeout: Request timeout in seconds
            retries: Number of retry attempts for failed idempotent requests
            api_key: Optional API key for authentication
            backoff: Base delay in seconds for exponential backoff
            endpoints: Route table for the Access/Identity Service
            transport: Optional httpx transport, mainly for testing

        """
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff
        self.api_key = api_key
        self.endpoints = endpoints or DEFAULT_ENDPOINTS
        self._access_token: str | None = None

        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key

        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> BaseClient:
        """Async context manager entry.

        Returns:
            The client instance.

        """
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        await self._client.aclose()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    def set_access_token(self, token: str) -> None:
        """Set the access token for authenticated requests."""
        self._access_token = token

    def clear_access_token(self) -> None:
        """Clear the access token."""
        self._access_token = None

    def get_access_token(self) -> str | None:
        """Get the current access token.

        Returns:
            Current access token or None if not set.

        """
        return self._access_token

    def _retry_budget(self, method: str, config: RequestConfig) -> int:
        if config.retries is not None:
            return config.retries
        if method.upper() in IDEMPOTENT_METHODS:
            return self.retries
        return 0

    async def _make_request_generic(
        self,
        method: str,
        endpoint: str,
        parser: Callable[[httpx.Response], Any],
        *,
        config: RequestConfig | None = None,
    ) -> Any:
        """Make an HTTP request with bounded retry using a generic parser.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            parser: Function to parse the response
            config: Request configuration

        Returns:
            Parsed response data.

        Raises:
            DenialError: When the server refuses the request
            TransportError: When the server cannot be reached or answers with garbage

        """
        if config is None:
            config = RequestConfig()

        url = urljoin(self.base_url, endpoint.lstrip("/"))
        request_timeout = config.timeout or self.timeout
        request_retries = self._retry_budget(method, config)

        headers: dict[str, str] = {}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"

        attempt = 0
        while True:
            try:
                return await self._attempt_request_generic(
                    method,
                    url,
                    headers,
                    config,
                    request_timeout,
                    parser,
                )
            except ClinicAccessError as e:
                if attempt >= request_retries or not is_retryable_error(e):
                    raise
                delay = min(self.backoff * 2**attempt, MAX_BACKOFF_SECONDS)
                logger.warning(
                    "%s %s failed (%s), retrying in %.1fs (attempt %d of %d)",
                    method,
                    endpoint,
                    e.code,
                    delay,
                    attempt + 1,
                    request_retries,
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def make_request(
        self,
        method: str,
        endpoint: str,
        *,
        config: RequestConfig | None = None,
    ) -> Any:
        """Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            config: Request configuration

        Returns:
            Parsed JSON response data.

        """
        return await self._make_request_generic(
            method, endpoint, parser=self._parse_json, config=config
        )

    async def _attempt_request_generic(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        config: RequestConfig,
        timeout: float,
        parser: Callable[[httpx.Response], Any],
    ) -> Any:
        """Attempt a single HTTP request with generic parser.

        Returns:
            Parsed response.

        Raises:
            ClinicAccessError: For every failure, retryable or not.

        """
        try:
            response = await self._execute_request(
                method, url, headers, config, timeout
            )
        except httpx.TimeoutException as e:
            raise AccessTimeoutError("Request timeout") from e
        except httpx.TransportError as e:
            raise NetworkError("Network error") from e

        if (
            response.status_code < HTTP_SUCCESS_THRESHOLD
            or response.status_code in config.accept_statuses
        ):
            return parser(response)

        error_info, structured = self._parse_error_response(response)
        self._raise_api_error(response.status_code, error_info, structured)

    async def _execute_request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        config: RequestConfig,
        timeout: float,
    ) -> httpx.Response:
        """Execute the actual HTTP request.

        Returns:
            The HTTP response.

        """
        return await self._client.request(
            method,
            url,
            json=config.json_data,
            params=config.params,
            headers=headers,
            timeout=timeout,
        )

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "Malformed response body", "MALFORMED_RESPONSE", None, response.status_code
            ) from e

    @staticmethod
    def _parse_error_response(response: httpx.Response) -> tuple[dict[str, Any], bool]:
        """Parse error response from the API.

        Understands ``{"error": {"code", "message"}}`` as well as the flat
        ``{"success": false, "error": "text"}`` shape.

        Returns:
            Parsed error data and whether the body was structured.

        """
        try:
            error_data = response.json()
        except ValueError:
            return {"message": response.text or response.reason_phrase}, False

        if not isinstance(error_data, dict):
            return {"message": response.reason_phrase}, False

        error = error_data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error, True
        if isinstance(error, str) and error:
            return {"message": error, "details": error_data}, True
        if isinstance(error_data.get("message"), str) and error_data["message"]:
            return {"message": error_data["message"], "details": error_data}, True
        return {"message": response.reason_phrase}, False

    @staticmethod
    def _raise_api_error(
        status_code: int, error_info: dict[str, Any], structured: bool
    ) -> None:
        """Raise appropriate error for API response.

        Args:
            status_code: HTTP status code
            error_info: Error information from response
            structured: Whether the server sent a usable error body

        """
        raise create_error_from_response(status_code, error_info, structured=structured)
