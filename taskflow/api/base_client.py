"""
Base API client with common functionality
"""

import asyncio
from abc import ABC
from typing import Optional, Dict, Any
import httpx
from taskflow.utils.logger import logger
from taskflow.utils.error_handler import SyncError
from taskflow.config.constants import MAX_RETRIES, RETRY_DELAY, HTTP_TIMEOUT


class BaseAPIClient(ABC):
    """Base class for API clients with common functionality"""

    def __init__(
        self,
        base_url: str,
        timeout: float = HTTP_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize base API client

        Args:
            base_url: Base URL for API
            timeout: Request timeout in seconds
            max_retries: Attempts per request (1 disables retrying)
            transport: Custom httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.logger = logger

    async def _request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
        retries: Optional[int] = None,
    ) -> Any:
        """
        Make HTTP request

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            endpoint: API endpoint
            headers: Request headers
            params: Query parameters
            json_data: JSON body
            retries: Number of attempts (defaults to max_retries)

        Returns:
            Decoded JSON body, or {} for empty responses

        Raises:
            SyncError: If the request fails or the body is not valid JSON
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        attempts = self.max_retries if retries is None else max(1, retries)

        for attempt in range(attempts):
            try:
                self.logger.debug(f"Request: {method} {url} (attempt {attempt + 1}/{attempts})")

                request_kwargs = {
                    "method": method,
                    "url": url,
                    "headers": headers,
                    "params": params,
                }

                if json_data is not None:
                    request_kwargs["json"] = json_data
                    self.logger.debug(f"Request JSON data: {json_data}")

                response = await self.client.request(**request_kwargs)

                self.logger.debug(f"Response status: {response.status_code}")
                if response.status_code >= 400:
                    self.logger.warning(f"Error response body: {response.text[:1000]}")

                response.raise_for_status()

                # Handle empty response (204 No Content or empty body)
                if response.status_code == 204 or not response.text.strip():
                    return {}

                try:
                    return response.json()
                except ValueError as e:
                    raise SyncError(
                        f"Invalid JSON from {method} {url}: {e}",
                        status_code=response.status_code,
                    ) from e

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                # Client errors will not change on retry
                if attempt < attempts - 1 and status >= 500:
                    self.logger.warning(
                        f"Request failed with status {status}, "
                        f"retrying in {RETRY_DELAY * (attempt + 1)} seconds..."
                    )
                    await asyncio.sleep(RETRY_DELAY * (attempt + 1))
                    continue
                self.logger.error(f"{method} {url} failed with status {status}")
                raise SyncError(
                    f"{method} {endpoint} failed with status {status}",
                    status_code=status,
                ) from e

            except httpx.RequestError as e:
                if attempt < attempts - 1:
                    self.logger.warning(
                        f"Request error: {e}, retrying in {RETRY_DELAY * (attempt + 1)} seconds..."
                    )
                    await asyncio.sleep(RETRY_DELAY * (attempt + 1))
                    continue
                self.logger.error(f"Request error after {attempts} attempts: {e}")
                raise SyncError(f"{method} {endpoint} failed: {e}") from e

    async def get(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make GET request"""
        return await self._request("GET", endpoint, headers=headers, params=params)

    async def post(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        json_data: Optional[Any] = None,
    ) -> Any:
        """Make POST request"""
        return await self._request("POST", endpoint, headers=headers, json_data=json_data)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
