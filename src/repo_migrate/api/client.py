"""Base HTTP API client shared by the hosting and CI clients."""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import aiohttp
import requests
from loguru import logger
from pydantic import BaseModel

from .. import __version__
from .exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    UnprocessableEntityError,
)

USER_AGENT = f'repo-migrate/{__version__}'


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    success: bool


def error_for_status(
    status_code: int,
    headers: Dict[str, str],
    error_data: Any = None,
    text: str = '',
) -> Optional[APIError]:
    """Map an HTTP status to the matching API exception.

    Args:
        status_code: HTTP status code
        headers: Response headers
        error_data: Decoded JSON error body, if any
        text: Raw response body

    Returns:
        Exception to raise, or None for a successful status
    """
    if status_code < 400:
        return None

    message = None
    if isinstance(error_data, dict):
        message = error_data.get('message') or error_data.get('error')
        if isinstance(message, dict):
            message = message.get('message')
    if not message:
        message = f'HTTP {status_code}: {text}' if text else f'HTTP {status_code}'

    kwargs = {'status_code': status_code, 'response_data': error_data}

    if status_code == 429:
        retry_after = int(headers.get('Retry-After', 60))
        return RateLimitError(
            f'Rate limit exceeded. Retry after {retry_after} seconds',
            retry_after=retry_after,
            **kwargs,
        )
    if status_code == 401:
        return AuthenticationError(f'Authentication failed: {message}', **kwargs)
    if status_code == 403:
        return PermissionDeniedError(f'Permission denied: {message}', **kwargs)
    if status_code == 404:
        return NotFoundError(f'Resource not found: {message}', **kwargs)
    if status_code == 422:
        return UnprocessableEntityError(f'Unprocessable entity: {message}', **kwargs)

    return APIError(f'API request failed: {message}', **kwargs)


class APIClient:
    """HTTP client with authentication and error mapping.

    Synchronous calls go through a ``requests`` session and are used while
    inspecting the hosts. Calls made while executing a plan are awaited
    through ``aiohttp``.
    """

    #: Endpoint used by :meth:`test_connection`
    connection_check_endpoint = '/'

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        basic_auth: Optional[Tuple[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """Initialize API client.

        Args:
            base_url: API root URL
            timeout: Request timeout in seconds
            basic_auth: Optional (username, password) pair
            headers: Extra headers sent with every request
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.basic_auth = basic_auth

        self.headers = {
            'Content-Type': 'application/json',
            'User-Agent': USER_AGENT,
        }
        if headers:
            self.headers.update(headers)

        self.session = requests.Session()
        self.session.headers.update(self.headers)
        if basic_auth:
            self.session.auth = basic_auth

        self.logger = logger.bind(component=self.__class__.__name__)

    def _build_url(self, endpoint: str) -> str:
        """Build full API URL from endpoint.

        Absolute URLs, such as pagination links, are returned unchanged.

        Args:
            endpoint: API endpoint path

        Returns:
            Full API URL
        """
        if endpoint.startswith(('http://', 'https://')):
            return endpoint
        return urljoin(self.base_url + '/', endpoint.lstrip('/'))

    def _handle_response(self, response: requests.Response) -> APIResponse:
        """Handle API response and convert to standard format.

        Args:
            response: Raw HTTP response

        Returns:
            Standardized API response

        Raises:
            APIError: For various API errors
        """
        headers = dict(response.headers)

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = None
            raise error_for_status(
                response.status_code, headers, error_data, response.text
            )

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text

        return APIResponse(
            status_code=response.status_code,
            data=data,
            headers=headers,
            success=200 <= response.status_code < 300,
        )

    def _request(self, method: str, endpoint: str, **kwargs) -> APIResponse:
        url = self._build_url(endpoint)

        try:
            response = self.session.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            self.logger.error(f'Network error during {method} request: {e}')
            raise APIError(f'Network error: {e}')

        return self._handle_response(response)

    def get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make GET request.

        Args:
            endpoint: API endpoint
            params: Query parameters
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        return self._request('GET', endpoint, params=params, **kwargs)

    async def _make_request_async(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> APIResponse:
        """Make asynchronous API request.

        Args:
            method: HTTP method
            endpoint: API endpoint
            params: Query parameters
            data: Request body data
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        url = self._build_url(endpoint)
        auth = aiohttp.BasicAuth(*self.basic_auth) if self.basic_auth else None
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        async with aiohttp.ClientSession(
            headers=self.headers, auth=auth, timeout=timeout
        ) as session:
            try:
                async with session.request(
                    method=method, url=url, params=params, json=data, **kwargs
                ) as response:
                    response_headers = dict(response.headers)
                    response_text = await response.text()

                    try:
                        response_data = (
                            json.loads(response_text) if response_text else None
                        )
                    except (ValueError, json.JSONDecodeError):
                        response_data = response_text

                    if response.status >= 400:
                        raise error_for_status(
                            response.status,
                            response_headers,
                            response_data,
                            response_text,
                        )

                    return APIResponse(
                        status_code=response.status,
                        data=response_data,
                        headers=response_headers,
                        success=200 <= response.status < 300,
                    )

            except aiohttp.ClientError as e:
                self.logger.error(f'Network error during API request: {e}')
                raise APIError(f'Network error: {e}')
            except asyncio.TimeoutError:
                self.logger.error(f'API request timed out after {self.timeout}s: {url}')
                raise APIError(f'Request timed out after {self.timeout}s')

    async def get_async(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make asynchronous GET request."""
        return await self._make_request_async('GET', endpoint, params=params, **kwargs)

    async def post_async(
        self, endpoint: str, data: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make asynchronous POST request."""
        return await self._make_request_async('POST', endpoint, data=data, **kwargs)

    async def put_async(
        self, endpoint: str, data: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make asynchronous PUT request."""
        return await self._make_request_async('PUT', endpoint, data=data, **kwargs)

    async def patch_async(
        self, endpoint: str, data: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make asynchronous PATCH request."""
        return await self._make_request_async('PATCH', endpoint, data=data, **kwargs)

    def get_paginated(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        per_page: int = 100,
    ) -> List[Dict[str, Any]]:
        """Get all pages of a page-numbered endpoint.

        Args:
            endpoint: API endpoint
            params: Query parameters
            per_page: Items per page

        Returns:
            List of all items from all pages
        """
        all_items = []
        page = 1

        params = dict(params or {})
        params['per_page'] = per_page

        while True:
            params['page'] = page
            response = self.get(endpoint, params=params)

            items = response.data
            if not items:
                break

            all_items.extend(items)

            if len(items) < per_page:
                break

            page += 1

        self.logger.debug(f'Retrieved {len(all_items)} items from {endpoint}')
        return all_items

    def test_connection(self) -> bool:
        """Test connection to the API.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            response = self.get(self.connection_check_endpoint)
            return response.success
        except APIError as e:
            self.logger.error(f'Connection test failed: {e}')
            return False

    def close(self):
        """Close the client session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
