"""Base Microsoft Graph API client with retry logic and error handling.

This module provides the HTTP client shared by every SharePoint Embedded
operation:
- Automatic retry with exponential backoff for transient errors
- Proper handling of rate limits (429 responses)
- Routing to the v1.0 or beta endpoint per request
- Binary content uploads alongside JSON requests

Usage:
    from spe_mcp.auth.msal_auth import GraphAuth
    from spe_mcp.graph.client import GraphClient

    auth = GraphAuth(tenant_id, client_id, client_secret)
    client = GraphClient(auth)

    containers = client.get("/storage/fileStorage/containers", beta=True)
"""

import random
import time
from typing import Any

import requests

from spe_mcp.auth.msal_auth import GraphAuth
from spe_mcp.core.errors import AuthenticationError, GraphAPIError, RateLimitExceeded
from spe_mcp.core.logging import get_logger

logger = get_logger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_BETA_URL = "https://graph.microsoft.com/beta"

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAYS = [1.0, 2.0, 4.0]
DEFAULT_TIMEOUT = 30.0


class GraphClient:
    """Microsoft Graph API client with retry logic and error handling.

    One instance is created per process and shared by the container and
    drive item managers. It owns a ``requests.Session``; call ``close()``
    on shutdown.

    Attributes:
        auth: GraphAuth instance for token management
        base_url: Graph v1.0 base URL
        beta_url: Graph beta base URL
        max_retries: Maximum number of retry attempts
        retry_delays: Delay (seconds) before each retry
    """

    def __init__(
        self,
        auth: GraphAuth,
        base_url: str = GRAPH_BASE_URL,
        beta_url: str = GRAPH_BETA_URL,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delays: list[float] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.beta_url = beta_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delays = retry_delays or DEFAULT_RETRY_DELAYS
        self.timeout = timeout

        self.session = requests.Session()

        logger.debug(
            "GraphClient initialized",
            base_url=self.base_url,
            beta_url=self.beta_url,
            max_retries=self.max_retries,
        )

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
        logger.debug("GraphClient closed")

    def _get_headers(self, content_type: str) -> dict[str, str]:
        """Get request headers with current access token.

        Raises:
            AuthenticationError: If token cannot be acquired
        """
        try:
            token = self.auth.get_access_token()
        except AuthenticationError:
            raise
        except Exception as e:
            logger.error("Failed to get access token", error=str(e))
            raise AuthenticationError(
                f"Cannot authenticate with Microsoft Graph: {e}. "
                "Run 'python -m spe_mcp validate-config' to check your credentials."
            ) from e

        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": content_type,
            "Accept": "application/json",
        }

    def _make_url(self, endpoint: str, beta: bool = False) -> str:
        """Construct the full URL for an endpoint.

        Args:
            endpoint: API endpoint path (e.g., "/drives/{id}/root")
            beta: Use the beta endpoint instead of v1.0

        Returns:
            Full URL including base URL
        """
        if endpoint.startswith("http"):
            return endpoint  # Already a full URL (e.g., @odata.nextLink)
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        return (self.beta_url if beta else self.base_url) + endpoint

    def _handle_error_response(
        self, response: requests.Response, method: str, endpoint: str
    ) -> None:
        """Raise a GraphAPIError carrying details from the error response."""
        try:
            error_data = response.json()
            error_info = error_data.get("error", {})
            error_code = error_info.get("code", "unknown")
            error_message = error_info.get("message", response.text)
        except ValueError:
            error_code = "unknown"
            error_message = response.text or f"HTTP {response.status_code}"

        logger.error(
            "Graph API error",
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
            error_code=error_code,
            error_message=error_message[:200],
        )

        if response.status_code == 401:
            raise GraphAPIError(
                f"Authentication failed (401): {error_message}. "
                "Check the application's client secret and tenant.",
                status_code=401,
                error_code=error_code,
            )
        elif response.status_code == 403:
            raise GraphAPIError(
                f"Permission denied (403): {error_message}. "
                "Check that FileStorageContainer.Selected is granted and the app is "
                "registered on the container type.",
                status_code=403,
                error_code=error_code,
            )
        elif response.status_code == 404:
            raise GraphAPIError(
                f"Resource not found (404): {error_message}. "
                f"The endpoint '{endpoint}' may be incorrect or the resource doesn't exist.",
                status_code=404,
                error_code=error_code,
            )
        elif response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitExceeded(
                f"Rate limit exceeded (429). Retry after: {retry_after or 'unknown'} seconds.",
                retry_after=retry_after,
            )
        else:
            raise GraphAPIError(
                f"Graph API error ({response.status_code}): {error_message}",
                status_code=response.status_code,
                error_code=error_code,
            )

    def _should_retry(self, response: requests.Response, attempt: int) -> bool:
        """Retry on 5xx and 429 while attempts remain."""
        if attempt >= self.max_retries:
            return False
        return response.status_code == 429 or 500 <= response.status_code < 600

    def _get_retry_delay(self, response: requests.Response | None, attempt: int) -> float:
        """Get the delay before retrying a request, with ±20% jitter.

        Honours Retry-After on 429 responses.
        """
        if response is not None and response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            if retry_after:
                try:
                    base_delay = float(retry_after)
                    jitter = base_delay * 0.2 * (2 * random.random() - 1)
                    return base_delay + jitter
                except ValueError:
                    pass

        base_delay = self.retry_delays[min(attempt, len(self.retry_delays) - 1)]
        jitter = base_delay * 0.2 * (2 * random.random() - 1)
        return base_delay + jitter

    @staticmethod
    def _parse_body(response: requests.Response) -> dict[str, Any]:
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        data: bytes | None = None,
        content_type: str = "application/json",
        beta: bool = False,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Make an HTTP request to the Graph API with retry logic.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            endpoint: API endpoint path or absolute URL
            params: URL query parameters
            json: JSON body (mutually exclusive with data)
            data: Raw bytes body, e.g. file content
            content_type: Content-Type header for the body
            beta: Route to the Graph beta endpoint
            timeout: Request timeout in seconds (default: client timeout)

        Returns:
            Parsed JSON response as a dictionary ({} for empty responses)

        Raises:
            GraphAPIError: For API errors (4xx, 5xx)
            RateLimitExceeded: When 429 persists after all retries
            AuthenticationError: When authentication fails
        """
        url = self._make_url(endpoint, beta=beta)
        request_timeout = timeout or self.timeout
        last_response = None

        for attempt in range(self.max_retries + 1):
            try:
                headers = self._get_headers(content_type)

                logger.debug(
                    "Graph API request",
                    method=method,
                    endpoint=endpoint,
                    beta=beta,
                    attempt=attempt + 1,
                    params=list(params.keys()) if params else None,
                    body_bytes=len(data) if data is not None else None,
                )

                response = self.session.request(
                    method=method,
                    url=url,
                    headers=headers,
                    params=params,
                    json=json,
                    data=data,
                    timeout=request_timeout,
                )
                last_response = response

                if response.status_code < 400:
                    return self._parse_body(response)

                if self._should_retry(response, attempt):
                    delay = self._get_retry_delay(response, attempt)
                    logger.warning(
                        "Retrying Graph API request",
                        method=method,
                        endpoint=endpoint,
                        status_code=response.status_code,
                        attempt=attempt + 1,
                        max_retries=self.max_retries,
                        delay=delay,
                    )
                    time.sleep(delay)
                    continue

                self._handle_error_response(response, method, endpoint)

            except requests.exceptions.Timeout:
                if attempt < self.max_retries:
                    delay = self._get_retry_delay(None, attempt)
                    logger.warning(
                        "Graph API request timed out, retrying",
                        method=method,
                        endpoint=endpoint,
                        attempt=attempt + 1,
                        delay=delay,
                    )
                    time.sleep(delay)
                    continue
                raise GraphAPIError(
                    f"Request to {endpoint} timed out after {request_timeout}s and "
                    f"{self.max_retries} retries. Microsoft Graph API may be experiencing issues.",
                    status_code=None,
                ) from None

            except requests.exceptions.ConnectionError as e:
                if attempt < self.max_retries:
                    delay = self._get_retry_delay(None, attempt)
                    logger.warning(
                        "Graph API connection error, retrying",
                        method=method,
                        endpoint=endpoint,
                        attempt=attempt + 1,
                        error=str(e),
                        delay=delay,
                    )
                    time.sleep(delay)
                    continue
                raise GraphAPIError(
                    f"Connection to Microsoft Graph failed: {e}. "
                    "Check your internet connection and try again.",
                    status_code=None,
                ) from e

        # All retries exhausted
        if last_response is not None:
            self._handle_error_response(last_response, method, endpoint)

        raise GraphAPIError(
            f"Request to {endpoint} failed after {self.max_retries} retries",
            status_code=None,
        )

    def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        beta: bool = False,
    ) -> dict[str, Any]:
        """Make a GET request to the Graph API."""
        return self.request("GET", endpoint, params=params, beta=beta)

    def post(
        self,
        endpoint: str,
        json: dict[str, Any] | None = None,
        beta: bool = False,
    ) -> dict[str, Any]:
        """Make a POST request with a JSON body."""
        return self.request("POST", endpoint, json=json, beta=beta)

    def put_content(
        self,
        endpoint: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """PUT raw bytes to the Graph API (simple content upload).

        Args:
            endpoint: Content endpoint, e.g. "/drives/{id}/root:/a.txt:/content"
            data: Full file content
            content_type: MIME type of the content
            timeout: Request timeout in seconds

        Returns:
            The created or replaced driveItem
        """
        return self.request(
            "PUT",
            endpoint,
            data=data,
            content_type=content_type,
            timeout=timeout,
        )

    def paginate(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        beta: bool = False,
        max_pages: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch all pages of a collection by following @odata.nextLink.

        Args:
            endpoint: API endpoint path
            params: Query parameters for the first page
            beta: Use the beta endpoint
            max_pages: Maximum number of pages to fetch (None for unlimited)

        Returns:
            List of all items across all pages
        """
        all_items: list[dict[str, Any]] = []
        next_url: str | None = None
        page_count = 0

        while True:
            if max_pages and page_count >= max_pages:
                logger.debug(
                    "Pagination stopped at max_pages",
                    max_pages=max_pages,
                    items_collected=len(all_items),
                )
                break

            # nextLink already carries the query string and API version
            if next_url is None:
                response = self.get(endpoint, params=params, beta=beta)
            else:
                response = self.get(next_url)

            items = response.get("value", [])
            all_items.extend(items)
            page_count += 1

            next_url = response.get("@odata.nextLink")
            if not next_url:
                break

        logger.debug(
            "Pagination complete",
            endpoint=endpoint,
            total_pages=page_count,
            total_items=len(all_items),
        )
        return all_items
