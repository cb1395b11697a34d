"""
Product API client.

Handles authentication, pagination and error handling for the remote
product API. Credentials are passed via configuration and never logged.
"""

import logging
import time
from collections.abc import Iterator
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..sync.actions import Action, actions_to_payload

logger = logging.getLogger(__name__)


class ProductAPIError(Exception):
    """Raised when the product API returns an error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[dict] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409


class ProductClient:
    """
    Client for the product REST API.

    Handles:
    - OAuth 2.0 client-credentials authentication
    - Offset pagination for queries
    - Retry logic for transient failures on reads
    - Rate limiting respect

    Usage:
        client = ProductClient(
            api_url="https://api.example.com",
            auth_url="https://auth.example.com",
            project_key="my-shop",
            client_id="...",
            client_secret="...",
        )
        client.authenticate()

        current = client.fetch_by_id(product_id)
        client.update(product_id, actions, version=current["version"])
    """

    TOKEN_ENDPOINT = "/oauth/token"
    PRODUCTS_ENDPOINT = "/{project_key}/products"
    PRODUCT_ENDPOINT = "/{project_key}/products/{product_id}"

    def __init__(
        self,
        api_url: str,
        auth_url: str,
        project_key: str,
        client_id: str,
        client_secret: str,
        scope: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
    ):
        """
        Initialize product client.

        Args:
            api_url: Base URL of the product API
            auth_url: Base URL of the OAuth server
            project_key: Project the products belong to
            client_id: OAuth client id
            client_secret: OAuth client secret (never logged)
            scope: OAuth scope, defaults to ``manage_products:<project_key>``
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient read failures
        """
        self.api_url = api_url.rstrip("/")
        self.auth_url = auth_url.rstrip("/")
        self.project_key = project_key
        self.client_id = client_id
        self._client_secret = client_secret  # Private, never logged
        self.scope = scope or f"manage_products:{project_key}"
        self.timeout = timeout

        self._access_token: Optional[str] = None

        self._session = requests.Session()

        # Updates are not idempotent, only reads are retried here
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

        self._session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

        logger.info(f"Product client initialized for {self.api_url} ({self.project_key})")

    def __repr__(self) -> str:
        """Never expose secrets in repr."""
        return f"ProductClient(api_url='{self.api_url}', project_key='{self.project_key}')"

    def authenticate(self) -> None:
        """
        Obtain an access token with the client-credentials grant.

        Raises:
            ProductAPIError: If the token request fails
        """
        logger.info("Requesting access token...")

        try:
            response = self._session.post(
                f"{self.auth_url}{self.TOKEN_ENDPOINT}",
                data={"grant_type": "client_credentials", "scope": self.scope},
                auth=(self.client_id, self._client_secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise ProductAPIError(
                f"Authentication failed: {e}", status_code=status
            ) from e
        except requests.exceptions.RequestException as e:
            raise ProductAPIError(f"Authentication request failed: {e}") from e

        if "access_token" not in body:
            raise ProductAPIError("Authentication failed: no access token in response")

        self._access_token = body["access_token"]
        logger.info("Authentication successful")

    def _get_headers(self) -> dict[str, str]:
        """Get request headers with authorization."""
        if not self._access_token:
            raise ProductAPIError("Not authenticated. Call authenticate() first.")
        return {"Authorization": f"Bearer {self._access_token}"}

    def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict] = None,
        params: Optional[dict] = None,
        retried: bool = False,
    ) -> dict:
        """
        Make authenticated request to the product API.

        A 401 triggers one token refresh and a 429 on a write one wait;
        the repeated request is not retried again.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path
            data: JSON body (for POST)
            params: Query parameters
            retried: Whether this request already is a repetition

        Returns:
            Parsed JSON response

        Raises:
            ProductAPIError: If request fails
        """
        url = f"{self.api_url}{endpoint}"

        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=self._get_headers(),
                json=data,
                params=params,
                timeout=self.timeout,
            )

            if response.status_code == 429 and method != "GET" and not retried:
                retry_after = int(response.headers.get("Retry-After", 10))
                logger.warning(f"Rate limited. Waiting {retry_after} seconds...")
                time.sleep(retry_after)
                return self._make_request(method, endpoint, data, params, retried=True)

            if response.status_code == 401:
                if retried:
                    raise ProductAPIError(
                        "Product API error: still unauthorized after token refresh",
                        status_code=401,
                    )
                logger.info("Token expired, refreshing...")
                self._access_token = None
                self.authenticate()
                return self._make_request(method, endpoint, data, params, retried=True)

            response.raise_for_status()
            return response.json()

        except requests.exceptions.HTTPError as e:
            error_msg = f"Product API error: {e}"
            error_body = None

            try:
                error_body = e.response.json()
                if "message" in error_body:
                    error_msg = f"Product API error: {error_body['message']}"
            except (ValueError, AttributeError):
                pass

            logger.error(error_msg)
            raise ProductAPIError(
                error_msg,
                status_code=e.response.status_code if e.response is not None else None,
                response=error_body,
            ) from e

        except requests.exceptions.RequestException as e:
            error_msg = f"Product request failed: {e}"
            logger.error(error_msg)
            raise ProductAPIError(error_msg) from e

    def fetch_by_id(self, product_id: str) -> dict:
        """
        Fetch the current representation of a product.

        Args:
            product_id: Product identifier

        Returns:
            Product representation as returned by the API

        Raises:
            ProductAPIError: With status 404 if the product does not exist
        """
        logger.debug(f"Fetching product {product_id}")

        endpoint = self.PRODUCT_ENDPOINT.format(
            project_key=self.project_key,
            product_id=product_id,
        )
        return self._make_request("GET", endpoint)

    def update(
        self,
        product_id: str,
        actions: list[Action],
        version: Optional[int] = None,
    ) -> dict:
        """
        Apply update actions to a product.

        The server applies the actions in list order.

        Args:
            product_id: Product identifier
            actions: Actions to apply
            version: Expected current version

        Returns:
            The new current representation

        Raises:
            ProductAPIError: On validation failure, version conflict (409)
                or unknown product (404)
        """
        logger.info(f"Updating product {product_id}: {len(actions)} action(s)")

        endpoint = self.PRODUCT_ENDPOINT.format(
            project_key=self.project_key,
            product_id=product_id,
        )
        return self._make_request(
            "POST",
            endpoint,
            data=actions_to_payload(actions, version=version),
        )

    def query(
        self,
        where: Optional[str] = None,
        per_page: int = 100,
    ) -> Iterator[dict]:
        """
        Iterate over products matching a predicate.

        Follows offset pagination until ``total`` results were read.

        Args:
            where: Query predicate
            per_page: Page size

        Yields:
            Product representations
        """
        endpoint = self.PRODUCTS_ENDPOINT.format(project_key=self.project_key)
        offset = 0

        while True:
            params = {"limit": per_page, "offset": offset}
            if where:
                params["where"] = where

            page = self._make_request("GET", endpoint, params=params)
            results = page.get("results", [])
            yield from results

            offset += len(results)
            total = page.get("total")
            if not results or (total is not None and offset >= total):
                break

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()
        logger.debug("Product client session closed")

    def __enter__(self) -> "ProductClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
