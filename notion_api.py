"""Notion REST API client with authentication, retry logic and error mapping."""

import logging
import os
import time
from typing import Any, Dict, List, Optional

import requests
import truststore
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger('notion_workspace_mapper.client')

if os.getenv('USE_SYSTEM_CA') in ('1', 'true', 'True', 'TRUE'):
    truststore.inject_into_ssl()
    logger.info("Using system CA certificate store")

DEFAULT_BASE_URL = 'https://api.notion.com/v1'
DEFAULT_API_VERSION = '2025-09-03'
INVALID_TOKEN_MESSAGE = 'Notion API token is invalid. Please enter a valid token.'


class NotionApiError(Exception):
    """Raised for any non-success response or transport failure from the Notion API."""

    def __init__(self, status: Optional[int], code: str, message: str):
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"Notion API error {status} ({code}): {message}")


class AuthError(NotionApiError):
    """Raised when the API token is rejected (HTTP 401 / code `unauthorized`)."""

    def __init__(self, message: str = INVALID_TOKEN_MESSAGE):
        super().__init__(401, 'unauthorized', message)


class NotionClient:
    """Thin Notion REST client covering the read-only endpoints the mapper needs."""

    def __init__(
        self,
        api_key: str,
        api_version: str = DEFAULT_API_VERSION,
        base_url: str = DEFAULT_BASE_URL,
        verify_ssl: bool = True,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_factor: float = 2.0,
        page_size: int = 100
    ):
        """
        Initialize the client with bearer auth and a retrying session.

        Args:
            api_key: Notion integration token
            api_version: Value of the Notion-Version header
            base_url: API base URL
            verify_ssl: Whether to verify SSL certificates
            timeout: HTTP request timeout in seconds
            max_retries: Maximum retry attempts for 429 and 5xx responses
            retry_backoff_factor: Exponential backoff factor
            page_size: Results per page for paginated endpoints (max 100)
        """
        if not api_key:
            raise ValueError("Notion client requires an api_key")

        self.base_url = base_url.rstrip('/')
        self.api_version = api_version
        self.timeout = timeout
        self.page_size = page_size

        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_key}',
            'Notion-Version': api_version,
            'Content-Type': 'application/json',
        })

        self.session.verify = verify_ssl
        if not verify_ssl:
            logger.warning("SSL verification disabled - this is insecure!")
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        # search and query are POSTs but read-only, so they are safe to retry
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
            respect_retry_after_header=True,
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(
            f"Client configured for {self.base_url} (Notion-Version {api_version}), "
            f"timeout={timeout}s, max_retries={max_retries}"
        )

    def _make_request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """
        Make an HTTP request and return the decoded JSON body.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL (e.g. "search")
            **kwargs: Additional arguments for requests

        Returns:
            Decoded JSON response

        Raises:
            AuthError: On HTTP 401 or an `unauthorized` error code
            NotionApiError: On any other error response or transport failure
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        start_time = time.time()
        logger.debug(f"API Request: {method} {url}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout}s: {method} {url}")
            raise NotionApiError(None, 'timeout', f"Request timed out after {self.timeout}s: {url}")
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {method} {url} - {str(e)}")
            raise NotionApiError(None, 'request_error', str(e))

        logger.debug(f"API Response: {response.status_code} {url} ({time.time() - start_time:.3f}s)")

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400:
            code = payload.get('code', 'http_error') if isinstance(payload, dict) else 'http_error'
            message = payload.get('message') if isinstance(payload, dict) else None
            if response.status_code == 401 or code == 'unauthorized':
                logger.error(f"Authentication rejected: {method} {url}")
                raise AuthError()
            logger.error(f"HTTP Error {response.status_code}: {method} {url} - {message or response.text[:500]}")
            raise NotionApiError(response.status_code, code, message or response.reason or 'Request failed')

        return payload

    def _paginate(self, endpoint: str, body: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Collect all results of a cursor-paginated POST endpoint."""
        results: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        while True:
            request_body = dict(body or {})
            request_body['page_size'] = self.page_size
            if cursor:
                request_body['start_cursor'] = cursor

            data = self._make_request('POST', endpoint, json=request_body)
            results.extend(data.get('results') or [])

            cursor = data.get('next_cursor')
            if not data.get('has_more') or not cursor:
                break
            logger.debug(f"Fetched {len(results)} results so far from {endpoint}...")

        return results

    def search(self, object_type: str) -> List[Dict[str, Any]]:
        """
        Search everything shared with the integration, filtered by object type.

        Args:
            object_type: "page", "database" (2022-06-28) or "data_source" (2025-09-03)

        Returns:
            All matching result objects
        """
        results = self._paginate('search', {
            'filter': {'property': 'object', 'value': object_type}
        })
        logger.info(f"Search returned {len(results)} {object_type} results")
        return results

    def retrieve_database(self, database_id: str) -> Dict[str, Any]:
        return self._make_request('GET', f'databases/{database_id}')

    def retrieve_data_source(self, data_source_id: str) -> Dict[str, Any]:
        return self._make_request('GET', f'data_sources/{data_source_id}')

    def query_data_source(self, data_source_id: str) -> List[Dict[str, Any]]:
        """Return every item page of a data source."""
        return self._paginate(f'data_sources/{data_source_id}/query')

    def retrieve_block(self, block_id: str) -> Dict[str, Any]:
        return self._make_request('GET', f'blocks/{block_id}')

    def users_me(self) -> Dict[str, Any]:
        return self._make_request('GET', 'users/me')

    def test_connection(self) -> bool:
        """
        Verify the token against the users/me endpoint.

        Returns:
            True when the API accepted the token, False on other failures

        Raises:
            AuthError: If the token is invalid
        """
        try:
            me = self.users_me()
        except AuthError:
            raise
        except NotionApiError as e:
            logger.error(f"Connection test failed: {e}")
            return False

        logger.info(f"Connected to Notion as {me.get('name') or me.get('id', 'unknown bot')}")
        return True

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'NotionClient':
        """
        Initialize the client from a configuration dictionary.

        Args:
            config: Configuration dictionary with notion and advanced settings

        Returns:
            NotionClient instance
        """
        notion_config = config.get('notion', {})
        advanced_config = config.get('advanced', {})

        return cls(
            api_key=notion_config.get('api_key'),
            api_version=notion_config.get('api_version', DEFAULT_API_VERSION),
            base_url=notion_config.get('base_url', DEFAULT_BASE_URL),
            verify_ssl=notion_config.get('verify_ssl', True),
            timeout=advanced_config.get('request_timeout', 30),
            max_retries=advanced_config.get('max_retries', 3),
            retry_backoff_factor=advanced_config.get('retry_backoff_factor', 2.0),
            page_size=advanced_config.get('page_size', 100)
        )


__all__ = ['AuthError', 'NotionApiError', 'NotionClient', 'INVALID_TOKEN_MESSAGE']
