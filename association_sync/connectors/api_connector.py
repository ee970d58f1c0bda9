"""API connector for the association HTTP API."""
import requests
from typing import Any, Dict, Optional
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
import logging

from .base_connector import BaseConnector

logger = logging.getLogger(__name__)


class APIConnector(BaseConnector):
    """
    Connector for REST APIs.
    Handles optional bearer authentication, retries on transient status
    codes and JSON decoding.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: int = 30,
        retry_attempts: int = 3,
        retry_delay: int = 1,
        health_endpoint: str = '/health',
    ):
        """
        Initialize API connector.

        Args:
            name: Name of the API service
            base_url: Base URL for the API
            api_key: Optional API key sent as a bearer token
            timeout: Request timeout in seconds
            retry_attempts: Number of retry attempts
            retry_delay: Backoff factor between retries in seconds
            health_endpoint: Endpoint used by validate_connection
        """
        super().__init__(name, timeout)
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.health_endpoint = health_endpoint
        self.session = requests.Session()
        self._setup_retry_strategy()

    def _setup_retry_strategy(self) -> None:
        """Configure retry strategy for the session."""
        retry_strategy = Retry(
            total=self.retry_attempts,
            backoff_factor=self.retry_delay,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=['GET', 'POST'],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

    def authenticate(self) -> bool:
        """
        Prepare session headers.
        Without an API key the session is used unauthenticated.
        """
        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': 'association-sync/0.1',
        })
        if self.api_key:
            self.session.headers.update({
                'Authorization': f'Bearer {self.api_key}',
            })
        self.ready = True
        self.logger.info(f'Session ready for {self.name} at {self.base_url}')
        return True

    def validate_connection(self) -> bool:
        """Validate API connection by requesting the health endpoint."""
        try:
            response = self.session.get(
                self._url(self.health_endpoint),
                timeout=self.timeout,
            )
            is_valid = response.status_code < 400
            if is_valid:
                self.logger.info(f'Connection to {self.name} validated')
            else:
                self.logger.warning(
                    f'Connection validation failed: {response.status_code}'
                )
            return is_valid
        except requests.RequestException as e:
            self.logger.error(f'Connection validation error: {str(e)}')
            return False

    def _url(self, endpoint: str) -> str:
        return f'{self.base_url}/{endpoint.lstrip("/")}'

    def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make a GET request.

        Args:
            endpoint: API endpoint (relative to base_url)
            params: Query parameters

        Returns:
            Decoded JSON response

        Raises:
            requests.RequestException: If request fails
            ValueError: If the body is not JSON
        """
        response = self.session.get(
            self._url(endpoint),
            params=params,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def post(
        self,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make a POST request with a JSON body.

        Args:
            endpoint: API endpoint
            json: JSON body

        Returns:
            Decoded JSON response, or None for an empty body

        Raises:
            requests.RequestException: If request fails
            ValueError: If a non-empty body is not JSON
        """
        response = self.session.post(
            self._url(endpoint),
            json=json,
            timeout=self.timeout,
        )
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    def close(self) -> None:
        """Close the session."""
        self.session.close()
        self.ready = False
        self.logger.info(f'Closed connection to {self.name}')
