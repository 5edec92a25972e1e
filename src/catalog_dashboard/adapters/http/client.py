import logging
from typing import Any, Dict, Optional

import certifi  # Provides Mozilla's CA bundle for SSL certificate verification
import requests
from requests.adapters import HTTPAdapter

from catalog_dashboard.settings import APISettings

logger = logging.getLogger(__name__)


class DashboardAPIClient:
    def __init__(self, api: Optional[APISettings] = None, session: Optional[requests.Session] = None):
        """
        Initializes a requests.Session with:
            - JSON accept header
            - HTTPAdapter with retries disabled (a failed request is reported once,
              the caller decides what to fall back to)
        """
        self.api: APISettings = api or APISettings()
        self.session = session or requests.Session()

        adapter = HTTPAdapter(max_retries=0)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        # Default headers
        self.session.headers.update({
            "Accept": "application/json",
        })
        self.verify = certifi.where() if self.api.verify_ssl else False

    def url(self, path: str) -> str:
        api_base_url: str = str(self.api.base_url)
        return f"{api_base_url.rstrip('/')}/{path.lstrip('/')}"

    def _handle_response(self, resp: requests.Response) -> Any:
        """
            Handle API response with proper error checking and JSON parsing.

            Args:
                resp: HTTP response object

            Returns:
                Parsed JSON data (None for an empty body)

            Raises:
                requests.HTTPError: For 4xx/5xx HTTP status codes
                ValueError: If response is not valid JSON
            """
        try:
            # Check for HTTP errors (4xx, 5xx)
            resp.raise_for_status()

            # Check if response has content
            if not resp.content:
                logger.warning(f"Empty response received for {resp.url}")
                return None

            # Parse JSON response
            return resp.json()

        except requests.HTTPError:
            logger.error(f"HTTP {resp.status_code} error for {resp.url}: {resp.text[:200]}")
            raise

        except ValueError as e:
            # JSON decode error
            logger.error(f"Invalid JSON response from {resp.url}: {resp.text[:200]}...")
            raise ValueError(f"Invalid JSON response: {e}") from e

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> Any:
        """Perform a GET request and return the parsed JSON body."""
        resp = self.session.get(
            self.url(path),
            params=params,
            timeout=timeout or self.api.timeout_seconds,
            verify=self.verify,
        )
        return self._handle_response(resp)

    def get_bytes(self, path: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> bytes:
        """Perform a GET request for a binary body (exports)."""
        resp = self.session.get(
            self.url(path),
            params=params,
            timeout=timeout or self.api.timeout_seconds,
            verify=self.verify,
            headers={"Accept": "*/*"},
        )
        try:
            resp.raise_for_status()
        except requests.HTTPError:
            logger.error(f"HTTP {resp.status_code} error for {resp.url}")
            raise
        return resp.content

    def post(self, path: str, json: Any, timeout: Optional[float] = None) -> Any:
        """Perform a POST request with a JSON body."""
        resp = self.session.post(
            self.url(path),
            json=json,
            timeout=timeout or self.api.timeout_seconds,
            verify=self.verify,
        )
        return self._handle_response(resp)

    def close(self) -> None:
        self.session.close()
