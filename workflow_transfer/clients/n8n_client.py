"""REST client for n8n workflow endpoints."""

import time
import logging
import threading
import requests
from typing import Any, Dict, List, Optional

from .base import BaseEndpoint
from ..errors import AuthenticationError, EndpointError
from ..logging_utils import mask_secret, mask_url
from ..models.record import Record
from ..models.transfer import TransferFilters

logger = logging.getLogger(__name__)

WORKFLOWS_PATH = "/api/v1/workflows"


class N8NClient(BaseEndpoint):
    """
    n8n public API client.

    Retries are left to the caller's RetryPolicy; this client maps every
    failure onto EndpointError or AuthenticationError exactly once.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        page_size: int = 100,
        rate_limit: float = 0.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            name: Label for logs ("source", "target")
            base_url: Base URL of the n8n instance
            api_key: Value for the X-N8N-API-KEY header
            timeout: Per-request timeout in seconds
            page_size: Records requested per page when listing
            rate_limit: Max requests per second, 0 to disable
            session: Pre-built session, mainly for tests
        """
        super().__init__(name, base_url.rstrip("/"))
        self.api_key = api_key
        self.timeout = timeout
        self.page_size = page_size
        self.rate_limit = rate_limit
        self._last_request_time = 0.0
        self._rate_lock = threading.Lock()
        self._session = session or self._create_session()

    def __repr__(self) -> str:
        return f"N8NClient(name={self.name!r}, url={mask_url(self.url)!r}, api_key={mask_secret(self.api_key)!r})"

    def _create_session(self) -> requests.Session:
        """Create a requests session with authentication."""
        session = requests.Session()
        session.headers["X-N8N-API-KEY"] = self.api_key
        session.headers["Content-Type"] = "application/json"
        session.headers["Accept"] = "application/json"
        return session

    def _rate_limit_wait(self):
        """Wait to respect rate limits; callers are spaced out one at a time."""
        with self._rate_lock:
            if self.rate_limit > 0:
                elapsed = time.time() - self._last_request_time
                wait_time = (1.0 / self.rate_limit) - elapsed
                if wait_time > 0:
                    time.sleep(wait_time)
            self._last_request_time = time.time()

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or response.reason or f"HTTP {response.status_code}"
        if isinstance(data, dict):
            return str(data.get("message") or data.get("error") or data)
        return str(data)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.url}{path}"
        self._rate_limit_wait()

        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise EndpointError(f"{self.name}: cannot reach {mask_url(url)}: {e}") from e

        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(
                f"{self.name}: authentication failed (HTTP {status}): {self._error_message(response)}",
                status,
            )
        if status >= 400:
            raise EndpointError(
                f"{self.name}: {method} {path} failed (HTTP {status}): {self._error_message(response)}",
                status,
            )
        return response

    def test_connectivity(self) -> None:
        self._request("GET", WORKFLOWS_PATH, params={"limit": 1})
        logger.info(f"Connected to {self.name} at {mask_url(self.url)}")

    def list_records(self, filters: Optional[TransferFilters] = None) -> List[Record]:
        """Fetch all workflows, following the pagination cursor."""
        params: Dict[str, Any] = {"limit": self.page_size}
        if filters is not None and filters.tags:
            params["tags"] = ",".join(filters.tags)

        records: List[Record] = []
        while True:
            data = self._request("GET", WORKFLOWS_PATH, params=params).json()
            records.extend(Record.from_dict(item) for item in data.get("data", []))

            cursor = data.get("nextCursor")
            if not cursor:
                break
            params["cursor"] = cursor

        logger.info(f"Fetched {len(records)} workflows from {self.name}")
        return records

    def create_or_update_record(self, record: Record) -> str:
        """Create the workflow; update it in place if the target reports a conflict."""
        payload = record.to_payload()

        try:
            response = self._request("POST", WORKFLOWS_PATH, json=payload)
        except EndpointError as e:
            if e.status_code != 409:
                raise
            logger.debug(f"{record.name} already exists on {self.name}, updating")
            response = self._request("PUT", f"{WORKFLOWS_PATH}/{record.id}", json=payload)

        response_data = response.json() if response.text else {}
        target_id = (
            response_data.get("id") or
            (response_data.get("data") or {}).get("id") or
            record.id
        )
        return str(target_id)
