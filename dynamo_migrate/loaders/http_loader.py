"""Loader that speaks DynamoDB JSON over plain HTTP."""

import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .base import BaseLoader, WriteOutcome
from ..errors import TransportError
from ..services.encoder import ItemEncoder

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/x-amz-json-1.0"
TARGET_PREFIX = "DynamoDB_20120810"


class HttpLoader(BaseLoader):
    """
    Loader for DynamoDB-compatible HTTP endpoints (e.g. ScyllaDB Alternator).

    Every operation is a POST of a JSON body with the
    ``x-amz-target: DynamoDB_20120810.<Operation>`` header. HTTP 200 is the
    only success status; any other response is a failure whose body is
    surfaced in the outcome and the logs.

    The session retries connection failures only. POST is not in the retry
    policy's allowed methods, so a request that reached the server is never
    sent twice.
    """

    def __init__(
        self,
        endpoint: str,
        dry_run: bool = False,
        timeout: float = 30.0,
        retry_config: Optional[Dict[str, Any]] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the HTTP loader.

        Args:
            endpoint: Endpoint URL, e.g. http://scylla:8000
            dry_run: If True, simulate writes without making changes
            timeout: Per-request timeout in seconds
            retry_config: max_retries / backoff_factor for connection retries
            session: Custom requests session
        """
        super().__init__(dry_run)
        self.endpoint = endpoint
        self.timeout = timeout
        self.retry_config = retry_config or {"max_retries": 3, "backoff_factor": 0.5}
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with connection retry logic."""
        session = requests.Session()

        retries = Retry(
            total=self.retry_config.get("max_retries", 3),
            backoff_factor=self.retry_config.get("backoff_factor", 0.5),
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        session.headers["Content-Type"] = CONTENT_TYPE

        return session

    def _post(self, operation: str, body: Dict[str, Any]) -> requests.Response:
        """POST one operation to the endpoint."""
        return self._session.post(
            self.endpoint,
            data=ItemEncoder.to_json(body),
            headers={"Content-Type": CONTENT_TYPE, "x-amz-target": f"{TARGET_PREFIX}.{operation}"},
            timeout=self.timeout,
        )

    def _outcome(self, operation: str, response: requests.Response) -> WriteOutcome:
        if response.status_code == 200:
            try:
                data = response.json() if response.text else {}
            except ValueError:
                data = {}
            return WriteOutcome(success=True, status_code=200, response_data=data)

        error = TransportError(operation, response.status_code, response.text)
        return WriteOutcome(success=False, status_code=response.status_code, error=str(error))

    def table_exists(self, table_name: str) -> bool:
        """Check table existence with DescribeTable."""
        try:
            response = self._post("DescribeTable", {"TableName": table_name})
        except requests.exceptions.RequestException as e:
            logger.error(f"Error checking for table existence at {self.endpoint}: {e}")
            return False

        if response.status_code != 200:
            logger.debug(f"DescribeTable {table_name} returned HTTP {response.status_code}: {response.text}")
            return False

        try:
            return "Table" in response.json()
        except ValueError:
            return False

    def put_item(self, body: Dict[str, Any]) -> WriteOutcome:
        """Send one PutItem request."""
        if self.dry_run:
            return WriteOutcome(success=True)

        try:
            response = self._post("PutItem", body)
        except requests.exceptions.RequestException as e:
            return WriteOutcome(success=False, error=f"PutItem request failed: {e}")

        return self._outcome("PutItem", response)

    def update_ttl(self, table_name: str, attribute_name: str, ttl_seconds: int) -> WriteOutcome:
        """Send an UpdateTimeToLive request mirroring the source TTL attribute."""
        if self.dry_run:
            return WriteOutcome(success=True)

        body = {
            "TableName": table_name,
            "TimeToLiveSpecification": {
                "Enabled": True,
                "AttributeName": attribute_name,
                "TimeToLiveSeconds": str(ttl_seconds),
            },
        }
        try:
            response = self._post("UpdateTimeToLive", body)
        except requests.exceptions.RequestException as e:
            return WriteOutcome(success=False, error=f"UpdateTimeToLive request failed: {e}")

        return self._outcome("UpdateTimeToLive", response)

    def close(self) -> None:
        self._session.close()
