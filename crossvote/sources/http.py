"""HTTP-backed collaborators that fetch JSON documents from a service."""

import asyncio
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from crossvote.config import get_settings
from crossvote.exceptions import CollaboratorHTTPError
from crossvote.sources.base import RiskProvider, SignalSource, StrategySource
from crossvote.sources.models import SignalSnapshot, StrategyEvaluation
from crossvote.utils.logger import get_logger

logger = get_logger(__name__)


class JSONServiceClient:
    """Minimal JSON client with retry logic shared by the HTTP collaborators."""

    def __init__(self, base_url: str, name: str, timeout: Optional[float] = None):
        """Initialize client.

        Args:
            base_url: Endpoint returning the collaborator document
            name: Collaborator name used in errors and logs
            timeout: Per-request timeout in seconds. If None, uses config value.
        """
        settings = get_settings()
        self.base_url = base_url
        self.name = name
        self.timeout = timeout or settings.http_timeout
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry logic."""
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS", "POST"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def _request(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make a blocking request and decode the JSON body.

        Raises:
            CollaboratorHTTPError: On transport failure or non-2xx status
        """
        try:
            response = self.session.request(
                method, self.base_url, json=payload, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise CollaboratorHTTPError(self.name, f"Request failed: {str(e)}")

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {"message": response.text}
            raise CollaboratorHTTPError(
                self.name,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                response_data=error_data,
            )

        try:
            return response.json()
        except ValueError:
            raise CollaboratorHTTPError(
                self.name, "Response is not valid JSON", status_code=response.status_code
            )

    async def fetch(self, method: str = "GET", payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run the blocking request in a worker thread."""
        return await asyncio.to_thread(self._request, method, payload)

    def close(self) -> None:
        self.session.close()


class HTTPStrategySource(StrategySource):
    """Strategy evaluator reached over HTTP (POST params, receive evaluation)."""

    def __init__(self, url: Optional[str] = None, client: Optional[JSONServiceClient] = None):
        url = url or get_settings().strategy_source_url
        if client is None and not url:
            raise ValueError("Strategy source URL is required")
        self.client = client or JSONServiceClient(url, name=self.name)

    async def evaluate(self, params: Dict[str, Any]) -> StrategyEvaluation:
        data = await self.client.fetch("POST", params)
        try:
            return StrategyEvaluation.model_validate(data)
        except ValidationError as e:
            raise CollaboratorHTTPError(self.name, f"Malformed evaluation: {e}")


class HTTPSignalSource(SignalSource):
    """Signal monitor reached over HTTP."""

    def __init__(self, url: Optional[str] = None, client: Optional[JSONServiceClient] = None):
        url = url or get_settings().signal_source_url
        if client is None and not url:
            raise ValueError("Signal source URL is required")
        self.client = client or JSONServiceClient(url, name=self.name)

    async def snapshot(self) -> SignalSnapshot:
        data = await self.client.fetch("GET")
        try:
            return SignalSnapshot.model_validate(data)
        except ValidationError as e:
            raise CollaboratorHTTPError(self.name, f"Malformed snapshot: {e}")


class HTTPRiskProvider(RiskProvider):
    """Risk estimator reached over HTTP; expects {"risk": <float>}."""

    def __init__(self, url: str, name: str, client: Optional[JSONServiceClient] = None):
        self.name = name
        self.client = client or JSONServiceClient(url, name=name)

    async def estimate(self) -> float:
        data = await self.client.fetch("GET")
        if "risk" not in data:
            raise CollaboratorHTTPError(self.name, "Response has no 'risk' field")
        try:
            return float(data["risk"])
        except (TypeError, ValueError):
            raise CollaboratorHTTPError(self.name, f"Invalid risk value: {data['risk']!r}")
