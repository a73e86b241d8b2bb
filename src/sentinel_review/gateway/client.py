"""Firewall API client.

This module provides async access to the Firewall API for:
- Loading the pending-review sample queue
- Fetching aggregate model statistics
- Submitting operator review decisions
- Triggering model retraining

Every failure (transport, HTTP status, malformed body) is raised as
FirewallAPIError. Callers never see httpx exceptions.

Usage:
    async with FirewallClient("http://localhost:5002") as client:
        batch = await client.load_samples()
        snapshot = await client.get_stats()
        ack = await client.submit_review(decision)
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

import httpx

from ..review.models import ReviewDecision, Sample, Stats

logger = logging.getLogger(__name__)


class FirewallAPIError(Exception):
    """Firewall API request failed."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response or {}


@dataclass
class SampleBatch:
    """Response of GET /load_samples."""

    success: bool
    samples: list[Sample] = field(default_factory=list)


@dataclass
class StatsSnapshot:
    """Response of GET /stats."""

    success: bool
    stats: Optional[Stats] = None


@dataclass
class ReviewAck:
    """Response of POST /review."""

    success: bool
    message: str = ""


@dataclass
class RetrainAck:
    """Response of POST /trigger_retraining."""

    message: str = ""
    success: Optional[bool] = None  # Reported by some servers; not acted on


class FirewallClient:
    """
    Async client for the Firewall API.

    Usage:
        client = FirewallClient(api_url, timeout=10.0)
        try:
            batch = await client.load_samples()
        finally:
            await client.aclose()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Firewall API client.

        Args:
            base_url: API root, e.g. http://localhost:5002
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")

        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def _request(self, method: str, endpoint: str, json: dict = None) -> dict:
        """
        Make request to the Firewall API.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint (without base URL)
            json: Request body for POST

        Returns:
            Response JSON as dict

        Raises:
            FirewallAPIError: If request fails or the body is not a JSON object
        """
        try:
            response = await self._http.request(method, endpoint, json=json)
        except httpx.RequestError as e:
            raise FirewallAPIError(f"Request failed: {e}")

        if response.status_code >= 400:
            error_data = {}
            try:
                error_data = response.json()
                error_msg = error_data.get("message") or error_data.get("error") or response.text
            except (ValueError, AttributeError):
                error_msg = response.text

            raise FirewallAPIError(
                f"Firewall API error: {error_msg}",
                status_code=response.status_code,
                response=error_data if isinstance(error_data, dict) else {},
            )

        try:
            data = response.json()
        except ValueError:
            raise FirewallAPIError(
                f"Invalid JSON from {endpoint}", status_code=response.status_code
            )

        if not isinstance(data, dict):
            raise FirewallAPIError(
                f"Unexpected response from {endpoint}", status_code=response.status_code
            )

        logger.debug(f"{method} {endpoint} -> {response.status_code}")
        return data

    async def load_samples(self) -> SampleBatch:
        """Fetch the full pending-review queue, in gateway order."""
        data = await self._request("GET", "/load_samples")

        if not data.get("success"):
            return SampleBatch(success=False)

        try:
            samples = [Sample.from_api(item) for item in data.get("samples") or []]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise FirewallAPIError(f"Malformed sample in /load_samples: {e}", response=data)

        return SampleBatch(success=True, samples=samples)

    async def get_stats(self) -> StatsSnapshot:
        """Fetch the aggregate model statistics."""
        data = await self._request("GET", "/stats")

        if not data.get("success") or data.get("stats") is None:
            return StatsSnapshot(success=False)

        try:
            stats = Stats.from_api(data["stats"])
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise FirewallAPIError(f"Malformed stats: {e}", response=data)

        return StatsSnapshot(success=True, stats=stats)

    async def submit_review(self, decision: ReviewDecision) -> ReviewAck:
        """Send an operator verdict for one sample."""
        data = await self._request("POST", "/review", json=decision.to_api())
        return ReviewAck(success=bool(data.get("success")), message=str(data.get("message", "")))

    async def trigger_retraining(self) -> RetrainAck:
        """Ask the server to start a retraining run. No payload."""
        data = await self._request("POST", "/trigger_retraining")
        success = data.get("success")
        return RetrainAck(
            message=str(data.get("message", "")),
            success=bool(success) if success is not None else None,
        )

    async def aclose(self):
        """Close HTTP client."""
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
