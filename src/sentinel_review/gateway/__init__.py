"""Firewall API client."""

from .client import (
    FirewallClient,
    FirewallAPIError,
    SampleBatch,
    StatsSnapshot,
    ReviewAck,
    RetrainAck,
)

__all__ = [
    "FirewallClient",
    "FirewallAPIError",
    "SampleBatch",
    "StatsSnapshot",
    "ReviewAck",
    "RetrainAck",
]
