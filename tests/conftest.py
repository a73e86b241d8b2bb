"""Shared fixtures: an in-memory Firewall API and sample payloads."""

import asyncio
import copy

import pytest

from sentinel_review.gateway.client import (
    FirewallAPIError,
    RetrainAck,
    ReviewAck,
    SampleBatch,
    StatsSnapshot,
)
from sentinel_review.review.models import Sample, Stats


def make_sample_data(ip: str = "1.2.3.4", action: int = 2, **overrides) -> dict:
    data = {
        "ip": ip,
        "predicted_action": action,
        "predicted_suspicious": 0.91,
        "current": [1, 2, 3],
        "network_parameters": {"packets_per_second": 12000, "syn_ratio": 0.82},
        "parameter_analysis": {
            "suspicious_indicators": ["High SYN ratio"],
            "normal_indicators": [],
            "severity_score": 7.5,
        },
    }
    data.update(overrides)
    return data


def make_stats_data(**overrides) -> dict:
    data = {
        "accuracy": 80,
        "total_reviewed": 10,
        "correct_predictions": 8,
        "incorrect_predictions": 2,
        "pending_feedback": {"count": 2, "threshold": 50},
        "retraining_in_progress": False,
    }
    data.update(overrides)
    return data


async def settle(rounds: int = 20):
    """Let pending tasks run to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeFirewall:
    """
    In-memory stand-in for FirewallClient.

    Set ``fail`` to make operations raise, and put an asyncio.Event in
    ``gates`` to hold an operation until the event is set.
    """

    def __init__(self, samples=None, stats=None):
        self.samples = [copy.deepcopy(s) for s in (samples or [])]
        self.stats = copy.deepcopy(stats) if stats is not None else make_stats_data()
        self.fail: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []
        self.reviews = []
        self.on_stats = None

        self.samples_success = True
        self.stats_success = True
        self.review_success = True
        self.review_message = "Updated"
        self.retrain_ack = RetrainAck(message="Retraining started")

    async def _enter(self, op: str):
        self.calls.append(op)
        gate = self.gates.get(op)
        if gate is not None:
            await gate.wait()
        if op in self.fail:
            raise FirewallAPIError(f"{op} failed")

    async def load_samples(self) -> SampleBatch:
        await self._enter("load_samples")
        if not self.samples_success:
            return SampleBatch(success=False)
        return SampleBatch(success=True, samples=[Sample.from_api(s) for s in self.samples])

    async def get_stats(self) -> StatsSnapshot:
        if self.on_stats is not None:
            self.on_stats()
        await self._enter("stats")
        if not self.stats_success:
            return StatsSnapshot(success=False)
        return StatsSnapshot(success=True, stats=Stats.from_api(self.stats))

    async def submit_review(self, decision) -> ReviewAck:
        await self._enter("review")
        self.reviews.append(decision)
        if self.review_success:
            self.stats["total_reviewed"] += 1
            key = "correct_predictions" if decision.is_correct else "incorrect_predictions"
            self.stats[key] += 1
            if self.samples:
                self.samples.pop(0)
        return ReviewAck(success=self.review_success, message=self.review_message)

    async def trigger_retraining(self) -> RetrainAck:
        await self._enter("trigger_retraining")
        return self.retrain_ack


@pytest.fixture
def sample_data():
    return make_sample_data()


@pytest.fixture
def stats_data():
    return make_stats_data()
