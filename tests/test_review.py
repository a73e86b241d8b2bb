"""Tests for review models, queue, corrections and notifications."""

import pytest

from conftest import make_sample_data, make_stats_data
from sentinel_review.review.clock import ManualClock
from sentinel_review.review.correction import CorrectionMode, CorrectionStateMachine
from sentinel_review.review.models import (
    Action,
    ReviewDecision,
    Sample,
    Severity,
    Stats,
)
from sentinel_review.review.notifications import NotificationScheduler
from sentinel_review.review.queue import ReviewQueue


class TestAction:
    """Test Action ordinals."""

    def test_ordinals(self):
        assert Action.ALLOW == 0
        assert Action.RATE_LIMIT == 1
        assert Action.BLOCK == 2

    def test_unknown_ordinal_rejected(self):
        with pytest.raises(ValueError):
            Action(3)


class TestSample:
    """Test Sample parsing and serialization."""

    def test_from_api(self, sample_data):
        sample = Sample.from_api(sample_data)

        assert sample.ip == "1.2.3.4"
        assert sample.predicted_action is Action.BLOCK
        assert sample.predicted_suspicious == 0.91
        assert sample.current == (1.0, 2.0, 3.0)
        assert sample.network_parameters.packets_per_second == 12000
        assert sample.network_parameters.entropy is None
        assert sample.parameter_analysis.suspicious_indicators == ("High SYN ratio",)
        assert sample.parameter_analysis.severity_score == 7.5

    def test_missing_optional_sections(self):
        sample = Sample.from_api(
            {"ip": "9.9.9.9", "predicted_action": 0, "predicted_suspicious": 0.1, "current": []}
        )

        assert sample.network_parameters.syn_ratio is None
        assert sample.parameter_analysis.is_empty
        assert sample.parameter_analysis.severity_score is None

    def test_missing_ip_raises(self, sample_data):
        del sample_data["ip"]
        with pytest.raises(KeyError):
            Sample.from_api(sample_data)

    @pytest.mark.parametrize("ordinal", [1.7, "2", True, None])
    def test_non_integer_action_rejected(self, sample_data, ordinal):
        sample_data["predicted_action"] = ordinal
        with pytest.raises(ValueError, match="integer"):
            Sample.from_api(sample_data)

    @pytest.mark.parametrize("section", ["network_parameters", "parameter_analysis"])
    def test_non_object_section_rejected(self, sample_data, section):
        sample_data[section] = [1, 2]
        with pytest.raises(TypeError, match=section):
            Sample.from_api(sample_data)

    def test_to_api_keeps_action_ordinal(self, sample_data):
        data = Sample.from_api(sample_data).to_api()

        assert data["predicted_action"] == 2
        assert type(data["predicted_action"]) is int
        assert data["current"] == [1.0, 2.0, 3.0]
        assert data["network_parameters"] == {"packets_per_second": 12000.0, "syn_ratio": 0.82}

    def test_unknown_keys_echoed_back(self, sample_data):
        sample_data["timestamp"] = "2024-01-15T10:30:00Z"
        sample = Sample.from_api(sample_data)

        assert sample.to_api()["timestamp"] == "2024-01-15T10:30:00Z"

    def test_immutable(self, sample_data):
        sample = Sample.from_api(sample_data)
        with pytest.raises(AttributeError):
            sample.ip = "0.0.0.0"

    def test_suspicion_pct(self, sample_data):
        assert f"{Sample.from_api(sample_data).suspicion_pct:.2f}" == "91.00"


class TestStats:
    """Test Stats snapshot."""

    def test_from_api(self, stats_data):
        stats = Stats.from_api(stats_data)

        assert stats.accuracy == 80
        assert stats.total_reviewed == 10
        assert stats.pending_feedback.count == 2
        assert stats.pending_feedback.threshold == 50
        assert stats.retraining_in_progress is False

    def test_accuracy_fraction_exact(self):
        stats = Stats.from_api(make_stats_data(accuracy=87))

        assert stats.accuracy_fraction == 87 / 100
        assert stats.accuracy_fraction == stats.accuracy_fraction

    @pytest.mark.parametrize("accuracy", [-1, 100.5])
    def test_accuracy_out_of_range(self, accuracy):
        with pytest.raises(ValueError):
            Stats.from_api(make_stats_data(accuracy=accuracy))

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            Stats.from_api(make_stats_data(total_reviewed=-1))


class TestReviewDecision:
    """Test decision invariants."""

    @pytest.fixture
    def sample(self, sample_data):
        return Sample.from_api(sample_data)

    def test_confirm(self, sample):
        decision = ReviewDecision(sample=sample, is_correct=True)
        assert decision.to_api()["corrected_action"] is None
        assert decision.to_api()["is_correct"] is True

    def test_correction_payload(self, sample):
        decision = ReviewDecision(sample=sample, is_correct=False, corrected_action=Action.ALLOW)
        payload = decision.to_api()

        assert payload["corrected_action"] == 0
        assert payload["sample"]["ip"] == "1.2.3.4"

    def test_correction_requires_action(self, sample):
        with pytest.raises(ValueError):
            ReviewDecision(sample=sample, is_correct=False)

    def test_correction_must_differ(self, sample):
        with pytest.raises(ValueError):
            ReviewDecision(sample=sample, is_correct=False, corrected_action=Action.BLOCK)

    def test_confirm_rejects_action(self, sample):
        with pytest.raises(ValueError):
            ReviewDecision(sample=sample, is_correct=True, corrected_action=Action.ALLOW)


class TestReviewQueue:
    """Test FIFO queue store."""

    @pytest.fixture
    def samples(self):
        return [Sample.from_api(make_sample_data(f"10.0.0.{i}")) for i in range(3)]

    def test_empty(self):
        queue = ReviewQueue()
        assert queue.peek_head() is None
        assert len(queue) == 0
        assert not queue

    def test_load_preserves_order(self, samples):
        queue = ReviewQueue()
        queue.load(reversed(samples))

        assert queue.peek_head().ip == "10.0.0.2"

    def test_remove_head(self, samples):
        queue = ReviewQueue()
        queue.load(samples)
        queue.remove_head()

        assert queue.peek_head().ip == "10.0.0.1"
        assert len(queue) == 2

    def test_remove_head_on_empty_is_noop(self):
        queue = ReviewQueue()
        queue.remove_head()
        assert len(queue) == 0

    def test_load_replaces(self, samples):
        queue = ReviewQueue()
        queue.load(samples)
        queue.load(samples[:1])
        assert len(queue) == 1

    def test_no_deduplication(self, samples):
        queue = ReviewQueue()
        queue.load([samples[0], samples[0]])
        assert len(queue) == 2

    def test_load_copies_input(self, samples):
        queue = ReviewQueue()
        queue.load(samples)
        samples.clear()
        assert len(queue) == 3


class TestCorrectionStateMachine:
    """Test direct/correcting decision flow."""

    @pytest.fixture
    def machine(self, sample_data):
        machine = CorrectionStateMachine()
        machine.track(Sample.from_api(sample_data))
        return machine

    @pytest.mark.parametrize("predicted", list(Action))
    def test_never_offers_predicted(self, predicted):
        machine = CorrectionStateMachine()
        machine.track(Sample.from_api(make_sample_data(action=int(predicted))))
        machine.mark_incorrect()

        choices = machine.choices()
        assert predicted not in choices
        assert len(choices) == 2

    def test_initial_mode(self, machine):
        assert machine.mode is CorrectionMode.DIRECT

    def test_confirm(self, machine):
        decision = machine.confirm()
        assert decision.is_correct is True
        assert decision.corrected_action is None

    def test_mark_incorrect_then_select(self, machine):
        machine.mark_incorrect()
        decision = machine.select(Action.ALLOW)

        assert decision.is_correct is False
        assert decision.corrected_action is Action.ALLOW

    def test_select_predicted_rejected(self, machine):
        machine.mark_incorrect()
        with pytest.raises(ValueError):
            machine.select(Action.BLOCK)

    def test_select_in_direct_rejected(self, machine):
        with pytest.raises(ValueError):
            machine.select(Action.ALLOW)

    def test_cancel(self, machine):
        machine.mark_incorrect()
        machine.cancel()
        assert machine.mode is CorrectionMode.DIRECT

    def test_new_head_resets(self, machine):
        machine.mark_incorrect()
        machine.track(Sample.from_api(make_sample_data("5.6.7.8")))
        assert machine.mode is CorrectionMode.DIRECT

    def test_same_head_refetched_keeps_mode(self, machine, sample_data):
        machine.mark_incorrect()
        machine.track(Sample.from_api(sample_data))
        assert machine.mode is CorrectionMode.CORRECTING

    def test_no_sample(self):
        machine = CorrectionStateMachine()
        machine.mark_incorrect()

        assert machine.mode is CorrectionMode.DIRECT
        assert machine.choices() == []
        with pytest.raises(ValueError):
            machine.confirm()


class TestNotificationScheduler:
    """Test single-slot notifications with rearm."""

    @pytest.fixture
    def clock(self):
        return ManualClock()

    @pytest.fixture
    def notifications(self, clock):
        return NotificationScheduler(clock, duration=3.0)

    def test_expires(self, clock, notifications):
        notifications.notify("Saved", Severity.SUCCESS)
        clock.advance(2.999)
        assert notifications.current.message == "Saved"

        clock.advance(0.002)
        assert notifications.current is None

    def test_replacement_rearms(self, clock, notifications):
        notifications.notify("A")
        clock.advance(1.0)
        notifications.notify("B", Severity.WARNING)

        clock.advance(2.001)  # t = 3.001
        assert notifications.current.message == "B"

        clock.advance(1.0)  # t = 4.001
        assert notifications.current is None

    def test_replaced_timer_cancelled(self, clock, notifications):
        notifications.notify("A")
        notifications.notify("B")
        assert clock.pending == 1

    def test_expires_at(self, clock, notifications):
        clock.advance(5.0)
        notification = notifications.notify("A", Severity.ERROR)
        assert notification.expires_at == 8.0
        assert notification.severity is Severity.ERROR

    def test_clear(self, clock, notifications):
        notifications.notify("A")
        notifications.clear()

        assert notifications.current is None
        assert clock.pending == 0

    def test_default_severity(self, notifications):
        assert notifications.notify("A").severity is Severity.SUCCESS


class TestManualClock:
    """Test the virtual clock."""

    def test_fires_in_order(self):
        clock = ManualClock()
        fired = []
        clock.call_later(2.0, lambda: fired.append(("b", clock.time())))
        clock.call_later(1.0, lambda: fired.append(("a", clock.time())))

        clock.advance(5.0)

        assert fired == [("a", 1.0), ("b", 2.0)]
        assert clock.time() == 5.0

    def test_cancelled_not_fired(self):
        clock = ManualClock()
        fired = []
        handle = clock.call_later(1.0, lambda: fired.append(1))
        handle.cancel()

        clock.advance(2.0)
        assert fired == []

    def test_callback_scheduled_during_advance(self):
        clock = ManualClock()
        fired = []

        def tick():
            fired.append(clock.time())
            clock.call_later(1.0, tick)

        clock.call_later(1.0, tick)
        clock.advance(3.5)

        assert fired == [1.0, 2.0, 3.0]
