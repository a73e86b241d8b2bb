"""Review controller: keeps the local queue in sync with the Firewall API.

The controller owns:
- the pending-review queue and the latest stats snapshot
- the single-flight "processing" latch for review submission
- the periodic refresh timer
- the transient notification slot

All gateway failures are caught here and turned into notifications;
nothing raised by the gateway escapes to the caller.
"""

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..gateway.client import FirewallAPIError, FirewallClient
from .clock import Clock, LoopClock, TimerHandle
from .correction import CorrectionStateMachine
from .models import Action, ReviewDecision, Sample, Severity, Stats
from .notifications import NotificationScheduler
from .queue import ReviewQueue
from .stats import StatsSynchronizer

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)

CONNECT_ERROR = "Error connecting to Firewall API"
SUBMIT_ERROR = "Failed to submit review"
RETRAIN_ERROR = "Failed to trigger retraining"


class ControllerState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"


class ReviewController:
    """
    Orchestrates queue, stats, corrections and notifications.

    Usage:
        async with FirewallClient(config.api_url) as gateway:
            controller = ReviewController(gateway, config)
            controller.start()
            await controller.initialize()

            await controller.confirm()
            # or
            controller.mark_incorrect()
            await controller.select_correction(Action.ALLOW)

            controller.close()
    """

    def __init__(
        self,
        gateway: FirewallClient,
        config: Optional["Config"] = None,
        clock: Optional[Clock] = None,
    ):
        if config is None:
            from ..config import Config

            config = Config()

        self.gateway = gateway
        self.config = config
        self.clock = clock or LoopClock()

        self.queue = ReviewQueue()
        self.stats_sync = StatsSynchronizer(gateway)
        self.notifications = NotificationScheduler(
            self.clock, duration=config.notification_duration
        )
        self.correction = CorrectionStateMachine()

        self.state = ControllerState.IDLE
        self.ready = False

        self._closed = False
        self._refresh_timer: Optional[TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()

    # =========================================================================
    # Views
    # =========================================================================

    @property
    def head(self) -> Optional[Sample]:
        return self.queue.peek_head()

    @property
    def stats(self) -> Optional[Stats]:
        return self.stats_sync.stats

    @property
    def pending(self) -> int:
        return len(self.queue)

    @property
    def processing(self) -> bool:
        return self.state is ControllerState.PROCESSING

    @property
    def retraining_allowed(self) -> bool:
        """Based on the last snapshot, which may be stale."""
        return not self.stats_sync.retraining_in_progress

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Arm the periodic refresh timer."""
        if self._closed:
            raise RuntimeError("Controller is closed")
        if self._refresh_timer is None:
            self._arm_refresh()
            logger.info(f"Refreshing every {self.config.refresh_interval:.0f}s")

    def close(self) -> None:
        """
        Stop the refresh timer and detach from late responses.

        In-flight requests are left to finish; their results are dropped.
        """
        if self._closed:
            return
        self._closed = True

        if self._refresh_timer is not None:
            self._refresh_timer.cancel()
            self._refresh_timer = None

        self.stats_sync.close()
        self.notifications.clear()
        logger.info("Review controller closed")

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, *args):
        self.close()

    def _arm_refresh(self) -> None:
        self._refresh_timer = self.clock.call_later(
            self.config.refresh_interval, self._on_refresh_tick
        )

    def _on_refresh_tick(self) -> None:
        if self._closed:
            return
        self._arm_refresh()
        self._spawn(self.initialize())

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # =========================================================================
    # Synchronization
    # =========================================================================

    async def initialize(self) -> None:
        """
        Load the queue and stats concurrently.

        Each half applies its own result as soon as it arrives; a failure
        in one does not hold back the other. One error notification is
        raised if either fails.
        """
        results = await asyncio.gather(self._load_queue(), self._load_stats())

        if self._closed:
            return

        if not all(results):
            self.notifications.notify(CONNECT_ERROR, Severity.ERROR)

        self.ready = True

    async def _load_queue(self) -> bool:
        try:
            batch = await self.gateway.load_samples()
        except FirewallAPIError as e:
            logger.warning(f"Loading samples failed: {e}")
            return False

        if self._closed:
            return True

        if batch.success:
            self.queue.load(batch.samples)
            self.correction.track(self.queue.peek_head())
            logger.debug(f"Queue loaded with {len(batch.samples)} samples")
        else:
            logger.warning("Sample endpoint reported failure; keeping current queue")
        return True

    async def _load_stats(self) -> bool:
        try:
            await self.stats_sync.refresh()
        except FirewallAPIError as e:
            logger.warning(f"Loading stats failed: {e}")
            return False
        return True

    # =========================================================================
    # Review
    # =========================================================================

    async def submit_review(self, decision: ReviewDecision) -> bool:
        """
        Send a decision for the head sample.

        Ignored when the queue is empty, a submission is already in flight,
        or the decision is not for the current head.

        Returns:
            True if the gateway acknowledged and the head was removed
        """
        head = self.queue.peek_head()
        if head is None:
            logger.debug("Ignoring review: queue is empty")
            return False
        if self.processing:
            logger.debug("Ignoring review: submission already in flight")
            return False
        if decision.sample != head:
            logger.debug("Ignoring review: decision is not for the head sample")
            return False

        self.state = ControllerState.PROCESSING
        try:
            try:
                ack = await self.gateway.submit_review(decision)
            except FirewallAPIError as e:
                logger.warning(f"Review submission failed: {e}")
                if not self._closed:
                    self.notifications.notify(SUBMIT_ERROR, Severity.ERROR)
                return False

            if self._closed:
                return False

            if not ack.success:
                logger.warning(f"Review for {head.ip} was not accepted")
                return False

            severity = Severity.SUCCESS if decision.is_correct else Severity.WARNING
            self.notifications.notify(ack.message, severity)
            # A refresh during the request may already have dropped it
            if self.queue.peek_head() == head:
                self.queue.remove_head()
            logger.info(f"Review for {head.ip} acknowledged ({self.pending} pending)")

            try:
                await self.stats_sync.refresh()
            except FirewallAPIError as e:
                logger.warning(f"Stats refresh after review failed: {e}")
                if not self._closed:
                    self.notifications.notify(SUBMIT_ERROR, Severity.ERROR)

            if not self._closed:
                self.correction.reset()
                self.correction.track(self.queue.peek_head())
            return True
        finally:
            self.state = ControllerState.IDLE

    def _is_stale(self, expected: Optional[Sample]) -> bool:
        if expected is not None and expected != self.queue.peek_head():
            logger.debug(f"Ignoring input for {expected.ip}: no longer the head sample")
            return True
        return False

    async def confirm(self, expected: Optional[Sample] = None) -> bool:
        """
        Accept the classifier's prediction for the head sample.

        ``expected`` is the sample the operator was shown; the call is
        ignored if a refresh has replaced it since.
        """
        head = self.queue.peek_head()
        if head is None or self._is_stale(expected):
            return False
        self.correction.track(head)
        if self.correction.is_correcting:
            return False
        return await self.submit_review(self.correction.confirm())

    def mark_incorrect(self, expected: Optional[Sample] = None) -> None:
        """Enter correction mode for the head sample."""
        if self.processing or self._is_stale(expected):
            return
        self.correction.track(self.queue.peek_head())
        self.correction.mark_incorrect()

    def cancel_correction(self) -> None:
        self.correction.cancel()

    async def select_correction(self, action: Action, expected: Optional[Sample] = None) -> bool:
        """Submit ``action`` as the correct action for the head sample."""
        if self._is_stale(expected):
            return False
        self.correction.track(self.queue.peek_head())
        if not self.correction.is_correcting:
            logger.debug("Ignoring correction: not in correction mode")
            return False
        if action not in self.correction.choices():
            logger.debug(f"Ignoring correction: {action!r} is not offered")
            return False
        return await self.submit_review(self.correction.select(action))

    # =========================================================================
    # Retraining
    # =========================================================================

    async def trigger_retraining(self) -> bool:
        """
        Ask the server to retrain, then refresh queue and stats.

        There is no client-side guard against repeated triggers beyond
        ``retraining_allowed``.
        """
        try:
            ack = await self.gateway.trigger_retraining()
        except FirewallAPIError as e:
            logger.warning(f"Retraining trigger failed: {e}")
            if not self._closed:
                self.notifications.notify(RETRAIN_ERROR, Severity.ERROR)
            return False

        if self._closed:
            return False

        # Severity ignores ack.success; the server message is shown as-is
        self.notifications.notify(ack.message, Severity.SUCCESS)
        logger.info(f"Retraining triggered: {ack.message}")

        await self.initialize()
        return True
