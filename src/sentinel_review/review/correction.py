"""Decision flow for the head sample: confirm, or pick a correction."""

from enum import Enum
from typing import Optional

from .models import Action, ReviewDecision, Sample


class CorrectionMode(Enum):
    DIRECT = "direct"
    CORRECTING = "correcting"


class CorrectionStateMachine:
    """
    Per-sample decision state.

    Starts in DIRECT for every new head sample. "Mark incorrect" moves to
    CORRECTING, where the operator picks one of the two actions the
    classifier did not predict. Cancel, or a change of head sample, goes
    back to DIRECT.

    Usage:
        machine = CorrectionStateMachine()
        machine.track(queue.peek_head())

        decision = machine.confirm()
        # or
        machine.mark_incorrect()
        decision = machine.select(Action.ALLOW)
    """

    def __init__(self):
        self.mode = CorrectionMode.DIRECT
        self._sample: Optional[Sample] = None

    @property
    def sample(self) -> Optional[Sample]:
        return self._sample

    @property
    def is_correcting(self) -> bool:
        return self.mode is CorrectionMode.CORRECTING

    def track(self, head: Optional[Sample]) -> None:
        """Follow the queue head, resetting to DIRECT when it changes."""
        if head != self._sample:
            self.mode = CorrectionMode.DIRECT
        self._sample = head

    def reset(self) -> None:
        self.mode = CorrectionMode.DIRECT

    def mark_incorrect(self) -> None:
        if self._sample is None:
            return
        self.mode = CorrectionMode.CORRECTING

    def cancel(self) -> None:
        self.mode = CorrectionMode.DIRECT

    def choices(self) -> list[Action]:
        """Actions offered as corrections. Never the predicted one."""
        if self._sample is None:
            return []
        return [action for action in Action if action != self._sample.predicted_action]

    def confirm(self) -> ReviewDecision:
        """Build a decision accepting the prediction."""
        if self._sample is None:
            raise ValueError("No sample to review")
        if self.is_correcting:
            raise ValueError("Cannot confirm while correcting; cancel first")
        return ReviewDecision(sample=self._sample, is_correct=True)

    def select(self, action: Action) -> ReviewDecision:
        """Build a decision correcting the prediction to ``action``."""
        if not self.is_correcting:
            raise ValueError("Not in correction mode")
        action = Action(action)
        if action not in self.choices():
            raise ValueError(f"{action.name} is not an available correction")
        return ReviewDecision(sample=self._sample, is_correct=False, corrected_action=action)
