"""Human review of classifier decisions, kept in sync with the Firewall API."""

from .models import (
    Action,
    Severity,
    NetworkParameters,
    ParameterAnalysis,
    Sample,
    PendingFeedback,
    Stats,
    ReviewDecision,
    Notification,
)
from .clock import Clock, LoopClock, ManualClock
from .queue import ReviewQueue
from .notifications import NotificationScheduler
from .correction import CorrectionMode, CorrectionStateMachine
from .stats import StatsSynchronizer
from .controller import ReviewController, ControllerState
from .tui import ReviewTUI

__all__ = [
    "Action",
    "Severity",
    "NetworkParameters",
    "ParameterAnalysis",
    "Sample",
    "PendingFeedback",
    "Stats",
    "ReviewDecision",
    "Notification",
    "Clock",
    "LoopClock",
    "ManualClock",
    "ReviewQueue",
    "NotificationScheduler",
    "CorrectionMode",
    "CorrectionStateMachine",
    "StatsSynchronizer",
    "ReviewController",
    "ControllerState",
    "ReviewTUI",
]
