"""sentinel-review - Human review for DDoS traffic classification."""

__version__ = "0.1.0"

# review must load before gateway/config; both import review.models
from sentinel_review.review import (
    Action,
    Severity,
    Sample,
    Stats,
    ReviewDecision,
    Notification,
    ReviewQueue,
    NotificationScheduler,
    CorrectionMode,
    CorrectionStateMachine,
    StatsSynchronizer,
    ReviewController,
    ControllerState,
    ReviewTUI,
    LoopClock,
    ManualClock,
)
from sentinel_review.gateway import FirewallClient, FirewallAPIError
from sentinel_review.config import Config, ActionStyle

__all__ = [
    # Models
    "Action",
    "Severity",
    "Sample",
    "Stats",
    "ReviewDecision",
    "Notification",
    # Review components
    "ReviewQueue",
    "NotificationScheduler",
    "CorrectionMode",
    "CorrectionStateMachine",
    "StatsSynchronizer",
    "ReviewController",
    "ControllerState",
    "ReviewTUI",
    "LoopClock",
    "ManualClock",
    # Gateway
    "FirewallClient",
    "FirewallAPIError",
    # Config
    "Config",
    "ActionStyle",
]
