"""Data models for the review controller."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional


class Action(IntEnum):
    """Firewall action predicted by the classifier.

    Ordinals are part of the wire format and must not change.
    """

    ALLOW = 0
    RATE_LIMIT = 1
    BLOCK = 2


class Severity(Enum):
    """Notification severity."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def _optional_float(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _section(data, name: str) -> dict:
    """A nested object of a payload; missing or null reads as empty."""
    if not data:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"{name} must be an object, got {type(data).__name__}")
    return data


def parse_action(value) -> Action:
    """Action from its wire ordinal. Only the integers 0, 1 and 2 are accepted."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Action ordinal must be an integer, got {value!r}")
    return Action(value)


@dataclass(frozen=True)
class NetworkParameters:
    """Traffic metrics captured for a sample. Every field may be missing."""

    packets_per_second: Optional[float] = None
    bytes_per_second: Optional[float] = None
    syn_ratio: Optional[float] = None
    unique_ports: Optional[int] = None
    packet_size_avg: Optional[float] = None
    entropy: Optional[float] = None
    tcp_ratio: Optional[float] = None
    udp_ratio: Optional[float] = None
    traffic_spike_ratio: Optional[float] = None

    @classmethod
    def from_api(cls, data: Optional[dict]) -> "NetworkParameters":
        data = _section(data, "network_parameters")
        unique_ports = data.get("unique_ports")
        return cls(
            packets_per_second=_optional_float(data.get("packets_per_second")),
            bytes_per_second=_optional_float(data.get("bytes_per_second")),
            syn_ratio=_optional_float(data.get("syn_ratio")),
            unique_ports=int(unique_ports) if unique_ports is not None else None,
            packet_size_avg=_optional_float(data.get("packet_size_avg")),
            entropy=_optional_float(data.get("entropy")),
            tcp_ratio=_optional_float(data.get("tcp_ratio")),
            udp_ratio=_optional_float(data.get("udp_ratio")),
            traffic_spike_ratio=_optional_float(data.get("traffic_spike_ratio")),
        )

    def to_api(self) -> dict:
        return {key: value for key, value in self.__dict__.items() if value is not None}


@dataclass(frozen=True)
class ParameterAnalysis:
    """Automated indicator analysis attached to a sample."""

    suspicious_indicators: tuple[str, ...] = ()
    normal_indicators: tuple[str, ...] = ()
    severity_score: Optional[float] = None  # 0 - 10

    @classmethod
    def from_api(cls, data: Optional[dict]) -> "ParameterAnalysis":
        data = _section(data, "parameter_analysis")
        return cls(
            suspicious_indicators=tuple(str(i) for i in data.get("suspicious_indicators") or ()),
            normal_indicators=tuple(str(i) for i in data.get("normal_indicators") or ()),
            severity_score=_optional_float(data.get("severity_score")),
        )

    def to_api(self) -> dict:
        data = {
            "suspicious_indicators": list(self.suspicious_indicators),
            "normal_indicators": list(self.normal_indicators),
        }
        if self.severity_score is not None:
            data["severity_score"] = self.severity_score
        return data

    @property
    def is_empty(self) -> bool:
        return not self.suspicious_indicators and not self.normal_indicators


_SAMPLE_KEYS = {
    "ip",
    "predicted_action",
    "predicted_suspicious",
    "network_parameters",
    "parameter_analysis",
    "current",
}


@dataclass(frozen=True)
class Sample:
    """A captured traffic anomaly awaiting human review."""

    ip: str
    predicted_action: Action
    predicted_suspicious: float  # 0.0 - 1.0
    current: tuple[float, ...]  # Feature vector
    network_parameters: NetworkParameters = field(default_factory=NetworkParameters)
    parameter_analysis: ParameterAnalysis = field(default_factory=ParameterAnalysis)

    # Keys the classifier sent that we don't model, echoed back on review
    extras: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: dict) -> "Sample":
        """
        Create from a /load_samples entry.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the action ordinal or a numeric field is invalid
            TypeError: If the entry or a nested section is not an object
        """
        if not isinstance(data, dict):
            raise TypeError(f"sample must be an object, got {type(data).__name__}")
        return cls(
            ip=str(data["ip"]),
            predicted_action=parse_action(data["predicted_action"]),
            predicted_suspicious=float(data["predicted_suspicious"]),
            current=tuple(float(v) for v in data["current"]),
            network_parameters=NetworkParameters.from_api(data.get("network_parameters")),
            parameter_analysis=ParameterAnalysis.from_api(data.get("parameter_analysis")),
            extras={k: v for k, v in data.items() if k not in _SAMPLE_KEYS},
        )

    def to_api(self) -> dict:
        """Serialize back to the gateway's sample shape."""
        data = dict(self.extras)
        data.update(
            {
                "ip": self.ip,
                "predicted_action": int(self.predicted_action),
                "predicted_suspicious": self.predicted_suspicious,
                "network_parameters": self.network_parameters.to_api(),
                "parameter_analysis": self.parameter_analysis.to_api(),
                "current": list(self.current),
            }
        )
        return data

    @property
    def suspicion_pct(self) -> float:
        """Suspicion score as a percentage."""
        return self.predicted_suspicious * 100


@dataclass(frozen=True)
class PendingFeedback:
    """Corrections buffered before the next retraining run."""

    count: int = 0
    threshold: int = 0


@dataclass(frozen=True)
class Stats:
    """Aggregate model metrics. Always replaced as a whole."""

    accuracy: float  # 0 - 100
    total_reviewed: int = 0
    correct_predictions: int = 0
    incorrect_predictions: int = 0
    pending_feedback: PendingFeedback = field(default_factory=PendingFeedback)
    retraining_in_progress: bool = False

    def __post_init__(self):
        if not 0 <= self.accuracy <= 100:
            raise ValueError(f"accuracy out of range: {self.accuracy}")
        for name in ("total_reviewed", "correct_predictions", "incorrect_predictions"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @classmethod
    def from_api(cls, data: dict) -> "Stats":
        pending = data.get("pending_feedback") or {}
        return cls(
            accuracy=data["accuracy"],
            total_reviewed=int(data.get("total_reviewed", 0)),
            correct_predictions=int(data.get("correct_predictions", 0)),
            incorrect_predictions=int(data.get("incorrect_predictions", 0)),
            pending_feedback=PendingFeedback(
                count=int(pending.get("count", 0)),
                threshold=int(pending.get("threshold", 0)),
            ),
            retraining_in_progress=bool(data.get("retraining_in_progress", False)),
        )

    @property
    def accuracy_fraction(self) -> float:
        """Accuracy as a 0-1 fraction, exactly accuracy / 100."""
        return self.accuracy / 100


@dataclass(frozen=True)
class ReviewDecision:
    """An operator verdict on the head sample."""

    sample: Sample
    is_correct: bool
    corrected_action: Optional[Action] = None

    def __post_init__(self):
        if self.is_correct:
            if self.corrected_action is not None:
                raise ValueError("corrected_action must be absent when the prediction is correct")
            return

        if self.corrected_action is None:
            raise ValueError("corrected_action is required when the prediction is incorrect")
        if self.corrected_action == self.sample.predicted_action:
            raise ValueError("corrected_action must differ from the predicted action")

    def to_api(self) -> dict:
        """Payload for POST /review."""
        return {
            "sample": self.sample.to_api(),
            "is_correct": self.is_correct,
            "corrected_action": (
                int(self.corrected_action) if self.corrected_action is not None else None
            ),
        }


@dataclass(frozen=True)
class Notification:
    """A transient operator message."""

    message: str
    severity: Severity
    expires_at: float
