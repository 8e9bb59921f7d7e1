"""
Emotion samples produced by the affect sensor.

The label set is closed: adding an emotion means adding an EmotionLabel member
and one row to the content adapter's rule table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from src.errors import InvalidInput
from src.utils.clock import from_iso, utc_now


class EmotionLabel(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    NEUTRAL = "neutral"
    CONFUSED = "confused"
    FRUSTRATED = "frustrated"
    BORED = "bored"
    ENGAGED = "engaged"
    ANGRY = "angry"

    @classmethod
    def parse(cls, value: "EmotionLabel | str") -> "EmotionLabel":
        """Coerce a raw label, rejecting anything outside the closed set."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInput(
                f"Unknown emotion label '{value}', expected one of {[e.value for e in cls]}"
            ) from None


@dataclass(frozen=True)
class EmotionSample:
    """
    A single affective-state estimate.

    Attributes:
        label: Detected emotion
        confidence: Estimate confidence in [0, 1]
        captured_at: When the sample was taken (UTC)
    """

    label: EmotionLabel
    confidence: float
    captured_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        object.__setattr__(self, "label", EmotionLabel.parse(self.label))
        if not (0.0 <= float(self.confidence) <= 1.0):
            raise InvalidInput(f"Confidence must be in [0, 1], got {self.confidence}")
        object.__setattr__(self, "confidence", float(self.confidence))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label.value,
            "confidence": self.confidence,
            "captured_at": self.captured_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmotionSample":
        return cls(
            label=data["label"],
            confidence=data["confidence"],
            captured_at=from_iso(data["captured_at"]),
        )


# Reported while detection is inactive
NEUTRAL_SAMPLE = EmotionSample(
    label=EmotionLabel.NEUTRAL,
    confidence=0.0,
    captured_at=datetime(1970, 1, 1, tzinfo=timezone.utc),
)
