"""
Simulated affect sensor.

Stands in for camera-based emotion detection: while started it emits either
seeded random samples or a scripted sequence. The cadence loop is an asyncio
coroutine so it runs on the same event loop as the rest of the engine.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from src.collaborators import SampleCallback
from src.config import config
from src.errors import PermissionDenied
from src.models.emotion import EmotionLabel, EmotionSample
from src.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)

# Labels the random simulation draws from
SIMULATED_LABELS = (
    EmotionLabel.HAPPY,
    EmotionLabel.SAD,
    EmotionLabel.NEUTRAL,
    EmotionLabel.CONFUSED,
    EmotionLabel.FRUSTRATED,
    EmotionLabel.BORED,
    EmotionLabel.ENGAGED,
)

ScriptStep = Union[str, EmotionLabel, Tuple[Union[str, EmotionLabel], float]]


class SimulatedAffectSensor:
    """
    AffectSensor test double and demo implementation.

    Args:
        seed: Seed for random draws
        script: Optional sequence of labels or (label, confidence) pairs,
            emitted in order and cycled
        permission_granted: When False, start() raises PermissionDenied
        clock: Timestamp source for samples
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        script: Optional[Sequence[ScriptStep]] = None,
        permission_granted: bool = True,
        clock: Clock = utc_now,
    ):
        self._rng = random.Random(seed)
        self._script: List[Tuple[EmotionLabel, float]] = [
            self._normalize_step(step) for step in (script or [])
        ]
        self._script_pos = 0
        self.permission_granted = permission_granted
        self._clock = clock
        self._callbacks: List[SampleCallback] = []
        self.is_started = False

    @staticmethod
    def _normalize_step(step: ScriptStep) -> Tuple[EmotionLabel, float]:
        if isinstance(step, tuple):
            label, confidence = step
            return EmotionLabel.parse(label), float(confidence)
        return EmotionLabel.parse(step), 1.0

    def on_sample(self, callback: SampleCallback) -> None:
        self._callbacks.append(callback)

    def start(self) -> None:
        if not self.permission_granted:
            raise PermissionDenied("Camera access was not granted")
        self.is_started = True
        logger.info("Affect sensor started")

    def stop(self) -> None:
        if self.is_started:
            logger.info("Affect sensor stopped")
        self.is_started = False

    def next_sample(self) -> EmotionSample:
        if self._script:
            label, confidence = self._script[self._script_pos % len(self._script)]
            self._script_pos += 1
        else:
            label = self._rng.choice(SIMULATED_LABELS)
            low = config.emotion.min_confidence
            confidence = low + self._rng.random() * (1.0 - low)
        return EmotionSample(label=label, confidence=confidence, captured_at=self._clock())

    def emit(self) -> Optional[EmotionSample]:
        """Emit one sample to every callback. No-op while stopped."""
        if not self.is_started:
            return None
        sample = self.next_sample()
        for callback in list(self._callbacks):
            callback(sample)
        return sample

    def emit_many(self, count: int) -> Iterable[EmotionSample]:
        return [s for s in (self.emit() for _ in range(count)) if s is not None]

    async def run(self, interval: Optional[float] = None, max_samples: Optional[int] = None) -> int:
        """
        Emit samples at a fixed cadence until stopped.

        Args:
            interval: Seconds between samples (config.emotion.sample_interval_seconds)
            max_samples: Stop after this many samples

        Returns:
            Number of samples emitted
        """
        interval = config.emotion.sample_interval_seconds if interval is None else interval
        emitted = 0
        while self.is_started and (max_samples is None or emitted < max_samples):
            if self.emit() is not None:
                emitted += 1
            await asyncio.sleep(interval)
        return emitted
