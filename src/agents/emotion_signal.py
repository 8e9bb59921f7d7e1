"""
Emotion signal: the engine's view of the learner's current affective state.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from src.collaborators import AffectSensor, SampleCallback
from src.errors import PermissionDenied
from src.models.emotion import NEUTRAL_SAMPLE, EmotionSample

logger = logging.getLogger(__name__)


class EmotionSignal:
    """
    Holds the latest emotion sample from an AffectSensor and fans it out.

    While inactive, current_emotion() is the neutral default with zero
    confidence and incoming samples are ignored. A sensor that refuses
    permission leaves the signal inactive; the refusal is kept in
    permission_error rather than raised.
    """

    def __init__(self, sensor: Optional[AffectSensor] = None):
        self._sensor = sensor
        self._lock = threading.Lock()
        self._current: EmotionSample = NEUTRAL_SAMPLE
        self._subscribers: List[SampleCallback] = []
        self.is_active = False
        self.permission_error: Optional[PermissionDenied] = None
        if sensor is not None:
            sensor.on_sample(self.receive)

    def current_emotion(self) -> EmotionSample:
        with self._lock:
            return self._current if self.is_active else NEUTRAL_SAMPLE

    def subscribe(self, callback: SampleCallback) -> Callable[[], None]:
        """
        Register a callback for every accepted sample.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set_active(self, active: bool) -> bool:
        """
        Start or stop sampling.

        Returns:
            Whether detection is active after the call
        """
        if active == self.is_active:
            return self.is_active

        if active:
            self.permission_error = None
            if self._sensor is not None:
                try:
                    self._sensor.start()
                except PermissionDenied as exc:
                    self.permission_error = exc
                    logger.warning("Emotion detection unavailable: %s", exc)
                    return False
            self.is_active = True
            logger.info("Emotion detection activated")
        else:
            if self._sensor is not None:
                self._sensor.stop()
            with self._lock:
                self.is_active = False
                self._current = NEUTRAL_SAMPLE
            logger.info("Emotion detection deactivated")
        return self.is_active

    def receive(self, sample: EmotionSample) -> None:
        """Accept a sample from the sensor and notify subscribers."""
        with self._lock:
            if not self.is_active:
                return
            self._current = sample

        logger.debug("Emotion sample: %s (%.2f)", sample.label.value, sample.confidence)
        for callback in list(self._subscribers):
            try:
                callback(sample)
            except Exception:
                logger.exception("Emotion subscriber %r failed", callback)
