"""
Contracts for the external collaborators the engine consumes.

The engine never implements identity, speech or camera sensing itself; it is
handed objects satisfying these protocols at construction time.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol

from src.models.emotion import EmotionSample
from src.models.quiz import Question
from src.models.user import User

SampleCallback = Callable[[EmotionSample], None]
UtteranceCallback = Callable[[str], None]


class AuthProvider(Protocol):
    def current_user(self) -> Optional[User]:
        ...


class VoiceIO(Protocol):
    def speak(self, text: str) -> None:
        ...

    def on_utterance(self, callback: UtteranceCallback) -> None:
        ...


class AffectSensor(Protocol):
    """Emits emotion samples while started. start() may raise PermissionDenied."""

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def on_sample(self, callback: SampleCallback) -> None:
        ...


class ContentGenerator(Protocol):
    def generate_questions(self, topic: str, difficulty: str, count: int) -> List[Question]:
        ...


class StaticAuthProvider:
    """
    In-process AuthProvider holding whoever signed in last.

    Useful for single-process simulations of several users sharing one
    coordinator: switch the signed-in user between calls.
    """

    def __init__(self, user: Optional[User] = None):
        self._user = user

    def current_user(self) -> Optional[User]:
        return self._user

    def sign_in(self, user: User) -> None:
        self._user = user

    def sign_out(self) -> None:
        self._user = None
