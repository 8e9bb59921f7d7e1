"""
Voice assistant: routes spoken commands to spoken replies.

Commands are matched on whole words in a fixed order. A quiz request
generates a quiz on the current study topic when one is known.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from src.collaborators import VoiceIO
from src.config import config
from src.errors import EngineError

if TYPE_CHECKING:
    from src.agents.quiz_engine import QuizEngine
    from src.agents.study_session_manager import StudySessionManager

logger = logging.getLogger(__name__)

GREETING = "Hello there! How can I help you with your learning today?"
QUIZ_PROMPT = (
    "I'll create a quiz for you based on your recent topics. "
    "Would you like easy, medium, or hard difficulty?"
)
EXPLAIN = (
    "I'd be happy to explain that concept. "
    "Could you provide more details about what you'd like me to explain?"
)
SCHEDULE = "I can help you create a study schedule. What subjects are you currently studying?"
FALLBACK = "I heard your request, but I can only help with greetings, quizzes, explanations and study plans: "


def _has_phrase(text: str, *phrases: str) -> bool:
    return any(re.search(rf"\b{re.escape(p)}\b", text) for p in phrases)


class VoiceAssistant:
    """
    Listens on a VoiceIO and answers each utterance.

    Args:
        voice: Speech collaborator
        quiz_engine: Used to generate a quiz on request
        session_manager: Supplies the current study topic
    """

    def __init__(
        self,
        voice: VoiceIO,
        quiz_engine: Optional["QuizEngine"] = None,
        session_manager: Optional["StudySessionManager"] = None,
    ):
        self.voice = voice
        self.quiz_engine = quiz_engine
        self.session_manager = session_manager
        self.transcript: List[Tuple[str, str]] = []
        self._routes: List[Tuple[Tuple[str, ...], Callable[[str], str]]] = [
            (("hello", "hi"), lambda _: GREETING),
            (("quiz", "test me"), self._quiz),
            (("explain",), lambda _: EXPLAIN),
            (("schedule", "plan"), lambda _: SCHEDULE),
        ]
        voice.on_utterance(self.handle)

    def respond(self, utterance: str) -> str:
        """Reply text for an utterance without speaking it."""
        command = utterance.lower().strip()
        for phrases, handler in self._routes:
            if _has_phrase(command, *phrases):
                return handler(command)
        return FALLBACK + utterance

    def handle(self, utterance: str) -> str:
        reply = self.respond(utterance)
        self.transcript.append((utterance, reply))
        logger.debug("Voice command %r -> %r", utterance, reply)
        self.voice.speak(reply)
        return reply

    def _quiz(self, command: str) -> str:
        topic = self.session_manager.current_topic if self.session_manager else None
        if self.quiz_engine is None or not topic:
            return QUIZ_PROMPT

        difficulty = next((d for d in config.quiz.difficulty_levels if _has_phrase(command, d)), None)
        if difficulty is None and self.session_manager is not None:
            difficulty = self.session_manager.profile.difficulty
        try:
            quiz = self.quiz_engine.generate(topic, difficulty or config.quiz.default_difficulty)
        except EngineError as e:
            logger.warning("Voice quiz request failed: %s", e)
            return f"Sorry, I couldn't create a quiz on {topic} right now."
        return f"I've created a {len(quiz.questions)}-question {quiz.difficulty} quiz on {topic}. Good luck!"
