"""
Learning Companion - wires the study engine together.

Builds the emotion signal, study session manager, quiz engine, battle
coordinator and (optionally) the voice assistant around one set of
collaborators. Every dependency is passed in explicitly; nothing is looked up
from a global registry.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from src.agents.battle_coordinator import BattleCoordinator
from src.agents.content_adapter import ContentAdapter
from src.agents.emotion_signal import EmotionSignal
from src.agents.question_generator import SampleQuestionGenerator
from src.agents.quiz_engine import QuizEngine
from src.agents.study_session_manager import StudySessionManager
from src.agents.voice_assistant import VoiceAssistant
from src.collaborators import AffectSensor, AuthProvider, ContentGenerator, VoiceIO
from src.config import config
from src.utils.clock import Clock, utc_now
from src.utils.persistence import JsonFileStore, RecordStore
from src.utils.progress import (
    dominant_emotion,
    emotion_distribution,
    mean_confidence,
    score_histogram,
    score_summary,
)

logger = logging.getLogger(__name__)


class LearningCompanion:
    """
    Entry point for the study engine.

    Components:
    - emotion: EmotionSignal over the affect sensor
    - sessions: StudySessionManager (logs every accepted emotion sample into
      the active session)
    - quizzes: QuizEngine reporting completed quizzes into sessions
    - battles: BattleCoordinator sharing the quiz generation contract
    - assistant: VoiceAssistant when a VoiceIO is given
    """

    def __init__(
        self,
        auth: AuthProvider,
        generator: Optional[ContentGenerator] = None,
        sensor: Optional[AffectSensor] = None,
        voice: Optional[VoiceIO] = None,
        store: Optional[RecordStore] = None,
        content_adapter: Optional[ContentAdapter] = None,
        clock: Clock = utc_now,
    ):
        """
        Initialize the companion.

        Args:
            auth: Identity collaborator
            generator: Question source (default SampleQuestionGenerator)
            sensor: Affect sensor feeding the emotion signal
            voice: Speech collaborator for the voice assistant
            store: Record store shared by all components
            content_adapter: Content policy override
            clock: Time source shared by all components
        """
        self.auth = auth
        self.store = store

        self.emotion = EmotionSignal(sensor)
        self.sessions = StudySessionManager(
            auth,
            emotion_signal=self.emotion,
            content_adapter=content_adapter,
            store=store,
            clock=clock,
        )
        self.quizzes = QuizEngine(
            generator or SampleQuestionGenerator(),
            auth=auth,
            session_manager=self.sessions,
            store=store,
            clock=clock,
        )
        self.battles = BattleCoordinator(self.quizzes, auth, store=store, clock=clock)
        self.assistant = VoiceAssistant(voice, self.quizzes, self.sessions) if voice else None

        self.quizzes.load_history()

    @classmethod
    def from_config(
        cls,
        auth: AuthProvider,
        sensor: Optional[AffectSensor] = None,
        voice: Optional[VoiceIO] = None,
    ) -> "LearningCompanion":
        """
        Build a companion from config: JSON file records, and LLM questions
        when an API key is configured.
        """
        config.prepare_fs()
        if config.model.api_key:
            from src.agents.llm_question_generator import LLMQuestionGenerator

            generator: ContentGenerator = LLMQuestionGenerator()
            logger.info("Using LLM question generator (%s)", config.model.model_name)
        else:
            generator = SampleQuestionGenerator()
            logger.info("No OPENAI_API_KEY set, using sample questions")
        return cls(auth, generator=generator, sensor=sensor, voice=voice, store=JsonFileStore())

    def set_emotion_detection(self, active: bool) -> bool:
        return self.emotion.set_active(active)

    def get_learner_summary(self) -> Dict[str, Any]:
        """Dashboard view of the signed-in learner's progress."""
        user = self.auth.current_user()
        history = self.sessions.session_history
        active = self.sessions.active_session
        recent_log = active.emotion_log if active else (history[0].emotion_log if history else ())
        dominant = dominant_emotion(recent_log)
        current = self.emotion.current_emotion()

        return {
            "user_id": user.id if user else None,
            "display_name": user.display_name if user else None,
            "profile": self.sessions.profile.to_dict(),
            "stats": self.sessions.stats.to_dict(),
            "streak": self.sessions.streak.to_dict(),
            "session_count": len(history),
            "active_session_id": active.id if active else None,
            "current_topic": self.sessions.current_topic,
            "current_emotion": current.to_dict(),
            "recent_emotions": emotion_distribution(recent_log),
            "dominant_emotion": dominant.value if dominant else None,
            "emotion_confidence": mean_confidence(recent_log),
            "quiz_scores": score_summary(self.quizzes.history),
            "score_histogram": score_histogram(self.quizzes.history),
        }
