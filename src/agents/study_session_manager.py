"""
Study Session Manager - lifecycle of a learner's study sessions.

State machine: Idle -> Active -> Idle. Ended sessions move to history,
newest first, and are never modified again. Activity logging feeds the
aggregate SessionStats; ending a session updates the daily streak.
"""

from __future__ import annotations

import json
import logging
import numbers
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from src.agents.content_adapter import (
    ContentAdapter,
    ContentPlan,
    EmotionRecommendation,
    recommendations_for,
)
from src.agents.emotion_signal import EmotionSignal
from src.collaborators import AuthProvider
from src.errors import AlreadyActive, InvalidInput, NoActiveSession, Unauthenticated
from src.models.emotion import EmotionSample
from src.models.learning_profile import LearningProfile
from src.models.study_session import (
    Activity,
    SessionStats,
    StudySession,
    StudyStreak,
    history_most_recent_first,
)
from src.models.user import User
from src.utils.clock import Clock, utc_now
from src.utils.persistence import RecordStore, persist

logger = logging.getLogger(__name__)

# Activity detail keys that feed counters and must be non-negative numbers
NUMERIC_DETAILS = ("questionsAnswered", "correctAnswers", "duration")


class StudySessionManager:
    """
    Manages one learner's study sessions, stats, streak and learning profile.

    Features:
    - At most one active session
    - Append-only activity and emotion logs on the active session
    - Incremental stats updates per activity type
    - Streak update on every session end
    - Adaptive content from the learning profile and current emotion
    - Optional persistence; writes happen before in-memory state changes
    """

    def __init__(
        self,
        auth: AuthProvider,
        emotion_signal: Optional[EmotionSignal] = None,
        content_adapter: Optional[ContentAdapter] = None,
        profile: Optional[LearningProfile] = None,
        store: Optional[RecordStore] = None,
        clock: Clock = utc_now,
        log_emotions: bool = True,
    ):
        """
        Initialize the manager.

        Args:
            auth: Identity collaborator
            emotion_signal: Source of the learner's current emotion
            content_adapter: Content policy (default ContentAdapter)
            profile: Starting learning profile (default visual/medium)
            store: Record store for sessions, progress and profile
            clock: Time source
            log_emotions: Append every emotion sample to the active session's log
        """
        self._auth = auth
        self._emotion = emotion_signal or EmotionSignal()
        self._adapter = content_adapter or ContentAdapter()
        self._profile = profile or LearningProfile()
        self._store = store
        self._clock = clock

        self._active: Optional[StudySession] = None
        self._history: List[StudySession] = []
        self._stats = SessionStats()
        self._streak = StudyStreak()
        self.current_topic: Optional[str] = None

        if log_emotions:
            self._emotion.subscribe(self._on_emotion_sample)

        if store is not None:
            self.load_state()

    # ==================== State access ====================

    @property
    def active_session(self) -> Optional[StudySession]:
        return self._active

    @property
    def has_active_session(self) -> bool:
        return self._active is not None

    @property
    def session_history(self) -> Tuple[StudySession, ...]:
        """Ended sessions, most recent first."""
        return tuple(self._history)

    @property
    def stats(self) -> SessionStats:
        return replace(self._stats)

    @property
    def streak(self) -> StudyStreak:
        return replace(self._streak)

    @property
    def profile(self) -> LearningProfile:
        return replace(self._profile)

    @property
    def emotion_signal(self) -> EmotionSignal:
        return self._emotion

    def _require_user(self) -> User:
        user = self._auth.current_user()
        if user is None:
            raise Unauthenticated("Sign in to start a study session")
        return user

    def _require_active(self) -> StudySession:
        if self._active is None:
            raise NoActiveSession("No study session is active")
        return self._active

    # ==================== Lifecycle ====================

    def start_session(self, topic: str) -> StudySession:
        """
        Start a study session on a topic.

        Raises:
            Unauthenticated: If nobody is signed in
            InvalidInput: If topic is blank
            AlreadyActive: If a session is already running
        """
        user = self._require_user()
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidInput("Study topic cannot be empty")
        if self._active is not None:
            raise AlreadyActive(
                f"Session {self._active.id} on '{self._active.topic}' is still active"
            )

        session = StudySession(
            id=f"ss-{uuid.uuid4()}",
            user_id=user.id,
            topic=topic.strip(),
            started_at=self._clock(),
        )
        self._active = session
        self.current_topic = session.topic
        logger.info(
            "Study session started on '%s'",
            session.topic,
            extra={"user_id": user.id, "session_id": session.id},
        )
        return session

    def log_activity(self, activity_type: str, details: Optional[Dict[str, Any]] = None) -> Activity:
        """
        Append an activity to the active session and update stats.

        Args:
            activity_type: "quiz", "topic", "study" or any other label
            details: Payload; questionsAnswered / correctAnswers / duration
                feed the counters

        Raises:
            NoActiveSession: If no session is active
            InvalidInput: If the type is blank, a counter value is not a
                non-negative number, or the details are not plain JSON data
        """
        session = self._require_active()
        if not isinstance(activity_type, str) or not activity_type.strip():
            raise InvalidInput("Activity type cannot be empty")

        details = dict(details or {})
        for key in NUMERIC_DETAILS:
            value = details.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or value < 0:
                raise InvalidInput(f"Activity detail '{key}' must be a non-negative number, got {value!r}")
        try:
            json.dumps(details, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Activity details must be JSON-serializable: {e}") from e

        activity = Activity(type=activity_type, details=details, timestamp=self._clock())
        session.append_activity(activity)
        self._stats.apply(activity_type, details)
        logger.debug(
            "Logged %s activity",
            activity_type,
            extra={"session_id": session.id},
        )
        return activity

    def log_emotion(self, sample: EmotionSample) -> None:
        """
        Append an emotion sample to the active session's log.

        Raises:
            NoActiveSession: If no session is active
        """
        session = self._require_active()
        session.append_emotion(sample)

    def _on_emotion_sample(self, sample: EmotionSample) -> None:
        if self._active is not None:
            self.log_emotion(sample)

    def end_session(self) -> StudySession:
        """
        End the active session.

        Computes the duration in whole minutes, moves the session to history
        and updates the streak using the end date.

        Raises:
            NoActiveSession: If no session is active
            PersistenceError: If the store rejects the session (nothing changes)
        """
        session = self._require_active()
        ended_at = self._clock()

        finalized = StudySession(
            id=session.id,
            user_id=session.user_id,
            topic=session.topic,
            started_at=session.started_at,
            emotion_log=list(session.emotion_log),
            activities=list(session.activities),
        )
        finalized.end(ended_at)

        streak = replace(self._streak)
        streak.record_study_day(ended_at.date())

        persist(self._store, "study_session", finalized.to_dict())
        persist(self._store, "study_progress", self._progress_record(finalized.user_id, streak))

        self._history.insert(0, finalized)
        self._streak = streak
        self._active = None
        logger.info(
            "Study session ended after %d minute(s), streak %d",
            finalized.duration_minutes,
            streak.count,
            extra={"user_id": finalized.user_id, "session_id": finalized.id},
        )
        return finalized

    # ==================== Adaptive content ====================

    def get_adaptive_content(self, topic: Optional[str] = None) -> ContentPlan:
        """
        Content plan for a topic given the profile and the current emotion.

        Args:
            topic: Topic to plan for (defaults to the current topic)
        """
        topic = topic or self.current_topic
        if not topic:
            raise InvalidInput("No topic given and no current topic")
        return self._adapter.select(topic, self._profile, self._emotion.current_emotion())

    def get_recommendations(self) -> EmotionRecommendation:
        return recommendations_for(self._emotion.current_emotion())

    # ==================== Learning profile ====================

    def set_learning_style(self, modality: str) -> LearningProfile:
        profile = replace(self._profile)
        profile.set_modality(modality)
        return self._commit_profile(profile)

    def set_difficulty(self, difficulty: str) -> LearningProfile:
        profile = replace(self._profile)
        profile.set_difficulty(difficulty)
        return self._commit_profile(profile)

    def _commit_profile(self, profile: LearningProfile) -> LearningProfile:
        user = self._auth.current_user()
        if user is not None:
            persist(self._store, "learning_profile", profile.to_dict(user_id=user.id))
        self._profile = profile
        logger.info("Learning profile set to %s/%s", profile.modality, profile.difficulty)
        return replace(profile)

    # ==================== Persistence ====================

    def _progress_record(self, user_id: str, streak: StudyStreak) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "stats": self._stats.to_dict(),
            "streak": streak.to_dict(),
        }

    def load_state(self) -> None:
        """Load saved profile, session history and progress for the signed-in user."""
        user = self._auth.current_user()
        if self._store is None or user is None:
            return

        saved_profile = self._store.load("learning_profile", user.id)
        if saved_profile:
            self._profile = LearningProfile.from_dict(saved_profile)

        sessions = [
            StudySession.from_dict(record)
            for record in self._store.list("study_session", user_id=user.id)
        ]
        self._history = history_most_recent_first([s for s in sessions if not s.is_active])

        progress = self._store.load("study_progress", user.id)
        if progress:
            self._stats = SessionStats.from_dict(progress["stats"])
            self._streak = StudyStreak.from_dict(progress["streak"])

        logger.info(
            "Loaded %d past session(s), streak %d",
            len(self._history),
            self._streak.count,
            extra={"user_id": user.id},
        )
