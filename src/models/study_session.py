"""
Study session records: sessions, activities, aggregate stats and streak.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from src.errors import SessionClosed
from src.models.emotion import EmotionSample
from src.utils.clock import from_iso, to_iso

ACTIVITY_TYPES = ("quiz", "topic", "study")


@dataclass(frozen=True)
class Activity:
    """
    A logged study activity.

    Attributes:
        type: "quiz", "topic", "study" (other types are recorded as-is)
        details: Free-form payload (e.g. questionsAnswered, duration)
        timestamp: When the activity was logged
    """

    type: str
    details: Dict[str, Any]
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "details": dict(self.details),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Activity":
        return cls(
            type=data["type"],
            details=dict(data.get("details") or {}),
            timestamp=from_iso(data["timestamp"]),
        )


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, rounded half up."""
    seconds = (end - start).total_seconds()
    return int(math.floor(seconds / 60.0 + 0.5))


@dataclass
class StudySession:
    """
    One study session.

    Logs are lists while the session is active. end() freezes them into
    tuples; afterwards the session is immutable.
    """

    id: str
    user_id: str
    topic: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    emotion_log: Union[List[EmotionSample], tuple] = field(default_factory=list)
    activities: Union[List[Activity], tuple] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def _ensure_open(self) -> None:
        if not self.is_active:
            raise SessionClosed(f"Session {self.id} has ended and cannot be modified")

    def append_activity(self, activity: Activity) -> None:
        self._ensure_open()
        self.activities.append(activity)

    def append_emotion(self, sample: EmotionSample) -> None:
        self._ensure_open()
        self.emotion_log.append(sample)

    def end(self, ended_at: datetime) -> None:
        self._ensure_open()
        self.ended_at = ended_at
        self.duration_minutes = max(0, minutes_between(self.started_at, ended_at))
        self.emotion_log = tuple(self.emotion_log)
        self.activities = tuple(self.activities)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.id,
            "user_id": self.user_id,
            "topic": self.topic,
            "started_at": self.started_at.isoformat(),
            "ended_at": to_iso(self.ended_at),
            "duration_minutes": self.duration_minutes,
            "emotion_log": [s.to_dict() for s in self.emotion_log],
            "activities": [a.to_dict() for a in self.activities],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudySession":
        ended_at = from_iso(data.get("ended_at"))
        emotion_log = [EmotionSample.from_dict(s) for s in data.get("emotion_log", [])]
        activities = [Activity.from_dict(a) for a in data.get("activities", [])]
        if ended_at is not None:
            emotion_log, activities = tuple(emotion_log), tuple(activities)
        return cls(
            id=data["session_id"],
            user_id=data["user_id"],
            topic=data["topic"],
            started_at=from_iso(data["started_at"]),
            ended_at=ended_at,
            duration_minutes=data.get("duration_minutes"),
            emotion_log=emotion_log,
            activities=activities,
        )


@dataclass
class SessionStats:
    """Aggregate counters across all of a learner's sessions."""

    total_time_studied: float = 0
    topics_explored: int = 0
    quizzes_taken: int = 0
    questions_answered: int = 0
    correct_answers: int = 0

    def apply(self, activity_type: str, details: Dict[str, Any]) -> None:
        """Incremental update rule for one logged activity."""
        if activity_type == "quiz":
            self.quizzes_taken += 1
            self.questions_answered += details.get("questionsAnswered", 0) or 0
            self.correct_answers += details.get("correctAnswers", 0) or 0
        elif activity_type == "topic":
            self.topics_explored += 1
        elif activity_type == "study":
            self.total_time_studied += details.get("duration", 0) or 0

    @property
    def accuracy(self) -> float:
        """Percent of answered questions that were correct."""
        if not self.questions_answered:
            return 0.0
        return round(100.0 * self.correct_answers / self.questions_answered, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_time_studied": self.total_time_studied,
            "topics_explored": self.topics_explored,
            "quizzes_taken": self.quizzes_taken,
            "questions_answered": self.questions_answered,
            "correct_answers": self.correct_answers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionStats":
        return cls(**{k: data.get(k, 0) for k in cls().to_dict()})


@dataclass
class StudyStreak:
    """
    Consecutive-day study counter.

    Compared with the last study date: a one day gap extends the streak, the
    same day leaves it unchanged, anything longer (or no previous date) resets
    it to zero.
    """

    count: int = 0
    last_study_date: Optional[date] = None

    def record_study_day(self, today: date) -> int:
        if self.last_study_date is None:
            self.count = 0
        else:
            gap = (today - self.last_study_date).days
            if gap == 1:
                self.count += 1
            elif gap > 1:
                self.count = 0
            # gap <= 0: already studied today (or clock skew), keep count
        if self.last_study_date is None or today > self.last_study_date:
            self.last_study_date = today
        return self.count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "last_study_date": self.last_study_date.isoformat() if self.last_study_date else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudyStreak":
        last = data.get("last_study_date")
        return cls(
            count=data.get("count", 0),
            last_study_date=date.fromisoformat(last) if last else None,
        )


def history_most_recent_first(sessions: Sequence[StudySession]) -> List[StudySession]:
    """Order ended sessions newest first."""
    return sorted(sessions, key=lambda s: s.ended_at or s.started_at, reverse=True)
