"""
Data models for the study engine.

This module contains core data models:
- LearningProfile: modality and difficulty preferences
- EmotionSample / EmotionLabel: affective-state estimates
- StudySession, Activity, SessionStats, StudyStreak: study lifecycle records
- Quiz, Question, QuizAttemptState, QuizResult: assessment records
- Battle, Participant, ParticipantResult: multiplayer quiz records
"""

from .battle import Battle, BattleStatus, Participant, ParticipantResult
from .emotion import NEUTRAL_SAMPLE, EmotionLabel, EmotionSample
from .learning_profile import LearningProfile
from .quiz import Answer, Question, Quiz, QuizAttemptState, QuizResult, SubmittedAnswer
from .study_session import Activity, SessionStats, StudySession, StudyStreak
from .user import User

__all__ = [
    "Activity",
    "Answer",
    "Battle",
    "BattleStatus",
    "EmotionLabel",
    "EmotionSample",
    "LearningProfile",
    "NEUTRAL_SAMPLE",
    "Participant",
    "ParticipantResult",
    "Question",
    "Quiz",
    "QuizAttemptState",
    "QuizResult",
    "SessionStats",
    "StudySession",
    "StudyStreak",
    "SubmittedAnswer",
    "User",
]
