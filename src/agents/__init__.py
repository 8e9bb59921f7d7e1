"""
Session managers and generators for the study engine.

This module contains the stateful components and their collaborators:
- Emotion signal (affect sensor fan-out) and the simulated affect sensor
- Content adaptation (learning style + emotion -> content plan)
- Study session lifecycle (sessions, stats, streak)
- Quiz engine and multiplayer quiz battles
- Question generators (seeded samples, scripted doubles, LLM-backed)
- Voice assistant (utterance routing)

Note: records (StudySession, Quiz, Battle, ...) are in src/models
"""

from .affect_simulator import SimulatedAffectSensor
from .battle_coordinator import BattleCoordinator
from .content_adapter import (
    ContentAdapter,
    ContentElement,
    ContentPlan,
    EmotionRecommendation,
    recommendations_for,
)
from .emotion_signal import EmotionSignal
from .llm_question_generator import LLMQuestionGenerator
from .question_generator import SampleQuestionGenerator, ScriptedQuestionGenerator
from .quiz_engine import QuizEngine, QuizState
from .study_session_manager import StudySessionManager
from .voice_assistant import VoiceAssistant

__all__ = [
    # Emotion
    "EmotionSignal",
    "SimulatedAffectSensor",
    # Content
    "ContentAdapter",
    "ContentElement",
    "ContentPlan",
    "EmotionRecommendation",
    "recommendations_for",
    # Sessions and quizzes
    "StudySessionManager",
    "QuizEngine",
    "QuizState",
    "BattleCoordinator",
    # Generators
    "SampleQuestionGenerator",
    "ScriptedQuestionGenerator",
    "LLMQuestionGenerator",
    # Voice
    "VoiceAssistant",
]
