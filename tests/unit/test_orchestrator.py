"""
Unit tests for the Learning Companion.

Tests the wired-up engine end to end:
- Study session with emotion samples and adaptive content
- Quiz results reported into the active session
- Streak across days
- Reloading saved state
- Learner summary
"""

import unittest
from datetime import datetime, timezone

from conftest import FakeClock, make_question

from src.agents.affect_simulator import SimulatedAffectSensor
from src.agents.question_generator import ScriptedQuestionGenerator
from src.agents.quiz_engine import QuizState
from src.collaborators import StaticAuthProvider
from src.models.user import User
from src.orchestrator import LearningCompanion
from src.utils.persistence import InMemoryStore


class FakeVoice:
    def __init__(self):
        self.spoken = []
        self.callback = None

    def speak(self, text):
        self.spoken.append(text)

    def on_utterance(self, callback):
        self.callback = callback


class TestLearningCompanion(unittest.TestCase):
    """End-to-end flows through LearningCompanion."""

    def setUp(self):
        self.clock = FakeClock(datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc))
        self.user = User(id="u-alice", display_name="Alice")
        self.auth = StaticAuthProvider(self.user)
        self.store = InMemoryStore()
        self.questions = [make_question(f"q{i}") for i in range(1, 6)]
        self.sensor = SimulatedAffectSensor(
            script=[("confused", 0.8), ("engaged", 0.9)],
            clock=self.clock,
        )
        self.companion = LearningCompanion(
            self.auth,
            generator=ScriptedQuestionGenerator([self.questions]),
            sensor=self.sensor,
            store=self.store,
            clock=self.clock,
        )

    def reload(self):
        return LearningCompanion(self.auth, store=self.store, clock=self.clock)

    def test_study_session_flow(self):
        """Algebra session: emotions logged, content adapted, streak recorded."""
        self.assertTrue(self.companion.set_emotion_detection(True))
        sessions = self.companion.sessions

        session = sessions.start_session("Algebra")
        self.sensor.emit()

        plan = sessions.get_adaptive_content()
        self.assertEqual(plan.topic, "Algebra")
        self.assertEqual(plan.primary, "diagram")
        self.assertEqual(plan.elements[0].type, "explanation")

        self.sensor.emit()
        plan = sessions.get_adaptive_content()
        self.assertEqual(plan.elements[-1].type, "advanced")
        self.assertEqual(len(session.emotion_log), 2)

        self.clock.advance(minutes=25)
        ended = sessions.end_session()

        self.assertEqual(ended.duration_minutes, 25)
        self.assertEqual(len(ended.emotion_log), 2)
        self.assertEqual(sessions.streak.count, 0)
        self.assertIsNotNone(self.store.load("study_session", ended.id))

    def test_samples_ignored_without_session(self):
        self.companion.set_emotion_detection(True)
        self.sensor.emit()
        self.assertEqual(self.companion.emotion.current_emotion().label.value, "confused")
        self.assertIsNone(self.companion.sessions.active_session)

    def test_quiz_reported_into_session(self):
        sessions = self.companion.sessions
        quizzes = self.companion.quizzes
        sessions.start_session("History")

        quizzes.generate("History")
        result = None
        for choice in ["b", "b", "a", "b", "b"]:
            result = quizzes.answer(choice)

        self.assertEqual(quizzes.state, QuizState.COMPLETED)
        self.assertEqual(result.score, 80.0)
        self.assertEqual(result.user_id, "u-alice")
        activity = sessions.active_session.activities[-1]
        self.assertEqual(activity.type, "quiz")
        self.assertEqual(activity.details["quizId"], result.quiz_id)
        self.assertEqual(sessions.stats.quizzes_taken, 1)
        self.assertEqual(sessions.stats.questions_answered, 5)
        self.assertEqual(sessions.stats.correct_answers, 4)

        quizzes.reset()
        self.assertEqual(quizzes.state, QuizState.NO_QUIZ)
        self.assertEqual(len(quizzes.history), 1)

    def test_streak_across_days(self):
        sessions = self.companion.sessions
        for _ in range(3):
            sessions.start_session("Algebra")
            self.clock.advance(minutes=30)
            sessions.end_session()
            self.clock.advance(days=1)

        self.assertEqual(sessions.streak.count, 2)

        self.clock.advance(days=3)
        sessions.start_session("Algebra")
        sessions.end_session()
        self.assertEqual(sessions.streak.count, 0)

    def test_reload_restores_state(self):
        sessions = self.companion.sessions
        sessions.set_learning_style("kinesthetic")
        sessions.start_session("History")
        self.companion.quizzes.generate("History")
        for _ in self.questions:
            self.companion.quizzes.answer("b")
        self.clock.advance(minutes=10)
        sessions.end_session()

        restored = self.reload()

        self.assertEqual(restored.sessions.profile.modality, "kinesthetic")
        self.assertEqual(len(restored.sessions.session_history), 1)
        self.assertEqual(restored.sessions.stats.quizzes_taken, 1)
        self.assertEqual(len(restored.quizzes.history), 1)
        self.assertEqual(restored.quizzes.history[0].score, 100.0)

    def test_learner_summary(self):
        self.companion.set_emotion_detection(True)
        self.companion.sessions.start_session("Algebra")
        self.sensor.emit()
        self.sensor.emit()
        self.sensor.emit()

        summary = self.companion.get_learner_summary()

        self.assertEqual(summary["user_id"], "u-alice")
        self.assertEqual(summary["current_topic"], "Algebra")
        self.assertIsNotNone(summary["active_session_id"])
        self.assertEqual(summary["dominant_emotion"], "confused")
        self.assertEqual(summary["current_emotion"]["label"], "confused")
        self.assertEqual(summary["session_count"], 0)
        self.assertAlmostEqual(summary["emotion_confidence"], 0.8333)
        self.assertEqual(summary["quiz_scores"]["count"], 0)
        self.assertEqual(summary["score_histogram"], [])

    def test_learner_summary_after_quizzes(self):
        quizzes = self.companion.quizzes
        for picks in (["b"] * 5, ["b", "b", "b", "a", "a"]):
            quizzes.generate("History")
            for choice in picks:
                quizzes.answer(choice)

        summary = self.companion.get_learner_summary()

        self.assertEqual(summary["quiz_scores"]["count"], 2)
        self.assertEqual(summary["quiz_scores"]["mean"], 80.0)
        self.assertEqual(summary["score_histogram"], [("60-69", 1), ("90-99", 1)])
        self.assertEqual(summary["emotion_confidence"], 0.0)

    def test_emotion_detection_denied(self):
        sensor = SimulatedAffectSensor(permission_granted=False)
        companion = LearningCompanion(self.auth, sensor=sensor, clock=self.clock)
        self.assertFalse(companion.set_emotion_detection(True))
        self.assertIsNotNone(companion.emotion.permission_error)

    def test_voice_assistant_wired_when_voice_given(self):
        self.assertIsNone(self.companion.assistant)

        voice = FakeVoice()
        companion = LearningCompanion(
            self.auth,
            generator=ScriptedQuestionGenerator([self.questions]),
            voice=voice,
            clock=self.clock,
        )
        companion.sessions.start_session("Biology")
        voice.callback("quiz me")

        self.assertEqual(companion.quizzes.quiz.topic, "Biology")
        self.assertTrue(voice.spoken[-1].startswith("I've created a 5-question"))


if __name__ == "__main__":
    unittest.main()
