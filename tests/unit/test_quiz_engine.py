"""
Unit tests for the quiz engine.

Tests generation contract, answer progression, scoring, history, reporting
into study sessions and failure handling.
"""

import unittest
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from conftest import FakeClock, make_question
from src.agents.question_generator import SampleQuestionGenerator, ScriptedQuestionGenerator
from src.agents.quiz_engine import QuizEngine, QuizState, check_generated
from src.agents.study_session_manager import StudySessionManager
from src.collaborators import StaticAuthProvider
from src.errors import (
    GenerationFailed,
    InvalidAnswer,
    InvalidCount,
    InvalidInput,
    NoActiveQuiz,
    NothingAnswered,
    PersistenceError,
)
from src.models.quiz import Answer, Question
from src.models.user import User


def five_questions():
    return [make_question(f"q{i}") for i in range(1, 6)]


class TestGeneration(unittest.TestCase):
    """build_quiz / generate contract."""

    def setUp(self):
        self.clock = FakeClock(datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc))
        self.generator = ScriptedQuestionGenerator([five_questions()])
        self.engine = QuizEngine(self.generator, clock=self.clock)

    def test_initial_state(self):
        self.assertEqual(self.engine.state, QuizState.NO_QUIZ)
        self.assertIsNone(self.engine.quiz)
        self.assertIsNone(self.engine.current_question)

    def test_generate_enters_in_progress(self):
        quiz = self.engine.generate("History", "easy", 5)

        self.assertEqual(self.engine.state, QuizState.IN_PROGRESS)
        self.assertEqual(quiz.topic, "History")
        self.assertEqual(quiz.difficulty, "easy")
        self.assertEqual(quiz.created_at, self.clock.now)
        self.assertEqual(len(quiz.questions), 5)
        self.assertEqual(self.engine.attempt.current_index, 0)
        self.assertEqual(self.engine.attempt.answers, [])
        self.assertEqual(self.generator.calls, [("History", "easy", 5)])

    def test_defaults(self):
        self.engine.generate("History")
        self.assertEqual(self.generator.calls, [("History", "medium", 5)])

    def test_invalid_count(self):
        for count in (0, -3):
            with self.assertRaises(InvalidCount):
                self.engine.generate("History", "easy", count)
        self.assertEqual(self.generator.calls, [])

    def test_invalid_count_is_invalid_input(self):
        with self.assertRaises(InvalidInput):
            self.engine.build_quiz("History", "easy", 0)

    def test_unknown_difficulty(self):
        with self.assertRaises(InvalidInput):
            self.engine.generate("History", "extreme", 5)

    def test_collaborator_failure_wrapped(self):
        engine = QuizEngine(ScriptedQuestionGenerator(fail_with=ConnectionError("offline")))
        with self.assertRaises(GenerationFailed) as ctx:
            engine.generate("History", "easy", 5)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)
        self.assertEqual(engine.state, QuizState.NO_QUIZ)

    def test_failure_leaves_previous_attempt(self):
        self.engine.generate("History", "easy", 5)
        self.engine.answer("b")
        self.generator.fail_with = RuntimeError("rate limited")

        with self.assertRaises(GenerationFailed):
            self.engine.generate("Physics", "hard", 5)

        self.assertEqual(self.engine.state, QuizState.IN_PROGRESS)
        self.assertEqual(self.engine.quiz.topic, "History")
        self.assertEqual(self.engine.attempt.current_index, 1)

    def test_generate_replaces_attempt(self):
        self.engine.generate("History", "easy", 5)
        self.engine.answer("b")
        self.engine.generate("Physics", "hard", 5)
        self.assertEqual(self.engine.quiz.topic, "Physics")
        self.assertEqual(self.engine.attempt.current_index, 0)

    def test_generate_from_text_content(self):
        quiz = self.engine.generate_from_content("Photosynthesis converts light into chemical energy")
        self.assertEqual(quiz.topic, "Photosynthesis conve...")
        self.assertEqual(quiz.difficulty, "medium")

    def test_generate_from_other_content(self):
        quiz = self.engine.generate_from_content(b"%PDF", content_type="pdf")
        self.assertEqual(quiz.topic, "Uploaded pdf")

    def test_generate_from_empty_text(self):
        with self.assertRaises(InvalidInput):
            self.engine.generate_from_content("   ")


class TestMalformedOutput:
    """Generator output is checked before a quiz is built."""

    def test_wrong_count(self):
        engine = QuizEngine(ScriptedQuestionGenerator([five_questions()[:3]]))
        with pytest.raises(GenerationFailed):
            engine.generate("History", "easy", 5)

    def test_too_few_answers(self):
        bad = make_question("q1", correct="a", options=("a",))
        with pytest.raises(GenerationFailed):
            check_generated([bad], 1)

    def test_duplicate_answer_ids(self):
        bad = Question("q1", "?", (Answer("a", "x"), Answer("a", "y")), "a")
        with pytest.raises(GenerationFailed):
            check_generated([bad], 1)

    def test_correct_id_missing(self):
        bad = make_question("q1", correct="z")
        with pytest.raises(GenerationFailed):
            check_generated([bad], 1)

    def test_duplicate_question_ids(self):
        with pytest.raises(GenerationFailed):
            check_generated([make_question("q1"), make_question("q1")], 2)


class TestAnswering(unittest.TestCase):
    def setUp(self):
        self.engine = QuizEngine(ScriptedQuestionGenerator([five_questions()]))
        self.engine.generate("History", "easy", 5)

    def test_answer_advances(self):
        self.assertIsNone(self.engine.answer("a"))
        self.assertEqual(self.engine.attempt.current_index, 1)
        self.assertEqual(self.engine.current_question.id, "q2")

    def test_invalid_answer_does_not_advance(self):
        with self.assertRaises(InvalidAnswer):
            self.engine.answer("zzz")
        self.assertEqual(self.engine.attempt.current_index, 0)
        self.assertEqual(self.engine.attempt.answers, [])

    def test_answer_without_quiz(self):
        engine = QuizEngine(ScriptedQuestionGenerator([five_questions()]))
        with self.assertRaises(NoActiveQuiz):
            engine.answer("a")

    def test_scoring_sixty_percent(self):
        # Correct on questions 1, 3 and 5
        picks = ["b", "a", "b", "c", "b"]
        results = [self.engine.answer(p) for p in picks]

        self.assertTrue(all(r is None for r in results[:-1]))
        result = results[-1]
        self.assertEqual(result.correct_answers, 3)
        self.assertEqual(result.total_questions, 5)
        self.assertAlmostEqual(result.score, 60.0)
        self.assertEqual(self.engine.state, QuizState.COMPLETED)
        self.assertEqual(self.engine.attempt.current_index, 5)

    def test_no_answers_after_completion(self):
        for _ in range(5):
            self.engine.answer("b")
        with self.assertRaises(NoActiveQuiz):
            self.engine.answer("b")

    def test_finish_scores_answered_only(self):
        self.engine.answer("b")
        self.engine.answer("a")
        result = self.engine.finish()

        self.assertEqual(result.total_questions, 2)
        self.assertEqual(result.correct_answers, 1)
        self.assertAlmostEqual(result.score, 50.0)
        self.assertEqual(self.engine.state, QuizState.COMPLETED)

    def test_finish_with_nothing_answered(self):
        with self.assertRaises(NothingAnswered):
            self.engine.finish()
        self.assertEqual(self.engine.state, QuizState.IN_PROGRESS)

    def test_reset_from_any_state(self):
        self.engine.reset()
        self.assertEqual(self.engine.state, QuizState.NO_QUIZ)
        self.engine.reset()
        self.assertEqual(self.engine.state, QuizState.NO_QUIZ)
        self.assertIsNone(self.engine.result)

    def test_history_most_recent_first(self):
        engine = QuizEngine(
            ScriptedQuestionGenerator([[make_question("h1")], [make_question("p1")]])
        )
        engine.generate("History", "easy", 1)
        engine.answer("b")
        engine.generate("Physics", "easy", 1)
        engine.answer("a")

        self.assertEqual([r.topic for r in engine.history], ["Physics", "History"])
        self.assertEqual([r.score for r in engine.history], [0.0, 100.0])


class TestSessionReporting:
    """Completed quizzes feed the study session stats."""

    @pytest.fixture
    def wired(self, auth, clock, store):
        sessions = StudySessionManager(auth, store=store, clock=clock)
        engine = QuizEngine(
            ScriptedQuestionGenerator([five_questions()]),
            auth=auth,
            session_manager=sessions,
            store=store,
            clock=clock,
        )
        return sessions, engine

    def test_completed_quiz_logged_as_activity(self, wired):
        sessions, engine = wired
        session = sessions.start_session("History")
        engine.generate("History", "easy", 5)
        for pick in ["b", "a", "b", "c", "b"]:
            engine.answer(pick)

        activity = session.activities[-1]
        assert activity.type == "quiz"
        assert activity.details["questionsAnswered"] == 5
        assert activity.details["correctAnswers"] == 3
        assert activity.details["score"] == pytest.approx(60.0)
        assert activity.details["quizId"] == engine.result.quiz_id
        assert sessions.stats.quizzes_taken == 1
        assert sessions.stats.correct_answers == 3

    def test_no_report_without_active_session(self, wired):
        sessions, engine = wired
        engine.generate("History", "easy", 5)
        for _ in range(5):
            engine.answer("b")
        assert sessions.stats.quizzes_taken == 0

    def test_result_persisted_with_user(self, wired, store, alice):
        _, engine = wired
        engine.generate("History", "easy", 5)
        for _ in range(5):
            engine.answer("b")

        saved = store.load("quiz_result", engine.result.quiz_id)
        assert saved["user_id"] == alice.id
        assert saved["score"] == 100.0
        assert len(saved["answers"]) == 5

    def test_history_reloaded(self, wired, auth, store):
        _, engine = wired
        engine.generate("History", "easy", 5)
        for _ in range(5):
            engine.answer("b")

        fresh = QuizEngine(SampleQuestionGenerator(seed=1), auth=auth, store=store)
        fresh.load_history()
        assert [r.quiz_id for r in fresh.history] == [engine.result.quiz_id]

    def test_rejected_write_keeps_attempt_open(self, auth):
        failing_store = Mock()
        failing_store.save.return_value = (False, None, ["read-only"])
        engine = QuizEngine(
            ScriptedQuestionGenerator([[make_question("q1")]]), auth=auth, store=failing_store
        )
        engine.generate("History", "easy", 1)

        with pytest.raises(PersistenceError):
            engine.answer("b")

        assert engine.state == QuizState.IN_PROGRESS
        assert engine.attempt.current_index == 0
        assert engine.history == ()

    def test_anonymous_result(self):
        engine = QuizEngine(
            ScriptedQuestionGenerator([[make_question("q1")]]),
            auth=StaticAuthProvider(None),
        )
        engine.generate("History", "easy", 1)
        assert engine.answer("b").user_id is None


class TestSampleGenerator:
    def test_seeded_generator_reproducible(self):
        a = SampleQuestionGenerator(seed=42).generate_questions("Algebra", "easy", 5)
        b = SampleQuestionGenerator(seed=42).generate_questions("Algebra", "easy", 5)
        assert [q.correct_answer_id for q in a] == [q.correct_answer_id for q in b]

    def test_sample_questions_are_valid(self):
        questions = SampleQuestionGenerator(seed=1).generate_questions("Algebra", "hard", 10)
        check_generated(questions, 10)
        assert all(len(q.answers) == 4 for q in questions)
        assert "Algebra" in questions[0].text

    def test_user_model_defaults(self):
        assert User(id="u1").display_name == "User"
