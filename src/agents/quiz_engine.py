"""
Quiz Engine - generate a quiz, walk through its questions, score it.

States: NO_QUIZ -> IN_PROGRESS -> COMPLETED -> NO_QUIZ. reset() is valid from
any state. Question generation is delegated to a ContentGenerator; whatever it
returns is checked before a quiz is built from it.
"""

from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from src.collaborators import AuthProvider, ContentGenerator
from src.config import config
from src.errors import (
    GenerationFailed,
    InvalidCount,
    InvalidInput,
    NoActiveQuiz,
    NothingAnswered,
)
from src.models.learning_profile import validate_difficulty
from src.models.quiz import Question, Quiz, QuizAttemptState, QuizResult
from src.utils.clock import Clock, utc_now
from src.utils.persistence import RecordStore, persist

if TYPE_CHECKING:
    from src.agents.study_session_manager import StudySessionManager

logger = logging.getLogger(__name__)

# Characters of uploaded text used as the quiz topic
CONTENT_TOPIC_LENGTH = 20


class QuizState(str, Enum):
    NO_QUIZ = "no_quiz"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def check_generated(questions: List[Question], count: int) -> None:
    """
    Reject malformed generator output.

    Raises:
        GenerationFailed: On a wrong question count or an invalid question
    """
    if len(questions) != count:
        raise GenerationFailed(f"Generator returned {len(questions)} questions, expected {count}")
    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        raise GenerationFailed(f"Generator returned duplicate question ids: {ids}")
    for question in questions:
        try:
            question.validate()
        except InvalidInput as e:
            raise GenerationFailed(f"Generator returned an invalid question: {e}") from e


class QuizEngine:
    """
    One learner's quiz attempts.

    Features:
    - Builds validated quizzes through a ContentGenerator
    - Tracks answer progression on the current attempt
    - Scores over the answers actually submitted
    - Keeps a most-recent-first result history
    - Reports completed quizzes to the study session manager
    """

    def __init__(
        self,
        generator: ContentGenerator,
        auth: Optional[AuthProvider] = None,
        session_manager: Optional["StudySessionManager"] = None,
        store: Optional[RecordStore] = None,
        clock: Clock = utc_now,
    ):
        """
        Initialize the engine.

        Args:
            generator: Question source
            auth: Identity collaborator; results carry the signed-in user's id
            session_manager: Receives a "quiz" activity per completed quiz
            store: Record store for quiz results
            clock: Time source
        """
        self.generator = generator
        self._auth = auth
        self._session_manager = session_manager
        self._store = store
        self._clock = clock

        self._attempt: Optional[QuizAttemptState] = None
        self._result: Optional[QuizResult] = None
        self._history: List[QuizResult] = []

    # ==================== State access ====================

    @property
    def state(self) -> QuizState:
        if self._result is not None:
            return QuizState.COMPLETED
        if self._attempt is not None:
            return QuizState.IN_PROGRESS
        return QuizState.NO_QUIZ

    @property
    def attempt(self) -> Optional[QuizAttemptState]:
        return self._attempt

    @property
    def quiz(self) -> Optional[Quiz]:
        return self._attempt.quiz if self._attempt else None

    @property
    def current_question(self) -> Optional[Question]:
        if self.state != QuizState.IN_PROGRESS:
            return None
        return self._attempt.current_question

    @property
    def result(self) -> Optional[QuizResult]:
        return self._result

    @property
    def history(self) -> Tuple[QuizResult, ...]:
        """Completed results, most recent first."""
        return tuple(self._history)

    # ==================== Generation ====================

    def build_quiz(self, topic: str, difficulty: str, question_count: int) -> Quiz:
        """
        Generate and validate a quiz without touching engine state.

        Raises:
            InvalidCount: If question_count < 1
            InvalidInput: If topic is blank or difficulty unknown
            GenerationFailed: If the generator fails or returns bad questions
        """
        if isinstance(question_count, bool) or not isinstance(question_count, int) or question_count < 1:
            raise InvalidCount(f"Question count must be a positive integer, got {question_count!r}")
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidInput("Quiz topic cannot be empty")
        validate_difficulty(difficulty)

        try:
            questions = list(self.generator.generate_questions(topic, difficulty, question_count))
        except GenerationFailed:
            raise
        except Exception as e:
            raise GenerationFailed(f"Question generation failed for '{topic}': {e}") from e

        check_generated(questions, question_count)
        return Quiz(
            id=f"qz-{uuid.uuid4()}",
            topic=topic,
            difficulty=difficulty,
            created_at=self._clock(),
            questions=tuple(questions),
        )

    def generate(
        self,
        topic: str,
        difficulty: str = config.quiz.default_difficulty,
        question_count: int = config.quiz.default_question_count,
    ) -> Quiz:
        """
        Start a new attempt, replacing any current one.

        On failure the previous attempt and result are left as they were.
        """
        quiz = self.build_quiz(topic, difficulty, question_count)
        self._attempt = QuizAttemptState(quiz=quiz)
        self._result = None
        logger.info(
            "Quiz generated on '%s' (%s, %d questions)",
            topic,
            difficulty,
            len(quiz.questions),
            extra={"quiz_id": quiz.id},
        )
        return quiz

    def generate_from_content(
        self,
        content: str,
        content_type: str = "text",
        question_count: int = config.quiz.default_question_count,
    ) -> Quiz:
        """
        Start a quiz about uploaded material.

        Text content is summarized into the topic by its first characters;
        other content types get a generic "Uploaded <type>" topic.
        """
        if content_type == "text":
            text = (content or "").strip()
            if not text:
                raise InvalidInput("Uploaded text is empty")
            topic = f"{text[:CONTENT_TOPIC_LENGTH]}..."
        else:
            topic = f"Uploaded {content_type}"
        return self.generate(topic, config.quiz.default_difficulty, question_count)

    # ==================== Answering ====================

    def _require_in_progress(self) -> QuizAttemptState:
        if self.state != QuizState.IN_PROGRESS:
            raise NoActiveQuiz("No quiz is in progress")
        return self._attempt

    def answer(self, answer_id: str) -> Optional[QuizResult]:
        """
        Answer the current question.

        Returns:
            The QuizResult when this answer completed the quiz, else None

        Raises:
            NoActiveQuiz: If no quiz is in progress
            InvalidAnswer: If answer_id is not an option of the current question
        """
        attempt = self._require_in_progress()
        trial = QuizAttemptState(
            quiz=attempt.quiz,
            current_index=attempt.current_index,
            answers=list(attempt.answers),
        )
        completed = trial.submit(answer_id)
        if not completed:
            self._attempt = trial
            return None
        return self._complete(trial)

    def finish(self) -> QuizResult:
        """
        Score the current attempt over the questions answered so far.

        Raises:
            NoActiveQuiz: If no quiz is in progress
            NothingAnswered: If no question has been answered
        """
        attempt = self._require_in_progress()
        if not attempt.answers:
            raise NothingAnswered("Answer at least one question before finishing")
        return self._complete(attempt)

    def _complete(self, attempt: QuizAttemptState) -> QuizResult:
        user = self._auth.current_user() if self._auth else None
        result = QuizResult.from_attempt(
            attempt,
            user_id=user.id if user else None,
            completed_at=self._clock(),
        )
        persist(self._store, "quiz_result", result.to_dict())

        self._attempt = attempt
        self._result = result
        self._history.insert(0, result)
        logger.info(
            "Quiz completed: %d/%d correct (%.1f%%)",
            result.correct_answers,
            result.total_questions,
            result.score,
            extra={"quiz_id": result.quiz_id},
        )
        self._report(result)
        return result

    def _report(self, result: QuizResult) -> None:
        if self._session_manager is None or not self._session_manager.has_active_session:
            return
        self._session_manager.log_activity(
            "quiz",
            {
                "quizId": result.quiz_id,
                "topic": result.topic,
                "questionsAnswered": result.total_questions,
                "correctAnswers": result.correct_answers,
                "score": result.score,
            },
        )

    def reset(self) -> None:
        """Discard the current attempt and result."""
        self._attempt = None
        self._result = None
        logger.debug("Quiz engine reset")

    def load_history(self) -> None:
        """Load saved results for the signed-in user."""
        user = self._auth.current_user() if self._auth else None
        if self._store is None or user is None:
            return
        self._history = [
            QuizResult.from_dict(record)
            for record in self._store.list("quiz_result", user_id=user.id)
        ]
