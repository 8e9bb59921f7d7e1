"""
Quiz data models: questions, quizzes, attempts and results.

Quizzes and results are immutable once created. The attempt state is the only
mutable piece and belongs to whoever is taking the quiz.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from src.errors import InvalidAnswer, InvalidInput
from src.utils.clock import from_iso


@dataclass(frozen=True)
class Answer:
    id: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text}


@dataclass(frozen=True)
class Question:
    """
    A single multiple-choice question.

    Attributes:
        id: Question identifier
        text: Question text
        answers: Answer options (at least 2, unique ids)
        correct_answer_id: Id of the one correct answer
    """

    id: str
    text: str
    answers: Tuple[Answer, ...]
    correct_answer_id: str

    def __post_init__(self):
        object.__setattr__(self, "answers", tuple(self.answers))

    @property
    def answer_ids(self) -> List[str]:
        return [a.id for a in self.answers]

    def validate(self) -> None:
        """
        Validate question integrity.

        Raises:
            InvalidInput: If the question is malformed
        """
        ids = self.answer_ids
        if len(ids) < 2:
            raise InvalidInput(f"Question {self.id} must have at least 2 answers, got {len(ids)}")
        if len(set(ids)) != len(ids):
            raise InvalidInput(f"Question {self.id} has duplicate answer ids: {ids}")
        if self.correct_answer_id not in ids:
            raise InvalidInput(
                f"Question {self.id} correct answer '{self.correct_answer_id}' is not one of {ids}"
            )

    def is_correct(self, answer_id: str) -> bool:
        return answer_id == self.correct_answer_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "answers": [a.to_dict() for a in self.answers],
            "correct_answer_id": self.correct_answer_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        return cls(
            id=data["id"],
            text=data["text"],
            answers=tuple(Answer(id=a["id"], text=a["text"]) for a in data["answers"]),
            correct_answer_id=data["correct_answer_id"],
        )


@dataclass(frozen=True)
class Quiz:
    id: str
    topic: str
    difficulty: str
    created_at: datetime
    questions: Tuple[Question, ...]

    def __post_init__(self):
        object.__setattr__(self, "questions", tuple(self.questions))

    def question(self, question_id: str) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "difficulty": self.difficulty,
            "created_at": self.created_at.isoformat(),
            "questions": [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quiz":
        return cls(
            id=data["id"],
            topic=data["topic"],
            difficulty=data["difficulty"],
            created_at=from_iso(data["created_at"]),
            questions=tuple(Question.from_dict(q) for q in data["questions"]),
        )


@dataclass(frozen=True)
class SubmittedAnswer:
    question_id: str
    answer_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"question_id": self.question_id, "answer_id": self.answer_id}


@dataclass
class QuizAttemptState:
    """Progress through one quiz by one learner."""

    quiz: Quiz
    current_index: int = 0
    answers: List[SubmittedAnswer] = field(default_factory=list)

    @property
    def current_question(self) -> Optional[Question]:
        if self.current_index >= len(self.quiz.questions):
            return None
        return self.quiz.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_index == len(self.quiz.questions) - 1

    def submit(self, answer_id: str) -> bool:
        """
        Record an answer for the current question.

        Returns:
            True when this answer completed the quiz

        Raises:
            InvalidAnswer: If answer_id is not an option of the current question
        """
        question = self.current_question
        if question is None or answer_id not in question.answer_ids:
            raise InvalidAnswer(
                f"Answer '{answer_id}' is not an option for the current question"
            )
        self.answers.append(SubmittedAnswer(question_id=question.id, answer_id=answer_id))
        if self.is_last_question:
            self.current_index = len(self.quiz.questions)
            return True
        self.current_index += 1
        return False


def count_correct(quiz: Quiz, answers: List[SubmittedAnswer]) -> int:
    """Number of submitted answers matching the stored correct answer."""
    correct = 0
    for submitted in answers:
        question = quiz.question(submitted.question_id)
        if question is not None and question.is_correct(submitted.answer_id):
            correct += 1
    return correct


def score_percent(correct: int, answered: int) -> float:
    """Percent correct over what was actually answered."""
    if answered <= 0:
        return 0.0
    return 100.0 * correct / answered


@dataclass(frozen=True)
class QuizResult:
    quiz_id: str
    user_id: Optional[str]
    score: float
    total_questions: int
    correct_answers: int
    completed_at: datetime
    answers: Tuple[SubmittedAnswer, ...]
    topic: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "answers", tuple(self.answers))

    @classmethod
    def from_attempt(
        cls,
        attempt: QuizAttemptState,
        user_id: Optional[str],
        completed_at: datetime,
    ) -> "QuizResult":
        """Score an attempt over the answers actually submitted."""
        answered = len(attempt.answers)
        correct = count_correct(attempt.quiz, attempt.answers)
        return cls(
            quiz_id=attempt.quiz.id,
            user_id=user_id,
            score=score_percent(correct, answered),
            total_questions=answered,
            correct_answers=correct,
            completed_at=completed_at,
            answers=tuple(attempt.answers),
            topic=attempt.quiz.topic,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quiz_id": self.quiz_id,
            "user_id": self.user_id,
            "topic": self.topic,
            "score": self.score,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "completed_at": self.completed_at.isoformat(),
            "answers": [a.to_dict() for a in self.answers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizResult":
        return cls(
            quiz_id=data["quiz_id"],
            user_id=data.get("user_id"),
            score=data["score"],
            total_questions=data["total_questions"],
            correct_answers=data["correct_answers"],
            completed_at=from_iso(data["completed_at"]),
            answers=tuple(
                SubmittedAnswer(question_id=a["question_id"], answer_id=a["answer_id"])
                for a in data.get("answers", [])
            ),
            topic=data.get("topic"),
        )
