"""
Placeholder question generation.

SampleQuestionGenerator produces templated multiple-choice questions with a
randomly drawn correct answer. Seed it for reproducible quizzes; plug in
LLMQuestionGenerator (or any ContentGenerator) for real content.
"""

from __future__ import annotations

import random
import uuid
from typing import List, Optional, Sequence

from src.config import config
from src.models.quiz import Answer, Question


class SampleQuestionGenerator:
    """
    Templated questions about a topic.

    Args:
        seed: Random seed for the correct-answer draw (config.quiz.random_seed if None)
        answers_per_question: Options per question (config default: 4)
    """

    def __init__(self, seed: Optional[int] = None, answers_per_question: Optional[int] = None):
        self.seed = seed if seed is not None else config.quiz.random_seed
        self.answers_per_question = answers_per_question or config.quiz.answers_per_question
        if self.answers_per_question < 2:
            raise ValueError(
                f"answers_per_question must be >= 2, got {self.answers_per_question}"
            )
        self._rng = random.Random(self.seed)

    def generate_questions(self, topic: str, difficulty: str, count: int) -> List[Question]:
        batch = uuid.uuid4().hex[:8]
        questions = []
        for i in range(count):
            answers = tuple(
                Answer(id=f"a{i}-{j}", text=f"Answer option {j} for question {i + 1}")
                for j in range(1, self.answers_per_question + 1)
            )
            correct = answers[self._rng.randrange(len(answers))]
            questions.append(
                Question(
                    id=f"q-{batch}-{i}",
                    text=f"Sample question {i + 1} about {topic} ({difficulty} difficulty)",
                    answers=answers,
                    correct_answer_id=correct.id,
                )
            )
        return questions


class ScriptedQuestionGenerator:
    """
    Returns prepared question batches in order, then repeats the last one.

    Raises the given exception instead when constructed with fail_with.
    """

    def __init__(self, batches: Sequence[Sequence[Question]] = (), fail_with: Optional[Exception] = None):
        self._batches = [list(b) for b in batches]
        self.fail_with = fail_with
        self.calls: List[tuple] = []

    def generate_questions(self, topic: str, difficulty: str, count: int) -> List[Question]:
        self.calls.append((topic, difficulty, count))
        if self.fail_with is not None:
            raise self.fail_with
        if not self._batches:
            return []
        batch = self._batches.pop(0) if len(self._batches) > 1 else self._batches[0]
        return list(batch)
