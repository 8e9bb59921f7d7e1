"""
LLM Question Generator - ContentGenerator backed by a chat model.

Asks the model for a batch of multiple-choice questions as JSON and turns the
reply into Question objects. The QuizEngine validates the batch afterwards, so
this module only has to reject replies it cannot parse at all.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from src.config import config
from src.errors import GenerationFailed
from src.models.quiz import Answer, Question

logger = logging.getLogger(__name__)


QUIZ_PROMPT = PromptTemplate(
    input_variables=["topic", "difficulty", "count", "options"],
    template="""You are an expert educational assessment designer. Create {count} multiple-choice questions for a learner studying the topic below.

**Topic:** {topic}
**Difficulty:** {difficulty} (easy/medium/hard)

**Requirements:**
1. Each question is clear and unambiguous
2. Each question has exactly {options} options
3. Exactly ONE option per question is correct
4. Distractors are plausible but clearly wrong
5. Match the requested difficulty

**Format your response as a JSON array:**
[
  {{
    "question_text": "...",
    "options": [
      {{"option_id": "A", "text": "...", "is_correct": false}},
      {{"option_id": "B", "text": "...", "is_correct": true}}
    ]
  }}
]

**Questions:**""",
)


def extract_json(response: str) -> Any:
    """
    Parse JSON from a model reply, unwrapping a markdown code fence if present.

    Raises:
        GenerationFailed: If the reply is not valid JSON
    """
    text = response.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationFailed(f"Model reply is not valid JSON: {e}") from e


def question_from_payload(payload: Dict[str, Any], index: int) -> Question:
    """Build a Question from one parsed item; the correct option is the one flagged is_correct."""
    try:
        options = payload["options"]
        answers = tuple(
            Answer(id=str(opt.get("option_id") or chr(ord("A") + j)), text=str(opt["text"]))
            for j, opt in enumerate(options)
        )
        correct = [answers[j].id for j, opt in enumerate(options) if opt.get("is_correct")]
        text = str(payload["question_text"])
    except (KeyError, TypeError, AttributeError) as e:
        raise GenerationFailed(f"Question {index + 1} is missing fields: {e}") from e

    if len(correct) != 1:
        raise GenerationFailed(
            f"Question {index + 1} must flag exactly one correct option, got {len(correct)}"
        )
    return Question(
        id=f"q-{uuid.uuid4().hex[:8]}-{index}",
        text=text,
        answers=answers,
        correct_answer_id=correct[0],
    )


class LLMQuestionGenerator:
    """
    Generates quiz questions with an OpenAI chat model via LangChain.

    Args:
        llm: Chat model to invoke (built from config.model if None)
        model_name: Model name override
        temperature: Sampling temperature override
        answers_per_question: Options per question (config default: 4)
    """

    def __init__(
        self,
        llm: Optional[Any] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        answers_per_question: Optional[int] = None,
    ):
        self.model_name = model_name or config.model.model_name
        self.answers_per_question = answers_per_question or config.quiz.answers_per_question
        self.prompt = QUIZ_PROMPT

        if llm is None:
            llm = ChatOpenAI(
                model=self.model_name,
                temperature=config.model.temperature if temperature is None else temperature,
                api_key=config.model.api_key,
                base_url=config.model.base_url,
                timeout=config.model.request_timeout,
            )
        self.llm = llm

    def generate_questions(self, topic: str, difficulty: str, count: int) -> List[Question]:
        prompt = self.prompt.format(
            topic=topic,
            difficulty=difficulty,
            count=count,
            options=self.answers_per_question,
        )
        logger.debug("Requesting %d question(s) on '%s' from %s", count, topic, self.model_name)
        response = self.llm.invoke(prompt).content

        payload = extract_json(response)
        if isinstance(payload, dict):
            payload = payload.get("questions", [payload])
        if not isinstance(payload, list):
            raise GenerationFailed(f"Expected a JSON array of questions, got {type(payload).__name__}")

        return [question_from_payload(item, i) for i, item in enumerate(payload)]
