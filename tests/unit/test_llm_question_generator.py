"""
Unit tests for the LLM-backed question generator.

The chat model is mocked; no network calls are made.
"""

import json
import unittest
from unittest.mock import Mock

from src.agents.llm_question_generator import (
    LLMQuestionGenerator,
    extract_json,
    question_from_payload,
)
from src.agents.quiz_engine import QuizEngine
from src.errors import GenerationFailed


def reply(payload, fenced=False):
    text = json.dumps(payload)
    if fenced:
        text = f"Here you go:\n```json\n{text}\n```"
    return Mock(content=text)


def mcq(text="What is 2 + 2?", correct="B"):
    return {
        "question_text": text,
        "options": [
            {"option_id": letter, "text": f"Option {letter}", "is_correct": letter == correct}
            for letter in "ABCD"
        ],
    }


class TestExtractJson(unittest.TestCase):
    def test_plain(self):
        self.assertEqual(extract_json('[{"a": 1}]'), [{"a": 1}])

    def test_fenced_json(self):
        self.assertEqual(extract_json('```json\n{"a": 1}\n```'), {"a": 1})

    def test_bare_fence(self):
        self.assertEqual(extract_json('```\n[1, 2]\n```'), [1, 2])

    def test_invalid(self):
        with self.assertRaises(GenerationFailed):
            extract_json("Sorry, I can't help with that.")


class TestQuestionFromPayload(unittest.TestCase):
    def test_builds_question(self):
        question = question_from_payload(mcq(correct="C"), 0)
        self.assertEqual(question.text, "What is 2 + 2?")
        self.assertEqual(question.answer_ids, ["A", "B", "C", "D"])
        self.assertEqual(question.correct_answer_id, "C")

    def test_missing_option_ids_get_letters(self):
        payload = {
            "question_text": "?",
            "options": [{"text": "x", "is_correct": True}, {"text": "y"}],
        }
        self.assertEqual(question_from_payload(payload, 0).answer_ids, ["A", "B"])

    def test_two_correct_options_rejected(self):
        payload = mcq()
        payload["options"][0]["is_correct"] = True
        with self.assertRaises(GenerationFailed):
            question_from_payload(payload, 0)

    def test_missing_fields_rejected(self):
        with self.assertRaises(GenerationFailed):
            question_from_payload({"options": []}, 0)


class TestLLMQuestionGenerator(unittest.TestCase):
    def setUp(self):
        self.llm = Mock()
        self.generator = LLMQuestionGenerator(llm=self.llm, model_name="test-model")

    def test_generates_questions(self):
        self.llm.invoke.return_value = reply([mcq("Q1"), mcq("Q2", correct="A")], fenced=True)

        questions = self.generator.generate_questions("Arithmetic", "easy", 2)

        self.assertEqual([q.text for q in questions], ["Q1", "Q2"])
        self.assertEqual(questions[1].correct_answer_id, "A")
        self.assertEqual(len({q.id for q in questions}), 2)
        prompt = self.llm.invoke.call_args[0][0]
        self.assertIn("Arithmetic", prompt)
        self.assertIn("easy", prompt)
        self.assertIn("Create 2 multiple-choice questions", prompt)

    def test_questions_key_accepted(self):
        self.llm.invoke.return_value = reply({"questions": [mcq()]})
        self.assertEqual(len(self.generator.generate_questions("Arithmetic", "easy", 1)), 1)

    def test_non_list_rejected(self):
        self.llm.invoke.return_value = reply("just a string")
        with self.assertRaises(GenerationFailed):
            self.generator.generate_questions("Arithmetic", "easy", 1)

    def test_engine_rejects_short_batch(self):
        self.llm.invoke.return_value = reply([mcq()])
        engine = QuizEngine(self.generator)
        with self.assertRaises(GenerationFailed):
            engine.generate("Arithmetic", "easy", 3)

    def test_engine_wraps_model_errors(self):
        self.llm.invoke.side_effect = TimeoutError("model timed out")
        engine = QuizEngine(self.generator)
        with self.assertRaises(GenerationFailed) as ctx:
            engine.generate("Arithmetic", "easy", 3)
        self.assertIsInstance(ctx.exception.__cause__, TimeoutError)


if __name__ == "__main__":
    unittest.main()
