"""
Unit tests for progress analytics helpers.
"""

from datetime import datetime, timezone

from src.models.emotion import EmotionLabel, EmotionSample
from src.models.quiz import QuizResult
from src.utils.progress import (
    dominant_emotion,
    emotion_distribution,
    mean_confidence,
    score_histogram,
    score_summary,
)

T0 = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


def result(score):
    return QuizResult(
        quiz_id=f"qz-{score}",
        user_id="u-alice",
        score=score,
        total_questions=10,
        correct_answers=int(score // 10),
        completed_at=T0,
        answers=(),
    )


def samples(*pairs):
    return [EmotionSample(label, confidence, T0) for label, confidence in pairs]


class TestEmotionAnalytics:
    def test_distribution(self):
        log = samples(("happy", 0.9), ("happy", 0.8), ("bored", 0.6), ("engaged", 0.7))
        assert emotion_distribution(log) == {"happy": 0.5, "bored": 0.25, "engaged": 0.25}

    def test_empty_log(self):
        assert emotion_distribution([]) == {}
        assert dominant_emotion([]) is None
        assert mean_confidence([]) == 0.0

    def test_dominant_by_count(self):
        log = samples(("confused", 0.6), ("confused", 0.6), ("happy", 0.99))
        assert dominant_emotion(log) is EmotionLabel.CONFUSED

    def test_dominant_tie_broken_by_confidence(self):
        log = samples(("bored", 0.5), ("engaged", 0.9))
        assert dominant_emotion(log) is EmotionLabel.ENGAGED

    def test_mean_confidence(self):
        assert mean_confidence(samples(("sad", 0.5), ("sad", 1.0))) == 0.75


class TestScoreAnalytics:
    def test_empty_summary(self):
        assert score_summary([])["count"] == 0

    def test_summary(self):
        summary = score_summary([result(60.0), result(80.0), result(100.0)])
        assert summary["mean"] == 80.0
        assert summary["median"] == 80.0
        assert summary["min"] == 60.0
        assert summary["max"] == 100.0
        assert summary["count"] == 3

    def test_even_median(self):
        assert score_summary([result(40.0), result(60.0)])["median"] == 50.0

    def test_histogram(self):
        bins = score_histogram([result(85.0), result(72.0), result(45.0), result(100.0)])
        assert bins == [("40-49", 1), ("70-79", 1), ("80-89", 1), ("90-99", 1)]

    def test_histogram_empty(self):
        assert score_histogram([]) == []
