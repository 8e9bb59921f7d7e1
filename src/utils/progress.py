"""
Progress analytics helpers for dashboards and reporting.

Provides:
- Emotion log analysis (distribution, dominant label, mean confidence)
- Quiz score summary statistics (mean, median, min, max)
- Score histograms
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from src.models.emotion import EmotionLabel, EmotionSample
from src.models.quiz import QuizResult


def emotion_distribution(emotion_log: Sequence[EmotionSample]) -> Dict[str, float]:
    """
    Share of samples per emotion label.

    Args:
        emotion_log: Samples from a study session

    Returns:
        Dict mapping label to fraction of samples (0-1), labels with no
        samples omitted

    Example:
        >>> emotion_distribution([happy, happy, bored, engaged])
        {'happy': 0.5, 'bored': 0.25, 'engaged': 0.25}
    """
    if not emotion_log:
        return {}
    counts = Counter(sample.label.value for sample in emotion_log)
    total = len(emotion_log)
    return {label: round(count / total, 4) for label, count in counts.most_common()}


def dominant_emotion(emotion_log: Sequence[EmotionSample]) -> Optional[EmotionLabel]:
    """
    Most frequent label; ties go to the label with the higher summed confidence.
    """
    if not emotion_log:
        return None
    counts: Counter = Counter()
    weight: Dict[EmotionLabel, float] = {}
    for sample in emotion_log:
        counts[sample.label] += 1
        weight[sample.label] = weight.get(sample.label, 0.0) + sample.confidence
    return max(counts, key=lambda label: (counts[label], weight[label]))


def mean_confidence(emotion_log: Sequence[EmotionSample]) -> float:
    if not emotion_log:
        return 0.0
    return round(sum(s.confidence for s in emotion_log) / len(emotion_log), 4)


def score_summary(results: Sequence[QuizResult]) -> Dict[str, float]:
    """
    Calculate summary statistics for quiz scores.

    Args:
        results: Quiz results

    Returns:
        Dict with mean, median, min, max, std_dev, count
    """
    if not results:
        return {
            "mean": 0.0,
            "median": 0.0,
            "min": 0.0,
            "max": 0.0,
            "std_dev": 0.0,
            "count": 0,
        }

    values = sorted(r.score for r in results)
    n = len(values)

    mean_val = sum(values) / n

    if n % 2 == 1:
        median_val = values[n // 2]
    else:
        median_val = (values[n // 2 - 1] + values[n // 2]) / 2.0

    variance = sum((v - mean_val) ** 2 for v in values) / n
    std_dev = math.sqrt(variance)

    return {
        "mean": round(mean_val, 2),
        "median": round(median_val, 2),
        "min": round(values[0], 2),
        "max": round(values[-1], 2),
        "std_dev": round(std_dev, 2),
        "count": n,
    }


def score_histogram(results: Sequence[QuizResult], bin_size: int = 10) -> List[Tuple[str, int]]:
    """
    Count quiz scores per bin, lowest bin first; empty bins are omitted.

    Example:
        >>> score_histogram(results_with_scores_85_72_100)
        [('70-79', 1), ('80-89', 1), ('90-99', 1)]
    """
    top = 100 - bin_size
    counts = Counter(
        min(top, int(max(0.0, float(r.score)) // bin_size) * bin_size) for r in results
    )
    return [(f"{start}-{start + bin_size - 1}", counts[start]) for start in sorted(counts)]
