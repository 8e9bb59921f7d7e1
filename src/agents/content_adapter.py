"""
Content adaptation policy.

Picks study material for a topic from the learner's modality, then adjusts it
for the current emotion. Both steps are table lookups; select() has no state.

Adding an emotion reaction means adding one row to EMOTION_RULES.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from src.models.emotion import EmotionLabel, EmotionSample
from src.models.learning_profile import LearningProfile


@dataclass(frozen=True)
class ContentElement:
    type: str
    title: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.type, "title": self.title}
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class ContentPlan:
    """Ordered recommendation of learning elements for a topic."""

    topic: str
    primary: str
    secondary: str
    elements: Tuple[ContentElement, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "primary": self.primary,
            "secondary": self.secondary,
            "elements": [e.to_dict() for e in self.elements],
        }


@dataclass(frozen=True)
class _BasePlan:
    primary: str
    secondary: str
    # (element type, title template with {topic})
    templates: Tuple[Tuple[str, str], ...]


BASE_PLANS: Dict[str, _BasePlan] = {
    "visual": _BasePlan(
        "diagram",
        "video",
        (
            ("image", "{topic} visual diagram"),
            ("graph", "{topic} relationship graph"),
            ("video", "{topic} explainer video"),
        ),
    ),
    "auditory": _BasePlan(
        "lecture",
        "discussion",
        (
            ("audio", "{topic} audio lecture"),
            ("discussion", "{topic} guided discussion"),
            ("qa", "{topic} Q&A session"),
        ),
    ),
    "reading": _BasePlan(
        "text",
        "case-study",
        (
            ("article", "{topic} comprehensive article"),
            ("book", "{topic} recommended reading"),
            ("notes", "{topic} study notes"),
        ),
    ),
    "kinesthetic": _BasePlan(
        "interactive",
        "project",
        (
            ("simulation", "{topic} interactive simulation"),
            ("exercise", "{topic} practical exercise"),
            ("project", "{topic} hands-on project"),
        ),
    ),
}

DEFAULT_PLAN = _BasePlan(
    "mixed",
    "text",
    (
        ("article", "{topic} overview"),
        ("video", "{topic} explainer video"),
        ("quiz", "{topic} practice quiz"),
    ),
)

PREPEND = "prepend"
APPEND = "append"

# Evaluated in order; the first rule whose labels match wins
EMOTION_RULES: Tuple[Tuple[frozenset, str, ContentElement], ...] = (
    (
        frozenset({EmotionLabel.FRUSTRATED}),
        PREPEND,
        ContentElement(
            "encouragement",
            "You can do this!",
            "Let's break this down into smaller steps.",
        ),
    ),
    (
        frozenset({EmotionLabel.BORED}),
        PREPEND,
        ContentElement(
            "challenge",
            "Challenge yourself!",
            "Try this engaging activity to deepen your understanding.",
        ),
    ),
    (
        frozenset({EmotionLabel.CONFUSED}),
        PREPEND,
        ContentElement(
            "explanation",
            "Let's clarify",
            "Here's a simpler way to understand this concept.",
        ),
    ),
    (
        frozenset({EmotionLabel.ENGAGED, EmotionLabel.HAPPY}),
        APPEND,
        ContentElement(
            "advanced",
            "Dive deeper",
            "Since you're engaged, explore these advanced concepts.",
        ),
    ),
)


def base_plan(topic: str, modality: Optional[str]) -> ContentPlan:
    """Plan for a modality before any emotion adjustment."""
    row = BASE_PLANS.get(modality, DEFAULT_PLAN)
    elements = tuple(ContentElement(kind, title.format(topic=topic)) for kind, title in row.templates)
    return ContentPlan(topic=topic, primary=row.primary, secondary=row.secondary, elements=elements)


def adjust_for_emotion(plan: ContentPlan, label: EmotionLabel) -> ContentPlan:
    for labels, position, element in EMOTION_RULES:
        if label in labels:
            if position == PREPEND:
                elements = (element,) + plan.elements
            else:
                elements = plan.elements + (element,)
            return ContentPlan(plan.topic, plan.primary, plan.secondary, elements)
    return plan


class ContentAdapter:
    """Stateless policy object; kept as a class so it can be injected and swapped."""

    def select(
        self,
        topic: str,
        profile: Optional[LearningProfile],
        emotion: EmotionSample,
    ) -> ContentPlan:
        modality = profile.modality if profile is not None else None
        return adjust_for_emotion(base_plan(topic, modality), emotion.label)


# ==================== Emotion recommendations ====================


@dataclass(frozen=True)
class RecommendedAction:
    label: str
    action: str


@dataclass(frozen=True)
class EmotionRecommendation:
    message: str
    actions: Tuple[RecommendedAction, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "actions": [{"label": a.label, "action": a.action} for a in self.actions],
        }


def _recommendation(message: str, *actions: Tuple[str, str]) -> EmotionRecommendation:
    return EmotionRecommendation(message, tuple(RecommendedAction(label, action) for label, action in actions))


_HIGH_ENERGY = _recommendation(
    "You're in a great learning state! Let's keep the momentum going.",
    ("Tackle a challenging problem", "challenge"),
    ("Explore an advanced concept", "advance"),
    ("Help explain to others", "teach"),
)

RECOMMENDATIONS: Dict[EmotionLabel, EmotionRecommendation] = {
    EmotionLabel.FRUSTRATED: _recommendation(
        "I notice you might be feeling frustrated. Let's take a short break or try a different approach.",
        ("Take a 5-minute break", "break"),
        ("Try a simpler explanation", "simplify"),
        ("Switch to a different topic", "switch"),
    ),
    EmotionLabel.BORED: _recommendation(
        "You seem a bit bored. Let's make this more engaging!",
        ("Try a quick quiz game", "quiz"),
        ("Watch an interactive demo", "demo"),
        ("Apply this to a real-world example", "apply"),
    ),
    EmotionLabel.CONFUSED: _recommendation(
        "I sense you might be confused. Let me help clarify things.",
        ("View step-by-step explanation", "steps"),
        ("See a visual diagram", "visual"),
        ("Try a simpler example", "simple"),
    ),
    EmotionLabel.SAD: _recommendation(
        "You seem a bit down. Let's find something to brighten your day while learning.",
        ("Try a fun learning game", "game"),
        ("Watch an inspiring story", "inspire"),
        ("Set a small achievable goal", "goal"),
    ),
    EmotionLabel.HAPPY: _HIGH_ENERGY,
    EmotionLabel.ENGAGED: _HIGH_ENERGY,
}

DEFAULT_RECOMMENDATION = _recommendation(
    "Ready to continue learning? Let me know how I can help.",
    ("Suggest a study topic", "suggest"),
    ("Create a practice quiz", "quiz"),
    ("Summarize what we've learned", "summary"),
)


def recommendations_for(emotion: EmotionSample) -> EmotionRecommendation:
    """Message and suggested next actions for the learner's current emotion."""
    return RECOMMENDATIONS.get(emotion.label, DEFAULT_RECOMMENDATION)
