"""
Learning profile: preferred modality and difficulty.

The profile changes only when the learner picks a new setting; nothing in the
engine mutates it automatically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from src.config import config
from src.errors import InvalidInput

Modality = Literal["visual", "auditory", "reading", "kinesthetic"]
Difficulty = Literal["easy", "medium", "hard"]

MODALITIES = config.session.modalities
DIFFICULTIES = config.quiz.difficulty_levels


def validate_difficulty(difficulty: str) -> str:
    """Return difficulty if it is a known level, raise InvalidInput otherwise."""
    if difficulty not in DIFFICULTIES:
        raise InvalidInput(f"Difficulty must be one of {DIFFICULTIES}, got '{difficulty}'")
    return difficulty


@dataclass
class LearningProfile:
    """
    Learner preferences used by the content adapter.

    Attributes:
        modality: Preferred learning style
        difficulty: Preferred difficulty level
    """

    modality: Modality = config.session.default_modality
    difficulty: Difficulty = config.session.default_difficulty

    def __post_init__(self):
        self.set_modality(self.modality)
        self.set_difficulty(self.difficulty)

    def set_modality(self, modality: str) -> None:
        """Explicit user selection of a learning style."""
        if modality not in MODALITIES:
            raise InvalidInput(f"Modality must be one of {MODALITIES}, got '{modality}'")
        self.modality = modality

    def set_difficulty(self, difficulty: str) -> None:
        """Explicit user selection of a difficulty level."""
        self.difficulty = validate_difficulty(difficulty)

    def to_dict(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        data = {"modality": self.modality, "difficulty": self.difficulty}
        if user_id is not None:
            data["user_id"] = user_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LearningProfile":
        return cls(
            modality=data.get("modality", config.session.default_modality),
            difficulty=data.get("difficulty", config.session.default_difficulty),
        )
