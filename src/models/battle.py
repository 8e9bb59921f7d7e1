"""
Quiz battle records.

A battle moves waiting -> active -> completed and never back. The first
participant holds start authority.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from src.models.quiz import Quiz
from src.utils.clock import to_iso


class BattleStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Participant:
    user_id: str
    display_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "display_name": self.display_name}


@dataclass(frozen=True)
class ParticipantResult:
    """
    Final outcome for one participant.

    Attributes:
        user_id: Participant
        score: Percent correct over answered questions
        correct_answers: Number correct
        total_questions: Number answered
        completed_at: When the participant finished (or forfeited)
        elapsed_seconds: Time from battle start to finishing
        forfeited: True if the participant left before finishing
    """

    user_id: str
    score: float
    correct_answers: int
    total_questions: int
    completed_at: datetime
    elapsed_seconds: float
    forfeited: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "score": self.score,
            "correct_answers": self.correct_answers,
            "total_questions": self.total_questions,
            "completed_at": self.completed_at.isoformat(),
            "elapsed_seconds": self.elapsed_seconds,
            "forfeited": self.forfeited,
        }


def standing_key(result: ParticipantResult):
    """Rank: finishers before forfeits, higher score, then faster."""
    return (result.forfeited, -result.score, result.elapsed_seconds)


@dataclass
class Battle:
    id: str
    creator_id: str
    topic: str
    difficulty: str
    max_participants: int
    created_at: datetime
    status: BattleStatus = BattleStatus.WAITING
    participants: List[Participant] = field(default_factory=list)
    quiz: Optional[Quiz] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    results: Dict[str, ParticipantResult] = field(default_factory=dict)

    @property
    def leader(self) -> Optional[Participant]:
        """Participant holding start authority."""
        return self.participants[0] if self.participants else None

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.max_participants

    def participant(self, user_id: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.user_id == user_id), None)

    def has_participant(self, user_id: str) -> bool:
        return self.participant(user_id) is not None

    @property
    def all_results_in(self) -> bool:
        return bool(self.participants) and all(
            p.user_id in self.results for p in self.participants
        )

    def standings(self) -> List[ParticipantResult]:
        return sorted(self.results.values(), key=standing_key)

    @property
    def winner(self) -> Optional[ParticipantResult]:
        if self.status != BattleStatus.COMPLETED:
            return None
        ranked = self.standings()
        return ranked[0] if ranked else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "battle_id": self.id,
            "creator_id": self.creator_id,
            "topic": self.topic,
            "difficulty": self.difficulty,
            "status": self.status.value,
            "max_participants": self.max_participants,
            "participants": [p.to_dict() for p in self.participants],
            "quiz": self.quiz.to_dict() if self.quiz else None,
            "created_at": self.created_at.isoformat(),
            "started_at": to_iso(self.started_at),
            "completed_at": to_iso(self.completed_at),
            "results": [r.to_dict() for r in self.standings()],
        }
