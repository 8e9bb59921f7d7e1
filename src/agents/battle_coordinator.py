"""
Battle Coordinator - multiplayer quiz battles in a single process.

A battle is created by one learner, joined by others, started by whoever holds
start authority (the first participant) and then played by every participant
over the same shared quiz. It completes once every participant has either
finished or forfeited.

All operations on one battle are serialized by a per-battle lock.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterator, List, Optional

from src.agents.quiz_engine import QuizEngine
from src.collaborators import AuthProvider
from src.config import config
from src.errors import (
    AlreadyFinished,
    AlreadyJoined,
    BattleFull,
    InsufficientParticipants,
    InvalidCapacity,
    InvalidInput,
    NotFound,
    NotParticipant,
    Unauthenticated,
    Unauthorized,
    WrongState,
)
from src.models.battle import Battle, BattleStatus, Participant, ParticipantResult
from src.models.learning_profile import validate_difficulty
from src.models.quiz import QuizAttemptState, count_correct, score_percent
from src.models.user import User
from src.utils.clock import Clock, utc_now
from src.utils.persistence import RecordStore, persist

logger = logging.getLogger(__name__)

MIN_PARTICIPANTS = 2


class BattleCoordinator:
    """
    Registry and state machine for quiz battles.

    Features:
    - create / join / leave / start / answer / standings
    - Per-participant attempts over one shared quiz
    - Forfeit on leaving an active battle
    - Standings by score, then speed, forfeits last
    """

    def __init__(
        self,
        quiz_engine: QuizEngine,
        auth: AuthProvider,
        store: Optional[RecordStore] = None,
        clock: Clock = utc_now,
        question_count: Optional[int] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            quiz_engine: Builds the shared battle quiz
            auth: Identity collaborator; every call acts as the signed-in user
            store: Record store for battles
            clock: Time source
            question_count: Questions per battle (config.quiz.battle_question_count)
        """
        self._quiz_engine = quiz_engine
        self._auth = auth
        self._store = store
        self._clock = clock
        self.question_count = question_count or config.quiz.battle_question_count

        self._battles: Dict[str, Battle] = {}
        self._attempts: Dict[str, Dict[str, QuizAttemptState]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # ==================== Helpers ====================

    def _require_user(self) -> User:
        user = self._auth.current_user()
        if user is None:
            raise Unauthenticated("Sign in to take part in battles")
        return user

    @contextmanager
    def _locked(self, battle_id: str) -> Iterator[Battle]:
        with self._registry_lock:
            lock = self._locks.get(battle_id)
        if lock is None:
            raise NotFound(f"Battle not found: {battle_id}")
        with lock:
            # The battle may have been discarded while we waited
            battle = self._battles.get(battle_id)
            if battle is None:
                raise NotFound(f"Battle not found: {battle_id}")
            yield battle

    def _commit(self, battle: Battle, **changes) -> None:
        """Persist the changed battle, then apply the changes in place."""
        candidate = replace(battle, **changes)
        persist(self._store, "battle", candidate.to_dict())
        for name, value in changes.items():
            setattr(battle, name, value)

    def _discard(self, battle: Battle) -> None:
        if self._store is not None:
            self._store.delete("battle", battle.id)
        with self._registry_lock:
            self._battles.pop(battle.id, None)
            self._locks.pop(battle.id, None)
        self._attempts.pop(battle.id, None)
        logger.info("Battle discarded: no participants left", extra={"battle_id": battle.id})

    def _participant_result(
        self,
        battle: Battle,
        user_id: str,
        attempt: QuizAttemptState,
        forfeited: bool = False,
    ) -> ParticipantResult:
        now = self._clock()
        answered = len(attempt.answers)
        correct = count_correct(attempt.quiz, attempt.answers)
        return ParticipantResult(
            user_id=user_id,
            score=score_percent(correct, answered),
            correct_answers=correct,
            total_questions=answered,
            completed_at=now,
            elapsed_seconds=max(0.0, (now - battle.started_at).total_seconds()),
            forfeited=forfeited,
        )

    def _record_result(self, battle: Battle, result: ParticipantResult) -> None:
        results = dict(battle.results)
        results[result.user_id] = result
        changes = {"results": results}
        finished = replace(battle, results=results).all_results_in
        if finished:
            changes["status"] = BattleStatus.COMPLETED
            changes["completed_at"] = self._clock()
        self._commit(battle, **changes)

        if finished:
            self._attempts.pop(battle.id, None)
            winner = battle.winner
            logger.info(
                "Battle completed, winner %s with %.1f%%",
                winner.user_id,
                winner.score,
                extra={"battle_id": battle.id},
            )

    # ==================== Queries ====================

    def get(self, battle_id: str) -> Battle:
        with self._registry_lock:
            battle = self._battles.get(battle_id)
        if battle is None:
            raise NotFound(f"Battle not found: {battle_id}")
        return battle

    def battles(self, status: Optional[BattleStatus] = None) -> List[Battle]:
        """Known battles, newest first, optionally filtered by status."""
        with self._registry_lock:
            battles = list(self._battles.values())
        if status is not None:
            battles = [b for b in battles if b.status == status]
        return sorted(battles, key=lambda b: b.created_at, reverse=True)

    def standings(self, battle_id: str) -> List[ParticipantResult]:
        """Results so far: highest score first, faster first on ties, forfeits last."""
        with self._locked(battle_id) as battle:
            return battle.standings()

    def current_question(self, battle_id: str):
        """The signed-in participant's current question, or None once finished."""
        user = self._require_user()
        with self._locked(battle_id) as battle:
            attempt = self._attempts.get(battle.id, {}).get(user.id)
            return attempt.current_question if attempt else None

    # ==================== Lifecycle ====================

    def create(
        self,
        topic: str,
        difficulty: str = config.quiz.default_difficulty,
        max_participants: int = config.quiz.default_max_participants,
    ) -> Battle:
        """
        Create a waiting battle with the caller as its only participant.

        Raises:
            Unauthenticated: If nobody is signed in
            InvalidCapacity: If max_participants < 2
            InvalidInput: If topic is blank or difficulty unknown
        """
        user = self._require_user()
        if (
            isinstance(max_participants, bool)
            or not isinstance(max_participants, int)
            or max_participants < MIN_PARTICIPANTS
        ):
            raise InvalidCapacity(
                f"A battle needs room for at least {MIN_PARTICIPANTS} participants, got {max_participants!r}"
            )
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidInput("Battle topic cannot be empty")
        validate_difficulty(difficulty)

        battle = Battle(
            id=f"bt-{uuid.uuid4().hex[:12]}",
            creator_id=user.id,
            topic=topic.strip(),
            difficulty=difficulty,
            max_participants=max_participants,
            created_at=self._clock(),
            participants=[Participant(user_id=user.id, display_name=user.display_name)],
        )
        persist(self._store, "battle", battle.to_dict())
        with self._registry_lock:
            self._battles[battle.id] = battle
            self._locks[battle.id] = threading.Lock()

        logger.info(
            "Battle created on '%s' for up to %d participants",
            battle.topic,
            max_participants,
            extra={"battle_id": battle.id, "user_id": user.id},
        )
        return battle

    def join(self, battle_id: str) -> Battle:
        """
        Join a waiting battle.

        Raises:
            Unauthenticated, NotFound, BattleFull, AlreadyJoined, WrongState
            (checked in that order)
        """
        user = self._require_user()
        with self._locked(battle_id) as battle:
            if battle.is_full:
                raise BattleFull(f"Battle {battle_id} is full ({battle.max_participants} participants)")
            if battle.has_participant(user.id):
                raise AlreadyJoined(f"{user.id} already joined battle {battle_id}")
            if battle.status != BattleStatus.WAITING:
                raise WrongState(f"Battle {battle_id} is {battle.status.value}, not waiting")

            participant = Participant(user_id=user.id, display_name=user.display_name)
            self._commit(battle, participants=battle.participants + [participant])
            logger.info(
                "%s joined (%d/%d)",
                user.display_name,
                len(battle.participants),
                battle.max_participants,
                extra={"battle_id": battle.id, "user_id": user.id},
            )
            return battle

    def leave(self, battle_id: str) -> Optional[Battle]:
        """
        Leave a battle.

        Waiting: the caller is removed; if they were the creator, the next
        participant becomes creator and holds start authority. An emptied
        battle is discarded (returns None).
        Active: the caller forfeits with whatever they answered so far.

        Raises:
            Unauthenticated: If nobody is signed in
            NotFound: If the battle is unknown
            NotParticipant: If the caller is not in the battle
            WrongState: If the battle is completed
            AlreadyFinished: If the caller already finished an active battle
        """
        user = self._require_user()
        with self._locked(battle_id) as battle:
            if not battle.has_participant(user.id):
                raise NotParticipant(f"{user.id} is not in battle {battle_id}")
            if battle.status == BattleStatus.COMPLETED:
                raise WrongState(f"Battle {battle_id} is already completed")

            if battle.status == BattleStatus.WAITING:
                remaining = [p for p in battle.participants if p.user_id != user.id]
                if not remaining:
                    self._discard(battle)
                    return None
                # The new leader takes over as creator
                self._commit(battle, participants=remaining, creator_id=remaining[0].user_id)
                logger.info(
                    "%s left; %s holds start authority",
                    user.display_name,
                    battle.leader.display_name,
                    extra={"battle_id": battle.id, "user_id": user.id},
                )
                return battle

            if user.id in battle.results:
                raise AlreadyFinished(f"{user.id} already finished battle {battle_id}")
            attempt = self._attempts[battle.id][user.id]
            result = self._participant_result(battle, user.id, attempt, forfeited=True)
            self._record_result(battle, result)
            logger.info(
                "%s forfeited after %d answer(s)",
                user.display_name,
                result.total_questions,
                extra={"battle_id": battle.id, "user_id": user.id},
            )
            return battle

    def start(self, battle_id: str) -> Battle:
        """
        Start a waiting battle with a freshly generated shared quiz.

        Raises:
            NotFound, WrongState, InsufficientParticipants,
            Unauthenticated / Unauthorized (checked in that order)
            GenerationFailed: Battle stays waiting
        """
        with self._locked(battle_id) as battle:
            if battle.status != BattleStatus.WAITING:
                raise WrongState(f"Battle {battle_id} is {battle.status.value}, not waiting")
            if len(battle.participants) < MIN_PARTICIPANTS:
                raise InsufficientParticipants(
                    f"Battle {battle_id} needs at least {MIN_PARTICIPANTS} participants"
                )
            user = self._auth.current_user()
            if user is None:
                raise Unauthenticated("Sign in to start a battle")
            if user.id != battle.leader.user_id:
                raise Unauthorized(f"Only {battle.leader.display_name} can start battle {battle_id}")

            quiz = self._quiz_engine.build_quiz(battle.topic, battle.difficulty, self.question_count)
            self._commit(
                battle,
                status=BattleStatus.ACTIVE,
                quiz=quiz,
                started_at=self._clock(),
            )
            self._attempts[battle.id] = {
                p.user_id: QuizAttemptState(quiz=quiz) for p in battle.participants
            }
            logger.info(
                "Battle started with %d participants",
                len(battle.participants),
                extra={"battle_id": battle.id, "quiz_id": quiz.id},
            )
            return battle

    def answer(self, battle_id: str, answer_id: str) -> Optional[ParticipantResult]:
        """
        Answer the caller's current question in an active battle.

        Returns:
            The caller's ParticipantResult after their last answer, else None

        Raises:
            Unauthenticated, NotFound, NotParticipant
            WrongState: If the battle has not started
            AlreadyFinished: If the caller already has a result
            InvalidAnswer: If answer_id is not an option (nothing advances)
        """
        user = self._require_user()
        with self._locked(battle_id) as battle:
            if not battle.has_participant(user.id):
                raise NotParticipant(f"{user.id} is not in battle {battle_id}")
            if battle.status == BattleStatus.WAITING:
                raise WrongState(f"Battle {battle_id} has not started")
            if user.id in battle.results:
                raise AlreadyFinished(f"{user.id} already finished battle {battle_id}")

            attempt = self._attempts[battle.id][user.id]
            trial = QuizAttemptState(
                quiz=attempt.quiz,
                current_index=attempt.current_index,
                answers=list(attempt.answers),
            )
            if not trial.submit(answer_id):
                self._attempts[battle.id][user.id] = trial
                return None

            result = self._participant_result(battle, user.id, trial)
            self._record_result(battle, result)
            if battle.id in self._attempts:
                self._attempts[battle.id][user.id] = trial
            logger.debug(
                "%s finished with %.1f%%",
                user.display_name,
                result.score,
                extra={"battle_id": battle.id, "user_id": user.id},
            )
            return result
