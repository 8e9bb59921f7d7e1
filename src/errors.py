"""
Error taxonomy for the study engine.

Every condition the engine reports is a local, recoverable exception derived
from EngineError. Each class carries a stable ``code`` so a UI layer can map
errors to user-facing messages without string matching.

Categories:
- InvalidInput: bad counts, capacities, answer ids, labels
- StateConflict: operation not valid in the current state
- NotFound: unknown battle / record id
- Unauthenticated / Unauthorized: missing user or insufficient privilege
- ResourceExhausted: capacity reached
- PermissionDenied: sensing collaborator refused access
- CollaboratorError: an external collaborator (generator, store) failed
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine errors."""

    code = "engine_error"


# ==================== Invalid input ====================


class InvalidInput(EngineError, ValueError):
    code = "invalid_input"


class InvalidCount(InvalidInput):
    code = "invalid_count"


class InvalidCapacity(InvalidInput):
    code = "invalid_capacity"


class InvalidAnswer(InvalidInput):
    code = "invalid_answer"


# ==================== State conflicts ====================


class StateConflict(EngineError):
    code = "state_conflict"


class AlreadyActive(StateConflict):
    code = "already_active"


class NoActiveSession(StateConflict):
    code = "no_active_session"


class SessionClosed(StateConflict):
    code = "session_closed"


class NoActiveQuiz(StateConflict):
    code = "no_active_quiz"


class NothingAnswered(StateConflict):
    code = "nothing_answered"


class WrongState(StateConflict):
    code = "wrong_state"


class AlreadyJoined(StateConflict):
    code = "already_joined"


class InsufficientParticipants(StateConflict):
    code = "insufficient_participants"


class AlreadyFinished(StateConflict):
    code = "already_finished"


# ==================== Lookup / access ====================


class NotFound(EngineError, LookupError):
    code = "not_found"


class Unauthenticated(EngineError):
    code = "unauthenticated"


class Unauthorized(EngineError):
    code = "unauthorized"


class NotParticipant(Unauthorized):
    code = "not_participant"


class ResourceExhausted(EngineError):
    code = "resource_exhausted"


class BattleFull(ResourceExhausted):
    code = "battle_full"


class PermissionDenied(EngineError):
    code = "permission_denied"


# ==================== Collaborator failures ====================


class CollaboratorError(EngineError):
    code = "collaborator_error"


class GenerationFailed(CollaboratorError):
    code = "generation_failed"


class PersistenceError(CollaboratorError):
    code = "persistence_error"

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []
