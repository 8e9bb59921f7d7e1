"""
Schema validation utilities for stored study records.

Provides JSON Schema validation with clear error messages, plus record-specific
consistency checks that a schema cannot express:
- Session end not before start, duration consistent with timestamps
- Quiz result counts and score agree
- Battle participants unique and within capacity
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError

from src.config import config


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data
    """

    def __init__(self, valid: bool, errors: list[str], data: Any = None):
        self.valid = valid
        self.errors = errors
        self.data = data

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.valid:
            return "Validation passed"
        return f"Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator.

    Usage:
        validator = SchemaValidator("path/to/schema.json")
        result = validator.validate(data)
        if not result:
            print(result.errors)
    """

    def __init__(self, schema_path: Path | str):
        """
        Initialize validator with a schema file.

        Args:
            schema_path: Path to JSON Schema file
        """
        self.schema_path = Path(schema_path)
        with open(self.schema_path, "r", encoding="utf-8") as f:
            self.schema = json.load(f)
        self.validator = Draft7Validator(self.schema, format_checker=FormatChecker())

    def validate(self, data: dict) -> ValidationResult:
        """
        Validate data against schema.

        Args:
            data: Data to validate

        Returns:
            ValidationResult with validation status and any errors
        """
        errors = [self._format_error(error) for error in self.validator.iter_errors(data)]
        return ValidationResult(valid=not errors, errors=errors, data=data)

    def _format_error(self, error: ValidationError) -> str:
        """
        Convert ValidationError to human-readable message with details.

        Args:
            error: jsonschema ValidationError

        Returns:
            Formatted error message with validator and schema path
        """
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        validator_name = getattr(error, "validator", "unknown")
        schema_path = "/".join(str(p) for p in error.schema_path)
        return (
            f"At '{path}': {error.message} "
            f"[validator={validator_name}, schema_path=/{schema_path}]"
        )


class RecordValidator(SchemaValidator):
    """
    Validator for one stored record kind.

    Runs the kind's JSON Schema first, then consistency checks for the kinds
    that have them.
    """

    def __init__(self, kind: str, schema_path: Optional[Path] = None):
        self.kind = kind
        super().__init__(schema_path or config.paths.schema_for(kind))

    def validate(self, data: dict) -> ValidationResult:
        result = super().validate(data)
        if not result.valid:
            return result

        check = getattr(self, f"_check_{self.kind}", None)
        extra_errors = check(data) if check else []
        return ValidationResult(valid=not extra_errors, errors=extra_errors, data=data)

    @staticmethod
    def _check_study_session(data: dict) -> list[str]:
        errors = []
        ended_at = data.get("ended_at")
        if ended_at is not None:
            started = datetime.fromisoformat(data["started_at"])
            ended = datetime.fromisoformat(ended_at)
            if ended < started:
                errors.append(f"Session ended ({ended_at}) before it started ({data['started_at']})")
            if data.get("duration_minutes") is None:
                errors.append("Ended session is missing duration_minutes")
        elif data.get("duration_minutes") is not None:
            errors.append("Active session must not carry duration_minutes")
        return errors

    @staticmethod
    def _check_quiz_result(data: dict) -> list[str]:
        errors = []
        total = data["total_questions"]
        correct = data["correct_answers"]
        if correct > total:
            errors.append(f"correct_answers ({correct}) exceeds total_questions ({total})")
        if len(data["answers"]) != total:
            errors.append(
                f"answers has {len(data['answers'])} entries, expected total_questions={total}"
            )
        if total > 0:
            expected = 100.0 * correct / total
            if abs(expected - data["score"]) > 0.01:
                errors.append(f"Score mismatch: expected {expected:.2f}, got {data['score']}")
        return errors

    @staticmethod
    def _check_battle(data: dict) -> list[str]:
        errors = []
        ids = [p["user_id"] for p in data["participants"]]
        if len(set(ids)) != len(ids):
            errors.append(f"Duplicate participants: {ids}")
        if ids and ids[0] != data["creator_id"]:
            errors.append(f"Creator {data['creator_id']} is not the first participant")
        if len(ids) > data["max_participants"]:
            errors.append(
                f"{len(ids)} participants exceed max_participants={data['max_participants']}"
            )
        if data["status"] != "waiting" and data.get("started_at") is None:
            errors.append(f"Battle in status '{data['status']}' is missing started_at")
        if data["status"] == "completed" and data.get("completed_at") is None:
            errors.append("Completed battle is missing completed_at")
        return errors


_validators: dict[str, RecordValidator] = {}


def get_validator(kind: str) -> RecordValidator:
    """Get cached validator instance for a record kind."""
    if kind not in _validators:
        _validators[kind] = RecordValidator(kind)
    return _validators[kind]


def validate_record(kind: str, data: dict) -> ValidationResult:
    """
    Quick validation of a stored record.

    Example:
        result = validate_record("quiz_result", result.to_dict())
        if not result:
            print("Errors:", result.errors)
    """
    return get_validator(kind).validate(data)
