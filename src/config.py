"""
Configuration management for the study engine.

This module centralizes all configuration settings following 12-factor app principles:
- Secrets loaded from environment variables
- Sensible defaults for development
- Single source of truth for all settings
- Validation that reports problems instead of failing on import
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


@dataclass
class ModelConfig:
    """LLM settings for the optional question generator."""

    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    model_name: str = field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    )
    base_url: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL")
    )
    temperature: float = 0.5
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "60.0"))
    )


@dataclass
class QuizConfig:
    """Quiz and battle settings."""

    difficulty_levels: tuple = ("easy", "medium", "hard")
    default_difficulty: str = "medium"
    default_question_count: int = 5
    answers_per_question: int = 4

    # Battles always use a fixed-length quiz
    battle_question_count: int = 10
    default_max_participants: int = 4

    # Reproducibility for the sample generator
    random_seed: Optional[int] = field(
        default_factory=lambda: _env_int("QUIZ_RANDOM_SEED", None)
    )


@dataclass
class SessionConfig:
    """Study session and learning profile defaults."""

    modalities: tuple = ("visual", "auditory", "reading", "kinesthetic")
    default_modality: str = "visual"
    default_difficulty: str = "medium"


@dataclass
class EmotionConfig:
    """Affect sensing cadence."""

    sample_interval_seconds: float = field(
        default_factory=lambda: float(os.getenv("EMOTION_SAMPLE_INTERVAL", "3.0"))
    )
    # Simulated samples draw confidence from [min_confidence, 1.0]
    min_confidence: float = 0.5


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    project_root: Path = field(default_factory=lambda: Path(__file__).parent.parent)
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("STUDY_DATA_DIR", str(Path(__file__).parent.parent / "data"))
        )
    )

    records_dir: Path = field(init=False)
    logs_dir: Path = field(init=False)
    schemas_dir: Path = field(init=False)

    def __post_init__(self):
        """Initialize computed paths."""
        self.data_dir = Path(self.data_dir).resolve()
        self.records_dir = self.data_dir / "records"
        self.logs_dir = self.data_dir / "logs"
        self.schemas_dir = self.project_root / "schemas"

    def schema_for(self, kind: str) -> Path:
        """Schema file for a stored record kind."""
        return self.schemas_dir / f"{kind}.schema.json"

    def prepare_filesystem(self):
        """
        Create directories if they don't exist.

        Separated from __post_init__ to avoid side-effects on import.
        Call this explicitly from your app entrypoint.
        """
        for directory in [self.data_dir, self.records_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    json_logs: bool = field(
        default_factory=lambda: os.getenv("LOG_JSON", "false").lower() in {"1", "true", "yes"}
    )


class Config:
    """
    Main configuration class. Singleton pattern.

    Usage:
        from src.config import config

        count = config.quiz.default_question_count
        config.prepare_fs()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.paths = PathConfig()
            cls._instance.model = ModelConfig()
            cls._instance.quiz = QuizConfig()
            cls._instance.session = SessionConfig()
            cls._instance.emotion = EmotionConfig()
            cls._instance.logging = LoggingConfig()
        return cls._instance

    def prepare_fs(self):
        """Prepare filesystem (create directories). Call once at startup."""
        self.paths.prepare_filesystem()

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.quiz.default_difficulty not in self.quiz.difficulty_levels:
            errors.append(
                f"default_difficulty must be one of {self.quiz.difficulty_levels}, "
                f"got {self.quiz.default_difficulty}"
            )

        if self.quiz.default_question_count < 1:
            errors.append(
                f"default_question_count must be >= 1, got {self.quiz.default_question_count}"
            )

        if self.quiz.answers_per_question < 2:
            errors.append(
                f"answers_per_question must be >= 2, got {self.quiz.answers_per_question}"
            )

        if self.quiz.battle_question_count < 1:
            errors.append(
                f"battle_question_count must be >= 1, got {self.quiz.battle_question_count}"
            )

        if self.quiz.default_max_participants < 2:
            errors.append(
                f"default_max_participants must be >= 2, got {self.quiz.default_max_participants}"
            )

        if self.session.default_modality not in self.session.modalities:
            errors.append(
                f"default_modality must be one of {self.session.modalities}, "
                f"got {self.session.default_modality}"
            )

        if self.emotion.sample_interval_seconds <= 0:
            errors.append(
                f"sample_interval_seconds must be > 0, got {self.emotion.sample_interval_seconds}"
            )

        if not (0 <= self.emotion.min_confidence <= 1):
            errors.append(
                f"min_confidence must be in [0, 1], got {self.emotion.min_confidence}"
            )

        if not self.paths.schemas_dir.exists():
            errors.append(f"Schema directory not found: {self.paths.schemas_dir}")

        return errors


# Global config instance
config = Config()
