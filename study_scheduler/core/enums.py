"""
Ordered enumerations shared across the scheduler.

Difficulty and support levels carry an implicit ordering. They are modelled
as enums with explicit step functions so that the "already at the extreme"
case is a visible branch rather than a string comparison.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class Section(str, Enum):
    """Exam section a topic belongs to."""

    QUANTITATIVE_REASONING = "QUANTITATIVE_REASONING"
    VERBAL_REASONING = "VERBAL_REASONING"
    DATA_INSIGHTS = "DATA_INSIGHTS"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class Difficulty(str, Enum):
    """Question difficulty, ordered EASY < MEDIUM < HARD."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

    @property
    def rank(self) -> int:
        return _DIFFICULTY_ORDER.index(self)

    @property
    def is_hardest(self) -> bool:
        return self is Difficulty.HARD

    @property
    def is_easiest(self) -> bool:
        return self is Difficulty.EASY

    def harder(self) -> Difficulty:
        """Next harder level; HARD maps to itself."""
        if self is Difficulty.EASY:
            return Difficulty.MEDIUM
        if self is Difficulty.MEDIUM:
            return Difficulty.HARD
        return Difficulty.HARD

    def easier(self) -> Difficulty:
        """Next easier level; EASY maps to itself."""
        if self is Difficulty.HARD:
            return Difficulty.MEDIUM
        if self is Difficulty.MEDIUM:
            return Difficulty.EASY
        return Difficulty.EASY

    def fallbacks(self) -> list[Difficulty]:
        """Levels to try when picking a question, never stepping upward."""
        return list(reversed(_DIFFICULTY_ORDER[: self.rank + 1]))


_DIFFICULTY_ORDER = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)


class MasteryStage(str, Enum):
    """
    Six-stage mastery scale.

    Thresholds are fixed:
    - UNKNOWN       < 0.1
    - INTRODUCED    >= 0.1
    - DEVELOPING    >= 0.3
    - PROFICIENT    >= 0.5
    - MASTERED      >= 0.75
    - FLUENT        >= 0.9
    """

    UNKNOWN = "UNKNOWN"
    INTRODUCED = "INTRODUCED"
    DEVELOPING = "DEVELOPING"
    PROFICIENT = "PROFICIENT"
    MASTERED = "MASTERED"
    FLUENT = "FLUENT"

    @classmethod
    def from_level(cls, level: float) -> MasteryStage:
        """
        Convert a 0-1 mastery level to a stage.

        Args:
            level: Mastery level between 0 and 1

        Returns:
            Corresponding MasteryStage
        """
        if level >= 0.9:
            return cls.FLUENT
        elif level >= 0.75:
            return cls.MASTERED
        elif level >= 0.5:
            return cls.PROFICIENT
        elif level >= 0.3:
            return cls.DEVELOPING
        elif level >= 0.1:
            return cls.INTRODUCED
        return cls.UNKNOWN

    @property
    def display_name(self) -> str:
        if self is MasteryStage.UNKNOWN:
            return "Not Started"
        return self.value.title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryStage.UNKNOWN: "dim",
            MasteryStage.INTRODUCED: "red",
            MasteryStage.DEVELOPING: "yellow",
            MasteryStage.PROFICIENT: "cyan",
            MasteryStage.MASTERED: "green",
            MasteryStage.FLUENT: "bold green",
        }[self]


class SupportLevel(IntEnum):
    """Instructional support. Lower value means more support."""

    HEAVY = 1  # Step-by-step guidance with hints
    MODERATE = 2  # Outline approach, fill in details
    LIGHT = 3  # Confirm approach, review at end
    INDEPENDENT = 4  # Only help if asked

    @property
    def label(self) -> str:
        return {
            SupportLevel.HEAVY: "Heavy Support",
            SupportLevel.MODERATE: "Moderate Support",
            SupportLevel.LIGHT: "Light Support",
            SupportLevel.INDEPENDENT: "Independent",
        }[self]


class ErrorType(str, Enum):
    """Classification of an incorrect attempt."""

    CONCEPTUAL = "CONCEPTUAL"
    PROCEDURAL = "PROCEDURAL"
    CARELESS = "CARELESS"
    KNOWLEDGE_GAP = "KNOWLEDGE_GAP"


class TaskType(str, Enum):
    REVIEW = "REVIEW"
    NEW_TOPIC = "NEW_TOPIC"
    CONSOLIDATION = "CONSOLIDATION"

    @property
    def is_review(self) -> bool:
        return self is not TaskType.NEW_TOPIC


class SessionType(str, Enum):
    PRACTICE = "PRACTICE"
    REVIEW = "REVIEW"
    EXAM_SIM = "EXAM_SIM"
    WARMUP = "WARMUP"


class SessionStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ABANDONED = "ABANDONED"
