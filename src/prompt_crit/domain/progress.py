"""Domain models for session progress summaries."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParticipantProgress:
    """Per-roster-entry progress."""

    email: str
    display_name: str
    reflection_complete: bool
    feedback_given_count: int


@dataclass(frozen=True)
class ProgressSummary:
    """Aggregate progress for a session."""

    total_students: int
    completed_reflections: int
    feedback_submissions: int
    students: list[ParticipantProgress]
