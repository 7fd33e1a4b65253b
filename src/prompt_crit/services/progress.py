"""Progress summaries for session owners."""

from collections import Counter
from dataclasses import dataclass
from uuid import UUID

from prompt_crit.domain.errors import Forbidden
from prompt_crit.domain.models import Identity
from prompt_crit.domain.progress import ParticipantProgress, ProgressSummary
from prompt_crit.services.feedback import FeedbackService
from prompt_crit.services.reflections import ReflectionService
from prompt_crit.services.sessions import SessionService


@dataclass
class ProgressService:
    """Folds reflections and feedback into a dashboard summary."""

    sessions: SessionService
    reflections: ReflectionService
    feedback: FeedbackService

    def summarize(self, session_id: UUID, caller: Identity) -> ProgressSummary:
        """Return progress counts for the session owner."""
        session = self.sessions.load(session_id)
        if not session.is_owner(caller.id):
            raise Forbidden("Forbidden")

        completed = {
            reflection.participant_email
            for reflection in self.reflections.list_for_session(session_id)
            if reflection.completed
        }
        all_feedback = self.feedback.list_for_session(session_id)
        given = Counter(feedback.author_email for feedback in all_feedback)

        students = [
            ParticipantProgress(
                email=entry.email,
                display_name=entry.display_name,
                reflection_complete=entry.email in completed,
                feedback_given_count=given[entry.email],
            )
            for entry in session.roster
        ]
        roster_emails = {entry.email for entry in session.roster}
        return ProgressSummary(
            total_students=len(session.roster),
            completed_reflections=len(roster_emails & completed),
            feedback_submissions=len(all_feedback),
            students=students,
        )
