"""Exception hierarchy for the study tracker."""

from __future__ import annotations


class StudyTrackerError(Exception):
    """Base class for errors raised by the study tracker core."""


class AIServiceError(StudyTrackerError):
    """The generative-AI collaborator could not be reached or refused the call."""


class UnknownSubjectError(StudyTrackerError):
    """A paper referenced a subject id that is not in the store."""

    def __init__(self, subject_id: str) -> None:
        super().__init__(f"Unknown subject: {subject_id}")
        self.subject_id = subject_id
