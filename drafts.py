"""
Exam paper drafts — the staging step between AI question mapping and a saved paper.

Marks are entered on the draft; a saved ExamPaper is never edited afterwards.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from models import ExamPaper, MappedQuestion, Question, as_number

logger = logging.getLogger(__name__)


@dataclass
class DraftQuestion:
    text: str = ""
    allotted_marks: float = 0
    obtained_marks: float = 0
    mapped_topic_id: str = ""
    mapped_subtopic_id: str | None = None

    def to_dict(self) -> dict:
        data = {
            "text": self.text,
            "allottedMarks": self.allotted_marks,
            "obtainedMarks": self.obtained_marks,
            "mappedTopicId": self.mapped_topic_id,
        }
        if self.mapped_subtopic_id:
            data["mappedSubtopicId"] = self.mapped_subtopic_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> DraftQuestion:
        return cls(
            text=str(data.get("text") or ""),
            allotted_marks=as_number(data.get("allottedMarks")),
            obtained_marks=as_number(data.get("obtainedMarks")),
            mapped_topic_id=str(data.get("mappedTopicId") or ""),
            mapped_subtopic_id=data.get("mappedSubtopicId") or None,
        )


@dataclass
class PaperDraft:
    subject_id: str
    questions: list[DraftQuestion] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, subject_id: str, mapped: list[MappedQuestion]) -> PaperDraft:
        """Start a draft from mapper output. Obtained marks start at zero."""
        return cls(
            subject_id=subject_id,
            questions=[
                DraftQuestion(
                    text=m.text,
                    allotted_marks=m.allotted_marks,
                    obtained_marks=0,
                    mapped_topic_id=m.mapped_topic_id,
                    mapped_subtopic_id=m.mapped_subtopic_id,
                )
                for m in mapped
            ],
        )

    @classmethod
    def from_payload(cls, subject_id: str, questions: list[Any]) -> PaperDraft:
        return cls(
            subject_id=subject_id,
            questions=[DraftQuestion.from_dict(q) for q in questions if isinstance(q, dict)],
        )

    def set_marks(
        self,
        index: int,
        obtained: float | None = None,
        allotted: float | None = None,
    ) -> DraftQuestion:
        """Edit one question in place for callers that hold a draft between edits.

        The HTTP routes are stateless and rebuild drafts from the posted
        payload, so this is only reached through library use.
        """
        if index < 0 or index >= len(self.questions):
            raise IndexError(f"No draft question at index {index}")
        q = self.questions[index]
        if obtained is not None:
            q.obtained_marks = obtained
        if allotted is not None:
            q.allotted_marks = allotted
        return q

    def summary(self) -> dict:
        """Live totals while marks are being entered."""
        total = sum(q.allotted_marks or 0 for q in self.questions)
        scored = sum(q.obtained_marks or 0 for q in self.questions)
        percentage = round(scored / total * 100) if total > 0 else 0
        return {"total": total, "scored": scored, "percentage": percentage}

    def warnings(self) -> list[dict]:
        """Questions whose marks look inconsistent. Nothing is clamped."""
        issues: list[dict] = []
        for idx, q in enumerate(self.questions):
            if q.allotted_marks < 0 or q.obtained_marks < 0:
                issues.append({"index": idx, "issue": "negative_marks"})
            elif q.obtained_marks > q.allotted_marks:
                issues.append({"index": idx, "issue": "obtained_exceeds_allotted"})
        return issues

    def finalize(self, name: str | None = None, now: datetime | None = None) -> ExamPaper:
        """Freeze the draft into an ExamPaper with fresh ids."""
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.astimezone(timezone.utc)
        issues = self.warnings()
        if issues:
            logger.warning(
                "Saving paper for subject %s with %d inconsistent mark(s): %s",
                self.subject_id, len(issues), issues,
            )

        return ExamPaper(
            id=str(uuid.uuid4()),
            subject_id=self.subject_id,
            name=(name or "").strip() or f"Exam {now.date().isoformat()}",
            date=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            questions=[
                Question(
                    id=str(uuid.uuid4()),
                    text=q.text or f"Question {idx + 1}",
                    allotted_marks=q.allotted_marks or 0,
                    obtained_marks=q.obtained_marks or 0,
                    mapped_topic_id=q.mapped_topic_id or "",
                    mapped_subtopic_id=q.mapped_subtopic_id,
                )
                for idx, q in enumerate(self.questions)
            ],
        )
