"""
Data model — subjects, syllabus topics, exam papers and derived analysis records.

Persisted records (Subject, ExamPaper and what they own) serialise to JSON
objects with camelCase keys so snapshots stay readable by the web front end.
Deserialisation is lenient: missing optional fields fall back to defaults and
records that are not JSON objects are skipped by the collection loaders.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

Status = Literal["Strong", "Average", "Weak"]
Priority = Literal["High", "Medium", "Low"]

STATUSES: tuple[str, ...] = ("Strong", "Average", "Weak")
PRIORITIES: tuple[str, ...] = ("High", "Medium", "Low")


def as_number(value: Any, default: float = 0) -> float:
    """Coerce a JSON value to a finite number, keeping ints as ints."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            return default
        if not math.isfinite(num):
            return default
        return int(num) if num.is_integer() else num
    return default


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


# ── Syllabus ───────────────────────────────────────────────────────────

@dataclass
class Subtopic:
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> Subtopic:
        return cls(id=_as_str(data.get("id")), name=_as_str(data.get("name")))


@dataclass
class Topic:
    id: str
    name: str
    subtopics: list[Subtopic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "subtopics": [s.to_dict() for s in self.subtopics],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Topic:
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            subtopics=[
                Subtopic.from_dict(s)
                for s in (data.get("subtopics") or [])
                if isinstance(s, dict)
            ],
        )

    def has_subtopic(self, subtopic_id: str) -> bool:
        return any(s.id == subtopic_id for s in self.subtopics)


@dataclass
class Subject:
    id: str
    name: str
    syllabus: list[Topic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "syllabus": [t.to_dict() for t in self.syllabus],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Subject:
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            syllabus=[
                Topic.from_dict(t)
                for t in (data.get("syllabus") or [])
                if isinstance(t, dict)
            ],
        )

    def find_topic(self, topic_id: str) -> Topic | None:
        for topic in self.syllabus:
            if topic.id == topic_id:
                return topic
        return None


# ── Exam papers ────────────────────────────────────────────────────────

@dataclass
class Question:
    id: str
    text: str
    allotted_marks: float = 0
    obtained_marks: float = 0
    mapped_topic_id: str = ""  # "" means unmapped
    mapped_subtopic_id: str | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "text": self.text,
            "allottedMarks": self.allotted_marks,
            "obtainedMarks": self.obtained_marks,
            "mappedTopicId": self.mapped_topic_id,
        }
        if self.mapped_subtopic_id:
            data["mappedSubtopicId"] = self.mapped_subtopic_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        return cls(
            id=_as_str(data.get("id")),
            text=_as_str(data.get("text")),
            allotted_marks=as_number(data.get("allottedMarks")),
            obtained_marks=as_number(data.get("obtainedMarks")),
            mapped_topic_id=_as_str(data.get("mappedTopicId")),
            mapped_subtopic_id=data.get("mappedSubtopicId") or None,
        )


@dataclass
class ExamPaper:
    id: str
    subject_id: str
    name: str
    date: str  # ISO-8601
    questions: list[Question] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subjectId": self.subject_id,
            "name": self.name,
            "date": self.date,
            "questions": [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ExamPaper:
        return cls(
            id=_as_str(data.get("id")),
            subject_id=_as_str(data.get("subjectId")),
            name=_as_str(data.get("name")),
            date=_as_str(data.get("date")),
            questions=[
                Question.from_dict(q)
                for q in (data.get("questions") or [])
                if isinstance(q, dict)
            ],
        )


@dataclass
class MappedQuestion:
    """A question as returned by the AI mapper, before marks are entered."""
    text: str
    allotted_marks: float = 0
    mapped_topic_id: str = ""
    mapped_subtopic_id: str | None = None

    def to_dict(self) -> dict:
        data = {
            "text": self.text,
            "allottedMarks": self.allotted_marks,
            "mappedTopicId": self.mapped_topic_id,
        }
        if self.mapped_subtopic_id:
            data["mappedSubtopicId"] = self.mapped_subtopic_id
        return data


# ── Derived records (never persisted) ──────────────────────────────────

@dataclass(frozen=True)
class AnalysisResult:
    topic_id: str
    topic_name: str
    total_allotted: float
    total_obtained: float
    percentage: float
    status: Status

    def to_dict(self) -> dict:
        return {
            "topicId": self.topic_id,
            "topicName": self.topic_name,
            "totalAllotted": self.total_allotted,
            "totalObtained": self.total_obtained,
            "percentage": self.percentage,
            "status": self.status,
        }


@dataclass(frozen=True)
class StudyRecommendation:
    topic_id: str
    suggestion: str
    priority: Priority = "Medium"

    def to_dict(self) -> dict:
        return {
            "topicId": self.topic_id,
            "suggestion": self.suggestion,
            "priority": self.priority,
        }


def subjects_from_json(data: Any) -> list[Subject]:
    """Build subjects from a decoded JSON array, skipping non-object entries."""
    if not isinstance(data, list):
        return []
    return [Subject.from_dict(d) for d in data if isinstance(d, dict)]


def papers_from_json(data: Any) -> list[ExamPaper]:
    if not isinstance(data, list):
        return []
    return [ExamPaper.from_dict(d) for d in data if isinstance(d, dict)]
