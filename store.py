"""
StudyStore — the two top-level collections (subjects, exam papers) and their persistence.

Every mutation writes both collections back to the key-value backend as full
JSON snapshots (last write wins). Loading treats an absent or unreadable entry
as an empty collection.
"""

from __future__ import annotations

import json
import logging
import threading

from errors import UnknownSubjectError
from models import ExamPaper, Subject, papers_from_json, subjects_from_json
from storage_backend import InMemoryStore, KeyValueStore

logger = logging.getLogger(__name__)

SUBJECTS_KEY = "acad_subjects"
PAPERS_KEY = "acad_papers"


def _load_collection(backend: KeyValueStore, key: str, parse) -> list:
    raw = backend.get(key)
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Ignoring unreadable snapshot %s: %s", key, e)
        return []
    if not isinstance(data, list):
        logger.warning("Ignoring snapshot %s: expected a JSON array", key)
        return []
    return parse(data)


class StudyStore:
    """Explicit state container passed to routes and tests."""

    def __init__(
        self,
        backend: KeyValueStore | None = None,
        subjects: list[Subject] | None = None,
        papers: list[ExamPaper] | None = None,
    ) -> None:
        self.backend = backend if backend is not None else InMemoryStore()
        self.subjects: list[Subject] = list(subjects or [])
        self.papers: list[ExamPaper] = list(papers or [])
        self._lock = threading.RLock()

    @classmethod
    def load(cls, backend: KeyValueStore) -> StudyStore:
        subjects = _load_collection(backend, SUBJECTS_KEY, subjects_from_json)
        papers = _load_collection(backend, PAPERS_KEY, papers_from_json)
        logger.info("Loaded %d subject(s) and %d paper(s)", len(subjects), len(papers))
        return cls(backend, subjects, papers)

    def save(self) -> None:
        with self._lock:
            self.backend.set(SUBJECTS_KEY, json.dumps([s.to_dict() for s in self.subjects]))
            self.backend.set(PAPERS_KEY, json.dumps([p.to_dict() for p in self.papers]))

    # ── Subjects ──────────────────────────────────────────

    def get_subject(self, subject_id: str | None) -> Subject | None:
        if not subject_id:
            return None
        return next((s for s in self.subjects if s.id == subject_id), None)

    def add_subject(self, subject: Subject) -> Subject:
        with self._lock:
            self.subjects = [*self.subjects, subject]
            self.save()
        logger.info("Added subject %s (%s) with %d topic(s)",
                    subject.id, subject.name, len(subject.syllabus))
        return subject

    def remove_subject(self, subject_id: str) -> int:
        """Delete a subject and every paper that references it.

        Returns the number of papers removed, or -1 if the subject was not found.
        """
        with self._lock:
            if self.get_subject(subject_id) is None:
                return -1
            kept = [p for p in self.papers if p.subject_id != subject_id]
            removed = len(self.papers) - len(kept)
            self.subjects = [s for s in self.subjects if s.id != subject_id]
            self.papers = kept
            self.save()
        logger.info("Removed subject %s and %d paper(s)", subject_id, removed)
        return removed

    # ── Papers ────────────────────────────────────────────

    def papers_for(self, subject_id: str) -> list[ExamPaper]:
        return [p for p in self.papers if p.subject_id == subject_id]

    def get_paper(self, paper_id: str) -> ExamPaper | None:
        return next((p for p in self.papers if p.id == paper_id), None)

    def add_paper(self, paper: ExamPaper) -> ExamPaper:
        with self._lock:
            if self.get_subject(paper.subject_id) is None:
                raise UnknownSubjectError(paper.subject_id)
            self.papers = [*self.papers, paper]
            self.save()
        logger.info("Added paper %s for subject %s (%d questions)",
                    paper.id, paper.subject_id, len(paper.questions))
        return paper

    def delete_paper(self, paper_id: str) -> bool:
        with self._lock:
            kept = [p for p in self.papers if p.id != paper_id]
            if len(kept) == len(self.papers):
                return False
            self.papers = kept
            self.save()
        return True
