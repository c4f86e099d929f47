"""Tests for exam paper drafts (staging, marks entry, finalisation)."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from drafts import DraftQuestion, PaperDraft
from models import MappedQuestion


def _draft():
    return PaperDraft.from_mapping("phys", [
        MappedQuestion(text="Define velocity", allotted_marks=4, mapped_topic_id="T1",
                       mapped_subtopic_id="T1.1"),
        MappedQuestion(text="", allotted_marks=6, mapped_topic_id="T2"),
    ])


class TestPaperDraft:
    def test_from_mapping_starts_with_zero_obtained(self):
        draft = _draft()
        assert [q.obtained_marks for q in draft.questions] == [0, 0]
        assert draft.questions[0].mapped_subtopic_id == "T1.1"

    def test_set_marks_and_summary(self):
        draft = _draft()
        draft.set_marks(0, obtained=3)
        draft.set_marks(1, obtained=2, allotted=5)
        assert draft.summary() == {"total": 9, "scored": 5, "percentage": 56}

    def test_summary_of_empty_draft(self):
        assert PaperDraft("phys").summary() == {"total": 0, "scored": 0, "percentage": 0}

    def test_set_marks_out_of_range(self):
        with pytest.raises(IndexError):
            _draft().set_marks(5, obtained=1)

    def test_warnings_flag_but_do_not_clamp(self):
        draft = _draft()
        draft.set_marks(0, obtained=7)
        draft.set_marks(1, obtained=-1)
        assert draft.warnings() == [
            {"index": 0, "issue": "obtained_exceeds_allotted"},
            {"index": 1, "issue": "negative_marks"},
        ]
        paper = draft.finalize()
        assert paper.questions[0].obtained_marks == 7
        assert paper.questions[1].obtained_marks == -1

    def test_finalize_defaults(self):
        draft = _draft()
        paper = draft.finalize(now=datetime(2026, 3, 4, 9, 30))

        assert paper.name == "Exam 2026-03-04"
        assert paper.date == "2026-03-04T09:30:00.000Z"
        assert paper.subject_id == "phys"
        assert paper.questions[1].text == "Question 2"
        assert paper.questions[0].text == "Define velocity"
        uuid.UUID(paper.id)
        assert len({q.id for q in paper.questions}) == 2

    def test_finalize_stamps_utc(self):
        local = timezone(timedelta(hours=2))
        paper = _draft().finalize(now=datetime(2026, 3, 4, 1, 15, tzinfo=local))
        assert paper.date == "2026-03-03T23:15:00.000Z"
        assert paper.name == "Exam 2026-03-03"

    def test_finalize_keeps_given_name(self):
        paper = _draft().finalize(name="  Mock Paper 1 ")
        assert paper.name == "Mock Paper 1"

    def test_from_payload_skips_non_objects(self):
        draft = PaperDraft.from_payload("phys", [
            {"text": "Q", "allottedMarks": "5", "obtainedMarks": 4, "mappedTopicId": "T1"},
            "junk",
        ])
        assert draft.questions == [
            DraftQuestion(text="Q", allotted_marks=5, obtained_marks=4, mapped_topic_id="T1"),
        ]
