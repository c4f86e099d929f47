"""Tests for topic-wise performance analytics."""

from __future__ import annotations

import copy

import pytest

from analytics import (
    classify_status,
    compute_analysis,
    dashboard_stats,
    paper_summary,
    tally,
)
from models import Subject, Topic
from conftest import make_paper, make_physics


class TestClassifyStatus:
    @pytest.mark.parametrize("pct,expected", [
        (100, "Strong"),
        (75, "Strong"),
        (74.999, "Average"),
        (40, "Average"),
        (39.99, "Weak"),
        (0, "Weak"),
    ])
    def test_boundaries(self, pct, expected):
        assert classify_status(pct) == expected

    def test_over_hundred_still_strong(self):
        assert classify_status(130) == "Strong"


class TestComputeAnalysis:
    def test_single_paper_scenario(self):
        subjects = [make_physics()]
        papers = [make_paper("p1", "phys", [(10, 8, "T1"), (10, 3, "T2")])]

        results = compute_analysis("phys", subjects, papers)

        assert [r.topic_id for r in results] == ["T1", "T2"]
        t1, t2 = results
        assert (t1.total_allotted, t1.total_obtained, t1.status) == (10, 8, "Strong")
        assert t1.percentage == pytest.approx(80)
        assert (t2.total_allotted, t2.total_obtained, t2.status) == (10, 3, "Weak")
        assert t2.percentage == pytest.approx(30)
        assert t1.topic_name == "Kinematics"

    def test_percentage_divides_before_scaling(self):
        papers = [make_paper("p1", "phys", [(3, 1, "T1")])]
        t1 = compute_analysis("phys", [make_physics()], papers)[0]
        assert t1.percentage == 1 / 3 * 100

    def test_sums_across_papers(self):
        subjects = [make_physics()]
        papers = [
            make_paper("p1", "phys", [(10, 8, "T1"), (10, 3, "T2")]),
            make_paper("p2", "phys", [(5, 5, "T1")]),
        ]

        t1 = compute_analysis("phys", subjects, papers)[0]

        assert t1.total_allotted == 15
        assert t1.total_obtained == 13
        assert t1.percentage == pytest.approx(86.67, abs=0.01)
        assert t1.status == "Strong"

    def test_unknown_subject_returns_empty(self):
        assert compute_analysis("nope", [make_physics()], []) == []
        assert compute_analysis(None, [make_physics()], []) == []
        assert compute_analysis("", [make_physics()], []) == []

    def test_empty_syllabus_returns_empty(self):
        subjects = [Subject(id="s", name="Empty", syllabus=[])]
        papers = [make_paper("p1", "s", [(10, 10, "x")])]
        assert compute_analysis("s", subjects, papers) == []

    def test_topic_without_questions_is_zero_and_weak(self):
        results = compute_analysis("phys", [make_physics()], [])
        for r in results:
            assert r.percentage == 0
            assert r.status == "Weak"
            assert r.total_allotted == 0

    def test_ignores_other_subjects_and_unmapped_questions(self):
        other = Subject(id="chem", name="Chemistry", syllabus=[Topic(id="T1", name="Atoms")])
        papers = [
            make_paper("p1", "phys", [(10, 5, "T1"), (10, 10, "")]),
            make_paper("p2", "chem", [(10, 10, "T1")]),
        ]

        t1 = compute_analysis("phys", [make_physics(), other], papers)[0]

        assert t1.total_allotted == 10
        assert t1.total_obtained == 5
        assert t1.status == "Average"

    def test_order_follows_syllabus_not_papers(self):
        subject = Subject(id="s", name="S", syllabus=[
            Topic(id="c", name="C"), Topic(id="a", name="A"), Topic(id="b", name="B"),
        ])
        papers = [make_paper("p1", "s", [(1, 1, "b"), (1, 0, "a"), (1, 1, "c")])]

        results = compute_analysis("s", [subject], papers)

        assert [r.topic_id for r in results] == ["c", "a", "b"]

    def test_idempotent_and_does_not_mutate_inputs(self):
        subjects = [make_physics()]
        papers = [make_paper("p1", "phys", [(10, 8, "T1"), (10, 3, "T2")])]
        subjects_before = copy.deepcopy(subjects)
        papers_before = copy.deepcopy(papers)

        first = compute_analysis("phys", subjects, papers)
        second = compute_analysis("phys", subjects, papers)

        assert first == second
        assert subjects == subjects_before
        assert papers == papers_before

    def test_over_scored_marks_pass_through(self):
        papers = [make_paper("p1", "phys", [(10, 12, "T1")])]
        t1 = compute_analysis("phys", [make_physics()], papers)[0]
        assert t1.total_obtained == 12
        assert t1.percentage == pytest.approx(120)


class TestTally:
    def test_counts_each_status(self):
        papers = [make_paper("p1", "phys", [(10, 8, "T1"), (10, 3, "T2")])]
        results = compute_analysis("phys", [make_physics()], papers)
        assert tally(results) == {"Strong": 1, "Average": 0, "Weak": 1}

    def test_empty(self):
        assert tally([]) == {"Strong": 0, "Average": 0, "Weak": 0}

    def test_order_independent(self):
        papers = [make_paper("p1", "phys", [(10, 5, "T1"), (10, 9, "T2")])]
        results = compute_analysis("phys", [make_physics()], papers)
        assert tally(results) == tally(list(reversed(results)))


class TestSummaries:
    def test_paper_summary(self):
        paper = make_paper("p1", "phys", [(10, 8, "T1"), (10, 3, "T2")])
        summary = paper_summary(paper)
        assert (summary["score"], summary["total"]) == (11, 20)
        assert summary["percentage"] == pytest.approx(55)

    def test_paper_summary_no_questions(self):
        paper = make_paper("p1", "phys", [])
        assert paper_summary(paper)["percentage"] == 0

    def test_dashboard_stats(self):
        subjects = [make_physics()]
        papers = [
            make_paper("p1", "phys", [(10, 8, "T1"), (10, 3, "T2")]),
            make_paper("p2", "phys", [(5, 5, "T1")]),
        ]
        stats = dashboard_stats(subjects, papers)
        assert stats["subjects"] == 1
        assert stats["papers"] == 2
        assert stats["mappedQuestions"] == 3
        assert stats["subjectBreakdown"] == [
            {"id": "phys", "name": "Physics", "topics": 2, "papers": 2},
        ]
