"""Performance Analytics — Topic-wise aggregation, status tiers, summaries.

Sums allotted and obtained marks per syllabus topic across every exam paper of
a subject and classifies each topic as Strong / Average / Weak. Everything in
this module is a pure function of its arguments; results are recomputed on
each call.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from models import AnalysisResult, ExamPaper, Status, Subject

STRONG_THRESHOLD = 75
AVERAGE_THRESHOLD = 40


def classify_status(percentage: float) -> Status:
    """Map a percentage to its tier. Lower bounds are inclusive."""
    if percentage >= STRONG_THRESHOLD:
        return "Strong"
    if percentage >= AVERAGE_THRESHOLD:
        return "Average"
    return "Weak"


def _percentage(obtained: float, allotted: float) -> float:
    return obtained / allotted * 100 if allotted > 0 else 0


def _find_subject(subject_id: str | None, subjects: Iterable[Subject]) -> Subject | None:
    if not subject_id:
        return None
    return next((s for s in subjects if s.id == subject_id), None)


def compute_analysis(
    subject_id: str | None,
    subjects: Sequence[Subject],
    papers: Sequence[ExamPaper],
) -> list[AnalysisResult]:
    """Per-topic performance for one subject, in syllabus order.

    An unknown subject id yields an empty list. Marks are summed as stored;
    negative or over-scored values are not corrected here.
    """
    subject = _find_subject(subject_id, subjects)
    if subject is None:
        return []

    subject_papers = [p for p in papers if p.subject_id == subject.id]

    results: list[AnalysisResult] = []
    for topic in subject.syllabus:
        allotted = 0
        obtained = 0
        for paper in subject_papers:
            for q in paper.questions:
                if q.mapped_topic_id == topic.id:
                    allotted += q.allotted_marks
                    obtained += q.obtained_marks

        percentage = _percentage(obtained, allotted)
        results.append(AnalysisResult(
            topic_id=topic.id,
            topic_name=topic.name,
            total_allotted=allotted,
            total_obtained=obtained,
            percentage=percentage,
            status=classify_status(percentage),
        ))
    return results


def tally(results: Iterable[AnalysisResult]) -> dict[str, int]:
    """Count topics per status tier. All three tiers are always present."""
    counts = {"Strong": 0, "Average": 0, "Weak": 0}
    for r in results:
        counts[r.status] = counts.get(r.status, 0) + 1
    return counts


def paper_summary(paper: ExamPaper) -> dict:
    """Overall score of a single paper."""
    score = sum(q.obtained_marks for q in paper.questions)
    total = sum(q.allotted_marks for q in paper.questions)
    return {
        "score": score,
        "total": total,
        "percentage": _percentage(score, total),
    }


def dashboard_stats(subjects: Sequence[Subject], papers: Sequence[ExamPaper]) -> dict:
    """Headline counts for the dashboard plus a per-subject breakdown."""
    papers_per_subject: dict[str, int] = {}
    for p in papers:
        papers_per_subject[p.subject_id] = papers_per_subject.get(p.subject_id, 0) + 1

    return {
        "subjects": len(subjects),
        "papers": len(papers),
        "mappedQuestions": sum(len(p.questions) for p in papers),
        "subjectBreakdown": [
            {
                "id": s.id,
                "name": s.name,
                "topics": len(s.syllabus),
                "papers": papers_per_subject.get(s.id, 0),
            }
            for s in subjects
        ],
    }
