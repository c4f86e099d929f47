"""Exam paper routes: AI question mapping, draft marks summary, save, list, delete."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from ai_service import map_questions
from analytics import paper_summary
from drafts import PaperDraft
from errors import AIServiceError, UnknownSubjectError
from extensions import ActionInProgress, get_guard, get_store, limiter

logger = logging.getLogger(__name__)

bp = Blueprint("exams", __name__)


def _draft_response(draft: PaperDraft) -> dict:
    subject = get_store().get_subject(draft.subject_id)
    questions = []
    for q in draft.questions:
        entry = q.to_dict()
        topic = subject.find_topic(q.mapped_topic_id) if subject else None
        entry["topicName"] = topic.name if topic else ""
        questions.append(entry)
    return {
        "subjectId": draft.subject_id,
        "questions": questions,
        "summary": draft.summary(),
        "warnings": draft.warnings(),
    }


@bp.route("/api/papers")
def api_papers():
    store = get_store()
    subject_id = request.args.get("subject_id", "")
    papers = store.papers_for(subject_id) if subject_id else store.papers
    names = {s.id: s.name for s in store.subjects}
    return jsonify({
        "papers": [
            {**p.to_dict(), "subjectName": names.get(p.subject_id, ""), "summary": paper_summary(p)}
            for p in papers
        ],
        "total": len(papers),
    })


@bp.route("/api/papers/map", methods=["POST"])
@limiter.limit(lambda: current_app.config.get("AI_RATE_LIMIT", "30 per minute"))
def api_papers_map():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object expected"}), 400
    subject_id = str(data.get("subjectId") or "")
    paper_text = str(data.get("paperText") or "").strip()

    if not subject_id or not paper_text:
        return jsonify({"error": "subjectId and paperText are required"}), 400

    subject = get_store().get_subject(subject_id)
    if subject is None:
        return jsonify({"error": "Subject not found"}), 404

    try:
        with get_guard().hold(f"map_questions:{subject_id}"):
            mapped = map_questions(
                paper_text, subject.syllabus, model=current_app.config.get("GEMINI_MODEL"),
            )
    except ActionInProgress:
        return jsonify({"error": "This paper is already being processed"}), 409
    except AIServiceError:
        logger.exception("Question mapping failed for subject %s", subject_id)
        return jsonify({"error": "AI mapping failed."}), 502

    draft = PaperDraft.from_mapping(subject_id, mapped)
    return jsonify(_draft_response(draft))


@bp.route("/api/papers/draft/summary", methods=["POST"])
def api_draft_summary():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object expected"}), 400
    questions = data.get("questions")
    if not isinstance(questions, list):
        return jsonify({"error": "questions must be a list"}), 400
    draft = PaperDraft.from_payload(str(data.get("subjectId") or ""), questions)
    return jsonify(_draft_response(draft))


@bp.route("/api/papers", methods=["POST"])
def api_paper_save():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object expected"}), 400
    subject_id = str(data.get("subjectId") or "")
    questions = data.get("questions")

    if not subject_id:
        return jsonify({"error": "subjectId is required"}), 400
    if not isinstance(questions, list) or not questions:
        return jsonify({"error": "At least one question is required"}), 400

    draft = PaperDraft.from_payload(subject_id, questions)
    if not draft.questions:
        return jsonify({"error": "At least one question is required"}), 400
    paper = draft.finalize(name=str(data.get("name") or ""))
    try:
        get_store().add_paper(paper)
    except UnknownSubjectError:
        return jsonify({"error": "Subject not found"}), 404

    return jsonify({**paper.to_dict(), "summary": paper_summary(paper)}), 201


@bp.route("/api/papers/<paper_id>", methods=["DELETE"])
def api_paper_delete(paper_id):
    if get_store().delete_paper(paper_id):
        return jsonify({"success": True})
    return jsonify({"error": "Paper not found"}), 404
