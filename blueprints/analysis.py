"""Topic-wise analysis and AI study recommendation routes."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify

from ai_service import generate_study_recommendations
from analytics import compute_analysis, tally
from errors import AIServiceError
from extensions import ActionInProgress, get_guard, get_store, limiter

logger = logging.getLogger(__name__)

bp = Blueprint("analysis", __name__)


@bp.route("/api/analysis/<subject_id>")
def api_analysis(subject_id):
    store = get_store()
    results = compute_analysis(subject_id, store.subjects, store.papers)
    return jsonify({
        "subjectId": subject_id,
        "results": [r.to_dict() for r in results],
        "tally": tally(results),
    })


@bp.route("/api/analysis/<subject_id>/recommendations", methods=["POST"])
@limiter.limit(lambda: current_app.config.get("AI_RATE_LIMIT", "30 per minute"))
def api_recommendations(subject_id):
    store = get_store()
    subject = store.get_subject(subject_id)
    if subject is None:
        return jsonify({"recommendations": [], "notice": "Select a subject first."})

    results = compute_analysis(subject_id, store.subjects, store.papers)
    try:
        with get_guard().hold(f"recommendations:{subject_id}"):
            recs = generate_study_recommendations(
                results, subject.name, model=current_app.config.get("GEMINI_MODEL"),
            )
    except ActionInProgress:
        return jsonify({"error": "Recommendations are already being generated"}), 409
    except AIServiceError:
        logger.warning("Recommendations unavailable for subject %s", subject_id)
        return jsonify({
            "recommendations": [],
            "notice": "Study recommendations are unavailable right now.",
        })

    topic_names = {r.topic_id: r.topic_name for r in results}
    return jsonify({
        "recommendations": [
            {**rec.to_dict(), "topicName": topic_names.get(rec.topic_id, "")}
            for rec in recs
        ],
    })
