"""Subject CRUD routes, including AI syllabus generation and syllabus file import."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request

from ai_service import generate_syllabus, parse_syllabus
from errors import AIServiceError
from extensions import ActionInProgress, get_guard, get_store, limiter
from models import Subject

logger = logging.getLogger(__name__)

bp = Blueprint("subjects", __name__)

_SYLLABUS_EXTENSIONS = {".txt", ".md", ".text", ".csv"}


def _read_syllabus_file(file_storage) -> str:
    """Decode an uploaded plain-text syllabus. Raises ValueError on bad input."""
    ext = Path(file_storage.filename or "").suffix.lower()
    if ext not in _SYLLABUS_EXTENSIONS:
        raise ValueError("Syllabus files must be plain text (.txt, .md, .csv)")
    try:
        return file_storage.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValueError("Syllabus file is not valid UTF-8 text")


@bp.route("/api/subjects")
def api_subjects():
    store = get_store()
    return jsonify({
        "subjects": [
            {**s.to_dict(), "paperCount": len(store.papers_for(s.id))}
            for s in store.subjects
        ],
    })


@bp.route("/api/subjects/<subject_id>")
def api_subject(subject_id):
    subject = get_store().get_subject(subject_id)
    if subject is None:
        return jsonify({"error": "Subject not found"}), 404
    return jsonify(subject.to_dict())


@bp.route("/api/subjects", methods=["POST"])
@limiter.limit(lambda: current_app.config.get("AI_RATE_LIMIT", "30 per minute"))
def api_subject_create():
    if request.files or request.form:
        data = request.form.to_dict()
    else:
        data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object expected"}), 400

    name = str(data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "Subject name is required"}), 400

    syllabus_text = str(data.get("syllabusText") or "")
    upload = request.files.get("syllabus_file")
    if upload and upload.filename:
        try:
            syllabus_text = _read_syllabus_file(upload)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

    supplied = data.get("syllabus")
    if isinstance(supplied, list):
        # User-supplied breakdown, no AI round trip
        syllabus = parse_syllabus(supplied)
    else:
        try:
            with get_guard().hold("create_subject"):
                syllabus = generate_syllabus(
                    name, syllabus_text or None, model=current_app.config.get("GEMINI_MODEL"),
                )
        except ActionInProgress:
            return jsonify({"error": "A subject is already being created"}), 409
        except AIServiceError:
            logger.exception("Syllabus generation failed for %s", name)
            return jsonify({
                "error": "Failed to fetch syllabus. Please check your API key.",
            }), 502

    subject = Subject(id=str(uuid.uuid4()), name=name, syllabus=syllabus)
    get_store().add_subject(subject)
    return jsonify(subject.to_dict()), 201


@bp.route("/api/subjects/<subject_id>", methods=["DELETE"])
def api_subject_delete(subject_id):
    removed = get_store().remove_subject(subject_id)
    if removed < 0:
        return jsonify({"error": "Subject not found"}), 404
    return jsonify({"success": True, "papersRemoved": removed})
