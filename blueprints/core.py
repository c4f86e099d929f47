"""Health check and dashboard routes."""

from __future__ import annotations

from flask import Blueprint, jsonify

from analytics import dashboard_stats, paper_summary
from extensions import get_store

bp = Blueprint("core", __name__)


@bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@bp.route("/api/dashboard")
def api_dashboard():
    store = get_store()
    stats = dashboard_stats(store.subjects, store.papers)

    names = {s.id: s.name for s in store.subjects}
    recent = sorted(store.papers, key=lambda p: p.date, reverse=True)[:5]
    stats["recentPapers"] = [
        {
            "id": p.id,
            "name": p.name,
            "subjectId": p.subject_id,
            "subjectName": names.get(p.subject_id, ""),
            "date": p.date,
            **paper_summary(p),
        }
        for p in recent
    ]
    return jsonify(stats)
