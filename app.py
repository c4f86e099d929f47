"""
Study Tracker — Flask Web Application

Subjects with AI-generated syllabi, exam papers with AI question-to-topic
mapping, and topic-wise performance analytics with study recommendations.
"""

from __future__ import annotations

import os
from typing import Any

from flask import Flask, Response, jsonify

from blueprints import register_blueprints
from extensions import InFlightGuard, limiter
from storage_backend import KeyValueStore, create_backend
from store import StudyStore


def create_app(
    test_config: dict[str, Any] | None = None,
    backend: KeyValueStore | None = None,
) -> Flask:
    app = Flask(__name__)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    # Structured logging
    from logging_config import init_logging
    init_logging(app)

    # The Gemini SDK reads its key from the environment
    if app.config.get("GOOGLE_API_KEY") and not os.environ.get("GOOGLE_API_KEY"):
        os.environ["GOOGLE_API_KEY"] = app.config["GOOGLE_API_KEY"]

    # Subjects and papers, loaded once and written back on every change
    if backend is None:
        backend = create_backend(app.config)
    app.extensions["study_store"] = StudyStore.load(backend)
    app.extensions["inflight_guard"] = InFlightGuard()

    # Rate limiter (disabled in testing)
    limiter.init_app(app)
    if app.config.get("TESTING"):
        limiter.enabled = False

    register_blueprints(app)

    @app.errorhandler(413)
    def _too_large(_e):
        return jsonify({"error": "Upload too large"}), 413

    # Security headers
    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=5001)
