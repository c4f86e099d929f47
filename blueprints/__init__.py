"""
Blueprint registration for the Study Tracker.

One blueprint per tab of the front end: dashboard, subjects, exams, analysis.
"""

from __future__ import annotations


def register_blueprints(app):
    from blueprints.core import bp as core_bp
    from blueprints.subjects import bp as subjects_bp
    from blueprints.exams import bp as exams_bp
    from blueprints.analysis import bp as analysis_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(subjects_bp)
    app.register_blueprint(exams_bp)
    app.register_blueprint(analysis_bp)
