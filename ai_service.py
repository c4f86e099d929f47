"""
AI collaborator — syllabus generation, question-to-topic mapping, study recommendations.

Each call sends a natural-language instruction plus structured context to
Gemini together with a JSON output schema, then parses the answer at a strict
boundary: malformed JSON or malformed items never reach the data model, they
become an empty list (or a dropped item). Transport failures raise
AIServiceError so the caller can decide how to degrade.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Sequence
from typing import Any

from ai_resilience import DEFAULT_MODEL, resilient_llm_call
from errors import AIServiceError
from models import (
    PRIORITIES,
    AnalysisResult,
    MappedQuestion,
    StudyRecommendation,
    Subtopic,
    Topic,
    as_number,
)

logger = logging.getLogger(__name__)

SYLLABUS_FROM_CONTENT_PROMPT = """Analyze the following official syllabus content for the subject "{subject}" and extract a structured list of main topics and their subtopics.
Give every topic and subtopic a short id that is unique within this syllabus.

CONTENT:
{content}"""

SYLLABUS_FROM_NAME_PROMPT = """Analyze the subject "{subject}" and provide a structured syllabus with main topics and their subtopics based on common academic standards.
Give every topic and subtopic a short id that is unique within this syllabus."""

MAP_QUESTIONS_PROMPT = """Given the following question paper text and syllabus structure, identify the questions and map each to the most relevant topic and subtopic from the syllabus.
Use only topic and subtopic ids that appear in the syllabus. Report the marks allotted to each question.

PAPER TEXT:
{paper_text}

SYLLABUS:
{syllabus}"""

RECOMMENDATIONS_PROMPT = """Act as an academic counselor. Based on this student's performance in "{subject}", provide study recommendations for each topic.
Priority must be one of High, Medium or Low; weaker topics deserve higher priority.
Performance Data: {performance}"""

SYLLABUS_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING"},
            "name": {"type": "STRING"},
            "subtopics": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "id": {"type": "STRING"},
                        "name": {"type": "STRING"},
                    },
                    "required": ["id", "name"],
                },
            },
        },
        "required": ["id", "name", "subtopics"],
    },
}

MAPPED_QUESTIONS_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "text": {"type": "STRING"},
            "allottedMarks": {"type": "NUMBER"},
            "mappedTopicId": {"type": "STRING"},
            "mappedSubtopicId": {"type": "STRING"},
        },
        "required": ["text", "allottedMarks", "mappedTopicId"],
    },
}

RECOMMENDATIONS_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "topicId": {"type": "STRING"},
            "suggestion": {"type": "STRING"},
            "priority": {"type": "STRING", "description": "High, Medium, or Low"},
        },
        "required": ["topicId", "suggestion", "priority"],
    },
}


def _model_name(model: str | None) -> str:
    return model or os.getenv("GEMINI_MODEL") or DEFAULT_MODEL


def _ask(prompt: str, schema: dict, model: str | None, action: str) -> str:
    try:
        text, meta = resilient_llm_call(prompt, response_schema=schema, model=_model_name(model))
    except Exception as exc:
        logger.warning("AI %s failed: %s", action, exc)
        raise AIServiceError(f"AI {action} failed") from exc
    logger.info("AI %s answered in %sms", action, meta.get("latency_ms", "?"))
    return text


_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def parse_json_array(raw: str | None) -> list:
    """Decode a JSON array from model output; anything else becomes []."""
    if not raw:
        return []
    text = _FENCE.sub("", raw.strip())
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Discarding malformed AI response (%d chars)", len(raw))
        return []
    if not isinstance(data, list):
        logger.warning("Discarding AI response: expected a JSON array, got %s", type(data).__name__)
        return []
    return data


def _clean_str(value: Any) -> str:
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value).strip()
    return ""


def _unique_id(candidate: str, taken: set[str], fallback: str) -> str:
    base = candidate or fallback
    uid = base
    n = 2
    while uid in taken:
        uid = f"{base}_{n}"
        n += 1
    taken.add(uid)
    return uid


# ── Syllabus ────────────────────────────────────────────────

def parse_syllabus(items: list) -> list[Topic]:
    topics: list[Topic] = []
    topic_ids: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        name = _clean_str(item.get("name"))
        if not name:
            continue
        topic_id = _unique_id(_clean_str(item.get("id")), topic_ids, f"t{len(topics) + 1}")

        subtopics: list[Subtopic] = []
        sub_ids: set[str] = set()
        raw_subs = item.get("subtopics")
        for sub in raw_subs if isinstance(raw_subs, list) else []:
            if not isinstance(sub, dict):
                continue
            sub_name = _clean_str(sub.get("name"))
            if not sub_name:
                continue
            sub_id = _unique_id(
                _clean_str(sub.get("id")), sub_ids, f"{topic_id}.{len(subtopics) + 1}"
            )
            subtopics.append(Subtopic(id=sub_id, name=sub_name))

        topics.append(Topic(id=topic_id, name=name, subtopics=subtopics))
    return topics


def generate_syllabus(
    subject_name: str,
    syllabus_text: str | None = None,
    model: str | None = None,
) -> list[Topic]:
    """Ordered syllabus topics for a subject, from supplied content or from scratch.

    Raises AIServiceError when the service cannot be reached; the subject
    should then not be created.
    """
    if syllabus_text and syllabus_text.strip():
        prompt = SYLLABUS_FROM_CONTENT_PROMPT.format(subject=subject_name, content=syllabus_text)
    else:
        prompt = SYLLABUS_FROM_NAME_PROMPT.format(subject=subject_name)
    raw = _ask(prompt, SYLLABUS_SCHEMA, model, "syllabus generation")
    return parse_syllabus(parse_json_array(raw))


# ── Question mapping ────────────────────────────────────────

def parse_mapped_questions(items: list, syllabus: Sequence[Topic]) -> list[MappedQuestion]:
    topics = {t.id: t for t in syllabus}
    questions: list[MappedQuestion] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        topic_id = _clean_str(item.get("mappedTopicId"))
        topic = topics.get(topic_id)
        if topic is None:
            topic_id = ""

        subtopic_id = _clean_str(item.get("mappedSubtopicId")) or None
        if subtopic_id and (topic is None or not topic.has_subtopic(subtopic_id)):
            subtopic_id = None

        questions.append(MappedQuestion(
            text=_clean_str(item.get("text")),
            allotted_marks=as_number(item.get("allottedMarks")),
            mapped_topic_id=topic_id,
            mapped_subtopic_id=subtopic_id,
        ))
    return questions


def map_questions(
    paper_text: str,
    syllabus: Sequence[Topic],
    model: str | None = None,
) -> list[MappedQuestion]:
    """Extract questions from paper text and map them to syllabus topics.

    An empty list is a valid answer.
    """
    syllabus_context = json.dumps([t.to_dict() for t in syllabus])
    prompt = MAP_QUESTIONS_PROMPT.format(paper_text=paper_text, syllabus=syllabus_context)
    raw = _ask(prompt, MAPPED_QUESTIONS_SCHEMA, model, "question mapping")
    return parse_mapped_questions(parse_json_array(raw), syllabus)


# ── Study recommendations ───────────────────────────────────

def _normalise_priority(value: Any) -> str:
    text = _clean_str(value).capitalize()
    return text if text in PRIORITIES else "Medium"


def parse_recommendations(items: list) -> list[StudyRecommendation]:
    recs: list[StudyRecommendation] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        topic_id = _clean_str(item.get("topicId"))
        suggestion = _clean_str(item.get("suggestion"))
        if not topic_id or not suggestion:
            continue
        recs.append(StudyRecommendation(
            topic_id=topic_id,
            suggestion=suggestion,
            priority=_normalise_priority(item.get("priority")),
        ))
    return recs


def generate_study_recommendations(
    results: Sequence[AnalysisResult],
    subject_name: str,
    model: str | None = None,
) -> list[StudyRecommendation]:
    """Advisory study suggestions per topic. Callers should treat failure as 'none'."""
    if not results:
        return []
    performance = json.dumps([r.to_dict() for r in results])
    prompt = RECOMMENDATIONS_PROMPT.format(subject=subject_name, performance=performance)
    raw = _ask(prompt, RECOMMENDATIONS_SCHEMA, model, "study recommendations")
    return parse_recommendations(parse_json_array(raw))
