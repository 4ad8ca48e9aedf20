import json
import logging
import time
from typing import Any, Optional

from pydantic import ValidationError

from errors import JsonParseFailure, QuestionCountMismatch, SchemaValidationFailure
from models import QuizQuestions

logger = logging.getLogger("quiz.validator")


def _clean_json_text(text: str) -> str:
    text = (text or "").strip()
    if not text:
        return text
    if text.startswith("```"):
        text = text.strip().strip("`")
        if text.startswith("json"):
            text = text[4:].lstrip()
    return text


def parse_quiz_json(raw_text: str) -> Any:
    text = _clean_json_text(raw_text)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise JsonParseFailure("Failed to parse Gemini response as JSON", detail=f"{e}") from e


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def assign_missing_ids(quiz: QuizQuestions, generated_at: Optional[int] = None) -> QuizQuestions:
    """
    Give every question without an id a generated one, ``q_<ms timestamp>_<index>``.

    Questions that already have an id keep it, so running this twice is a no-op.
    Only ids are touched, never answer content.
    """
    if all(q.id for q in quiz.questions):
        return quiz

    stamp = generated_at if generated_at is not None else int(time.time() * 1000)
    questions = [
        q if q.id else q.model_copy(update={"id": f"q_{stamp}_{index}"})
        for index, q in enumerate(quiz.questions)
    ]
    return quiz.model_copy(update={"questions": questions})


def validate_quiz_response(
    raw_text: str, expected_count: int, generated_at: Optional[int] = None
) -> QuizQuestions:
    data = parse_quiz_json(raw_text)

    try:
        quiz = QuizQuestions.model_validate(data)
    except ValidationError as e:
        raise SchemaValidationFailure(f"Validation failed: {_describe(e)}") from e

    if len(quiz.questions) != expected_count:
        raise QuestionCountMismatch(expected_count, len(quiz.questions))

    repaired = assign_missing_ids(quiz, generated_at)
    if repaired is not quiz:
        missing = sum(1 for q in quiz.questions if not q.id)
        logger.debug("Assigned ids to %d question(s) without one", missing)
    return repaired
