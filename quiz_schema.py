from typing import Any, Dict

QUESTION_FIELDS = ("id", "question", "options", "correctAnswer", "explanation")


def build_quiz_schema(question_amount: int) -> Dict[str, Any]:
    """
    JSON schema handed to Gemini as the structured-output constraint.

    The question count is baked into minItems/maxItems. Gemini is only asked to
    honour it, so response_validator checks the count again.
    """
    question = {
        "type": "object",
        "properties": {
            "id": {
                "type": "string",
                "description": "Unique identifier for the question",
            },
            "question": {
                "type": "string",
                "description": "The quiz question text",
            },
            "options": {
                "type": "array",
                "description": "Four answer options",
                "minItems": 4,
                "maxItems": 4,
                "items": {"type": "string"},
            },
            "correctAnswer": {
                "type": "integer",
                "description": "Index of the correct answer (0-3)",
                "minimum": 0,
                "maximum": 3,
            },
            "explanation": {
                "type": "string",
                "description": "Explanation of the correct answer",
            },
        },
        "required": list(QUESTION_FIELDS),
        "additionalProperties": False,
    }

    return {
        "type": "object",
        "properties": {
            "title": {
                "type": "string",
                "description": "Short title summarizing the topic",
            },
            "category": {
                "type": "string",
                "description": "Coarse subject label",
            },
            "questions": {
                "type": "array",
                "description": "Array of quiz questions",
                "minItems": question_amount,
                "maxItems": question_amount,
                "items": question,
            },
        },
        "required": ["title", "category", "questions"],
        "additionalProperties": False,
    }
