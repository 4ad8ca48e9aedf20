"""
Shared fixtures: a scripted in-memory gateway and quiz payload builders.
No test talks to Gemini.
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

os.environ.setdefault("GEMINI_API_KEY", "test-key-not-real")

from llm_quiz_generator import QuizGenerator

SUMMARY = "Photosynthesis converts light energy into chemical energy stored in glucose."
MODELS = ("model-a", "model-b", "model-c")


@dataclass
class GatewayCall:
    model_id: str
    stage: str
    prompt: str
    browsing_enabled: bool
    output_schema: Optional[Dict[str, Any]]


class FakeAPIError(Exception):
    """Mimics the shape of google.genai.errors.APIError (code, status, message)."""

    def __init__(self, code: int, status: str, message: str):
        super().__init__(f"{code} {status}. {message}")
        self.code = code
        self.status = status
        self.message = message


class FakeGateway:
    """
    Returns SUMMARY for browsing calls and ``quiz_text`` for schema calls.

    ``failures`` maps a model id, or a (model id, stage) pair with stage in
    {"context", "quiz"}, to the exception that call should raise.
    """

    def __init__(self, quiz_text: str = "", summary: str = SUMMARY, failures: Optional[dict] = None):
        self.quiz_text = quiz_text
        self.summary = summary
        self.failures = failures or {}
        self.calls: List[GatewayCall] = []

    def call(self, model_id, prompt, *, browsing_enabled=False, output_schema=None):
        stage = "context" if browsing_enabled else "quiz"
        self.calls.append(GatewayCall(model_id, stage, prompt, browsing_enabled, output_schema))

        failure = self.failures.get((model_id, stage)) or self.failures.get(model_id)
        if failure is not None:
            raise failure
        return self.summary if stage == "context" else self.quiz_text

    @property
    def models_called(self) -> List[str]:
        ordered: List[str] = []
        for c in self.calls:
            if not ordered or ordered[-1] != c.model_id:
                ordered.append(c.model_id)
        return ordered


def make_question(index: int, with_id: bool = True) -> dict:
    question = {
        "question": f"What is described in statement number {index + 1}?",
        "options": ["Chlorophyll", "Glucose", "Oxygen", "Sunlight"],
        "correctAnswer": index % 4,
        "explanation": f"The summary says so in sentence {index + 1} of the context.",
    }
    if with_id:
        question = {"id": f"question-{index}", **question}
    return question


def make_quiz_payload(count: int = 5, missing_id_at: Optional[int] = None) -> dict:
    return {
        "title": "Photosynthesis Basics",
        "category": "Science",
        "questions": [make_question(i, with_id=(i != missing_id_at)) for i in range(count)],
    }


def quiz_json(count: int = 5, missing_id_at: Optional[int] = None) -> str:
    return json.dumps(make_quiz_payload(count, missing_id_at))


@pytest.fixture
def gateway():
    return FakeGateway(quiz_text=quiz_json(5))


@pytest.fixture
def generator(gateway):
    return QuizGenerator(gateway, MODELS[0], MODELS, clock=lambda: 1700000000.0)
