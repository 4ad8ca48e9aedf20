import ipaddress
import logging
import re
import time
from typing import Any, Callable, List, Optional, Sequence

import httpx

from config import (
    DEFAULT_QUESTION_AMOUNT,
    MAX_QUESTION_AMOUNT,
    MIN_QUESTION_AMOUNT,
    Settings,
)
from errors import (
    EmptyResponse,
    ErrorClassifier,
    ErrorKind,
    InvalidQuestionAmount,
    InvalidUrl,
    QuizGenerationError,
    ResponseShapeError,
    UpstreamUrlError,
    default_classifier,
)
from gemini_gateway import GeminiGateway, ModelGateway
from models import QuizQuestions
from prompts import build_context_prompt, build_quiz_prompt
from quiz_schema import build_quiz_schema
from response_validator import validate_quiz_response

logger = logging.getLogger("quiz.generator")

ALLOWED_SCHEMES = ("http", "https")
HOST_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$", re.IGNORECASE)


def _valid_host(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass
    if host.endswith("."):
        host = host[:-1]
    if not host or len(host) > 253:
        return False
    return all(HOST_LABEL.match(label) for label in host.split("."))


def validate_url(url: Any) -> str:
    """Syntax only: scheme and a well-formed host must be present. Reachability is left to the model."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrl("URL is required")

    candidate = url.strip()
    try:
        parsed = httpx.URL(candidate)
        host = parsed.raw_host.decode("ascii")
    except (httpx.InvalidURL, ValueError):
        raise InvalidUrl(f"Invalid URL format: {candidate}")

    if parsed.scheme not in ALLOWED_SCHEMES or not _valid_host(host):
        raise InvalidUrl(f"Invalid URL format: {candidate}")
    return candidate


def resolve_question_amount(question_amount: Any = None) -> int:
    if question_amount is None:
        return DEFAULT_QUESTION_AMOUNT
    if isinstance(question_amount, bool) or not isinstance(question_amount, int):
        raise InvalidQuestionAmount("questionAmount must be an integer")
    if not MIN_QUESTION_AMOUNT <= question_amount <= MAX_QUESTION_AMOUNT:
        raise InvalidQuestionAmount(
            f"questionAmount must be between {MIN_QUESTION_AMOUNT} and {MAX_QUESTION_AMOUNT}"
        )
    return question_amount


def candidate_models(primary: str, known_models: Sequence[str]) -> List[str]:
    """Primary first, then the known models in declaration order, without duplicates."""
    models = [primary]
    for name in known_models:
        if name not in models:
            models.append(name)
    return models


class QuizGenerator:
    """
    URL -> quiz pipeline.

    For each candidate model: summarize the page with URL browsing, then ask
    for the quiz against the summary with the JSON schema enforced, then
    validate. Only overload-class failures (including timeouts) move on to the
    next model; anything else is raised as soon as it happens.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        primary_model: str,
        known_models: Sequence[str] = (),
        classifier: Optional[ErrorClassifier] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.gateway = gateway
        self.primary_model = primary_model
        self.known_models = tuple(known_models)
        self.classifier = classifier or default_classifier
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "QuizGenerator":
        gateway = GeminiGateway(settings.api_key, timeout_seconds=settings.timeout_seconds)
        return cls(gateway, settings.model, settings.known_models)

    def fetch_context(self, model_id: str, url: str) -> str:
        try:
            return self.gateway.call(model_id, build_context_prompt(url), browsing_enabled=True)
        except EmptyResponse as e:
            raise UpstreamUrlError(
                "Failed to retrieve content from URL. Please check if the URL is accessible.",
                detail=e.detail,
            ) from e

    def synthesize_quiz(self, model_id: str, context_summary: str, question_amount: int) -> QuizQuestions:
        prompt = build_quiz_prompt(context_summary, question_amount)
        try:
            raw = self.gateway.call(model_id, prompt, output_schema=build_quiz_schema(question_amount))
        except EmptyResponse as e:
            raise ResponseShapeError("No quiz content generated", detail=e.detail) from e

        return validate_quiz_response(raw, question_amount, generated_at=int(self._clock() * 1000))

    def generate_quiz(self, url: Any, question_amount: Any = None) -> QuizQuestions:
        url = validate_url(url)
        amount = resolve_question_amount(question_amount)

        models = candidate_models(self.primary_model, self.known_models)
        last_error: Optional[QuizGenerationError] = None

        for attempt, model_id in enumerate(models, start=1):
            logger.info(
                "Generating %d questions for %s with %s (attempt %d/%d)",
                amount, url, model_id, attempt, len(models),
            )
            try:
                summary = self.fetch_context(model_id, url)
                quiz = self.synthesize_quiz(model_id, summary, amount)
            except Exception as e:
                error = self.classifier.classify(e)
                logger.debug("Model %s raised %s", model_id, error.detail)
                if error.kind is not ErrorKind.OVERLOADED:
                    logger.error("Quiz generation failed on %s [%s]: %s", model_id, error.kind.value, error.message)
                    if error is e:
                        raise
                    raise error from e
                logger.warning("Model %s overloaded (%s), trying next candidate", model_id, error.message)
                last_error = error
                continue

            logger.info("Generated quiz %r with %s", quiz.title, model_id)
            return quiz

        logger.error("All %d candidate models overloaded for %s", len(models), url)
        raise last_error
