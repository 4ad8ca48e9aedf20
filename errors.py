"""
Error taxonomy for quiz generation.

Every failure leaving the generator is a ``QuizGenerationError`` carrying an
``ErrorKind``. Raw upstream failures (Gemini API errors, timeouts, blocked
responses) are mapped onto a kind by ``ErrorClassifier`` using an explicit
rule table, and ``public_error`` turns a kind into the HTTP status and body
returned to API clients.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Type

import httpx
from pydantic import ValidationError


class ErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    OVERLOADED = "Overloaded"
    AUTH_CONFIGURATION = "AuthConfiguration"
    QUOTA_EXCEEDED = "QuotaExceeded"
    CONTENT_SAFETY = "ContentSafety"
    UPSTREAM_URL_FAILURE = "UpstreamUrlFailure"
    RESPONSE_SHAPE_FAILURE = "ResponseShapeFailure"
    UNKNOWN = "Unknown"


class QuizGenerationError(Exception):
    """
    Base error. ``message`` is safe to show to API clients; ``detail`` keeps
    the underlying reason for logs only.

    A ``kind`` of None means the error still has to go through the classifier.
    """

    kind: Optional[ErrorKind] = ErrorKind.UNKNOWN

    def __init__(self, message: str, kind: Optional[ErrorKind] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.detail = detail or message


class InvalidUrl(QuizGenerationError):
    kind = ErrorKind.INVALID_INPUT


class InvalidQuestionAmount(QuizGenerationError):
    kind = ErrorKind.INVALID_INPUT


class ResponseShapeError(QuizGenerationError):
    kind = ErrorKind.RESPONSE_SHAPE_FAILURE


class JsonParseFailure(ResponseShapeError):
    pass


class SchemaValidationFailure(ResponseShapeError):
    pass


class QuestionCountMismatch(ResponseShapeError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected {expected} questions, model returned {actual}")
        self.expected = expected
        self.actual = actual


class UpstreamUrlError(QuizGenerationError):
    kind = ErrorKind.UPSTREAM_URL_FAILURE


class EmptyResponse(QuizGenerationError):
    pass


class ModelTimeout(QuizGenerationError):
    kind = ErrorKind.OVERLOADED


class UpstreamModelError(QuizGenerationError):
    """Condition reported inside an otherwise successful model response (blocked prompt, URL retrieval status)."""

    kind = None


@dataclass(frozen=True)
class ClassificationRule:
    kind: ErrorKind
    message: str
    status_codes: Tuple[int, ...] = ()
    statuses: Tuple[str, ...] = ()
    markers: Tuple[str, ...] = ()
    exception_types: Tuple[Type[BaseException], ...] = ()

    def matches(self, exc: BaseException, code: Optional[int], status: str, text: str) -> bool:
        if self.exception_types and isinstance(exc, self.exception_types):
            return True
        if code is not None and code in self.status_codes:
            return True
        if status and status in self.statuses:
            return True
        return any(marker in text for marker in self.markers)


# First matching rule wins. Markers are compared against the lower-cased
# message, statuses against the upper-cased status name.
DEFAULT_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        kind=ErrorKind.AUTH_CONFIGURATION,
        message="Invalid or missing Gemini API key",
        status_codes=(401, 403),
        statuses=("UNAUTHENTICATED", "PERMISSION_DENIED"),
        markers=("api key", "api_key", "credential"),
    ),
    ClassificationRule(
        kind=ErrorKind.QUOTA_EXCEEDED,
        message="Gemini API quota exceeded",
        status_codes=(429,),
        statuses=("RESOURCE_EXHAUSTED",),
        markers=("quota", "rate limit"),
    ),
    ClassificationRule(
        kind=ErrorKind.OVERLOADED,
        message="Model is overloaded or unavailable",
        status_codes=(503, 504),
        statuses=("UNAVAILABLE", "DEADLINE_EXCEEDED"),
        markers=("overload", "overloded", "unavailable"),
        exception_types=(TimeoutError, httpx.TimeoutException),
    ),
    ClassificationRule(
        kind=ErrorKind.CONTENT_SAFETY,
        message="URL content failed safety check",
        markers=("url_retrieval_status_unsafe",),
    ),
    ClassificationRule(
        kind=ErrorKind.CONTENT_SAFETY,
        message="Content blocked by safety filters",
        markers=("safety", "blocked", "prohibited_content"),
    ),
    # A model that cannot run the URL context tool is unavailable for this
    # request; the next candidate may support it.
    ClassificationRule(
        kind=ErrorKind.OVERLOADED,
        message="Model does not support this request",
        markers=("not supported for this model", "is not supported by this model", "tool is not supported"),
    ),
    ClassificationRule(
        kind=ErrorKind.UPSTREAM_URL_FAILURE,
        message="Failed to retrieve content from URL. Please check if the URL is accessible.",
        markers=("url_retrieval_status", "retrieve content from url"),
    ),
    ClassificationRule(
        kind=ErrorKind.RESPONSE_SHAPE_FAILURE,
        message="Model returned a malformed quiz",
        exception_types=(json.JSONDecodeError, ValidationError),
    ),
)


def _status_code(exc: BaseException) -> Optional[int]:
    code = getattr(exc, "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


class ErrorClassifier:
    def __init__(self, rules: Tuple[ClassificationRule, ...] = DEFAULT_RULES):
        self.rules = rules

    def classify(self, exc: BaseException) -> QuizGenerationError:
        if isinstance(exc, QuizGenerationError) and exc.kind is not None:
            return exc

        code = _status_code(exc)
        status = str(getattr(exc, "status", "") or "").upper()
        text = str(exc).lower()
        detail = f"{type(exc).__name__}: {exc}"

        for rule in self.rules:
            if rule.matches(exc, code, status, text):
                return QuizGenerationError(rule.message, kind=rule.kind, detail=detail)

        return QuizGenerationError("Quiz generation failed", kind=ErrorKind.UNKNOWN, detail=detail)


default_classifier = ErrorClassifier()


# kind -> (HTTP status, error label, fixed public message or None to echo error.message)
PUBLIC_ERRORS: Dict[ErrorKind, Tuple[int, str, Optional[str]]] = {
    ErrorKind.INVALID_INPUT: (400, "Bad Request", None),
    ErrorKind.AUTH_CONFIGURATION: (
        500, "Configuration Error", "Server configuration error. Please contact support."
    ),
    ErrorKind.OVERLOADED: (
        503, "Service Unavailable", "The quiz model is overloaded right now. Please try again in a moment."
    ),
    ErrorKind.QUOTA_EXCEEDED: (
        503, "Service Unavailable", "Service temporarily unavailable. Please try again later."
    ),
    ErrorKind.RESPONSE_SHAPE_FAILURE: (
        500, "Internal Server Error", "Failed to generate valid quiz. Please try again."
    ),
    ErrorKind.CONTENT_SAFETY: (400, "Content Blocked", None),
    ErrorKind.UPSTREAM_URL_FAILURE: (502, "Bad Gateway", None),
    ErrorKind.UNKNOWN: (
        500, "Internal Server Error", "An unexpected error occurred while generating the quiz."
    ),
}


def public_error(error: QuizGenerationError) -> Tuple[int, Dict[str, str]]:
    status_code, label, fixed_message = PUBLIC_ERRORS[error.kind or ErrorKind.UNKNOWN]
    return status_code, {"error": label, "message": fixed_message or error.message}
