"""
Unit tests for the error rule table and the public error mapping.
"""

import json

import httpx
import pytest
from pydantic import ValidationError

from conftest import FakeAPIError
from errors import (
    ClassificationRule,
    EmptyResponse,
    ErrorClassifier,
    ErrorKind,
    InvalidUrl,
    ModelTimeout,
    QuestionCountMismatch,
    QuizGenerationError,
    UpstreamModelError,
    public_error,
)
from models import QuizQuestion

classifier = ErrorClassifier()


# ────────────────────────────────────────────────────────────────────────────
# Raw upstream failures
# ────────────────────────────────────────────────────────────────────────────

class TestClassifyUpstream:

    @pytest.mark.parametrize("exc", [
        FakeAPIError(503, "UNAVAILABLE", "The model is overloaded. Please try again later."),
        FakeAPIError(504, "DEADLINE_EXCEEDED", "Deadline expired before operation could complete."),
        RuntimeError("Model is OVERLOADED"),
        RuntimeError("service Unavailable"),
        RuntimeError("model overloded, retry"),
        TimeoutError("timed out"),
        httpx.ReadTimeout("read timed out"),
        ModelTimeout("Model model-a did not answer within 60s"),
    ])
    def test_overloaded(self, exc):
        assert classifier.classify(exc).kind is ErrorKind.OVERLOADED

    @pytest.mark.parametrize("exc", [
        FakeAPIError(400, "INVALID_ARGUMENT", "API key not valid. Please pass a valid API key."),
        FakeAPIError(403, "PERMISSION_DENIED", "Method doesn't allow unregistered callers."),
        FakeAPIError(401, "UNAUTHENTICATED", "Request had invalid authentication."),
    ])
    def test_auth(self, exc):
        error = classifier.classify(exc)
        assert error.kind is ErrorKind.AUTH_CONFIGURATION
        assert "test-key" not in error.message

    @pytest.mark.parametrize("exc", [
        FakeAPIError(429, "RESOURCE_EXHAUSTED", "You exceeded your current quota."),
        RuntimeError("Daily quota reached"),
    ])
    def test_quota(self, exc):
        assert classifier.classify(exc).kind is ErrorKind.QUOTA_EXCEEDED

    def test_unsafe_url(self):
        error = classifier.classify(UpstreamModelError("URL retrieval failed: URL_RETRIEVAL_STATUS_UNSAFE"))
        assert error.kind is ErrorKind.CONTENT_SAFETY
        assert error.message == "URL content failed safety check"

    def test_blocked_prompt(self):
        error = classifier.classify(UpstreamModelError("Prompt blocked by Gemini: SAFETY"))
        assert error.kind is ErrorKind.CONTENT_SAFETY

    def test_url_retrieval_error(self):
        error = classifier.classify(UpstreamModelError("URL retrieval failed: URL_RETRIEVAL_STATUS_ERROR"))
        assert error.kind is ErrorKind.UPSTREAM_URL_FAILURE

    def test_unsupported_tool_is_fallback_class(self):
        error = classifier.classify(
            FakeAPIError(400, "INVALID_ARGUMENT", "Url context tool is not supported for this model.")
        )
        assert error.kind is ErrorKind.OVERLOADED
        assert error.message == "Model does not support this request"

    def test_raw_parse_and_validation_errors(self):
        with pytest.raises(json.JSONDecodeError) as decode:
            json.loads("{")
        with pytest.raises(ValidationError) as invalid:
            QuizQuestion.model_validate({})
        assert classifier.classify(decode.value).kind is ErrorKind.RESPONSE_SHAPE_FAILURE
        assert classifier.classify(invalid.value).kind is ErrorKind.RESPONSE_SHAPE_FAILURE

    def test_unknown_keeps_detail_but_not_message(self):
        error = classifier.classify(KeyError("secret internal state"))
        assert error.kind is ErrorKind.UNKNOWN
        assert "secret internal state" not in error.message
        assert "secret internal state" in error.detail


# ────────────────────────────────────────────────────────────────────────────
# Already classified errors
# ────────────────────────────────────────────────────────────────────────────

class TestClassifyDomainErrors:

    @pytest.mark.parametrize("exc", [
        InvalidUrl("Invalid URL format: nope"),
        QuestionCountMismatch(5, 3),
        EmptyResponse("No response text"),
    ])
    def test_passes_through_unchanged(self, exc):
        assert classifier.classify(exc) is exc

    def test_custom_rule_table(self):
        custom = ErrorClassifier(rules=(
            ClassificationRule(kind=ErrorKind.OVERLOADED, message="busy", markers=("try later",)),
        ))
        assert custom.classify(RuntimeError("Try later please")).kind is ErrorKind.OVERLOADED
        assert custom.classify(RuntimeError("quota")).kind is ErrorKind.UNKNOWN


# ────────────────────────────────────────────────────────────────────────────
# Public mapping
# ────────────────────────────────────────────────────────────────────────────

class TestPublicError:

    @pytest.mark.parametrize("kind, status", [
        (ErrorKind.INVALID_INPUT, 400),
        (ErrorKind.AUTH_CONFIGURATION, 500),
        (ErrorKind.OVERLOADED, 503),
        (ErrorKind.QUOTA_EXCEEDED, 503),
        (ErrorKind.RESPONSE_SHAPE_FAILURE, 500),
        (ErrorKind.CONTENT_SAFETY, 400),
        (ErrorKind.UPSTREAM_URL_FAILURE, 502),
        (ErrorKind.UNKNOWN, 500),
    ])
    def test_status_per_kind(self, kind, status):
        status_code, body = public_error(QuizGenerationError("reason", kind=kind))
        assert status_code == status
        assert set(body) == {"error", "message"}

    def test_input_message_is_echoed(self):
        _, body = public_error(InvalidUrl("Invalid URL format: nope"))
        assert body == {"error": "Bad Request", "message": "Invalid URL format: nope"}

    def test_config_message_is_generic(self):
        _, body = public_error(QuizGenerationError("key AIza-secret rejected", kind=ErrorKind.AUTH_CONFIGURATION))
        assert "AIza-secret" not in body["message"]

    def test_quota_and_overload_messages_differ(self):
        _, quota = public_error(QuizGenerationError("q", kind=ErrorKind.QUOTA_EXCEEDED))
        _, overload = public_error(QuizGenerationError("o", kind=ErrorKind.OVERLOADED))
        assert quota["message"] != overload["message"]
