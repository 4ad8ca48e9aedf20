"""
Thin wrapper over the Gemini API.

One call, two modes: a browsing call (URL context tool, free text) used to
summarize the page, and a structured call (JSON schema, no tools) used to
synthesize the quiz. Gemini does not accept tools together with a JSON
response schema, which is why the modes are kept apart.

No retries here: the generator owns the candidate model list and decides
what is worth retrying.
"""
import logging
from typing import Any, Dict, Optional, Protocol

import httpx
from google import genai
from google.genai import types

from errors import EmptyResponse, ModelTimeout, UpstreamModelError

logger = logging.getLogger("quiz.gemini")

URL_RETRIEVAL_SUCCESS = "URL_RETRIEVAL_STATUS_SUCCESS"


class ModelGateway(Protocol):
    def call(
        self,
        model_id: str,
        prompt: str,
        *,
        browsing_enabled: bool = False,
        output_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        ...


def _enum_name(value: Any) -> str:
    return str(getattr(value, "value", value) or "")


class GeminiGateway:
    def __init__(self, api_key: str, timeout_seconds: float = 60.0, client: Optional[genai.Client] = None):
        self.timeout_seconds = timeout_seconds
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )

    def _build_config(
        self, browsing_enabled: bool, output_schema: Optional[Dict[str, Any]]
    ) -> types.GenerateContentConfig:
        if browsing_enabled and output_schema is not None:
            raise ValueError("URL browsing cannot be combined with a structured output schema")

        if browsing_enabled:
            return types.GenerateContentConfig(tools=[types.Tool(url_context=types.UrlContext())])
        if output_schema is not None:
            return types.GenerateContentConfig(
                response_mime_type="application/json",
                response_json_schema=output_schema,
            )
        return types.GenerateContentConfig()

    def call(
        self,
        model_id: str,
        prompt: str,
        *,
        browsing_enabled: bool = False,
        output_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        config = self._build_config(browsing_enabled, output_schema)
        logger.debug("Calling %s (browsing=%s, schema=%s)", model_id, browsing_enabled, output_schema is not None)

        try:
            response = self._client.models.generate_content(
                model=model_id,
                contents=[prompt],
                config=config,
            )
        except (httpx.TimeoutException, TimeoutError) as e:
            raise ModelTimeout(
                f"Model {model_id} did not answer within {self.timeout_seconds:g}s",
                detail=f"{type(e).__name__}: {e}",
            ) from e

        self._check_blocked(response)
        if browsing_enabled:
            self._check_url_retrieval(response)

        text = getattr(response, "text", None) or ""
        if not text.strip():
            raise EmptyResponse(f"No response text generated by {model_id}")
        return text

    @staticmethod
    def _check_blocked(response: Any) -> None:
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None)
        if block_reason:
            raise UpstreamModelError(f"Prompt blocked by Gemini: {_enum_name(block_reason)}")

        for candidate in getattr(response, "candidates", None) or []:
            finish_reason = _enum_name(getattr(candidate, "finish_reason", None))
            if finish_reason in ("SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"):
                raise UpstreamModelError(f"Response blocked by Gemini: {finish_reason}")

    @staticmethod
    def _check_url_retrieval(response: Any) -> None:
        statuses = []
        for candidate in getattr(response, "candidates", None) or []:
            metadata = getattr(candidate, "url_context_metadata", None)
            for url_metadata in getattr(metadata, "url_metadata", None) or []:
                statuses.append(_enum_name(getattr(url_metadata, "url_retrieval_status", None)))

        if not statuses:
            return
        # An unsafe page fails the call even if another URL was fetched.
        if "URL_RETRIEVAL_STATUS_UNSAFE" in statuses:
            raise UpstreamModelError("URL retrieval failed: URL_RETRIEVAL_STATUS_UNSAFE")
        if URL_RETRIEVAL_SUCCESS not in statuses:
            raise UpstreamModelError(f"URL retrieval failed: {statuses[0]}")
