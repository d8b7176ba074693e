"""Inference engine client: HTTP call, response validation, error mapping.

POSTs ``{model, prompt, stream: false}`` to the configured generate endpoint
and validates the JSON reply against SummarizationResponse.  Every failure is
mapped to a SummarizationError with a distinct kind so the report can tell
"model never responded" apart from "model rejected input":

    httpx.TimeoutException          -> TIMEOUT
    other httpx.TransportError      -> CONNECTION_ERROR
    HTTP 404                        -> MODEL_NOT_FOUND
    other non-2xx / bad JSON / blank -> UPSTREAM_ERROR

Retries are off by default (``max_retries = 0``).  When enabled, tenacity
retries TIMEOUT and CONNECTION_ERROR only.
"""

from __future__ import annotations

import logging
import time

import httpx
from pydantic import ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from docdigest.config.settings import SummarizerSettings
from docdigest.errors import SummarizationError, SummarizationErrorKind
from docdigest.merger import MergedCorpus
from docdigest.summarizer.prompt import build_prompt, template_version
from docdigest.summarizer.schemas import SummarizationRequest, SummarizationResponse
from docdigest.summarizer.types import SummaryResult

logger = logging.getLogger(__name__)

# Cap on how much of an error body is copied into diagnostics
_MAX_ERROR_BODY = 500


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, SummarizationError) and exc.kind.retryable


def _error_body(response: httpx.Response) -> str:
    """Return the engine's error message, preferring its JSON ``error`` field."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])[:_MAX_ERROR_BODY]
    return response.text[:_MAX_ERROR_BODY]


class SummarizationClient:
    """Client for a locally hosted inference engine.

    Owns an ``httpx.Client`` (reused across sequential calls) unless one is
    injected, in which case the caller manages its lifecycle.
    """

    # Backoff sleep between retries; tests swap it for a no-op
    sleep = staticmethod(time.sleep)

    def __init__(
        self,
        settings: SummarizerSettings,
        http_client: httpx.Client | None = None,
    ):
        self.settings = settings
        # Applied per request too, so an injected client gets the same limits
        self.timeout = httpx.Timeout(
            settings.timeout_seconds,
            connect=settings.connect_timeout_seconds,
        )
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self.timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> SummarizationClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, request: SummarizationRequest) -> SummarizationResponse:
        """Send one generate request and validate the reply."""
        try:
            response = self._client.post(
                self.settings.endpoint_url,
                json=request.model_dump(),
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise SummarizationError(
                SummarizationErrorKind.TIMEOUT,
                f"No response within {self.settings.timeout_seconds:.0f}s: {e!r}",
            ) from e
        except httpx.TransportError as e:
            raise SummarizationError(
                SummarizationErrorKind.CONNECTION_ERROR,
                f"Cannot reach {self.settings.endpoint_url}: {e!r}",
            ) from e

        if response.status_code == 404:
            raise SummarizationError(
                SummarizationErrorKind.MODEL_NOT_FOUND,
                f"Model {request.model!r} not available: {_error_body(response)}",
            )
        if not response.is_success:
            raise SummarizationError(
                SummarizationErrorKind.UPSTREAM_ERROR,
                f"HTTP {response.status_code}: {_error_body(response)}",
            )

        try:
            parsed = SummarizationResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise SummarizationError(
                SummarizationErrorKind.UPSTREAM_ERROR,
                f"Malformed response body: {str(e)[:_MAX_ERROR_BODY]}",
            ) from e

        if not parsed.response.strip():
            raise SummarizationError(
                SummarizationErrorKind.UPSTREAM_ERROR,
                "Engine returned an empty response",
            )
        return parsed

    def summarize(
        self,
        model_id: str,
        prompt_template: str,
        corpus: MergedCorpus,
        prompt_version: str | None = None,
    ) -> SummaryResult:
        """Summarize *corpus* with *model_id*.

        Args:
            model_id: Model identifier understood by the engine.
            prompt_template: Template with ``{file_count}`` and
                ``{documents}`` placeholders.
            corpus: Merged corpus to summarize.
            prompt_version: Template version hash; computed if omitted.

        Returns:
            SummaryResult with the summary text and call metadata.

        Raises:
            SummarizationError: With the kind describing the failure.
        """
        prompt = build_prompt(prompt_template, corpus)
        request = SummarizationRequest(model=model_id, prompt=prompt, stream=False)
        version = prompt_version or template_version(prompt_template)

        logger.info(
            "Requesting summary: model=%s, documents=%d, prompt=%d chars, "
            "timeout=%.0fs",
            model_id,
            corpus.file_count,
            len(prompt),
            self.settings.timeout_seconds,
        )

        start = time.monotonic()
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception(_is_retryable),
            sleep=self.sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    parsed = self._post(request)
        except SummarizationError as e:
            logger.error("Summarization failed (%s): %s", e.kind.value, e.detail)
            raise
        processing_time = time.monotonic() - start

        logger.info(
            "Summary received in %.1fs (model=%s, tokens=%s/%s, %d chars)",
            processing_time,
            model_id,
            parsed.prompt_eval_count,
            parsed.eval_count,
            len(parsed.response),
        )
        return SummaryResult(
            text=parsed.response.strip(),
            model=model_id,
            prompt_version=version,
            prompt_chars=len(prompt),
            processing_time_seconds=processing_time,
            input_tokens=parsed.prompt_eval_count,
            output_tokens=parsed.eval_count,
        )
