"""Pydantic v2 models for the inference engine wire contract.

The engine exposes an Ollama-style ``/api/generate`` endpoint: the request
carries the model id, the full prompt and ``stream: false`` so a single
complete JSON body comes back.  Only ``response`` is required from the
reply; the bookkeeping fields engines add are optional.
"""

from pydantic import BaseModel, ConfigDict


class SummarizationRequest(BaseModel):
    """JSON body POSTed to the inference engine."""

    model: str
    prompt: str
    stream: bool = False


class SummarizationResponse(BaseModel):
    """JSON body returned by the inference engine.

    Attributes:
        response: Generated summary text.
        model: Model that served the request, as reported by the engine.
        done: Whether generation finished.
        prompt_eval_count: Prompt tokens consumed, if reported.
        eval_count: Tokens generated, if reported.
        total_duration: Engine-side wall time in nanoseconds, if reported.
    """

    model_config = ConfigDict(extra="ignore")

    response: str
    model: str | None = None
    done: bool | None = None
    prompt_eval_count: int | None = None
    eval_count: int | None = None
    total_duration: int | None = None
