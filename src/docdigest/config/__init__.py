"""Configuration package -- typed, validated settings from YAML + .env."""

from .settings import (
    ExtractionSettings,
    NotifierSettings,
    PipelineSettings,
    SummarizerSettings,
)

__all__ = [
    "ExtractionSettings",
    "NotifierSettings",
    "PipelineSettings",
    "SummarizerSettings",
    "load_all_settings",
]


def load_all_settings() -> tuple[
    PipelineSettings, ExtractionSettings, SummarizerSettings, NotifierSettings
]:
    """Load and return all configuration objects.

    Returns a tuple of (PipelineSettings, ExtractionSettings,
    SummarizerSettings, NotifierSettings), each populated from its own YAML
    file with environment variable overrides.
    """
    return (
        PipelineSettings(),
        ExtractionSettings(),
        SummarizerSettings(),
        NotifierSettings(),
    )
