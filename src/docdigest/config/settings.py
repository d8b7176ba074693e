"""Pydantic settings models for docdigest configuration.

Four settings classes load from separate YAML config files with environment
variable override support. Source priority (highest to lowest):

    1. Init kwargs (CLI overrides)
    2. Environment variables (with prefix, e.g., SUMMARIZER_MODEL)
    3. .env file (for secrets, e.g., NOTIFIER_WEBHOOK_URL)
    4. YAML config file (e.g., config/summarizer.yaml)
    5. Default values defined here

Config paths are resolved relative to PROJECT_ROOT so the application works
regardless of the current working directory (e.g., cron or a systemd timer).
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# Resolve project root: settings.py -> config/ -> docdigest/ -> src/ -> repo root
PROJECT_ROOT = Path(__file__).resolve().parents[3]

_CONFIG_DIR = PROJECT_ROOT / "config"
_ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_EXTENSIONS = [".pdf", ".docx", ".md", ".txt"]

DEFAULT_PROMPT_TEMPLATE = (
    "Summarize the following {file_count} document(s) in a concise report. "
    "Highlight the key points, decisions, dates and action items of each "
    "document.\n\n{documents}"
)


class _YamlBackedSettings(BaseSettings):
    """Shared source ordering: init > env > .env > YAML > defaults."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


class PipelineSettings(_YamlBackedSettings):
    """Run scope and operations: input location, corpus budget, logging."""

    root_dir: str = "documents"
    extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    max_corpus_chars: int = Field(default=100_000, gt=0)
    notify_on_failure: bool = False

    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10MB
    log_backup_count: int = 5

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "pipeline.yaml"),
        env_prefix="PIPELINE_",
    )

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Lowercase each suffix and ensure it carries a leading dot."""
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            if ext not in normalized:
                normalized.append(ext)
        if not normalized:
            raise ValueError("extensions must contain at least one suffix")
        return normalized


class ExtractionSettings(_YamlBackedSettings):
    """Per-file extraction: concurrency, size guard, quality threshold."""

    max_workers: int = Field(default=4, ge=1)
    max_file_size_bytes: int = 52_428_800  # 50MB
    garble_ratio_threshold: float = 0.05
    pdf_fallback_enabled: bool = True

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "extraction.yaml"),
        env_prefix="EXTRACTION_",
    )


class SummarizerSettings(_YamlBackedSettings):
    """Local inference engine: endpoint, model, prompt, timeouts."""

    endpoint_url: str = "http://localhost:11434/api/generate"
    model: str = "llama3.1:8b"
    template_path: str = "config/prompts/summarize.txt"
    prompt_template: str | None = None  # Inline override for template_path
    timeout_seconds: float = 600.0
    connect_timeout_seconds: float = 10.0
    max_retries: int = Field(default=0, ge=0)

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "summarizer.yaml"),
        env_prefix="SUMMARIZER_",
    )


class NotifierSettings(_YamlBackedSettings):
    """Webhook delivery.

    The webhook URL embeds its credential, so it comes from .env or
    environment variables only -- it must NEVER appear in YAML files.
    """

    webhook_url: str = ""
    timeout_seconds: float = 30.0
    max_attempts: int = Field(default=3, ge=1)
    include_metadata: bool = False

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "notifier.yaml"),
        env_file=str(_ENV_FILE),
        env_prefix="NOTIFIER_",
    )
