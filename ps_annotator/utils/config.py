"""Configuration loader and validator for the PowerShell function annotator.

Loads settings from configs/config.yaml and provides typed access
to all configuration sections via dataclasses. The per-run settings
collected from the command line live in a separate RunConfig.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "configs" / "config.yaml"

API_KEY_ENV_VAR = "GEMINI_API_KEY"

_DEFAULT_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)


@dataclass
class APIConfig:
    """Configuration for the Gemini generative-text API."""

    provider: str = "gemini"
    model: str = "gemini-1.5-flash"
    endpoint: str = _DEFAULT_ENDPOINT
    api_key_header: str = "x-goog-api-key"
    timeout: Optional[float] = None

    @property
    def url(self) -> str:
        """Endpoint URL with the model name filled in."""
        return self.endpoint.format(model=self.model)


@dataclass
class ExtractionConfig:
    """Configuration for locating function definitions."""

    match_mode: str = "braces"


@dataclass
class AnnotationConfig:
    """Configuration for splicing descriptions and walking directories."""

    splice_mode: str = "offsets"
    extensions: list[str] = field(default_factory=lambda: [".ps1"])
    templates_dir: Optional[str] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level application configuration."""

    api: APIConfig = field(default_factory=APIConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    annotation: AnnotationConfig = field(default_factory=AnnotationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass(frozen=True)
class RunConfig:
    """Parameters of a single annotation run, fixed at process entry.

    Attributes:
        mode: Either "single" (one file) or "batch" (a directory tree).
        api_key: Gemini API key, sent in plaintext in a request header.
        source: Source file or directory.
        destination: Destination file or directory.
    """

    mode: str
    api_key: str
    source: Path
    destination: Path

    def __post_init__(self) -> None:
        if self.mode not in ("single", "batch"):
            raise ValueError(f"Unknown run mode: {self.mode!r}")

    def __repr__(self) -> str:
        return (
            f"RunConfig(mode={self.mode!r}, api_key='***', "
            f"source={str(self.source)!r}, destination={str(self.destination)!r})"
        )


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load application configuration from a YAML file.

    Reads the YAML config file and constructs a fully typed AppConfig
    object. Falls back to defaults for any missing values. The API key
    is never read from the config file.

    Args:
        config_path: Path to the YAML config file. If None, uses the
            default path at configs/config.yaml.

    Returns:
        A fully populated AppConfig instance.

    Raises:
        yaml.YAMLError: If the config file contains invalid YAML.
    """
    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.warning("Config file not found at %s, using defaults", path)
        return AppConfig()

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    logger.debug("Loaded configuration from %s", path)

    api_data = raw.get("api", {})
    api_config = APIConfig(
        provider=api_data.get("provider", "gemini"),
        model=api_data.get("model", "gemini-1.5-flash"),
        endpoint=api_data.get("endpoint", _DEFAULT_ENDPOINT),
        api_key_header=api_data.get("api_key_header", "x-goog-api-key"),
        timeout=api_data.get("timeout"),
    )

    extraction_data = raw.get("extraction", {})
    extraction_config = ExtractionConfig(
        match_mode=extraction_data.get("match_mode", "braces"),
    )

    annotation_data = raw.get("annotation", {})
    annotation_config = AnnotationConfig(
        splice_mode=annotation_data.get("splice_mode", "offsets"),
        extensions=annotation_data.get("extensions", [".ps1"]),
        templates_dir=annotation_data.get("templates_dir"),
    )

    logging_data = raw.get("logging", {})
    logging_config = LoggingConfig(
        level=logging_data.get("level", "INFO"),
        format=logging_data.get(
            "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        file=logging_data.get("file"),
    )

    return AppConfig(
        api=api_config,
        extraction=extraction_config,
        annotation=annotation_config,
        logging=logging_config,
    )
