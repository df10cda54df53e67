"""Unified configuration loaded from .notemaster.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from notemaster.article.config import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL, BackendConfig
from notemaster.article.models import TargetLength

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".notemaster.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "notemaster" / "config.toml"


class OutputConfig(BaseModel):
    """[output] section."""

    directory: str = "./articles"


class GeminiSectionConfig(BaseModel):
    """[gemini] section."""

    api_key: str = ""
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    thinking_budget: int | None = 4000
    image_aspect_ratio: str = "16:9"
    image_size: str = "1K"


class GenerationSectionConfig(BaseModel):
    """[generation] section."""

    target_length: TargetLength = TargetLength.SHORT
    interval_days: int = Field(default=1, ge=0)
    section_concurrency: int = Field(default=1, ge=1)


class NoteMasterConfig(BaseModel):
    """Top-level configuration model."""

    output: OutputConfig = Field(default_factory=OutputConfig)
    gemini: GeminiSectionConfig = Field(default_factory=GeminiSectionConfig)
    generation: GenerationSectionConfig = Field(default_factory=GenerationSectionConfig)

    @property
    def output_dir(self) -> Path:
        return Path(self.output.directory).expanduser()

    def to_backend_config(self) -> BackendConfig:
        """Convert to BackendConfig for the content backend."""
        return BackendConfig(
            api_key=self.gemini.api_key,
            text_model=self.gemini.text_model,
            image_model=self.gemini.image_model,
            thinking_budget=self.gemini.thinking_budget,
            image_aspect_ratio=self.gemini.image_aspect_ratio,
            image_size=self.gemini.image_size,
        )


def load_config(path: str | Path | None = None) -> NoteMasterConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .notemaster.toml in CWD
    3. ~/.config/notemaster/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged NoteMasterConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = NoteMasterConfig.model_validate(data) if data else NoteMasterConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: NoteMasterConfig, **cli_kwargs: object) -> NoteMasterConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "output_directory": ("output", "directory"),
        "text_model": ("gemini", "text_model"),
        "image_model": ("gemini", "image_model"),
        "target_length": ("generation", "target_length"),
        "interval_days": ("generation", "interval_days"),
        "section_concurrency": ("generation", "section_concurrency"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return NoteMasterConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: NoteMasterConfig) -> NoteMasterConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "NOTEMASTER_OUTPUT_DIR": ("output", "directory"),
        "NOTEMASTER_TEXT_MODEL": ("gemini", "text_model"),
        "NOTEMASTER_IMAGE_MODEL": ("gemini", "image_model"),
        "NOTEMASTER_SECTION_CONCURRENCY": ("generation", "section_concurrency"),
        # GEMINI_API_KEY wins over the older GOOGLE_AI_API_KEY name.
        "GOOGLE_AI_API_KEY": ("gemini", "api_key"),
        "GEMINI_API_KEY": ("gemini", "api_key"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    return NoteMasterConfig.model_validate(data)
