# src/recycleright/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/recycleright/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `GEMINI_API_KEY`, `MAPBOX_ACCESS_TOKEN`)
- an external YAML file via `RECYCLERIGHT_CONFIG_PATH`

Design rule:
- Prompts, model names and tuning knobs live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal
from recycleright.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `recycleright.config`."""
    text = resources.files("recycleright.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "Recycle Right"
    http_timeout_seconds: float = 30
    log_level: str = "INFO"


class BinsSettings(BaseModel):
    # None means "use the dataset packaged in recycleright.data".
    path: str | None = None
    k: int = Field(3, ge=1)


class AssistantPrompts(BaseModel):
    image_recognition: str = (
        "The following is a base64 encoded image of one or more items. Return in JSON format two pieces "
        "of information. 1) The generic name(s) of the item(s). 2) Whether this item can be recycled in "
        "Singapore, either true or false. The following is an example: {example}. IMPORTANT: Return ONLY "
        "valid JSON without any markdown formatting, code blocks, or backticks."
    )
    image_recognition_example: dict[str, Any] = Field(
        default_factory=lambda: {"name": "Empty bottle", "canBeRecycled": True}
    )


class AssistantReplies(BaseModel):
    no_messages: str = "Error: No messages provided. Please try again."
    unknown_tool: str = "The AI attempted to use a function that isn't available. Please try a different question."
    provider_error: str = "Sorry, I'm having trouble connecting to my AI services. Please try again later."
    demo: list[str] = Field(
        default_factory=lambda: [
            "This is a demo response because no Gemini API key is configured. "
            "Please add a valid API key to enable real AI responses."
        ]
    )


class AssistantSettings(BaseModel):
    model: str = "gemini-2.0-flash"
    system_instruction: str = "You will be talking about recycling in Singapore."
    # "model": hand the tool result back to the model and return its text.
    # "locations": return `{"locations": [...]}` JSON straight to the caller.
    nearest_bin_reply: Literal["model", "locations"] = "model"
    prompts: AssistantPrompts = Field(default_factory=AssistantPrompts)
    replies: AssistantReplies = Field(default_factory=AssistantReplies)
    api_key: str | None = None


class DirectionsSettings(BaseModel):
    base_url: str = "https://api.mapbox.com/directions/v5/mapbox/walking"
    access_token: str | None = None


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    bins: BinsSettings = Field(default_factory=BinsSettings)
    assistant: AssistantSettings = Field(default_factory=AssistantSettings)
    directions: DirectionsSettings = Field(default_factory=DirectionsSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("RECYCLERIGHT_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    bins_path = os.getenv("RECYCLERIGHT_BINS_PATH")
    if bins_path:
        data.setdefault("bins", {})["path"] = bins_path

    gemini_key = os.getenv("GEMINI_API_KEY")
    if gemini_key:
        data.setdefault("assistant", {})["api_key"] = gemini_key

    mapbox_token = os.getenv("MAPBOX_ACCESS_TOKEN")
    if mapbox_token:
        data.setdefault("directions", {})["access_token"] = mapbox_token

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("RECYCLERIGHT_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
