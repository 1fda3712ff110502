"""Deskbridge configuration — loads from deskbridge.yaml + environment (.env)."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Annotated, Any

import yaml
from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Provide clear, concise, and helpful responses."
)


def _load_yaml_config() -> dict[str, Any]:
    """Load deskbridge.yaml from DESKBRIDGE_CONFIG_PATH or the working directory."""
    config_path = os.getenv("DESKBRIDGE_CONFIG_PATH")
    search_paths = [Path(config_path)] if config_path else [Path("deskbridge.yaml")]
    for path in search_paths:
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}
    return {}


def _env_keys(env_file: str = ".env") -> set[str]:
    """Upper-cased names set by the process environment or the .env file."""
    keys = {name.upper() for name in os.environ}
    if Path(env_file).is_file():
        keys.update(name.upper() for name in dotenv_values(env_file))
    return keys


def _without_env_overrides(
    data: dict[str, Any], prefix: str, env_keys: set[str] | None = None
) -> dict[str, Any]:
    """Drop YAML keys that an environment variable or .env entry already sets."""
    if env_keys is None:
        env_keys = _env_keys()
    return {key: value for key, value in data.items() if f"{prefix}{str(key).upper()}" not in env_keys}


def _parse_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in text.split(",") if item.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [str(value).strip()] if str(value).strip() else []


class LLMConfig(BaseSettings):
    """Language model configuration."""

    model: str = Field(default="openai/gpt-3.5-turbo", description="LiteLLM model identifier")
    api_key: str = Field(default="", description="API key for the LLM provider")
    api_base: str | None = Field(default=None, description="Custom API base URL")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, gt=0)
    timeout_s: float = Field(default=60.0, gt=0, description="Per-request timeout in seconds")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT)

    model_config = SettingsConfigDict(
        env_prefix="DESKBRIDGE_LLM_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )


class HelpdeskConfig(BaseSettings):
    """Chatwoot API configuration."""

    base_url: str = Field(default="https://app.chatwoot.com", description="Chatwoot base URL")
    api_token: str = Field(default="", description="Chatwoot user or agent-bot access token")
    account_id: int = Field(default=0, ge=0)
    timeout_s: float = Field(default=15.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="DESKBRIDGE_HELPDESK_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )


class WidgetConfig(BaseSettings):
    """Chatwoot website widget configuration."""

    website_token: str = Field(default="", description="Website inbox token")
    base_url: str = Field(default="https://app.chatwoot.com")
    sdk_path: str = "/packs/js/sdk.js"
    launcher_title: str = "Chat with us"
    page_title: str = "Chatwoot AI Bot"
    page_tagline: str = "Your AI-powered customer support solution"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_prefix="DESKBRIDGE_WIDGET_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @property
    def sdk_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.sdk_path.lstrip('/')}"


class RelayConfig(BaseSettings):
    """Reply-loop prevention settings."""

    banned_sender_substrings: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["bot", "ai", "assistant"],
        description="Sender names containing any of these (case-insensitive) are ignored",
    )

    @field_validator("banned_sender_substrings", mode="before")
    @classmethod
    def _parse_banned(cls, value: Any) -> list[str]:
        return [item.lower() for item in _parse_str_list(value)]

    model_config = SettingsConfigDict(
        env_prefix="DESKBRIDGE_RELAY_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )


class DeskbridgeConfig(BaseSettings):
    """Root Deskbridge configuration."""

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=3001, ge=1, le=65535, description="Server bind port")
    service_name: str = Field(default="Chatwoot AI Bot")
    cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    # Sub-configs
    llm: LLMConfig = Field(default_factory=LLMConfig)
    helpdesk: HelpdeskConfig = Field(default_factory=HelpdeskConfig)
    widget: WidgetConfig = Field(default_factory=WidgetConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="'json' or 'console'")

    model_config = SettingsConfigDict(
        env_prefix="DESKBRIDGE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, value: Any) -> list[str]:
        return _parse_str_list(value)

    @classmethod
    def load(cls) -> DeskbridgeConfig:
        """Load config from YAML + env vars (env takes precedence)."""
        yaml_cfg = _load_yaml_config()
        env_keys = _env_keys()

        def section(name: str) -> dict[str, Any]:
            data = yaml_cfg.pop(name, {}) or {}
            return _without_env_overrides(data, f"DESKBRIDGE_{name.upper()}_", env_keys)

        llm_data = section("llm")
        helpdesk_data = section("helpdesk")
        widget_data = section("widget")
        relay_data = section("relay")

        # Init kwargs outrank both env vars and .env in pydantic-settings, so
        # YAML keys that either of them sets are dropped above.
        kwargs: dict[str, Any] = _without_env_overrides(yaml_cfg, "DESKBRIDGE_", env_keys)
        if llm_data:
            kwargs["llm"] = LLMConfig(**llm_data)
        if helpdesk_data:
            kwargs["helpdesk"] = HelpdeskConfig(**helpdesk_data)
        if widget_data:
            kwargs["widget"] = WidgetConfig(**widget_data)
        if relay_data:
            kwargs["relay"] = RelayConfig(**relay_data)

        return cls(**kwargs)

    def masked(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump()
        for section, key in (("llm", "api_key"), ("helpdesk", "api_token")):
            if data[section].get(key):
                data[section][key] = "***"
        return data
