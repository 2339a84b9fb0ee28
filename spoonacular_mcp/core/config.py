from __future__ import annotations

import os
import shlex
import sys
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

DEFAULT_API_BASE = "https://api.spoonacular.com"
DEFAULT_HTTP_PORT = 3000
DEFAULT_PROXY_PORT = 8080
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigLoaderError(RuntimeError):
    pass


class Settings(BaseModel):
    api_key: SecretStr = Field(..., description="Spoonacular API key")
    api_base: str = Field(DEFAULT_API_BASE, description="Base URL for the Spoonacular REST API")
    request_timeout_seconds: float = Field(
        30,
        gt=0,
        description="Timeout in seconds for upstream Spoonacular requests",
    )
    port: Optional[int] = Field(None, ge=1, le=65535, description="Port taken from the PORT variable")
    server_command: List[str] = Field(
        default_factory=lambda: [sys.executable, "-m", "spoonacular_mcp", "stdio"],
        description="Command used by the proxy to spawn the stdio MCP server",
    )
    bridge_timeout_seconds: float = Field(
        30,
        gt=0,
        description="Seconds the proxy waits for a reply from the stdio MCP server",
    )
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level '{value}'")
        return level

    @property
    def safe_payload(self) -> Dict[str, object]:
        """Return the settings without the API key."""
        return self.model_dump(exclude={"api_key"})

    def proxy_port(self) -> int:
        return self.port or DEFAULT_PROXY_PORT


def _read_env(environ: Mapping[str, str]) -> Dict[str, object]:
    values: Dict[str, object] = {}

    api_key = (environ.get("SPOONACULAR_API_KEY") or "").strip()
    if not api_key:
        raise ConfigLoaderError("SPOONACULAR_API_KEY environment variable is required")
    values["api_key"] = api_key

    api_base = environ.get("SPOONACULAR_API_BASE")
    if api_base:
        values["api_base"] = api_base.rstrip("/")

    timeout = environ.get("SPOONACULAR_TIMEOUT_SECONDS")
    if timeout:
        values["request_timeout_seconds"] = timeout

    port = environ.get("PORT")
    if port:
        values["port"] = port

    command = environ.get("MCP_SERVER_COMMAND")
    if command:
        values["server_command"] = shlex.split(command)

    bridge_timeout = environ.get("MCP_BRIDGE_TIMEOUT_SECONDS")
    if bridge_timeout:
        values["bridge_timeout_seconds"] = bridge_timeout

    log_level = environ.get("MCP_LOG_LEVEL")
    if log_level:
        values["log_level"] = log_level.upper()

    return values


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from environment variables."""
    env = os.environ if environ is None else environ
    try:
        return Settings(**_read_env(env))
    except ValidationError as exc:
        raise ConfigLoaderError(str(exc)) from exc
