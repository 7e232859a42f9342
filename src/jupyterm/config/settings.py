"""Configuration management for jupyterm.

Loads settings from a YAML configuration file with environment variable
overrides for sensitive values (the server token). Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/jupyterm.yaml")


class ServerConfig(BaseModel):
    url: str = Field(default="http://localhost:8888", description="Jupyter server URL")
    token: SecretStr = Field(default=SecretStr(""), description="Jupyter authentication token")
    terminal: str = Field(default="", description="Existing terminal name; empty provisions a new one")


class TimingConfig(BaseModel):
    startup_grace: float = Field(default=1.0, ge=0, description="Max wait for the setup signal")
    command_wait: float = Field(default=2.0, ge=0, description="Min wait for single-shot output")
    command_max_wait: float = Field(default=10.0, gt=0, description="Max wait while single-shot output keeps arriving")
    output_quiet: float = Field(default=0.5, gt=0, description="Output silence that ends a single-shot wait")
    input_pause: float = Field(default=0.1, ge=0, description="Pause after each interactive send")
    teardown_delay: float = Field(default=0.5, ge=0, description="Pause after sending the teardown command")
    close_timeout: float = Field(default=1.0, gt=0, description="Max wait for relay tasks after close")


class SessionConfig(BaseModel):
    exit_keyword: str = Field(default="exit", description="Local input that ends the interactive loop")
    teardown_command: str = Field(default="exit", description="Shell command sent to the terminal on teardown")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for jupyterm.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "JUPYTERM_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.debug("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _apply_env_overrides(yaml_data: dict) -> None:
    """Fill the server token from JUPYTER_TOKEN when none is configured."""
    jupyter_token = os.environ.get("JUPYTER_TOKEN", "")
    if not jupyter_token:
        return

    server = yaml_data.setdefault("server", {})
    if not server.get("token"):
        server["token"] = jupyter_token
