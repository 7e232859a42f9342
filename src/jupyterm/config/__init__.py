"""Configuration management for jupyterm.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for the server token.
"""

from jupyterm.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
