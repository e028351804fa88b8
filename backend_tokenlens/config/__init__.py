"""
Configuration management for Backend TokenLens.

Loads settings from environment variables and an optional project-root .env
file. Exposes a single source of truth for RPC, explorer, database and API settings.
"""

from backend_tokenlens.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
