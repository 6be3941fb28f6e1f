"""Configuration package for the interview evaluation core."""
from .routes import AppConfig, LlmRoute, load_app_registry, load_config, resolve_registry
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_app_registry",
    "load_config",
    "resolve_registry",
    "Settings",
    "settings",
]
