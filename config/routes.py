"""Oracle route configuration and task registry loading."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal

from pydantic import BaseModel, Field

from .settings import settings


class LlmRoute(BaseModel):
    """Text-completion endpoint configuration."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(default_factory=lambda: settings.LLM_TIMEOUT_S, ge=0.1)
    max_retries: int = Field(default=2, ge=0)
    retry_delays_s: List[float] = Field(default_factory=lambda: list(settings.LLM_RETRY_DELAYS_S))
    pacing_delay_s: float = Field(default_factory=lambda: settings.LLM_PACING_DELAY_S, ge=0.0)
    api_key_env: str | None = None
    api_key_param: str | None = None
    payload_style: Literal["chat", "generate_content"] = "chat"
    temperature: float = 0.2
    max_output_tokens: int = 4096
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False


class AppConfig(BaseModel):
    """Application configuration root."""

    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]


def load_config(path: Path) -> AppConfig:
    """Load configuration from disk."""

    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_registry(cfg: AppConfig, tasks: List[str]) -> Dict[str, LlmRoute]:
    """Map each oracle task key to its configured route."""

    resolved: Dict[str, LlmRoute] = {}
    for task in tasks:
        if task not in cfg.registry:
            raise KeyError(f"Registry entry missing for '{task}'")
        route_id = cfg.registry[task]
        if route_id not in cfg.llm_routes:
            raise KeyError(f"Route '{route_id}' missing for '{task}'")
        resolved[task] = cfg.llm_routes[route_id]
    return resolved


def load_app_registry(path: Path, tasks: List[str]) -> Dict[str, LlmRoute]:
    """Load configuration and build registry."""

    cfg = load_config(path)
    return resolve_registry(cfg, tasks)
