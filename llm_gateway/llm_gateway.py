from __future__ import annotations  # Oracle request gateway module

import logging
import os
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import httpx

from config.routes import LlmRoute
from observability.logger import log_event

from .errors import (
    LlmGatewayError,
    MissingCredentials,
    NetworkFailure,
    ParseFailure,
    PermanentLlmError,
    SchemaViolation,
    failure_for_status,
)
from .extraction import extract_structured, has_required_keys
from .retry import RetryPolicy, describe


logger = logging.getLogger(__name__)  # Module logger setup


_MODEL_LOCKS: Dict[str, threading.Lock] = {}
_MODEL_LOCKS_GUARD = threading.Lock()


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(
        self,
        url: str,
        *,
        json: Dict[str, Any],
        headers: Dict[str, str],
        params: Dict[str, str],
        timeout: float,
    ) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


def _lock_for(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _MODEL_LOCKS_GUARD:
        lock = _MODEL_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _MODEL_LOCKS[key] = lock
    return lock


def invoke(
    prompt: str,
    required_keys: List[str],
    fallback: Any,
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """Send ``prompt`` to the route and return a structured value holding ``required_keys``.

    Expected failures never escape: after the retry schedule is exhausted, or on a
    non-retryable failure, ``fallback`` is returned unchanged.
    """

    retry_policy = policy or RetryPolicy.for_route(cfg)

    def _execute() -> Any:
        preview = _preview(prompt)
        logger.info(
            "LLM request start route=%s model=%s attempts=%d preview=%s",
            cfg.name,
            cfg.model,
            retry_policy.attempts,
            preview,
        )
        attempt = 0
        while True:
            sleep(cfg.pacing_delay_s)
            try:
                value = _attempt(prompt, required_keys, cfg, client)
            except LlmGatewayError as exc:
                log_event(
                    "llm_attempt",
                    level=logging.WARNING,
                    route=cfg.name,
                    attempt=attempt + 1,
                    status=exc.http_status or "-",
                    failure_class=describe(exc),
                )
                wait = retry_policy.delay_before_retry(exc, attempt)
                if wait is None:
                    _log_degraded(cfg, exc, attempt + 1)
                    return fallback
                logger.warning(
                    "Retrying LLM call in %.1fs route=%s attempt=%d reason=%s",
                    wait,
                    cfg.name,
                    attempt + 1,
                    exc,
                )
                sleep(wait)
                attempt += 1
                continue
            log_event("llm_attempt", route=cfg.name, attempt=attempt + 1, status=200, outcome="ok")
            logger.info("LLM request done route=%s model=%s attempt=%d", cfg.name, cfg.model, attempt + 1)
            return value

    if cfg.sequential:
        with _lock_for(cfg):
            return _execute()
    return _execute()


def _attempt(prompt: str, required_keys: List[str], cfg: LlmRoute, client: Optional[HttpClient]) -> Any:
    headers = {"Content-Type": "application/json"}
    params: Dict[str, str] = {}
    if cfg.api_key_env:
        api_key = os.getenv(cfg.api_key_env)
        if not api_key:
            raise MissingCredentials(f"{cfg.api_key_env} environment variable not set")
        if cfg.api_key_param:
            params[cfg.api_key_param] = api_key
        else:
            headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)

    try:
        response, close_cb = _post(
            f"{cfg.base_url}{cfg.endpoint}",
            _build_payload(cfg, prompt),
            headers,
            params,
            cfg.timeout_s,
            client,
        )
    except Exception as exc:  # noqa: BLE001
        raise NetworkFailure(f"LLM transport failed: {exc}") from exc

    try:
        if response.status_code >= 400:
            raise failure_for_status(response.status_code, _short(getattr(response, "text", "")))
        try:
            data = response.json()
        except (ValueError, RecursionError) as exc:
            raise ParseFailure("LLM payload was not JSON") from exc
    finally:
        _close_safely(close_cb)

    content = _extract_content(data)
    value = extract_structured(content)
    if value is None:
        logger.error("LLM JSON parse failed preview=%s", _short(content, 250))
        raise ParseFailure("LLM response did not contain valid JSON")
    if not has_required_keys(value, required_keys):
        raise SchemaViolation(f"LLM response missing required keys {required_keys}")
    return value


def _build_payload(cfg: LlmRoute, prompt: str) -> Dict[str, Any]:  # Shape request body for the route style
    if cfg.payload_style == "generate_content":
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": cfg.temperature,
                "maxOutputTokens": cfg.max_output_tokens,
            },
        }
    return {
        "model": cfg.model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": cfg.temperature,
        "max_tokens": cfg.max_output_tokens,
    }


def _post(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    params: Dict[str, str],
    timeout: float,
    client: Optional[HttpClient],
) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        response = client.post(url, json=payload, headers=headers, params=params, timeout=timeout)
        return response, None
    http_client = httpx.Client(timeout=timeout)
    try:
        response = http_client.post(url, json=payload, headers=headers, params=params)
    except Exception:
        http_client.close()
        raise
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _extract_content(data: Any) -> str:  # Extract completion text from the response envelope
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        candidates = data.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content")
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list) and parts and isinstance(parts[0], dict) and isinstance(parts[0].get("text"), str):
                return parts[0]["text"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise ParseFailure("LLM response missing content")


def _log_degraded(cfg: LlmRoute, exc: LlmGatewayError, attempts: int) -> None:
    if isinstance(exc, PermanentLlmError):
        logger.warning("LLM call failed fast route=%s class=%s: %s", cfg.name, describe(exc), exc)
    else:
        logger.error(
            "LLM call exhausted route=%s attempts=%d class=%s: %s",
            cfg.name,
            attempts,
            describe(exc),
            exc,
        )
    log_event(
        "llm_fallback",
        level=logging.WARNING,
        route=cfg.name,
        attempt=attempts,
        status=exc.http_status or "-",
        failure_class=describe(exc),
    )


def _preview(prompt: str) -> str:  # Build preview string for logging
    for line in (prompt or "").strip().splitlines():
        if line.strip():
            return _short(line.strip(), 120)
    return ""


def _short(text: str, limit: int = 200) -> str:
    text = str(text or "")
    return text if len(text) <= limit else text[: limit - 3] + "..."
