from __future__ import annotations  # Re-export llm_gateway public API

from .errors import (
    LlmGatewayError,
    PermanentLlmError,
    SchemaViolation,
    TransientLlmError,
)
from .extraction import extract_structured, find_balanced_snippet, has_required_keys
from .llm_gateway import HttpClient, HttpResponse, invoke
from .retry import RetryPolicy, is_retryable

__all__ = [
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "PermanentLlmError",
    "RetryPolicy",
    "SchemaViolation",
    "TransientLlmError",
    "extract_structured",
    "find_balanced_snippet",
    "has_required_keys",
    "invoke",
    "is_retryable",
]
