"""Failure taxonomy for oracle calls."""
from __future__ import annotations

from typing import Optional


class LlmGatewayError(RuntimeError):  # Base gateway error
    failure_class = "unknown"

    def __init__(self, message: str, *, http_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.http_status = http_status


class TransientLlmError(LlmGatewayError):  # Worth another attempt
    pass


class PermanentLlmError(LlmGatewayError):  # Fail fast
    pass


class NetworkFailure(TransientLlmError):
    failure_class = "network"


class ServerFailure(TransientLlmError):
    failure_class = "server"


class RateLimited(TransientLlmError):
    failure_class = "rate_limit"


class ParseFailure(TransientLlmError):
    failure_class = "parse"


class SchemaViolation(TransientLlmError):
    failure_class = "schema"


class ClientFailure(PermanentLlmError):
    failure_class = "client"


class MissingCredentials(PermanentLlmError):
    failure_class = "credentials"


def failure_for_status(status: int, detail: str = "") -> LlmGatewayError:
    """Map an HTTP error status to its failure class."""

    message = f"LLM returned status {status}" + (f": {detail}" if detail else "")
    if status == 429:
        return RateLimited(message, http_status=status)
    if status >= 500:
        return ServerFailure(message, http_status=status)
    return ClientFailure(message, http_status=status)


__all__ = [
    "ClientFailure",
    "LlmGatewayError",
    "MissingCredentials",
    "NetworkFailure",
    "ParseFailure",
    "PermanentLlmError",
    "RateLimited",
    "SchemaViolation",
    "ServerFailure",
    "TransientLlmError",
    "failure_for_status",
]
