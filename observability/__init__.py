"""Observability utilities for the evaluation core."""
from .logger import log_event

__all__ = ["log_event"]
