"""Recover a JSON object or array embedded in free-form oracle text.

Oracle replies are rarely clean JSON: they arrive wrapped in prose, inside
markdown fences, or with trailing commas. ``extract_structured`` tries a fixed
sequence of candidates and returns the first one that parses:

1. the whole reply after fence stripping and trailing-comma cleanup,
2. the first balanced ``{...}``/``[...]`` snippet of the cleaned reply,
3. the first balanced snippet of the raw reply,
4. the slice from the first ``{`` to the last ``}``,
5. the slice from the first ``[`` to the last ``]``.

The balanced scanner tracks string literals and backslash escapes so braces
inside quoted values do not end a snippet early.
"""
from __future__ import annotations

import json
import re
from typing import Any, Iterator, List, Optional, Tuple

_FENCE_OPEN = re.compile(r"```[a-zA-Z0-9_-]*")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_OPENERS = {"}": "{", "]": "["}


def sanitize(text: str) -> str:
    """Drop markdown fences and trailing commas before closing brackets."""

    cleaned = _FENCE_OPEN.sub("", text)
    cleaned = cleaned.replace("```", "")
    cleaned = _TRAILING_COMMA.sub(r"\1", cleaned)
    return cleaned.strip()


def find_balanced_snippet(text: str) -> Optional[str]:
    """Return the first balanced object/array substring, or None.

    Single pass over ``text``; a mismatched closer abandons every opener still
    waiting on the stack.
    """

    src = text or ""
    stack: List[int] = []
    best: Optional[Tuple[int, int]] = None
    in_string = False
    escaped = False
    for index, ch in enumerate(src):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append(index)
        elif ch in _OPENERS and stack:
            start = stack.pop()
            if src[start] != _OPENERS[ch]:
                stack.clear()
            elif best is None or start < best[0]:
                best = (start, index)
            if best is not None and not stack:
                break
    if best is None:
        return None
    return src[best[0] : best[1] + 1]


def _outer_slice(text: str, opener: str, closer: str) -> Optional[str]:
    start = text.find(opener)
    end = text.rfind(closer)
    if start != -1 and end != -1 and start < end:
        return text[start : end + 1]
    return None


def _candidates(raw: str) -> Iterator[str]:
    cleaned = sanitize(raw)
    yield cleaned
    for candidate in (
        find_balanced_snippet(cleaned),
        find_balanced_snippet(raw) if raw != cleaned else None,
        _outer_slice(cleaned, "{", "}"),
        _outer_slice(cleaned, "[", "]"),
    ):
        if candidate:
            yield candidate


def extract_structured(text: Optional[str]) -> Any:
    """Parse the first embedded JSON value from ``text``; None when nothing parses."""

    raw = str(text or "").strip()
    if not raw:
        return None
    for candidate in _candidates(raw):
        try:
            return json.loads(candidate)
        except (ValueError, RecursionError):
            continue
    return None


def has_required_keys(value: Any, required_keys: List[str]) -> bool:
    """True when ``value`` is a mapping containing every key in ``required_keys``.

    With no required keys any parsed value (object or array) is accepted.
    """

    if not required_keys:
        return value is not None
    if not isinstance(value, dict):
        return False
    return all(key in value for key in required_keys)


__all__ = ["extract_structured", "find_balanced_snippet", "has_required_keys", "sanitize"]
