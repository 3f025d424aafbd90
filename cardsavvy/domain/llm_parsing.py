"""Parse JSON objects out of free-text model replies.

Models are asked for JSON but often wrap it in markdown fences or add a
sentence before/after. ``parse_json_reply`` extracts the outermost object and
returns a tagged result instead of raising, so callers decide what the
substitute value is.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, TypeVar, Union

T = TypeVar("T")

_FENCE_RE = re.compile(r"```[a-zA-Z]*")


@dataclass
class Parsed:
    """Reply contained a JSON object"""

    value: Dict[str, Any]


@dataclass
class Fallback(Generic[T]):
    """Reply was unusable; ``value`` is the caller's default"""

    value: T
    raw: str
    error: str


ParseResult = Union[Parsed, Fallback]


def clean_model_reply(content: str) -> str:
    """Strip code fences and prose, keeping the first ``{`` .. last ``}`` span"""
    cleaned = _FENCE_RE.sub("", content).strip()
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last > first:
        cleaned = cleaned[first:last + 1]
    return cleaned.strip()


def parse_json_reply(content: str | None, default: T) -> Union[Parsed, Fallback[T]]:
    """
    Parse a model reply into a dict.

    Returns:
        Parsed(value) when a JSON object was found, otherwise
        Fallback(default) carrying the raw text and the parse error.
    """
    if not content or not content.strip():
        return Fallback(value=default, raw=content or "", error="empty reply")

    cleaned = clean_model_reply(content)
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return Fallback(value=default, raw=content, error=str(e))

    if not isinstance(value, dict):
        return Fallback(value=default, raw=content, error=f"expected object, got {type(value).__name__}")

    return Parsed(value=value)
