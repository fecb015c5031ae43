"""Utility modules."""

from interview_coach.utils.text import (
    JsonParseResult,
    extract_json_object,
    safe_json_parse,
    truncate_answer,
)

__all__ = [
    "JsonParseResult",
    "extract_json_object",
    "safe_json_parse",
    "truncate_answer",
]
