"""Text processing utilities shared across services."""

import json
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

TRUNCATION_NOTE = "[Note: Answer truncated from {original} characters to fit processing limits]"


@dataclass
class JsonParseResult:
    """Outcome of a lenient JSON parse."""

    ok: bool
    value: Any = None
    error: str = ""


def extract_json_object(text: str) -> str | None:
    """Best-effort: the span from the first '{' to the last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start:end + 1]


def safe_json_parse(raw: Any) -> JsonParseResult:
    """
    Parse generator output as JSON without raising.

    Structured values (dicts, lists) are accepted as already parsed. Text is
    parsed directly first, then via the outermost ``{...}`` span to survive
    prose or markdown fences around the payload.
    """
    if raw is None:
        return JsonParseResult(ok=False, error="Input is None")

    if isinstance(raw, (dict, list)):
        return JsonParseResult(ok=True, value=raw)

    text = raw if isinstance(raw, str) else str(raw)
    try:
        return JsonParseResult(ok=True, value=json.loads(text))
    except json.JSONDecodeError as e:
        extracted = extract_json_object(text)
        if extracted is None:
            return JsonParseResult(ok=False, error=str(e))
        try:
            return JsonParseResult(ok=True, value=json.loads(extracted))
        except json.JSONDecodeError as e2:
            return JsonParseResult(ok=False, error=str(e2))


def truncate_answer(text: str, max_length: int) -> tuple[str, bool]:
    """
    Bound a candidate answer before it reaches the grader.

    Returns:
        (text, truncated) where oversized text is cut to ``max_length``
        characters followed by a note with the original length
    """
    if len(text) <= max_length:
        return text, False
    note = TRUNCATION_NOTE.format(original=len(text))
    logger.info(f"Truncating answer from {len(text)} to {max_length} characters")
    return f"{text[:max_length]}\n\n{note}", True
