"""
JSON extraction for model output.
Models tend to wrap JSON in commentary or code fences.
"""

import json
import re
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def parse_model_json(response_text: str, fallback: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """
    Extract the first JSON object from model output.

    Handles:
    - Commentary before/after the JSON
    - ```json fenced blocks
    - Trailing commas

    Args:
        response_text: Raw model output
        fallback: Value returned when nothing parses

    Returns:
        Parsed object, or fallback if parsing fails
    """
    if not response_text:
        logger.warning("Empty model response")
        return fallback

    try:
        parsed = json.loads(response_text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    fenced = _FENCE_PATTERN.search(response_text)
    if fenced:
        try:
            parsed = json.loads(clean_json_string(fenced.group(1)))
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            logger.debug("Fenced JSON block did not parse, scanning for braces")

    candidate = _first_balanced_object(response_text)
    if candidate is None:
        logger.warning("No JSON object found in model response")
        return fallback

    try:
        parsed = json.loads(clean_json_string(candidate))
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse model JSON: {e}. Preview: {response_text[:200]}...")
        return fallback

    return parsed if isinstance(parsed, dict) else fallback


def clean_json_string(json_str: str) -> str:
    """
    Remove trailing commas before closing braces and brackets.

    Args:
        json_str: Raw JSON text

    Returns:
        Cleaned JSON text
    """
    json_str = re.sub(r',\s*}', '}', json_str)
    json_str = re.sub(r',\s*]', ']', json_str)
    return json_str


def _first_balanced_object(text: str) -> Optional[str]:
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(text[start:], start=start):
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
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return None
