import ast
import json
import re
from typing import Any, Dict, List

import requests

from resumezap.config import get_settings
from resumezap.core.errors import AIResponseError, AIServiceError, ConfigurationError
from resumezap.core.logger import get_logger

logger = get_logger(__name__)

FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def upstream_error_message(status_code: int) -> str:
    if status_code == 429:
        return "AI service is busy. Please try again in a moment."
    if status_code == 401:
        return "AI service authentication error"
    return "AI service temporarily unavailable"


def claude_messages(system: str, content: List[Dict[str, Any]]) -> str:
    """Send one user turn to the Messages API and return the first text block."""
    settings = get_settings()
    if not settings.anthropic_api_key:
        logger.error("ANTHROPIC_API_KEY not found in environment variables")
        raise ConfigurationError("AI service configuration error")

    payload = {
        "model": settings.model,
        "max_tokens": settings.max_tokens,
        "system": system,
        "messages": [{"role": "user", "content": content}],
    }
    headers = {
        "Content-Type": "application/json",
        "x-api-key": settings.anthropic_api_key,
        "anthropic-version": settings.anthropic_version,
    }

    try:
        r = requests.post(
            settings.anthropic_url,
            json=payload,
            headers=headers,
            timeout=settings.request_timeout,
        )
    except requests.RequestException as e:
        logger.error("Claude API request failed: %s", e)
        raise AIServiceError("Network error: Unable to connect to AI service.") from e

    if r.status_code != 200:
        logger.error("Claude API error: %s %s", r.status_code, r.text[:500])
        raise AIServiceError(upstream_error_message(r.status_code))

    try:
        data = r.json()
        text = data["content"][0]["text"]
    except (ValueError, KeyError, IndexError, TypeError):
        logger.error("Unexpected Claude response format: %s", r.text[:500])
        raise AIResponseError("Invalid AI response format")

    if not text:
        raise AIResponseError("Invalid AI response format")
    return text


def extract_json_strict(text: str) -> dict:
    """
    Claude sometimes wraps JSON with prose or a markdown fence.
    We try:
      1) json.loads on the (unfenced) text
      2) parse substring from first '{' to last '}'
      3) ast.literal_eval as fallback (handles single quotes) then verify dict
    """
    text = FENCE_RE.sub("", (text or "").strip())
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except ValueError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise AIResponseError("AI response parsing error")

    candidate = text[start : end + 1]
    try:
        parsed = json.loads(candidate)
    except ValueError:
        try:
            parsed = ast.literal_eval(candidate)
        except (ValueError, SyntaxError, MemoryError, RecursionError):
            logger.error("Failed to parse Claude JSON response: %s", candidate[:500])
            raise AIResponseError("AI response parsing error")

    if not isinstance(parsed, dict):
        raise AIResponseError("AI response parsing error")
    return parsed
