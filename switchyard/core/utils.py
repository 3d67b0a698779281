"""
Switchyard Utility Module
"""

import json
import logging
import re
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger("switchyard.utils")

_DASH_WORD = re.compile(r"-\w")


def normalize_header(name: str) -> str:
    """
    Normalize a header name to Title-Case.

    Example: "content-type" -> "Content-Type", "X-API-KEY" -> "X-Api-Key"
    """
    if not name:
        return name
    lowered = name[0].upper() + name[1:].lower()
    return _DASH_WORD.sub(lambda m: "-" + m.group(0)[1].upper(), lowered)


def normalize_headers(headers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return {normalize_header(k): v for k, v in (headers or {}).items()}


def is_json(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.split(";")[0].strip().lower() == "application/json"


def parse_body(body: Any, content_type: Optional[str]) -> Any:
    """
    Decode a raw body.

    JSON bodies are decoded when the content type says so; anything that
    fails to decode is returned verbatim.
    """
    if not is_json(content_type) or not isinstance(body, (str, bytes, bytearray)):
        return body

    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning(
            "Failed to parse request body as JSON. Passing it through as-is.",
            extra={"snippet": str(body[:200])},
        )
        return body


def encode_body(body: Any, content_type: Optional[str]) -> Any:
    """Encode a response body for hosts that expect a string payload."""
    if not is_json(content_type):
        return body
    return json.dumps(body, ensure_ascii=False, default=str)


def split_path(url: str) -> str:
    """Drop scheme/host and query string from a url, keeping the path."""
    path = re.sub(r"^https?://[^/]+", "", url or "")
    path = path.split("?", 1)[0]
    return path or "/"
