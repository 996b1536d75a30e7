"""Defensive parsing of reasoning-service replies.

Replies are plain text. Structure (JSON objects, fenced code blocks) is a convention
that may be missing, so every helper here either returns the extracted value or
raises ``ReplyFormatError`` carrying the raw reply for diagnosis.
"""

from typing import Any, Optional
import json
import re

from modification_service.errors import ReplyFormatError

RAW_PREVIEW_CHARS = 300

_FENCE = re.compile(r"```[ \t]*([\w.+-]*)[ \t]*\n(.*?)(?:\n)?```", re.DOTALL)
_FILE_MARKER = re.compile(r"^\s*(?://|#|/\*)\s*FILE:\s*(\S+?)\s*(?:\*/)?\s*$", re.IGNORECASE)


def extract_string_content(obj: Any) -> str:
    """Extract text from a reply object.

    Handles plain strings, LangChain messages (``.content``) and objects with ``.text``.
    """
    if isinstance(obj, str):
        return obj
    if hasattr(obj, "content"):
        content = obj.content
        if isinstance(content, list):
            return "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in content
            )
        return str(content)
    if hasattr(obj, "text"):
        return str(obj.text)
    return str(obj)


def preview(raw: str, limit: int = RAW_PREVIEW_CHARS) -> str:
    """Truncated one-line preview of a raw reply for log events."""
    flat = " ".join(str(raw).split())
    return flat if len(flat) <= limit else flat[:limit] + "..."


def extract_json_object(raw: str) -> dict[str, Any]:
    """Return the first JSON object found in ``raw``.

    Tries the whole reply, then fenced blocks, then the outermost brace span.
    """
    text = raw.strip()
    candidates = [text]
    candidates.extend(body for _, body in _FENCE.findall(text))
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(value, dict):
            return value
    raise ReplyFormatError("reply contains no JSON object", raw_reply=raw)


def extract_code_block(raw: str) -> tuple[Optional[str], str]:
    """Return ``(file_marker, code)`` from the first fenced block of ``raw``.

    A ``// FILE: path`` marker may sit on the line right before the fence or on the
    first line inside it; it is stripped from the code either way.
    """
    match = _FENCE.search(raw)
    if match is None:
        raise ReplyFormatError("reply contains no fenced code block", raw_reply=raw)

    body = match.group(2)
    marker = None
    body_lines = body.split("\n")
    if body_lines and _FILE_MARKER.match(body_lines[0]):
        marker = _FILE_MARKER.match(body_lines[0]).group(1)
        body_lines = body_lines[1:]
    else:
        before = raw[:match.start()].rstrip().split("\n")
        if before and _FILE_MARKER.match(before[-1]):
            marker = _FILE_MARKER.match(before[-1]).group(1)

    code = "\n".join(body_lines).strip("\n")
    if not code.strip():
        raise ReplyFormatError("fenced code block is empty", raw_reply=raw)
    return marker, code + "\n"
