"""Helper functions"""

import re
import hashlib
import json
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional


def generate_hash(text: str) -> str:
    """Return the SHA-256 hex digest of a text"""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def clean_text(text: str) -> str:
    """Collapse whitespace and drop control characters"""
    if not text:
        return ""

    text = re.sub(r"\s+", " ", text.strip())
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]", "", text)
    return text


def strip_markdown(text: str) -> str:
    """Remove markdown markup, keeping the readable text"""
    if not text:
        return ""

    text = re.sub(r"```.*?```", " ", text, flags=re.DOTALL)
    text = re.sub(r"`([^`]*)`", r"\1", text)
    text = re.sub(r"!\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"^\s{0,3}#{1,6}\s*", "", text, flags=re.MULTILINE)
    text = re.sub(r"^\s{0,3}>\s?", "", text, flags=re.MULTILINE)
    text = re.sub(r"^\s*([-*+]|\d+\.)\s+", "", text, flags=re.MULTILINE)
    text = re.sub(r"^\s*([-*_]\s*){3,}$", "", text, flags=re.MULTILINE)
    text = re.sub(r"(\*\*|__)(.+?)\1", r"\2", text)
    text = re.sub(r"(?<![\w*])\*(?!\s)(.+?)(?<!\s)\*(?![\w*])", r"\1", text)
    text = re.sub(r"(?<!\w)_(?!\s)(.+?)(?<!\s)_(?!\w)", r"\1", text)
    text = re.sub(r"~~(.+?)~~", r"\1", text)
    text = re.sub(r"\n\s*\n+", "\n", text)
    return text.strip()


def normalize_skill_name(skill: str) -> str:
    """Lowercase and trim a skill name for matching"""
    return (skill or "").lower().strip()


def dedupe_preserving_order(items: Iterable[str]) -> List[str]:
    """Drop case-insensitive duplicates and blanks, keeping first occurrences"""
    seen = set()
    result = []
    for item in items:
        if not isinstance(item, str):
            continue
        value = item.strip()
        key = value.lower()
        if not value or key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def extract_keywords(text: str, min_length: int = 4) -> List[str]:
    """Split text on whitespace and keep tokens of at least min_length characters"""
    if not text:
        return []
    return [word for word in text.split() if len(word) >= min_length]


def utc_now() -> datetime:
    """Timezone-aware current time"""
    return datetime.now(timezone.utc)


def to_iso_date(value: Optional[date]) -> Optional[str]:
    """Format a date as YYYY-MM-DD"""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def extract_json_object(text: str) -> Optional[Any]:
    """Parse a JSON object from model output, tolerating code fences and prose"""
    if not text:
        return None

    text = text.strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, flags=re.DOTALL)
    if fenced:
        text = fenced.group(1).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            return None
    return None


def truncate_text(text: str, max_length: int = 1000, suffix: str = "...") -> str:
    """Truncate text to max_length characters"""
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix
