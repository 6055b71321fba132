from __future__ import annotations

import hashlib
import html
import re
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

import yaml

from .config import (
    DATE_FORMAT,
    HTML_TAG,
    SLUG_RE,
    SPACES_EOL,
)


def slugify(s: str) -> str:
    return re.sub(r"-{2,}", "-", SLUG_RE.sub("-", s.lower()).strip("-"))


def natural_key(s: str):
    return [int(t) if t.isdigit() else t for t in re.split(r'(\d+)', s.lower())]


def bytes_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:8]


def _norm_text(s: str) -> str:
    return s.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff')


def coerce_date(v) -> Optional[date]:
    """Turn a front-matter date value into a ``date``, or None.

    Accepts YAML dates and datetimes, ISO 8601 strings (a trailing ``Z``
    included) and strings already in the display format.
    """
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if isinstance(v, str):
        s = v.strip().strip('"').strip("'")
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s).date()
        except ValueError:
            pass
        try:
            return datetime.strptime(s, DATE_FORMAT).date()
        except ValueError:
            return None
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def parse_frontmatter(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    s = text.lstrip()
    if not s.startswith("---\n") and not s.startswith("---\r\n"):
        return None, text

    lines = s.splitlines(keepends=True)
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            fm_text = "".join(lines[1:i])
            body = "".join(lines[i + 1 :])
            fm = yaml.safe_load(fm_text) or {}
            return fm, body
    return None, text


def normalize_markdown_light(md: str) -> str:
    md = SPACES_EOL.sub("", md)
    md = re.sub(r'\n{3,}', '\n\n', md)
    md = re.sub(r'([^\n])\n(#{1,6}\s)', r'\1\n\n\2', md)
    return md


def strip_html(fragment: str) -> str:
    text = html.unescape(HTML_TAG.sub(" ", fragment))
    return re.sub(r"\s+", " ", text).strip()


def prune(text: str, length: int, ellipsis: str = "…") -> str:
    """Cut ``text`` to at most ``length`` characters on a word boundary."""
    if len(text) <= length:
        return text
    head = text[: length + 1]
    if head[-1].isspace():
        head = head[:-1]
    else:
        head = re.sub(r"\s*\S+$", "", head)
    head = head.rstrip()
    if not head:
        head = text[:length]
    return head + ellipsis
