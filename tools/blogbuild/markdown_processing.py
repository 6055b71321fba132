from __future__ import annotations

import base64
import re
from typing import Dict, Set

from .assets import hashed_asset_name
from .config import (
    ASSET_DIR_NAME,
    ATTACHMENT_URL,
    BLOCK_HTML,
    BLOCK_MATH,
    FENCE,
    INLINE_MATH,
    MD_HEADING,
    SETEXT_RE,
)
from .utils import normalize_markdown_light

_EXPLICIT_ID = re.compile(r"\s*\{\s*#(?P<id>[-a-z0-9]+)\s*\}\s*$")


def pad_block_html(md: str) -> str:
    lines, out, in_code = md.splitlines(), [], False
    for i, line in enumerate(lines):
        if line.strip().startswith(("```", "~~~")):
            in_code = not in_code
        if (not in_code) and BLOCK_HTML.match(line):
            if out and out[-1] != "":
                out.append("")
            out.append(line)
            if i + 1 < len(lines) and lines[i + 1].strip() != "":
                out.append("")
            continue
        out.append(line)
    text = "\n".join(out)
    if md.endswith("\n") and not text.endswith("\n"):
        text += "\n"
    return text


def map_noncode(md: str, fn):
    parts, last = [], 0
    for m in FENCE.finditer(md):
        pre = md[last : m.start()]
        parts.append(fn(pre))
        parts.append(md[m.start() : m.end()])
        last = m.end()
    parts.append(fn(md[last:]))
    return "".join(parts)


def map_noncode_nonmath(md: str, fn):
    def _strip_math(s):
        spans, tokens = [], []

        def _hold(regex, text):
            def repl(m):
                token = f"@@M{len(spans)}@@"
                spans.append(m.group(0))
                tokens.append(token)
                return token

            return regex.sub(repl, text)

        t = _hold(BLOCK_MATH, s)
        t = _hold(INLINE_MATH, t)
        t = fn(t)
        for token, span in zip(tokens, spans):
            t = t.replace(token, span, 1)
        return t

    return map_noncode(md, _strip_math)


def slugify_heading(text: str) -> str:
    s = text.strip().lower()
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"[^a-z0-9\-]", "", s)
    s = re.sub(r"-{2,}", "-", s).strip("-")
    return s or "section"


def add_heading_ids(md_text: str, used_ids: Dict[str, int]) -> str:
    """Give every heading an inline `{#id}`.

    `used_ids` is shared across calls so ids stay unique over a whole post
    (a notebook calls this once per markdown cell).
    """
    converted: Set[str] = set()

    def unique_id(base: str) -> str:
        n = used_ids.get(base, 0)
        used_ids[base] = n + 1
        return base if n == 0 else f"{base}-{n}"

    # Setext → ATX with inline {#id}
    def _setext(m):
        level = 1 if m.group("underline").startswith("=") else 2
        text = m.group("text").strip()
        hid = unique_id(slugify_heading(text))
        converted.add(hid)
        return f"{'#' * level} {text} {{#{hid}}}"

    text = SETEXT_RE.sub(_setext, md_text)

    lines = text.splitlines()
    for i, line in enumerate(lines):
        m = MD_HEADING.match(line)
        if not m:
            continue
        level = len(m.group("hash"))
        head_txt = m.group("text").strip()
        explicit = _EXPLICIT_ID.search(head_txt)
        if explicit:
            hid = explicit.group("id")
            # setext headings converted above are already counted
            if hid not in converted:
                used_ids[hid] = used_ids.get(hid, 0) + 1
            continue
        hid = unique_id(slugify_heading(head_txt))
        lines[i] = f"{'#' * level} {head_txt} {{#{hid}}}"
    text = "\n".join(lines)

    if md_text.endswith("\n") and not text.endswith("\n"):
        text += "\n"
    return text


_ATTACHMENT_EXT = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/svg+xml": ".svg",
    "image/webp": ".webp",
}


def extract_markdown_attachments(
    source: str,
    attachments: Dict[str, Dict[str, str]],
    assets: Dict[str, bytes],
    url_prefix: str,
) -> str:
    """Replace `attachment:foo.png` references in a notebook markdown cell."""

    def _repl(m):
        name = m.group("name")
        blob = attachments.get(name)
        if not blob:
            return m.group(0)
        mime, b64 = next(iter(blob.items()))
        if isinstance(b64, list):
            b64 = "".join(b64)
        data = base64.b64decode(b64)
        ext = _ATTACHMENT_EXT.get(mime, ".bin")
        fname = hashed_asset_name(f"att-{name.rsplit('.', 1)[0]}{ext}", data)
        assets[fname] = data
        return f"{url_prefix.rstrip('/')}/{ASSET_DIR_NAME}/{fname}"

    return ATTACHMENT_URL.sub(_repl, source)


def prepare_markdown(md: str, used_ids: Dict[str, int]) -> str:
    """Block HTML padding, heading ids and whitespace cleanup."""
    md = map_noncode(md, pad_block_html)
    md = map_noncode_nonmath(md, lambda s: add_heading_ids(s, used_ids))
    return map_noncode_nonmath(md, normalize_markdown_light)
