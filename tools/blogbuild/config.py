#!/usr/bin/env python3
from __future__ import annotations

import os
import pathlib
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

# ---------- Paths

# This assumes config.py sits in tools/blogbuild/ under the repo root.
ROOT = pathlib.Path(__file__).resolve().parents[2]
CONTENT_DIR = ROOT / "content" / "blog"
STATIC_ASSET_DIR = ROOT / "content" / "assets"
PUBLIC_DIR = ROOT / "public"
SITE_CONFIG = ROOT / "site-config.yml"
TEMPLATE_DIR = pathlib.Path(__file__).resolve().parent / "templates"

# ---------- Config

ASSET_DIR_NAME = "assets"
STATIC_DIR_NAME = "static"
ICON_DIR_NAME = "icons"
# top-level output directories shared by every page; no post may own one
RESERVED_SLUG_SEGMENTS = frozenset({ASSET_DIR_NAME, STATIC_DIR_NAME, ICON_DIR_NAME})
ASSET_SOURCE_DIR_CANDIDATES = ("assets", "_assets")
POST_SUFFIXES = (".md", ".ipynb")
EXCERPT_PRUNE_LENGTH = 160
EXCERPT_ELLIPSIS = "…"
WORDS_PER_MINUTE = 265
DATE_FORMAT = "%B %d, %Y"
FEED_FILE = "rss.xml"
MANIFEST_FILE = "manifest.webmanifest"
NOT_FOUND_FILE = "404.html"

# Shared regexes

MD_LINK_IMG = re.compile(
    r'(!?)\[(?P<alt>[^\]]*)\]\((?P<url>[^)\s]+)(?:\s+"[^"]*")?\)'
)
HTML_SRC_OR_HREF = re.compile(
    r'(?P<attr>\bsrc\b|\bhref\b)\s*=\s*([\'"])(?P<url>[^\'"]+)\2'
)
MD_HEADING = re.compile(r'^(?P<hash>#{1,6})\s+(?P<text>.+?)\s*$',
                        re.MULTILINE)
SETEXT_RE = re.compile(
    r'^(?P<text>[^\n#`>|-][^\n]*?)\n(?P<underline>=+|-+)[ \t]*$',
    re.MULTILINE,
)
ATTACHMENT_URL = re.compile(r'\battachment:(?P<name>[^)\s]+)')
BLOCK_HTML = re.compile(
    r'^(<(?P<tag>(div|table|figure|video|iframe|details|summary|blockquote)\b)'
    r'[\s\S]*?>[\s\S]*?</(?P=tag)>)$',
    re.MULTILINE,
)
FENCE = re.compile(r"(^```.*?$)(.*?)(^```$)",
                   re.MULTILINE | re.DOTALL)
INLINE_MATH = re.compile(r'(?<!\\)\$(.+?)(?<!\\)\$')
BLOCK_MATH = re.compile(
    r'(^\$\$.*?^\$\$)', re.MULTILINE | re.DOTALL
)
SPACES_EOL = re.compile(r'[ \t]+$', re.MULTILINE)
SLUG_RE = re.compile(r"[^a-z0-9-]+")
HTML_TAG = re.compile(r"<[^>]+>")


# ---------- Site metadata


@dataclass(frozen=True)
class Social:
    github: str = ""
    linkedin: str = ""


@dataclass(frozen=True)
class SiteMetadata:
    title: str
    author: str = ""
    description: str = ""
    site_url: str = ""
    repository: str = ""
    social: Social = field(default_factory=Social)


@dataclass(frozen=True)
class SiteConfig:
    metadata: SiteMetadata
    manifest: Dict[str, Any] = field(default_factory=dict)
    tracking_id: Optional[str] = None
    disqus_shortname: Optional[str] = None


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def parse_site_config(raw: Dict[str, Any], env=None) -> SiteConfig:
    """Build a SiteConfig from the parsed YAML mapping.

    ``DISQUS_SHORTNAME`` and ``GA_TRACKING_ID`` in ``env`` take precedence
    over the file; both are passed through untouched.
    """
    env = os.environ if env is None else env
    meta = _section(raw, "siteMetadata")
    title = meta.get("title")
    if not title:
        raise ConfigError("siteMetadata.title is required")
    social = _section(meta, "social")

    metadata = SiteMetadata(
        title=str(title),
        author=str(meta.get("author") or ""),
        description=str(meta.get("description") or ""),
        site_url=str(meta.get("siteUrl") or ""),
        repository=str(meta.get("repository") or ""),
        social=Social(
            github=str(social.get("github") or ""),
            linkedin=str(social.get("linkedin") or ""),
        ),
    )
    analytics = _section(raw, "analytics")
    comments = _section(raw, "comments")
    return SiteConfig(
        metadata=metadata,
        manifest=_section(raw, "manifest"),
        tracking_id=env.get("GA_TRACKING_ID") or analytics.get("trackingId"),
        disqus_shortname=(
            env.get("DISQUS_SHORTNAME") or comments.get("disqusShortname")
        ),
    )


def load_site_config(path: pathlib.Path = SITE_CONFIG, env=None) -> SiteConfig:
    if not path.exists():
        raise ConfigError(f"{path.name} missing at {path.parent}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{path.name} is not valid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path.name} must contain a mapping")
    return parse_site_config(raw, env=env)
