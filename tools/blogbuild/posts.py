from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

import nbformat
import yaml
from nbconvert import MarkdownExporter
from nbformat.reader import NotJSONError
from nbformat.validator import ValidationError, validate

from .assets import hashed_asset_name, rewrite_urls_and_collect_assets
from .config import (
    ASSET_DIR_NAME,
    EXCERPT_ELLIPSIS,
    EXCERPT_PRUNE_LENGTH,
    POST_SUFFIXES,
    RESERVED_SLUG_SEGMENTS,
    WORDS_PER_MINUTE,
)
from .errors import ContentError
from .markdown_html import render_markdown
from .markdown_processing import extract_markdown_attachments, prepare_markdown
from .utils import (
    _norm_text,
    coerce_date,
    format_date,
    natural_key,
    parse_frontmatter,
    prune,
    slugify,
    strip_html,
)
from .visibility import filter_and_apply_visibility

_H1 = re.compile(
    r'^\s*#\s+(.+?)\s*(?:\{\s*#[-a-z0-9]+\s*\})?\s*$',
    re.MULTILINE,
)


@dataclass(frozen=True)
class PostSummary:
    """What a neighbouring page needs to link to a post."""

    slug: str
    title: str


@dataclass(frozen=True)
class Post:
    slug: str
    title: str
    date: date
    excerpt: str
    html: str
    description: Optional[str] = None
    read_time_minutes: Optional[int] = None
    source_path: Optional[pathlib.Path] = None
    assets: Mapping[str, bytes] = field(default_factory=dict, compare=False, repr=False)

    @property
    def formatted_date(self) -> str:
        return format_date(self.date)

    @property
    def seo_description(self) -> str:
        return self.description or self.excerpt

    @property
    def summary(self) -> PostSummary:
        return PostSummary(slug=self.slug, title=self.title)


def slug_for(path: pathlib.Path, content_dir: pathlib.Path) -> str:
    """`hello-world/index.md` -> `/hello-world/`, `notes.md` -> `/notes/`."""
    rel = path.relative_to(content_dir).with_suffix("")
    parts = list(rel.parts)
    if parts and parts[-1] == "index":
        parts.pop()
    parts = [slugify(p) for p in parts]
    if not parts or not all(parts):
        raise ContentError("cannot derive a slug from the file path", path)
    if parts[0] in RESERVED_SLUG_SEGMENTS:
        raise ContentError(
            f"slug /{parts[0]}/ is reserved for generated files", path
        )
    return "/" + "/".join(parts) + "/"


def time_to_read(html: str) -> int:
    words = len(strip_html(html).split())
    return max(1, round(words / WORDS_PER_MINUTE))


def make_excerpt(html: str, length: int = EXCERPT_PRUNE_LENGTH) -> str:
    return prune(strip_html(html), length, EXCERPT_ELLIPSIS)


def _require_title(value: Any, path: pathlib.Path) -> str:
    if value is None or not str(value).strip():
        raise ContentError("front matter has no title", path)
    return str(value).strip()


def _require_date(value: Any, path: pathlib.Path) -> date:
    if value is None:
        raise ContentError("front matter has no date", path)
    d = coerce_date(value)
    if d is None:
        raise ContentError(f"unparseable date {value!r}", path)
    return d


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _finish(
    path: pathlib.Path,
    slug: str,
    title: str,
    published: date,
    description: Optional[str],
    body_md: str,
    assets: Dict[str, bytes],
    site_url: str,
) -> Post:
    html = render_markdown(body_md, site_url)
    return Post(
        slug=slug,
        title=title,
        date=published,
        description=description,
        excerpt=make_excerpt(html),
        html=html,
        read_time_minutes=time_to_read(html),
        source_path=path,
        assets=assets,
    )


def load_markdown_post(
    md: pathlib.Path, content_dir: pathlib.Path, site_url: str = ""
) -> Post:
    slug = slug_for(md, content_dir)
    text = _norm_text(md.read_text(encoding="utf-8"))
    try:
        fm, body = parse_frontmatter(text)
    except yaml.YAMLError as e:
        raise ContentError(f"malformed front matter: {e}", md) from e
    if fm is None:
        raise ContentError("missing front matter", md)
    if not isinstance(fm, dict):
        raise ContentError("front matter must be a mapping", md)

    title = _require_title(fm.get("title"), md)
    published = _require_date(fm.get("date"), md)

    assets: Dict[str, bytes] = {}
    body = rewrite_urls_and_collect_assets(
        body, md.parent, assets, url_prefix=slug
    )
    body = prepare_markdown(body, used_ids={})

    return _finish(
        md, slug, title, published,
        _optional_text(fm.get("description")), body, assets, site_url,
    )


def load_notebook_post(
    ipynb: pathlib.Path, content_dir: pathlib.Path, site_url: str = ""
) -> Post:
    slug = slug_for(ipynb, content_dir)
    try:
        nb = nbformat.read(str(ipynb), as_version=4)
        validate(nb)
    except (NotJSONError, ValidationError) as e:
        raise ContentError(f"invalid notebook: {e}", ipynb) from e

    filter_and_apply_visibility(nb)

    assets: Dict[str, bytes] = {}
    used_ids: Dict[str, int] = {}
    for cell in nb.cells:
        if cell.get("cell_type") != "markdown":
            continue
        raw = _norm_text(cell.get("source", ""))
        raw = extract_markdown_attachments(
            raw, cell.get("attachments") or {}, assets, url_prefix=slug
        )
        raw = rewrite_urls_and_collect_assets(
            raw, ipynb.parent, assets, url_prefix=slug
        )
        cell["source"] = prepare_markdown(raw, used_ids)
        # attachments are now plain asset urls
        cell.pop("attachments", None)

    meta = nb.metadata
    first_h1 = None
    for cell in nb.cells:
        if cell.get("cell_type") != "markdown":
            continue
        m = _H1.search(cell.get("source", ""))
        if m:
            first_h1 = m.group(1).strip()
            break
    title = _require_title(meta.get("title") or first_h1, ipynb)
    published = _require_date(meta.get("date"), ipynb)

    body, res = MarkdownExporter().from_notebook_node(nb)

    # output blobs
    prefix = f"{slug.rstrip('/')}/{ASSET_DIR_NAME}"
    for name, data in (res.get("outputs") or {}).items():
        new_name = hashed_asset_name(name, data)
        assets[new_name] = data
        body = body.replace(f"({name})", f"({prefix}/{new_name})")
        body = body.replace(f'"{name}"', f'"{prefix}/{new_name}"')

    return _finish(
        ipynb, slug, title, published,
        _optional_text(meta.get("description")), body, assets, site_url,
    )


def discover_post_files(content_dir: pathlib.Path) -> List[pathlib.Path]:
    files = [
        p for p in content_dir.rglob("*")
        if p.is_file()
        and p.suffix.lower() in POST_SUFFIXES
        and ".ipynb_checkpoints" not in p.parts
    ]
    return sorted(
        files,
        key=lambda p: natural_key(p.relative_to(content_dir).as_posix()),
    )


def load_post(path: pathlib.Path, content_dir: pathlib.Path, site_url: str = "") -> Post:
    if path.suffix.lower() == ".ipynb":
        return load_notebook_post(path, content_dir, site_url)
    return load_markdown_post(path, content_dir, site_url)


def load_posts(content_dir: pathlib.Path, site_url: str = "") -> List[Post]:
    """Load every post under `content_dir`, in file path order."""
    if not content_dir.exists():
        print(f"- no content directory at {content_dir}")
        return []

    posts: List[Post] = []
    seen: Dict[str, pathlib.Path] = {}
    for path in discover_post_files(content_dir):
        post = load_post(path, content_dir, site_url)
        if post.slug in seen:
            raise ContentError(
                f"slug {post.slug} already used by {seen[post.slug]}", path
            )
        seen[post.slug] = path
        posts.append(post)
        print(f"✓ loaded {post.slug} ({path.suffix.lstrip('.')})")
    return posts
