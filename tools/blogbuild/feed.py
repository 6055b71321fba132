from __future__ import annotations

import json
import pathlib
import shutil
from datetime import datetime, time, timezone
from email.utils import format_datetime
from typing import Any, Dict, List, Optional

from jinja2 import Environment

from .config import ICON_DIR_NAME, SiteConfig
from .index import PostIndex
from .routes import absolute_url, post_path

MANIFEST_DEFAULTS = {
    "start_url": "/",
    "background_color": "#ffffff",
    "theme_color": "#607080",
    "display": "minimal-ui",
}


def rfc822(d) -> str:
    return format_datetime(datetime.combine(d, time(0, 0), tzinfo=timezone.utc))


def render_feed(env: Environment, config: SiteConfig, index: PostIndex) -> str:
    site = config.metadata
    items = [
        {
            "title": post.title,
            "link": absolute_url(site.site_url, post_path(post.slug)),
            "description": post.seo_description,
            "pub_date": rfc822(post.date),
            "html": post.html,
        }
        for post in index
    ]
    return env.get_template("rss.xml").render(
        site=site,
        link=absolute_url(site.site_url, "/"),
        last_build=items[0]["pub_date"] if items else None,
        items=items,
    )


def build_manifest(
    config: SiteConfig, icon_url: Optional[str] = None
) -> Dict[str, Any]:
    opts = dict(config.manifest)
    opts.pop("icon", None)
    name = opts.pop("name", None) or config.metadata.title
    manifest: Dict[str, Any] = {
        "name": name,
        "short_name": opts.pop("short_name", None) or name,
    }
    manifest.update(MANIFEST_DEFAULTS)
    manifest.update(opts)
    if icon_url:
        manifest["icons"] = [{"src": icon_url, "type": _icon_type(icon_url)}]
    return manifest


def _icon_type(url: str) -> str:
    ext = pathlib.PurePosixPath(url).suffix.lower()
    return {
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".svg": "image/svg+xml",
        ".webp": "image/webp",
    }.get(ext, "application/octet-stream")


def write_manifest(
    config: SiteConfig, out_file: pathlib.Path, root: pathlib.Path
) -> List[pathlib.Path]:
    """Write the manifest and copy its icon; returns both paths."""
    written = [out_file]
    icon_url = None
    icon = config.manifest.get("icon")
    if icon:
        src = (root / icon).resolve()
        if src.is_file():
            dest = out_file.parent / ICON_DIR_NAME / src.name
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
            icon_url = f"/{ICON_DIR_NAME}/{src.name}"
            written.append(dest)
        else:
            print(f"! manifest icon not found: {icon}")
    out_file.write_text(
        json.dumps(build_manifest(config, icon_url), indent=2) + "\n",
        encoding="utf-8",
    )
    return written
