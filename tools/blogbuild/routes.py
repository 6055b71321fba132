from __future__ import annotations

import pathlib
from dataclasses import dataclass
from typing import List

from .config import FEED_FILE, MANIFEST_FILE, NOT_FOUND_FILE

INDEX_PATH = "/"
NOT_FOUND_PATH = f"/{NOT_FOUND_FILE}"


@dataclass(frozen=True)
class Route:
    path: str
    kind: str  # "post", "index", "404", "feed", "manifest"
    slug: str = ""


def post_path(slug: str) -> str:
    """URL path of a post page; slugs already look like `/hello-world/`."""
    return "/" + slug.strip("/") + "/" if slug.strip("/") else INDEX_PATH


def absolute_url(site_url: str, path: str) -> str:
    return site_url.rstrip("/") + path


def output_file(out_dir: pathlib.Path, path: str) -> pathlib.Path:
    """`/hello-world/` -> out/hello-world/index.html, `/404.html` -> out/404.html."""
    rel = path.lstrip("/")
    if not rel or rel.endswith("/"):
        return out_dir / rel / "index.html"
    return out_dir / rel


def site_routes(slugs) -> List[Route]:
    routes = [Route(INDEX_PATH, "index")]
    routes.extend(Route(post_path(s), "post", s) for s in slugs)
    routes.append(Route(NOT_FOUND_PATH, "404"))
    routes.append(Route(f"/{FEED_FILE}", "feed"))
    routes.append(Route(f"/{MANIFEST_FILE}", "manifest"))
    return routes
