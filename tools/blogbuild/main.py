#!/usr/bin/env python3
"""
Static site builder for the blog.

- Posts: content/blog/**/*.md and *.ipynb -> public/<slug>/index.html
  frontmatter: title, date, description?
- Index: public/index.html, every post newest first
- 404: public/404.html
- Feed: public/rss.xml; PWA manifest: public/manifest.webmanifest
- content/assets mirrored to public/assets, post assets to
  public/<slug>/assets

Every page is rendered from data computed up front: the post index is
sorted once and each post's previous/next links are attached before any
page is written.
"""

from __future__ import annotations

import argparse
import pathlib
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional

from .assets import mirror_tree, prune_tree, write_assets
from .config import (
    ASSET_DIR_NAME,
    CONTENT_DIR,
    PUBLIC_DIR,
    ROOT,
    SITE_CONFIG,
    STATIC_ASSET_DIR,
    STATIC_DIR_NAME,
    TEMPLATE_DIR,
    load_site_config,
)
from .errors import BuildError
from .feed import render_feed, write_manifest
from .index import PostIndex, build_post_index
from .navigation import PageContext, build_page_contexts
from .posts import load_posts
from .render import (
    make_environment,
    render_index_page,
    render_not_found_page,
    render_post_page,
)
from .routes import output_file, site_routes


@dataclass
class BuildPaths:
    root: pathlib.Path = ROOT
    content: pathlib.Path = CONTENT_DIR
    static_assets: pathlib.Path = STATIC_ASSET_DIR
    out: pathlib.Path = PUBLIC_DIR
    config: pathlib.Path = SITE_CONFIG
    templates: pathlib.Path = TEMPLATE_DIR


@dataclass
class BuildResult:
    index: PostIndex
    contexts: Dict[str, PageContext]
    written: List[pathlib.Path]


def _write(path: pathlib.Path, text: str) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def build(paths: Optional[BuildPaths] = None, env=None) -> BuildResult:
    paths = paths or BuildPaths()
    config = load_site_config(paths.config, env=env)
    site = config.metadata

    posts = load_posts(paths.content, site.site_url)
    index = build_post_index(posts)
    contexts = build_page_contexts(index)

    jinja = make_environment(paths.templates)
    paths.out.mkdir(parents=True, exist_ok=True)
    written: List[pathlib.Path] = []
    keep: List[pathlib.Path] = []

    for route in site_routes(p.slug for p in index):
        target = output_file(paths.out, route.path)
        if route.kind == "post":
            post = index.get(route.slug)
            written.append(_write(target, render_post_page(
                jinja, config, post, contexts[post.slug], source_root=paths.root
            )))
            asset_dir = target.parent / ASSET_DIR_NAME
            write_assets(post.assets, asset_dir)
            keep.extend(asset_dir / name for name in post.assets)
        elif route.kind == "index":
            written.append(_write(target, render_index_page(jinja, config, index)))
        elif route.kind == "404":
            written.append(_write(target, render_not_found_page(jinja, config)))
        elif route.kind == "feed":
            written.append(_write(target, render_feed(jinja, config, index)))
        elif route.kind == "manifest":
            manifest_files = write_manifest(config, target, paths.root)
            written.append(target)
            keep.extend(manifest_files)

    keep.extend(written)
    keep.extend(mirror_tree(paths.static_assets, paths.out / ASSET_DIR_NAME))
    keep.extend(mirror_tree(paths.templates / STATIC_DIR_NAME, paths.out / STATIC_DIR_NAME))

    # pages of deleted posts and anything else from earlier builds
    removed = prune_tree(paths.out, keep)
    if removed:
        print(f"- removed {removed} stale files from {paths.out}")

    print(f"✓ built {len(index)} posts, {len(written)} files -> {paths.out}")
    return BuildResult(index=index, contexts=contexts, written=written)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the blog into static HTML.")
    parser.add_argument("--root", type=pathlib.Path, default=ROOT,
                        help="repository root (default: %(default)s)")
    parser.add_argument("--content", type=pathlib.Path,
                        help="posts directory (default: <root>/content/blog)")
    parser.add_argument("--out", type=pathlib.Path,
                        help="output directory (default: <root>/public)")
    parser.add_argument("--config", type=pathlib.Path,
                        help="site config (default: <root>/site-config.yml)")
    return parser.parse_args(argv)


def paths_from_args(args: argparse.Namespace) -> BuildPaths:
    root = args.root.resolve()
    return BuildPaths(
        root=root,
        content=args.content or root / "content" / "blog",
        static_assets=root / "content" / "assets",
        out=args.out or root / "public",
        config=args.config or root / "site-config.yml",
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        build(paths_from_args(args))
    except BuildError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
