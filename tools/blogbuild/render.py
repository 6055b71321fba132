from __future__ import annotations

import pathlib
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .config import TEMPLATE_DIR, SiteConfig, SiteMetadata
from .header import HeaderState, HoverTarget, github_link, header_link_class, linkedin_link
from .index import PostIndex
from .navigation import PageContext, nav_links
from .posts import Post
from .routes import absolute_url, post_path


def make_environment(template_dir: pathlib.Path = TEMPLATE_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.globals["post_path"] = post_path
    return env


def seo_meta(
    site: SiteMetadata, title: str, description: Optional[str] = None
) -> Dict[str, Any]:
    description = description or site.description
    return {
        "title": f"{title} | {site.title}",
        "meta": [
            {"name": "description", "content": description},
            {"property": "og:title", "content": title},
            {"property": "og:description", "content": description},
            {"property": "og:type", "content": "website"},
            {"name": "twitter:card", "content": "summary"},
            {"name": "twitter:creator", "content": site.author},
            {"name": "twitter:title", "content": title},
            {"name": "twitter:description", "content": description},
        ],
    }


HEADER_ICONS = (
    (HoverTarget.GITHUB, "GitHub", github_link),
    (HoverTarget.LINKEDIN, "LinkedIn", linkedin_link),
)


def header_context(site: SiteMetadata) -> Dict[str, Any]:
    state = HeaderState(site)
    labels = state.labels()
    handles = {
        HoverTarget.GITHUB: site.social.github,
        HoverTarget.LINKEDIN: site.social.linkedin,
    }
    social = []
    for target, name, link in HEADER_ICONS:
        if not handles[target]:
            continue
        social.append({
            "href": f"https://{link(site)}",
            "label": labels[target],
            "name": name,
            "css_class": header_link_class(target, state.hovered),
        })
    return {
        "label": state.label,
        "idle_label": state.idle_label,
        "title_label": labels[HoverTarget.TITLE],
        "title_class": header_link_class(HoverTarget.TITLE, state.hovered),
        "social": social,
    }


def _base_context(config: SiteConfig, title: str, description=None) -> Dict[str, Any]:
    return {
        "site": config.metadata,
        "seo": seo_meta(config.metadata, title, description),
        "header": header_context(config.metadata),
        "tracking_id": config.tracking_id,
    }


def edit_url(
    repository: str, post: Post, source_root: Optional[pathlib.Path] = None
) -> Optional[str]:
    """Link to the post's source file on the repository's master branch."""
    repo = repository.rstrip("/")
    if not repo:
        return None
    rel = None
    if post.source_path is not None and source_root is not None:
        try:
            rel = post.source_path.resolve().relative_to(source_root.resolve())
        except ValueError:
            rel = None
    if rel is None:
        return f"{repo}/blob/master/content/blog{post_path(post.slug)}index.md"
    return f"{repo}/blob/master/{rel.as_posix()}"


def render_post_page(
    env: Environment,
    config: SiteConfig,
    post: Post,
    context: PageContext,
    source_root: Optional[pathlib.Path] = None,
) -> str:
    disqus = None
    if config.disqus_shortname:
        disqus = {
            "shortname": config.disqus_shortname,
            "identifier": post.slug,
            "title": config.metadata.title,
            "url": absolute_url(config.metadata.site_url, post_path(post.slug)),
        }
    return env.get_template("post.html").render(
        **_base_context(config, post.title, post.seo_description),
        post=post,
        nav=nav_links(context.adjacency),
        edit_url=edit_url(config.metadata.repository, post, source_root),
        disqus=disqus,
    )


def render_index_page(env: Environment, config: SiteConfig, index: PostIndex) -> str:
    return env.get_template("index.html").render(
        **_base_context(config, "All posts"),
        posts=list(index),
    )


def render_not_found_page(env: Environment, config: SiteConfig) -> str:
    return env.get_template("404.html").render(
        **_base_context(config, "404: Blog not found"),
    )
