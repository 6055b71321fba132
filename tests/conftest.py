import json
import pathlib
import textwrap
from datetime import date

import pytest
import yaml

from blogbuild.config import SiteMetadata, Social, parse_site_config
from blogbuild.posts import Post

SITE_CONFIG_YAML = """\
siteMetadata:
  title: Developmental
  author: Liam Ross
  description: Learning it without losing it
  siteUrl: https://liamross.me/
  repository: https://github.com/liamross/liamross.me
  social:
    github: liamross
    linkedin: liamrosscode
manifest:
  name: Developmental
  short_name: Dev
  icon: content/assets/liam.svg
"""


def make_post(slug, day, title=None, description=None, excerpt="An excerpt."):
    return Post(
        slug=f"/{slug}/",
        title=title or slug.upper(),
        date=day,
        excerpt=excerpt,
        html=f"<p>{excerpt}</p>",
        description=description,
        read_time_minutes=1,
    )


def write_post(content_dir: pathlib.Path, rel: str, front_matter: str, body: str = "Some body text.\n"):
    path = content_dir / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "---\n" + textwrap.dedent(front_matter).strip() + "\n---\n\n" + textwrap.dedent(body),
        encoding="utf-8",
    )
    return path


def write_notebook(content_dir: pathlib.Path, rel: str, cells, metadata):
    path = content_dir / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    nb = {
        "cells": cells,
        "metadata": metadata,
        "nbformat": 4,
        "nbformat_minor": 4,
    }
    path.write_text(json.dumps(nb), encoding="utf-8")
    return path


@pytest.fixture
def site() -> SiteMetadata:
    return SiteMetadata(
        title="Developmental",
        author="Liam Ross",
        description="Learning it without losing it",
        site_url="https://liamross.me/",
        repository="https://github.com/liamross/liamross.me",
        social=Social(github="liamross", linkedin="liamrosscode"),
    )


@pytest.fixture
def site_config():
    return parse_site_config(yaml.safe_load(SITE_CONFIG_YAML), env={})


@pytest.fixture
def abc_posts():
    """C is newest, A is oldest."""
    return [
        make_post("a", date(2020, 1, 1)),
        make_post("c", date(2020, 3, 1)),
        make_post("b", date(2020, 2, 1)),
    ]


@pytest.fixture
def site_root(tmp_path):
    """A throwaway repository layout with config, assets and three posts."""
    (tmp_path / "site-config.yml").write_text(SITE_CONFIG_YAML, encoding="utf-8")
    assets = tmp_path / "content" / "assets"
    assets.mkdir(parents=True)
    (assets / "liam.svg").write_text("<svg/>", encoding="utf-8")
    content = tmp_path / "content" / "blog"
    write_post(content, "first/index.md", """
        title: First
        date: 2020-01-01
        description: The very first post.
    """)
    write_post(content, "second/index.md", """
        title: Second
        date: 2020-02-01
    """, body="Second body with an ![image](diagram.png).\n")
    (content / "second" / "diagram.png").write_bytes(b"\x89PNG fake")
    write_post(content, "third.md", """
        title: Third
        date: "2020-03-01T10:00:00.000Z"
    """)
    return tmp_path
