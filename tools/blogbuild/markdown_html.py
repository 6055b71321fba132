"""Markdown → HTML for post bodies.

Python-Markdown does the conversion; `SitePolishExtension` adds what the
site expects on top: anchor links inside headings, external links opening
in a new tab, and a responsive wrapper around embedded iframes.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as etree
from typing import Optional
from urllib.parse import urlparse

import markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.treeprocessors import Treeprocessor

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
EXTERNAL_REL = "nofollow noopener noreferrer"
IFRAME_WRAPPER_STYLE = "margin-bottom: 1.0725rem"
IFRAME = re.compile(r"<iframe\b[^>]*>.*?</iframe>", re.IGNORECASE | re.DOTALL)

MD_EXTENSIONS = ["fenced_code", "tables", "attr_list", "smarty", "codehilite"]
MD_EXTENSION_CONFIGS = {
    "codehilite": {"use_pygments": False, "css_class": "highlight"},
}


def is_external(href: str, site_host: Optional[str] = None) -> bool:
    parsed = urlparse(href)
    if parsed.scheme not in ("http", "https"):
        return False
    return not (site_host and parsed.netloc == site_host)


class SitePolishTreeprocessor(Treeprocessor):
    def __init__(self, md, site_host: Optional[str]):
        super().__init__(md)
        self.site_host = site_host

    def run(self, root):
        for el in list(root.iter()):
            if el.tag in HEADING_TAGS and el.get("id"):
                self._anchor_heading(el)
            elif el.tag == "a" and is_external(el.get("href", ""), self.site_host):
                el.set("target", "_blank")
                el.set("rel", EXTERNAL_REL)
        return None

    @staticmethod
    def _anchor_heading(el):
        anchor = etree.Element("a")
        anchor.set("href", f"#{el.get('id')}")
        anchor.set("aria-hidden", "true")
        anchor.set("class", "anchor")
        # no text node; site.css draws the glyph
        anchor.tail = el.text
        el.text = None
        el.insert(0, anchor)


class IframeWrapPostprocessor(Postprocessor):
    """Raw HTML never reaches the tree, so iframes are wrapped in the output."""

    def run(self, text):
        return IFRAME.sub(
            lambda m: (
                f'<div class="responsive-iframe" style="{IFRAME_WRAPPER_STYLE}">'
                f"{m.group(0)}</div>"
            ),
            text,
        )


class SitePolishExtension(Extension):
    def __init__(self, **kwargs):
        self.config = {
            "site_host": ["", "Host of the site itself; its links stay in the tab"],
        }
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        host = self.getConfig("site_host") or None
        # after inline (20) and prettify (10) have run
        md.treeprocessors.register(
            SitePolishTreeprocessor(md, host), "site_polish", 5
        )
        # raw html is restored at 30
        md.postprocessors.register(IframeWrapPostprocessor(md), "iframe_wrap", 5)


def markdown_renderer(site_url: str = "") -> markdown.Markdown:
    return markdown.Markdown(
        extensions=[*MD_EXTENSIONS, SitePolishExtension(site_host=urlparse(site_url).netloc)],
        extension_configs=MD_EXTENSION_CONFIGS,
        output_format="html",
    )


def render_markdown(text: str, site_url: str = "") -> str:
    return markdown_renderer(site_url).convert(text)
