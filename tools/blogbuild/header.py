"""The site header's hover label.

The left block shows the site title. Hovering the title block swaps it
for the quoted site description, hovering a social icon swaps it for that
profile's address, and leaving restores the title. The swap itself runs
in the browser; this module decides the strings and classes the page is
rendered with, one fresh `HeaderState` per page.
"""

from __future__ import annotations

import enum
from typing import Dict, Optional

from .config import SiteMetadata


class HoverTarget(enum.Enum):
    TITLE = "title"
    GITHUB = "github"
    LINKEDIN = "linkedin"


def github_link(site: SiteMetadata) -> str:
    return f"github.com/{site.social.github}"


def linkedin_link(site: SiteMetadata) -> str:
    return f"linkedin.com/in/{site.social.linkedin}"


class HeaderState:
    def __init__(self, site: SiteMetadata):
        self.site = site
        self.hovered: Optional[HoverTarget] = None

    def enter(self, target: HoverTarget) -> None:
        self.hovered = target

    def leave(self, target: HoverTarget) -> None:
        if self.hovered is target:
            self.hovered = None

    def labels(self) -> Dict[HoverTarget, str]:
        return {
            HoverTarget.TITLE: f'"{self.site.description}"',
            HoverTarget.GITHUB: github_link(self.site),
            HoverTarget.LINKEDIN: linkedin_link(self.site),
        }

    @property
    def idle_label(self) -> str:
        return self.site.title

    @property
    def label(self) -> str:
        if self.hovered is None:
            return self.idle_label
        return self.labels()[self.hovered]


def header_link_class(target: HoverTarget, hovered: Optional[HoverTarget]) -> str:
    base = "header__left-link" if target is HoverTarget.TITLE else "header__right-link"
    if hovered is target:
        return f"{base} {base}--hovered"
    return base
