"""Previous/next links between posts.

Naming follows reading order, not the calendar: ``next`` is the newer
neighbour (one position up in the index), ``previous`` the older one.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, List, Optional

from .index import PostIndex
from .posts import PostSummary
from .routes import post_path


@dataclass(frozen=True)
class Adjacency:
    previous: Optional[PostSummary] = None
    next: Optional[PostSummary] = None


@dataclass(frozen=True)
class PageContext:
    """Per-post data computed once at build time and handed to the template."""

    slug: str
    previous: Optional[PostSummary] = None
    next: Optional[PostSummary] = None

    @property
    def adjacency(self) -> Adjacency:
        return Adjacency(previous=self.previous, next=self.next)


def _adjacency_at(index: PostIndex, i: int) -> Adjacency:
    return Adjacency(
        previous=index[i + 1].summary if i < len(index) - 1 else None,
        next=index[i - 1].summary if i > 0 else None,
    )


def resolve_adjacency(index: PostIndex, slug: str) -> Adjacency:
    """Neighbours of `slug`; raises NotFoundError for an unknown slug."""
    return _adjacency_at(index, index.position(slug))


def build_page_contexts(index: PostIndex) -> Dict[str, PageContext]:
    contexts: Dict[str, PageContext] = {}
    for i, post in enumerate(index):
        adj = _adjacency_at(index, i)
        contexts[post.slug] = PageContext(
            slug=post.slug, previous=adj.previous, next=adj.next
        )
    if contexts:
        print(f"✓ linked previous/next for {len(contexts)} posts")
    return contexts


# ---------- rendering


class Direction(enum.Enum):
    PREVIOUS = "prev"
    NEXT = "next"


_PHRASES = {
    Direction.PREVIOUS: "Read the previous article",
    Direction.NEXT: "Read the next article",
}
_ARROWS = {
    Direction.PREVIOUS: "←",
    Direction.NEXT: "→",
}
_CLASSES = {
    Direction.PREVIOUS: "other",
    Direction.NEXT: "other other--new",
}


def nav_link_class(direction: Direction) -> str:
    return _CLASSES[direction]


@dataclass(frozen=True)
class NavLink:
    href: str
    rel: str
    phrase: str
    arrow: str
    title: str
    css_class: str
    direction: Direction

    @property
    def arrow_first(self) -> bool:
        return self.direction is Direction.PREVIOUS


def nav_link(adjacency: Adjacency, direction: Direction) -> Optional[NavLink]:
    if direction is Direction.PREVIOUS:
        other = adjacency.previous
    else:
        other = adjacency.next
    if other is None:
        return None
    return NavLink(
        href=post_path(other.slug),
        rel=direction.value,
        phrase=_PHRASES[direction],
        arrow=_ARROWS[direction],
        title=other.title,
        css_class=nav_link_class(direction),
        direction=direction,
    )


def nav_links(adjacency: Adjacency) -> List[NavLink]:
    links = (nav_link(adjacency, d) for d in (Direction.PREVIOUS, Direction.NEXT))
    return [link for link in links if link is not None]
