from __future__ import annotations

from typing import Dict, Iterable, Iterator, Sequence, Tuple

from .errors import NotFoundError
from .posts import Post


class PostIndex(Sequence[Post]):
    """Posts newest first. Built once per build and never mutated."""

    def __init__(self, posts: Iterable[Post]):
        self._posts: Tuple[Post, ...] = tuple(posts)
        self._positions: Dict[str, int] = {
            p.slug: i for i, p in enumerate(self._posts)
        }

    def __getitem__(self, i):
        return self._posts[i]

    def __len__(self) -> int:
        return len(self._posts)

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __repr__(self) -> str:
        return f"PostIndex({[p.slug for p in self._posts]!r})"

    def position(self, slug: str) -> int:
        try:
            return self._positions[slug]
        except KeyError:
            raise NotFoundError(slug) from None

    def get(self, slug: str) -> Post:
        return self._posts[self.position(slug)]


def build_post_index(posts: Iterable[Post]) -> PostIndex:
    """Order posts by date, newest first.

    `sorted` is stable, so posts sharing a date keep the order they were
    loaded in.
    """
    return PostIndex(sorted(posts, key=lambda p: p.date, reverse=True))
