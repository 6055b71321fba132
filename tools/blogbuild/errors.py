from __future__ import annotations


class BuildError(Exception):
    """Anything that should stop the site build."""


class ConfigError(BuildError):
    pass


class ContentError(BuildError):
    """A post that cannot be turned into a page (front matter, date, slug)."""

    def __init__(self, message: str, path=None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class NotFoundError(BuildError, KeyError):
    """Lookup of a slug that is not in the post index."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(slug)

    def __str__(self) -> str:
        return f"no post with slug {self.slug!r}"
