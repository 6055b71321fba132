from __future__ import annotations

import hashlib
import pathlib
import re
import shutil
from typing import Dict, Iterable, List, Mapping, Optional

from .config import (
    ASSET_DIR_NAME,
    ASSET_SOURCE_DIR_CANDIDATES,
    HTML_SRC_OR_HREF,
    MD_LINK_IMG,
)
from .utils import bytes_hash, slugify


def ensure_dir(p: pathlib.Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def is_relative_local(url: str) -> bool:
    if not url:
        return False
    if re.match(r'^[a-zA-Z][a-zA-Z0-9+.-]*:', url):
        return False
    if url.startswith(("#", "/")):
        return False
    return True


def hashed_asset_name(name: str, data: bytes) -> str:
    p = pathlib.PurePosixPath(name)
    safe_stem = slugify(p.stem) or "asset"
    return f"{safe_stem}.{bytes_hash(data)}{p.suffix}"


def resolve_asset_candidate(
    base_dir: pathlib.Path, url: str
) -> Optional[pathlib.Path]:
    url = url.split("#", 1)[0].split("?", 1)[0]
    cand = (base_dir / url).resolve()
    if cand.exists() and cand.is_file():
        return cand
    for adir in ASSET_SOURCE_DIR_CANDIDATES:
        cand2 = (base_dir / adir / url).resolve()
        if cand2.exists() and cand2.is_file():
            return cand2
    return None


def rewrite_urls_and_collect_assets(
    text: str,
    base_dir: pathlib.Path,
    assets: Dict[str, bytes],
    url_prefix: str,
) -> str:
    """
    Rewrite markdown/HTML URLs that are local relative paths by:
    - looking up the source file near the notebook/markdown
    - storing its bytes in `assets` under a hashed name
    - returning "<url_prefix>/assets/<hashed name>"

    Links to markdown/notebook files are left alone; those are posts.
    """

    def _collect(url: str) -> Optional[str]:
        if not is_relative_local(url):
            return None
        if pathlib.PurePosixPath(url).suffix.lower() in (".md", ".ipynb"):
            return None
        src = resolve_asset_candidate(base_dir, url)
        if not src:
            return None
        data = src.read_bytes()
        fname = hashed_asset_name(src.name, data)
        assets[fname] = data
        return f"{url_prefix.rstrip('/')}/{ASSET_DIR_NAME}/{fname}"

    def _md_repl(m):
        new_url = _collect(m.group("url"))
        if new_url is None:
            return m.group(0)
        return f"{m.group(1)}[{m.group('alt')}]({new_url})"

    def _html_repl(m):
        new_url = _collect(m.group("url"))
        if new_url is None:
            return m.group(0)
        return f'{m.group("attr")}="{new_url}"'

    text = MD_LINK_IMG.sub(_md_repl, text)
    text = HTML_SRC_OR_HREF.sub(_html_repl, text)
    return text


def _sha(path: pathlib.Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def write_assets(files: Mapping[str, bytes], dst_dir: pathlib.Path) -> int:
    """Make `dst_dir` hold exactly `files`; returns how many were written."""
    if not files:
        if dst_dir.exists():
            shutil.rmtree(dst_dir)
        return 0

    ensure_dir(dst_dir)
    written = 0
    for name, data in files.items():
        d = dst_dir / name
        if (not d.exists()) or d.read_bytes() != data:
            d.write_bytes(data)
            written += 1

    for stale in dst_dir.iterdir():
        if stale.name in files:
            continue
        if stale.is_dir():
            shutil.rmtree(stale, ignore_errors=True)
        else:
            stale.unlink()
    return written


def mirror_tree(src_dir: pathlib.Path, dst_dir: pathlib.Path) -> List[pathlib.Path]:
    """Make `dst_dir` a copy of `src_dir`; returns the files it now holds."""
    if not src_dir.exists():
        if dst_dir.exists():
            shutil.rmtree(dst_dir)
        return []

    def walk_files(base: pathlib.Path) -> set[str]:
        out = set()
        for p in base.rglob("*"):
            if p.is_file():
                out.add(str(p.relative_to(base)))
        return out

    src_files = walk_files(src_dir)
    dst_files = walk_files(dst_dir) if dst_dir.exists() else set()

    dst_dir.mkdir(parents=True, exist_ok=True)

    for rel in src_files:
        s = src_dir / rel
        d = dst_dir / rel
        d.parent.mkdir(parents=True, exist_ok=True)
        if (not d.exists()) or _sha(s) != _sha(d):
            shutil.copy2(s, d)

    for rel in (dst_files - src_files):
        stale = dst_dir / rel
        try:
            stale.unlink()
        except IsADirectoryError:
            shutil.rmtree(stale, ignore_errors=True)

    return [dst_dir / rel for rel in sorted(src_files)]


def prune_tree(root: pathlib.Path, keep: Iterable[pathlib.Path]) -> int:
    """Delete every file under `root` not in `keep`, then empty directories."""
    keep = {p.resolve() for p in keep}
    removed = 0
    for p in sorted(root.rglob("*"), reverse=True):
        if p.is_file() or p.is_symlink():
            if p.resolve() not in keep:
                p.unlink()
                removed += 1
        elif p.is_dir() and not any(p.iterdir()):
            p.rmdir()
    return removed
