"""Cell visibility rules for notebook posts.

Cells tagged ``remove-cell`` disappear, ``hide-input`` drops the source of a
code cell (a markdown cell with hidden source disappears entirely),
``hide-output`` drops the outputs. The JupyterLab collapse flags in
``metadata.jupyter`` count the same as the tags. Empty cells are dropped.
"""

from __future__ import annotations

import copy
from typing import Optional

from nbformat import NotebookNode

from .utils import _norm_text

_HIDDEN_INPUT_TAGS = {"hide-input", "remove-input", "hide_input", "remove_input"}
_HIDDEN_OUTPUT_TAGS = {"hide-output", "remove-output", "hide_output", "remove_output"}
_REMOVE_CELL_TAGS = {"remove-cell", "hide-cell", "remove_cell", "hide_cell"}


def _tags(cell: NotebookNode) -> set:
    md = cell.get("metadata") or {}
    return set(md.get("tags") or [])


def _flag(cell: NotebookNode, name: str, tags: set) -> bool:
    md = cell.get("metadata") or {}
    jup = md.get("jupyter") if isinstance(md.get("jupyter"), dict) else {}
    return bool(jup.get(name)) or bool(md.get(name)) or bool(_tags(cell) & tags)


def _is_empty(cell: NotebookNode) -> bool:
    src = _norm_text(cell.get("source", "")).strip()
    if src:
        return False
    if cell.get("cell_type") == "markdown":
        return not cell.get("attachments")
    if cell.get("cell_type") == "code":
        return not cell.get("outputs")
    return True


def apply_visibility(cell: NotebookNode) -> Optional[NotebookNode]:
    """Return the cell as it should be published, or None to drop it."""
    if _tags(cell) & _REMOVE_CELL_TAGS:
        return None

    c = copy.deepcopy(cell)
    kind = c.get("cell_type")

    if _flag(c, "source_hidden", _HIDDEN_INPUT_TAGS):
        if kind == "markdown":
            return None
        if kind == "code":
            c["source"] = ""

    if kind == "code" and _flag(c, "outputs_hidden", _HIDDEN_OUTPUT_TAGS):
        c["outputs"] = []
        c["execution_count"] = None

    if _is_empty(c):
        return None
    return c


def filter_and_apply_visibility(nb: NotebookNode) -> None:
    cells = []
    for cell in nb.cells:
        published = apply_visibility(cell)
        if published is not None:
            cells.append(published)
    nb.cells = cells
