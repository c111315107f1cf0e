from __future__ import annotations

import io
from typing import TYPE_CHECKING

from repo_viewer.exceptions import DirectoryReadError
from repo_viewer.file_manipulation import list_directory
from repo_viewer.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from repo_viewer.models import FileSnapshot, VisibilityPolicy
    from repo_viewer.vcs import IgnoreClassifier

FENCE = "````"


def build_markdown(snapshots: Iterable[FileSnapshot], source_label: str) -> str:
    """Build a markdown document from collected snapshots, in the given order.

    Contents are embedded verbatim in four-backtick fences so that triple
    backtick blocks inside a file do not close the fence.

    Args:
        snapshots (Iterable[FileSnapshot]): the snapshots to export
        source_label (str): the name shown on the "Generated from" line

    Returns:
        str: the markdown document
    """
    out = io.StringIO()
    out.write("# Code Context\n\n")
    out.write(f"Generated from: {source_label}\n\n")
    for snapshot in snapshots:
        out.write(f"\n## {snapshot.label}\n\n")
        out.write(f"{FENCE}{snapshot.language}\n")
        out.write(snapshot.content)
        if not snapshot.content.endswith("\n"):
            out.write("\n")
        out.write(f"{FENCE}\n")
    return out.getvalue()


def build_tree_lines(
    root: Path,
    root_label: str,
    policy: VisibilityPolicy,
    classifier: IgnoreClassifier | None = None,
    max_depth: int | None = None,
) -> list[str]:
    """Draw the directory tree under ``root``, depth-first.

    Children are listed with the same visibility rules and order as the browser.
    Symlinked directories are shown but not entered; a nested directory that
    cannot be read is shown without children.

    Args:
        root (Path): the directory to draw
        root_label (str): the text of the first line
        policy (VisibilityPolicy): hidden / ignored visibility settings
        classifier (IgnoreClassifier | None): the repository ignore rules, if any
        max_depth (int | None): levels below ``root`` to descend into, None for no limit

    Raises:
        DirectoryReadError: if ``root`` itself cannot be read

    Returns:
        list[str]: one string per line
    """
    lines: list[str] = [root_label]

    def walk(directory: Path, prefix: str, depth: int) -> None:
        if max_depth is not None and depth >= max_depth:
            return
        try:
            entries = list_directory(directory, policy, classifier)
        except DirectoryReadError as e:
            if depth == 0:
                raise
            logger.warning("Tree: %s", e)
            return
        for idx, entry in enumerate(entries):
            last = idx == len(entries) - 1
            branch = "└── " if last else "├── "
            lines.append(prefix + branch + entry.name + ("/" if entry.is_dir else ""))
            if entry.is_dir and not entry.is_symlink:
                ext = "    " if last else "│   "
                walk(entry.path, prefix + ext, depth + 1)

    walk(root, "", 0)
    return lines


def render_tree(
    root: Path,
    root_label: str,
    policy: VisibilityPolicy,
    classifier: IgnoreClassifier | None = None,
    max_depth: int | None = None,
) -> str:
    """Render :func:`build_tree_lines` as text with a trailing newline."""
    return "\n".join(build_tree_lines(root, root_label, policy, classifier, max_depth)) + "\n"
