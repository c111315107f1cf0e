from __future__ import annotations

from pathlib import Path, PurePath

from repo_viewer.config import LABEL_MAX_LENGTH
from repo_viewer.file_manipulation import relpath


def fallback_label(path: PurePath, max_length: int = LABEL_MAX_LENGTH) -> str:
    """Build a ``<parent>/<filename>`` label for a path outside every known root.

    A parent without a name (the filesystem root) is replaced by the last two
    components of the parent path without its anchor, or ``root``. Labels longer
    than ``max_length`` get their parent part cut to a ``...`` prefixed tail; the
    file name is never shortened.

    Args:
        path (PurePath): the path to name
        max_length (int, optional): label length limit. Defaults to LABEL_MAX_LENGTH.

    Returns:
        str: the label
    """
    parent = path.parent
    parent_name = parent.name
    if not parent_name:
        parts = [part for part in parent.parts if part != parent.anchor]
        parent_name = "/".join(parts[-2:]) if parts else "root"
    file_name = path.name or (path.parts[-1] if path.parts else "unknown")

    label = f"{parent_name}/{file_name}"
    if len(label) <= max_length:
        return label
    max_parent = max_length - (len(file_name) + 4)
    if len(parent_name) > max_parent > 3:
        return f"...{parent_name[len(parent_name) - max_parent + 3 :]}/{file_name}"
    return label


class PathNamer:
    """Derive stable, human-readable labels for absolute paths.

    Attributes:
        start_dir: directory the program was started in
        repo_root: repository root, if any
        current_dir: directory currently browsed, kept in sync by the application
    """

    def __init__(self, start_dir: Path, repo_root: Path | None = None) -> None:
        self.start_dir = start_dir
        self.repo_root = repo_root
        self.current_dir = start_dir

    def label(self, path: Path) -> str:
        """Label ``path`` relative to the repository, start or current directory.

        Never raises: paths outside all three roots get a ``<parent>/<filename>`` label.

        Returns:
            str: a ``/`` separated label
        """
        if self.repo_root is not None:
            rel = relpath(path, self.repo_root)
            if rel is not None:
                return rel
        rel = relpath(path, self.start_dir)
        if rel is not None:
            return rel
        rel = relpath(path, self.current_dir)
        if rel is not None:
            return f"{self.current_dir.name or 'current'}/{rel}"
        return fallback_label(path)

    def display_path(self, path: Path) -> str:
        """Name ``path`` for display relative to the current directory.

        Returns:
            str: ``.`` for the current directory, the bare name for a direct child,
                ``./sub/name`` deeper down, the label otherwise.
        """
        rel = relpath(path, self.current_dir)
        if rel is None:
            return self.label(path)
        if rel == ".":
            return "."
        if "/" not in rel:
            return rel
        return f"./{rel}"
