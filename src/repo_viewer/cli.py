"""
repo_viewer: collect source files from a terminal browser for an LLM.

Overview
--------
Browse a directory, pick text files into an in-memory collection, keep it in
sync with the filesystem and export it as a single markdown document (to a
file or the clipboard). A directory tree can be exported the same way.

Usage
-----
Run `repo-viewer --help` for full options. Common examples:
    - Browse the current directory:
        repo-viewer

    - Print the tree of a project, three levels deep, including dotfiles:
        repo-viewer ~/src/project --tree --depth 3 --hidden

    - Log to a file:
        repo-viewer --log-file viewer.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from repo_viewer import __version__
from repo_viewer.app import RepoViewer
from repo_viewer.exceptions import DirectoryNotFoundError, NotADirectoryPathError, RepoViewerError, describe_error
from repo_viewer.interactive import run_interactive
from repo_viewer.logging import logger, setup_logging
from repo_viewer.models import VisibilityPolicy
from repo_viewer.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Sequence


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    p = argparse.ArgumentParser(
        prog="repo-viewer",
        description="Browse a directory and collect text files into a markdown export.",
    )
    p.add_argument("path", nargs="?", default=None, help="Directory to browse (default: current directory).")
    p.add_argument("-t", "--tree", action="store_true", help="Print the directory tree and exit.")
    p.add_argument("-d", "--depth", type=int, default=None, help="Tree depth for --tree (default: unbounded).")
    p.add_argument("--hidden", action="store_true", default=None, help="Show hidden files.")
    p.add_argument("--all", action="store_true", default=None, help="Show files ignored by .gitignore.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = p.parse_args(argv)
    # Unset options fall back to the environment defaults of Settings.
    return Settings(**{k: v for k, v in vars(args).items() if v is not None})


def parse_target_dir(raw: str | Path) -> Path:
    """Turn the path argument into an absolute directory.

    Surrounding quotes left by some shells are stripped and ``~`` is expanded.

    Args:
        raw (str | Path): the path as given

    Raises:
        DirectoryNotFoundError: if the path does not exist
        NotADirectoryPathError: if the path is not a directory

    Returns:
        Path: the resolved directory
    """
    path = Path(str(raw).strip().strip("\"'")).expanduser()
    if not path.exists():
        raise DirectoryNotFoundError(path=path)
    if not path.is_dir():
        raise NotADirectoryPathError(path=path)
    return path.resolve()


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        target = parse_target_dir(settings.path)
        policy = VisibilityPolicy(show_hidden=settings.hidden, show_ignored=settings.all)
        app = RepoViewer(target, policy)
        if settings.tree:
            print(app.generate_tree(settings.depth), end="")
            return 0
        logger.info("Browsing %s", target)
        run_interactive(app)
    except RepoViewerError as e:
        print(f"Error: {describe_error(e)}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
