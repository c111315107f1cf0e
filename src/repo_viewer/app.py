from __future__ import annotations

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from repo_viewer.clipboard import copy_text
from repo_viewer.collection import FileCollection
from repo_viewer.config import (
    DEFAULT_EXPORT_PREFIX,
    LARGE_COLLECTION_SIZE,
    STALE_COLLECTION_SECONDS,
    TREE_EXPORT_NAME,
    VERY_LARGE_COLLECTION_SIZE,
    format_size,
)
from repo_viewer.exceptions import (
    DirectoryNotFoundError,
    NotADirectoryPathError,
    NotAFileError,
    NotInRepositoryError,
    RepoViewerError,
    describe_error,
)
from repo_viewer.file_manipulation import list_directory
from repo_viewer.logging import logger
from repo_viewer.models import (
    DirectoryEntry,
    RefreshSummary,
    SizeWarning,
    TransientMessage,
    ViewState,
    VisibilityPolicy,
)
from repo_viewer.output_construction import build_markdown, render_tree
from repo_viewer.path_naming import PathNamer
from repo_viewer.vcs import IgnoreRules, discover_repository

if TYPE_CHECKING:
    from collections.abc import Callable

    from repo_viewer.vcs import IgnoreClassifier

CROSSING_TIP = "Tip: Use 'd' to remove individual files or 'D' to clear all"


def size_warning_text(warning: SizeWarning | None, total_size: int) -> str | None:
    """Phrase a collection size warning for the status line."""
    if warning is SizeWarning.VERY_LARGE:
        return f"⚠️ Collection is very large ({format_size(total_size)}) - Consider removing some files"
    if warning is SizeWarning.LARGE:
        return f"⚠️ Collection is getting large ({format_size(total_size)})"
    return None


def describe_refresh(summary: RefreshSummary, initial_count: int, final_count: int) -> str:
    """Summarise a refresh for the status line.

    Returns:
        str: an "up to date" message when nothing changed, otherwise the list of
            changes with the file count before and after
    """
    if not summary.has_changes:
        return f"✓ Collection is up to date ({summary.unchanged} files checked)"
    changes = [
        f"{count} {word}"
        for count, word in (
            (summary.updated, "updated"),
            (summary.deleted, "deleted"),
            (summary.inaccessible, "inaccessible"),
            (summary.failed, "failed"),
        )
        if count
    ]
    return f"Refresh complete: {', '.join(changes)} | {initial_count} → {final_count} files"


class RepoViewer:
    """State of one browsing session: location, listing, selection and collection.

    Navigation methods raise RepoViewerError subclasses and leave the state as
    it was. Collection and export actions never raise for per-file problems;
    they report through the transient message instead.
    """

    def __init__(
        self,
        start_dir: Path,
        policy: VisibilityPolicy | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        copy: Callable[[str], None] | None = None,
    ) -> None:
        """Open a session in ``start_dir`` and list it.

        Args:
            start_dir (Path): an existing, resolved directory
            policy (VisibilityPolicy | None): initial visibility settings
            clock (Callable[[], float]): monotonic clock used for message expiry
            copy (Callable[[str], None] | None): clipboard sink. Defaults to copy_text.

        Raises:
            DirectoryReadError: if ``start_dir`` cannot be listed
        """
        self.start_dir = start_dir
        self.current_dir = start_dir
        self.repo_root = discover_repository(start_dir)
        self.classifier: IgnoreClassifier | None = IgnoreRules.load(self.repo_root) if self.repo_root else None
        self.policy = policy or VisibilityPolicy()
        self.namer = PathNamer(start_dir, self.repo_root)
        self.collection = FileCollection(self.namer.label)
        self.entries: list[DirectoryEntry] = []
        self.selected: int | None = None
        self.message: TransientMessage | None = None
        self.show_help = False
        self._clock = clock
        self._copy = copy or copy_text
        self.refresh_listing()

    # --- navigation -------------------------------------------------------------

    def refresh_listing(self) -> None:
        """Re-list the current directory and select its first entry."""
        self.entries = list_directory(self.current_dir, self.policy, self.classifier)
        self.selected = 0 if self.entries else None

    @property
    def selection(self) -> DirectoryEntry | None:
        if self.selected is None or self.selected >= len(self.entries):
            return None
        return self.entries[self.selected]

    def move_selection(self, delta: int) -> None:
        if not self.entries:
            return
        current = self.selected or 0
        self.selected = max(0, min(len(self.entries) - 1, current + delta))

    def select_first(self) -> None:
        if self.entries:
            self.selected = 0

    def select_last(self) -> None:
        if self.entries:
            self.selected = len(self.entries) - 1

    def select_index(self, index: int) -> None:
        if 0 <= index < len(self.entries):
            self.selected = index

    def navigate_to(self, path: Path) -> None:
        """Make ``path`` the current directory.

        Args:
            path (Path): the directory to browse

        Raises:
            DirectoryNotFoundError: if ``path`` does not exist
            NotADirectoryPathError: if ``path`` is not a directory
            DirectoryReadError: if ``path`` cannot be listed; the previous
                directory stays current
        """
        if not path.exists():
            raise DirectoryNotFoundError(path=path)
        if not path.is_dir():
            raise NotADirectoryPathError(path=path)

        previous = self.current_dir
        self.current_dir = path
        self.namer.current_dir = path
        try:
            self.refresh_listing()
        except RepoViewerError:
            self.current_dir = previous
            self.namer.current_dir = previous
            raise
        logger.debug("Browsing %s", path)

    def navigate_into(self) -> None:
        entry = self.selection
        if entry is not None and entry.is_dir:
            self.navigate_to(entry.path)

    def navigate_up(self) -> None:
        if self.can_navigate_up():
            self.navigate_to(self.current_dir.parent)

    def navigate_to_repo_root(self) -> None:
        if self.repo_root is None:
            raise NotInRepositoryError
        self.navigate_to(self.repo_root)

    def navigate_to_start(self) -> None:
        self.navigate_to(self.start_dir)

    def toggle_hidden(self) -> None:
        self.policy = self.policy.model_copy(update={"show_hidden": not self.policy.show_hidden})
        self.refresh_listing()

    def toggle_ignored(self) -> None:
        """Show or hide paths ignored by the repository.

        Raises:
            NotInRepositoryError: outside a git repository
        """
        if self.repo_root is None:
            raise NotInRepositoryError
        self.policy = self.policy.model_copy(update={"show_ignored": not self.policy.show_ignored})
        self.refresh_listing()

    def toggle_help(self) -> None:
        self.show_help = not self.show_help

    def depth(self) -> int:
        """Number of levels between the start directory and the current one (0 outside it)."""
        try:
            return len(self.current_dir.relative_to(self.start_dir).parts)
        except ValueError:
            return 0

    def breadcrumbs(self) -> list[tuple[str, Path]]:
        """Trail from the start directory (or the filesystem root) to the current directory.

        Returns:
            list[tuple[str, Path]]: (name, path) pairs, outermost first
        """
        crumbs: list[tuple[str, Path]] = []
        current = self.current_dir
        while True:
            name = current.name or ("~" if current == self.start_dir else "/")
            crumbs.append((name, current))
            if current == self.start_dir or current.parent == current:
                break
            current = current.parent
        crumbs.reverse()
        return crumbs

    def can_navigate_up(self) -> bool:
        return self.current_dir.parent != self.current_dir

    def can_navigate_into_selection(self) -> bool:
        entry = self.selection
        return entry is not None and entry.is_dir and not entry.is_symlink

    # --- messages ---------------------------------------------------------------

    def set_success_message(self, text: str) -> None:
        self.message = TransientMessage(text=text, success=True, created_at=self._clock())

    def set_error_message(self, text: str) -> None:
        self.message = TransientMessage(text=text, success=False, created_at=self._clock())

    def tick(self) -> None:
        """Drop the current message once its display time is over."""
        if self.message is not None and self.message.is_expired(self._clock()):
            self.message = None

    # --- collection -------------------------------------------------------------

    def is_collected(self, path: Path) -> bool:
        return path in self.collection

    @property
    def collection_size(self) -> int:
        return self.collection.total_size

    def add_selected(self) -> None:
        entry = self.selection
        if entry is None:
            self.set_error_message("No file selected")
            return
        if entry.is_dir:
            self.set_error_message(describe_error(NotAFileError(path=entry.path)))
            return
        try:
            outcome = self.collection.add_or_update(entry)
        except RepoViewerError as e:
            logger.info("Rejected %s: %s", entry.path, e)
            self.set_error_message(describe_error(e))
            return

        verb = "Updated" if outcome.replaced else "Added"
        text = (
            f"{verb} {entry.name} ({outcome.snapshot.content_size // 1024} KB) - Total: {outcome.new_count} files"
        )
        warning = size_warning_text(outcome.warning, self.collection_size)
        if warning:
            text += f" | {warning}"
        self.set_success_message(text)

    def add_all_in_directory(self) -> None:
        summary = self.collection.add_all_in(self.entries)
        total = self.collection_size
        text = (
            f"Added {summary.added} files, updated {summary.updated}, skipped {summary.skipped} "
            f"(errors: {summary.errors}) - Total: {len(self.collection)} files ({format_size(total)})"
        )
        warning = size_warning_text(summary.warning, total)
        if warning:
            text += f"\n{warning}"
            if summary.crossed_warning:
                text += f"\n{CROSSING_TIP}"
        self.set_success_message(text)

    def remove_selected(self) -> None:
        entry = self.selection
        if entry is None:
            self.set_error_message("No file selected")
            return
        if entry.is_dir:
            self.set_error_message("Cannot remove directories from collection")
            return
        removed = self.collection.remove(entry.path)
        if removed is None:
            self.set_error_message(f"{entry.name} is not in the collection")
            return
        self.set_success_message(
            f"Removed {entry.name} ({removed.content_size // 1024} KB) - Total: {len(self.collection)} files",
        )

    def clear_collection(self) -> None:
        count = self.collection.clear()
        if count == 0:
            self.set_error_message("Collection is already empty")
            return
        self.set_success_message(f"Cleared {count} files from collection")

    def refresh_collection(self) -> RefreshSummary | None:
        """Synchronise the collection with the filesystem and report the outcome.

        Returns:
            RefreshSummary | None: the tallies, or None when the collection is empty
        """
        if not len(self.collection):
            self.set_error_message("No files in collection to refresh")
            return None
        initial_count = len(self.collection)
        summary = self.collection.refresh_all()
        text = describe_refresh(summary, initial_count, len(self.collection))
        if summary.has_problems:
            self.set_error_message(text)
        else:
            self.set_success_message(text)
        return summary

    # --- export -----------------------------------------------------------------

    @property
    def source_label(self) -> str:
        """Name of the repository, or of the start directory outside a repository."""
        root = self.repo_root or self.start_dir
        return root.name or str(root)

    def generate_markdown(self) -> str:
        return build_markdown(self.collection, self.source_label)

    def save_collection(self, filename: str | None = None) -> Path | None:
        """Write the markdown export into the current directory.

        Args:
            filename (str | None): file name; defaults to ``code_context_<unix seconds>.md``

        Returns:
            Path | None: the written file, or None when nothing was written
        """
        if not len(self.collection):
            self.set_error_message("Collection is empty")
            return None
        filename = filename or f"{DEFAULT_EXPORT_PREFIX}{int(time.time())}.md"
        output = self.current_dir / filename
        try:
            output.write_text(self.generate_markdown(), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save %s: %s", output, e)
            self.set_error_message(f"Failed to save file: {describe_error(e)}")
            return None
        logger.info("Saved %d files to %s", len(self.collection), output)
        self.set_success_message(
            f"Saved {len(self.collection)} files ({format_size(self.collection_size)}) "
            f"to {self.namer.display_path(output)}",
        )
        return output

    def copy_collection(self) -> bool:
        """Copy the markdown export to the clipboard.

        Returns:
            bool: True when the text was handed to the clipboard
        """
        if not len(self.collection):
            self.set_error_message("Collection is empty")
            return False
        markdown = self.generate_markdown()
        try:
            self._copy(markdown)
        except RepoViewerError as e:
            self.set_error_message(describe_error(e))
            return False
        self.set_success_message(
            f"Copied {len(self.collection)} files ({format_size(len(markdown.encode('utf-8')))}) to clipboard!",
        )
        return True

    def generate_tree(self, max_depth: int | None = None) -> str:
        """Draw the tree of the current directory.

        Raises:
            DirectoryReadError: if the current directory cannot be read
        """
        return render_tree(
            self.current_dir,
            self.namer.display_path(self.current_dir),
            self.policy,
            self.classifier,
            max_depth,
        )

    def save_tree(self) -> Path | None:
        output = self.current_dir / TREE_EXPORT_NAME
        try:
            output.write_text(self.generate_tree(), encoding="utf-8")
        except (RepoViewerError, OSError) as e:
            logger.error("Failed to save tree to %s: %s", output, e)
            self.set_error_message(f"Failed to save tree: {describe_error(e)}")
            return None
        self.set_success_message(f"Tree saved to {self.namer.display_path(output)}")
        return output

    def copy_tree(self) -> bool:
        try:
            tree = self.generate_tree()
            self._copy(tree)
        except RepoViewerError as e:
            self.set_error_message(describe_error(e))
            return False
        self.set_success_message(f"Tree ({format_size(len(tree.encode('utf-8')))}) copied to clipboard!")
        return True

    # --- view -------------------------------------------------------------------

    def contextual_hint(self, now: datetime | None = None) -> str | None:  # noqa: PLR0911
        """Pick the single most relevant hint for the current state.

        Args:
            now (datetime | None): wall-clock time used for the staleness check

        Returns:
            str | None: the hint, or None
        """
        if self.show_help:
            return "Press '?' to close help"
        depth = self.depth()
        if self.current_dir != self.start_dir and depth > 3:
            return "Tip: Press '~' to quickly return to the start directory"
        if self.repo_root is not None and self.current_dir != self.repo_root and depth > 2:
            return "Tip: Press 'G' to jump to the git repository root"

        count = len(self.collection)
        if not count:
            entry = self.selection
            if entry is None:
                return "Navigate to files and press 'a' to start collecting"
            if not entry.is_dir:
                return "Press 'a' to add this file to your collection"
            if any(not e.is_dir for e in self.entries):
                return "Press 'A' to add all files in this directory"
            return "Navigate into directories with 'l' to find files to collect"

        size = self.collection_size
        if size > VERY_LARGE_COLLECTION_SIZE:
            return "Collection is very large! Consider using 'd' to remove files or 'S' to save"
        if size > LARGE_COLLECTION_SIZE:
            return "Collection growing large. Ready to export with 'S' or 'C'"

        oldest = self.collection.oldest_capture
        now = now or datetime.now(timezone.utc)
        if oldest is not None and (now - oldest).total_seconds() > STALE_COLLECTION_SECONDS:
            return "Files collected a while ago - press 'r' to refresh"

        if not self.entries:
            return "Empty directory - press 'b' to go back"
        if all(e.is_dir for e in self.entries):
            return "Only directories here - navigate deeper or press 'S' to save your collection"
        if count >= 5:  # noqa: PLR2004
            return "Press 'S' to save or 'C' to copy your collection"
        return f"{count} files collected - 'a' to add more, 'S' to save"

    def view_state(self) -> ViewState:
        """Freeze the current state for rendering."""
        self.tick()
        return ViewState(
            current_dir=self.current_dir,
            header=" / ".join(name for name, _ in self.breadcrumbs()),
            repo_root=self.repo_root,
            entries=tuple(self.entries),
            selected=self.selected,
            collected=self.collection.paths,
            collection_count=len(self.collection),
            collection_size=self.collection_size,
            policy=self.policy,
            message=self.message,
            hint=self.contextual_hint(),
            show_help=self.show_help,
        )
