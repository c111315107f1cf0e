from __future__ import annotations

import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from repo_viewer.config import LARGE_COLLECTION_SIZE, VERY_LARGE_COLLECTION_SIZE
from repo_viewer.exceptions import (
    AdmissionError,
    FileAccessError,
    InvalidSnapshotIndexError,
    NotAFileError,
    RepoViewerError,
    os_error_reason,
)
from repo_viewer.file_manipulation import admit, fingerprint
from repo_viewer.logging import logger
from repo_viewer.models import (
    AddOutcome,
    BulkAddSummary,
    DirectoryEntry,
    FileSnapshot,
    FileStatus,
    RefreshResult,
    RefreshSummary,
    SizeWarning,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator


def size_warning(total_size: int) -> SizeWarning | None:
    """Map a collection size to its warning level.

    Returns:
        SizeWarning | None: VERY_LARGE above 50 MiB, LARGE above 25 MiB, else None
    """
    if total_size > VERY_LARGE_COLLECTION_SIZE:
        return SizeWarning.VERY_LARGE
    if total_size > LARGE_COLLECTION_SIZE:
        return SizeWarning.LARGE
    return None


def capture(path: Path, label: str) -> FileSnapshot:
    """Take a snapshot of ``path``.

    The modification time is read before the content so a write racing with the
    capture is seen as a modification on the next refresh.

    Args:
        path (Path): the file to capture
        label (str): the label stored in the snapshot

    Raises:
        NotAFileError: if ``path`` is a directory
        AdmissionError: if the admission filter rejects the file
        FileAccessError: if the file cannot be stat-ed or read

    Returns:
        FileSnapshot: the new snapshot
    """
    try:
        st = path.stat()
    except OSError as e:
        raise FileAccessError(path=path, reason=os_error_reason(e)) from e
    if stat.S_ISDIR(st.st_mode):
        raise NotAFileError(path=path)

    admitted = admit(path)
    return FileSnapshot(
        path=path,
        label=label,
        content=admitted.text,
        language=admitted.language,
        fingerprint=fingerprint(admitted.text),
        size=admitted.size,
        content_size=len(admitted.text.encode("utf-8")),
        mtime_ns=st.st_mtime_ns,
        collected_at=datetime.now(timezone.utc),
    )


def check_status(snapshot: FileSnapshot) -> FileStatus:
    """Compare the live file behind ``snapshot`` to the captured state.

    Args:
        snapshot (FileSnapshot): the snapshot to check

    Returns:
        FileStatus: the live status of the file
    """
    try:
        st = snapshot.path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return FileStatus.DELETED
    except OSError as e:
        logger.info("Cannot stat %s: %s", snapshot.path, e)
        return FileStatus.INACCESSIBLE

    if not stat.S_ISREG(st.st_mode):
        return FileStatus.NOT_A_FILE
    mtime_ns = getattr(st, "st_mtime_ns", None)
    if mtime_ns is None:
        return FileStatus.UNKNOWN
    if mtime_ns > snapshot.mtime_ns:
        return FileStatus.MODIFIED
    return FileStatus.UNCHANGED


class FileCollection:
    """Insertion-ordered store of file snapshots, at most one per path.

    Removal swaps the last snapshot into the freed slot, so store order is not
    a display order once anything has been removed.
    """

    def __init__(self, label: Callable[[Path], str]) -> None:
        """Create an empty collection.

        Args:
            label (Callable[[Path], str]): names a path when it is first captured
        """
        self._label = label
        self._snapshots: list[FileSnapshot] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[FileSnapshot]:
        return iter(list(self._snapshots))

    def __contains__(self, path: object) -> bool:
        return isinstance(path, Path) and self.index_of(path) is not None

    def __getitem__(self, index: int) -> FileSnapshot:
        if not 0 <= index < len(self._snapshots):
            raise InvalidSnapshotIndexError(index=index, length=len(self._snapshots))
        return self._snapshots[index]

    @property
    def snapshots(self) -> tuple[FileSnapshot, ...]:
        """Snapshots in store order."""
        return tuple(self._snapshots)

    @property
    def paths(self) -> frozenset[Path]:
        return frozenset(s.path for s in self._snapshots)

    @property
    def total_size(self) -> int:
        """Sum of the captured content sizes in bytes."""
        return sum(s.content_size for s in self._snapshots)

    @property
    def oldest_capture(self) -> datetime | None:
        return min((s.collected_at for s in self._snapshots), default=None)

    def index_of(self, path: Path) -> int | None:
        for i, snapshot in enumerate(self._snapshots):
            if snapshot.path == path:
                return i
        return None

    def add_or_update(self, entry: DirectoryEntry) -> AddOutcome:
        """Capture ``entry`` and store it, replacing any snapshot of the same path.

        Args:
            entry (DirectoryEntry): the listing entry to collect

        Raises:
            NotAFileError: if the entry is a directory
            AdmissionError: if the admission filter rejects the file
            FileAccessError: if the file cannot be read

        Returns:
            AddOutcome: the stored snapshot with count and size changes
        """
        if entry.is_dir:
            raise NotAFileError(path=entry.path)

        old_count = len(self._snapshots)
        index = self.index_of(entry.path)
        label = self._label(entry.path) if index is None else self._snapshots[index].label
        snapshot = capture(entry.path, label)

        if index is None:
            self._snapshots.append(snapshot)
            size_delta = snapshot.content_size
            logger.info("Collected %s (%d bytes)", snapshot.label, snapshot.content_size)
        else:
            size_delta = snapshot.content_size - self._snapshots[index].content_size
            self._snapshots[index] = snapshot
            logger.info("Re-collected %s (%d bytes)", snapshot.label, snapshot.content_size)

        return AddOutcome(
            snapshot=snapshot,
            replaced=index is not None,
            old_count=old_count,
            new_count=len(self._snapshots),
            size_delta=size_delta,
            warning=size_warning(self.total_size),
        )

    def add_all_in(self, entries: Iterable[DirectoryEntry]) -> BulkAddSummary:
        """Collect every file among ``entries``, one at a time.

        Directories and admission rejections count as skipped, filesystem
        failures as errors. A failing file never aborts the batch.

        Args:
            entries (Iterable[DirectoryEntry]): the listing entries

        Returns:
            BulkAddSummary: the per-outcome tallies
        """
        initial_size = self.total_size
        added = updated = skipped = errors = 0
        for entry in entries:
            if entry.is_dir:
                skipped += 1
                continue
            try:
                outcome = self.add_or_update(entry)
            except (AdmissionError, NotAFileError) as e:
                logger.debug("Skipping %s: %s", entry.path, e)
                skipped += 1
            except (FileAccessError, OSError) as e:
                logger.warning("Cannot collect %s: %s", entry.path, e)
                errors += 1
            else:
                if outcome.replaced:
                    updated += 1
                else:
                    added += 1

        final_size = self.total_size
        summary = BulkAddSummary(
            added=added,
            updated=updated,
            skipped=skipped,
            errors=errors,
            warning=size_warning(final_size),
            crossed_warning=initial_size <= LARGE_COLLECTION_SIZE < final_size,
        )
        logger.info(
            "Bulk collect: %d added, %d updated, %d skipped, %d errors",
            added,
            updated,
            skipped,
            errors,
        )
        return summary

    def remove(self, path: Path) -> FileSnapshot | None:
        """Remove the snapshot of ``path`` in O(1) by swapping in the last one.

        Returns:
            FileSnapshot | None: the removed snapshot, or None if ``path`` was not collected
        """
        index = self.index_of(path)
        if index is None:
            return None
        removed = self._swap_remove(index)
        logger.info("Removed %s from the collection", removed.label)
        return removed

    def clear(self) -> int:
        """Drop every snapshot.

        Returns:
            int: the number of snapshots removed
        """
        count = len(self._snapshots)
        self._snapshots.clear()
        if count:
            logger.info("Cleared %d files from the collection", count)
        return count

    def _swap_remove(self, index: int) -> FileSnapshot:
        last = self._snapshots.pop()
        if index == len(self._snapshots):
            return last
        removed = self._snapshots[index]
        self._snapshots[index] = last
        return removed

    def refresh_one(self, index: int) -> RefreshResult:
        """Bring the snapshot at ``index`` in line with its file.

        A modified file is re-captured. When the new content has the same
        fingerprint only the stored modification time moves forward, so the
        next check is cheap, and the result is NO_CHANGE. Deleted and
        inaccessible files are reported but left in place.

        Args:
            index (int): position of the snapshot in store order

        Raises:
            InvalidSnapshotIndexError: if ``index`` is out of range

        Returns:
            RefreshResult: what happened to the snapshot
        """
        snapshot = self[index]
        match check_status(snapshot):
            case FileStatus.UNCHANGED:
                return RefreshResult.NO_CHANGE
            case FileStatus.DELETED:
                return RefreshResult.FILE_DELETED
            case FileStatus.INACCESSIBLE:
                return RefreshResult.FILE_INACCESSIBLE
            case FileStatus.NOT_A_FILE | FileStatus.UNKNOWN:
                return RefreshResult.FAILED

        try:
            fresh = capture(snapshot.path, snapshot.label)
        except RepoViewerError as e:
            logger.warning("Cannot refresh %s: %s", snapshot.label, e)
            return RefreshResult.FAILED

        if fresh.fingerprint == snapshot.fingerprint:
            self._snapshots[index] = snapshot.model_copy(update={"mtime_ns": fresh.mtime_ns})
            return RefreshResult.NO_CHANGE
        self._snapshots[index] = fresh
        return RefreshResult.UPDATED

    def refresh_all(self) -> RefreshSummary:
        """Refresh every snapshot, then drop those whose file is gone or unreadable.

        Running it twice without filesystem changes reports everything unchanged
        the second time.

        Returns:
            RefreshSummary: the per-result tallies
        """
        counts = dict.fromkeys(RefreshResult, 0)
        to_remove: list[int] = []
        for index in range(len(self._snapshots)):
            try:
                result = self.refresh_one(index)
            except InvalidSnapshotIndexError as e:
                logger.error("Refresh aborted for one file: %s", e)
                result = RefreshResult.FAILED
            counts[result] += 1
            if result in {RefreshResult.FILE_DELETED, RefreshResult.FILE_INACCESSIBLE}:
                to_remove.append(index)

        for index in sorted(to_remove, reverse=True):
            removed = self._swap_remove(index)
            logger.info("Dropped %s from the collection", removed.label)

        summary = RefreshSummary(
            unchanged=counts[RefreshResult.NO_CHANGE],
            updated=counts[RefreshResult.UPDATED],
            deleted=counts[RefreshResult.FILE_DELETED],
            inaccessible=counts[RefreshResult.FILE_INACCESSIBLE],
            failed=counts[RefreshResult.FAILED],
        )
        logger.info("Refreshed collection: %s", summary.model_dump())
        return summary
