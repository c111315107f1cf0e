from __future__ import annotations

from datetime import datetime
from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

from repo_viewer.config import MESSAGE_DURATION_SECONDS


class Classification(StrEnum):
    """Outcome of matching a path against the repository ignore rules."""

    INCLUDED = auto()
    IGNORED = auto()
    WHITELISTED = auto()


class FileStatus(StrEnum):
    """Live filesystem state of a collected file compared to its snapshot."""

    UNCHANGED = auto()
    MODIFIED = auto()
    DELETED = auto()
    NOT_A_FILE = auto()
    INACCESSIBLE = auto()
    UNKNOWN = auto()


class RefreshResult(StrEnum):
    """What happened to one snapshot during a refresh."""

    NO_CHANGE = auto()
    UPDATED = auto()
    FILE_DELETED = auto()
    FILE_INACCESSIBLE = auto()
    FAILED = auto()


class SizeWarning(StrEnum):
    """Collection size levels worth telling the user about."""

    LARGE = auto()
    VERY_LARGE = auto()


class VisibilityPolicy(BaseModel):
    """Hidden-file and VCS-ignore rules controlling listing inclusion."""

    model_config = ConfigDict(frozen=True)

    show_hidden: bool = Field(default=False, description="Include dotfiles and hidden files.")
    show_ignored: bool = Field(default=False, description="Include paths ignored by .gitignore.")


class DirectoryEntry(BaseModel):
    """One row of a directory listing, rebuilt on every refresh."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute path of the entry")
    name: str = Field(..., description="File name as displayed")
    is_dir: bool = Field(default=False)
    is_symlink: bool = Field(default=False)
    is_hidden: bool = Field(default=False)


class AdmittedContent(BaseModel):
    """Text content that passed the admission filter."""

    model_config = ConfigDict(frozen=True)

    text: str
    language: str
    size: int = Field(..., ge=0, description="Number of bytes read")


class FileSnapshot(BaseModel):
    """Captured copy of one file's content plus the metadata used to keep it in sync.

    Attributes:
        path: Absolute source path, the identity key inside a collection.
        label: Human-readable relative path, used in exports.
        content: Captured text, replaced wholesale on re-capture.
        language: Code fence language.
        fingerprint: Hash of ``content`` used for equality checks only.
        size: Size of the file on disk at capture time.
        content_size: UTF-8 byte length of ``content``.
        mtime_ns: Modification time seen at capture (or at the last refresh that
            found identical content).
        collected_at: Wall-clock time of the capture.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute file path")
    label: str = Field(..., description="Display label")
    content: str = Field(..., description="Captured text")
    language: str = Field(..., description="Fence language")
    fingerprint: str = Field(..., description="Content hash (hex)")
    size: int = Field(..., ge=0, description="File size in bytes at capture")
    content_size: int = Field(..., ge=0, description="UTF-8 byte length of content")
    mtime_ns: int = Field(..., description="Modification time in nanoseconds")
    collected_at: datetime = Field(..., description="Capture timestamp")


class TransientMessage(BaseModel):
    """Short-lived advisory shown to the user."""

    model_config = ConfigDict(frozen=True)

    text: str
    success: bool
    created_at: float = Field(..., description="time.monotonic() at creation")
    duration: float = Field(default=MESSAGE_DURATION_SECONDS, gt=0)

    def is_expired(self, now: float) -> bool:
        """Tell whether the display duration has elapsed at ``now``."""
        return now - self.created_at >= self.duration


class AddOutcome(BaseModel):
    """Result of adding or re-collecting a single file."""

    model_config = ConfigDict(frozen=True)

    snapshot: FileSnapshot
    replaced: bool
    old_count: int
    new_count: int
    size_delta: int
    warning: SizeWarning | None = None


class BulkAddSummary(BaseModel):
    """Tally of a whole-directory collect."""

    model_config = ConfigDict(frozen=True)

    added: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    warning: SizeWarning | None = None
    crossed_warning: bool = False


class RefreshSummary(BaseModel):
    """Tally of a whole-collection refresh."""

    model_config = ConfigDict(frozen=True)

    unchanged: int = 0
    updated: int = 0
    deleted: int = 0
    inaccessible: int = 0
    failed: int = 0

    @computed_field
    @property
    def has_changes(self) -> bool:
        """Whether anything other than ``unchanged`` was counted."""
        return bool(self.updated or self.deleted or self.inaccessible or self.failed)

    @computed_field
    @property
    def has_problems(self) -> bool:
        """Whether some file could not be refreshed."""
        return bool(self.failed or self.inaccessible)


class ViewState(BaseModel):
    """Read-only picture of the application handed to the terminal front end."""

    model_config = ConfigDict(frozen=True)

    current_dir: Path
    header: str
    repo_root: Path | None = None
    entries: tuple[DirectoryEntry, ...] = ()
    selected: int | None = None
    collected: frozenset[Path] = frozenset()
    collection_count: int = 0
    collection_size: int = 0
    policy: VisibilityPolicy = Field(default_factory=VisibilityPolicy)
    message: TransientMessage | None = None
    hint: str | None = None
    show_help: bool = False
