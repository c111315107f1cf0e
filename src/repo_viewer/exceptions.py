from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from repo_viewer.config import format_size


@dataclass(eq=False)
class RepoViewerError(Exception):
    """Base exception for errors in the repo_viewer package."""

    def __str__(self) -> str:
        return describe_error(self)


# --- admission policy rejections: always recoverable --------------------------


@dataclass(eq=False)
class AdmissionError(RepoViewerError):
    """Raised when a file's bytes may not enter the collection."""


@dataclass(eq=False)
class UnrecognizedFileTypeError(AdmissionError):
    """Raised when neither the file name nor its extension is on the allow-list."""

    extension: str | None = None


@dataclass(eq=False)
class FileTooLargeError(AdmissionError):
    """Raised when a file exceeds the admission size ceiling."""

    size: int
    max_size: int


@dataclass(eq=False)
class BinaryFileError(AdmissionError):
    """Raised when a file contains NUL bytes or too many control bytes."""


@dataclass(eq=False)
class EncodingIssueError(AdmissionError):
    """Raised when too many bytes are not valid UTF-8."""


@dataclass(eq=False)
class NotAFileError(RepoViewerError):
    """Raised when a directory is handed to the collection."""

    path: Path | None = None


# --- filesystem errors ---------------------------------------------------------


@dataclass(eq=False)
class FileAccessError(RepoViewerError):
    """Raised when a file cannot be stat-ed or read."""

    path: Path
    reason: str


@dataclass(eq=False)
class DirectoryReadError(RepoViewerError):
    """Raised when a directory cannot be listed at all."""

    path: Path
    reason: str


@dataclass(eq=False)
class DirectoryNotFoundError(RepoViewerError):
    """Raised when a target directory does not exist."""

    path: Path


@dataclass(eq=False)
class NotADirectoryPathError(RepoViewerError):
    """Raised when a target path exists but is not a directory."""

    path: Path


# --- logic errors: unreachable in correct usage -------------------------------


@dataclass(eq=False)
class InvalidSnapshotIndexError(RepoViewerError):
    """Raised when a snapshot index is outside the collection."""

    index: int
    length: int


@dataclass(eq=False)
class NotInRepositoryError(RepoViewerError):
    """Raised when a repository-only action runs outside a git repository."""


# --- platform / environment ---------------------------------------------------


@dataclass(eq=False)
class ClipboardUnavailableError(RepoViewerError):
    """Raised when the system clipboard cannot be written."""

    reason: str


def os_error_reason(error: OSError) -> str:
    """Translate an OSError into a short reason, separating permission and missing-path cases.

    Args:
        error (OSError): the error to translate

    Returns:
        str: a lowercase reason suitable for embedding in a message
    """
    if isinstance(error, PermissionError):
        return "permission denied"
    if isinstance(error, FileNotFoundError):
        return "no such file or directory"
    if isinstance(error, NotADirectoryError):
        return "not a directory"
    if isinstance(error, IsADirectoryError):
        return "is a directory"
    return (error.strerror or str(error)).lower()


def describe_error(error: BaseException) -> str:  # noqa: PLR0911
    """Map an error to the message shown to the user.

    Every RepoViewerError subclass has an explicit branch; anything else falls
    back to OS-level translation or ``str``.

    Args:
        error (BaseException): the error to describe

    Returns:
        str: a human-readable, single-line message
    """
    match error:
        case UnrecognizedFileTypeError(extension=None):
            return "File has no extension - cannot determine type"
        case UnrecognizedFileTypeError(extension=ext):
            return f"Unsupported file type: .{ext}"
        case FileTooLargeError(size=size, max_size=max_size):
            return f"File too large: {format_size(size)} (max: {format_size(max_size)})"
        case BinaryFileError():
            return "Cannot collect binary files - only text files are supported"
        case EncodingIssueError():
            return "File has encoding issues - too many invalid UTF-8 characters"
        case NotAFileError():
            return "Cannot collect directories"
        case FileAccessError(path=path, reason=reason):
            return f"Failed to read {path.name}: {reason}"
        case DirectoryReadError(path=path, reason=reason):
            return f"Cannot read directory {path}: {reason}"
        case DirectoryNotFoundError(path=path):
            return f"Directory not found: {path}"
        case NotADirectoryPathError(path=path):
            return f"Not a directory: {path}"
        case InvalidSnapshotIndexError(index=index, length=length):
            return (
                f"Internal error: snapshot index {index} is out of range ({length} collected). "
                "This is likely a bug"
            )
        case NotInRepositoryError():
            return "Not in a git repository"
        case ClipboardUnavailableError(reason=reason):
            return f"Clipboard unavailable: {reason}"
        case OSError():
            return f"I/O error: {os_error_reason(error)}"
        case RepoViewerError():
            return type(error).__name__
        case _:
            return str(error) or type(error).__name__
