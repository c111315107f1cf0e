from __future__ import annotations

import hashlib
import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from repo_viewer.config import (
    CONTROL_BYTE_RATIO,
    MAX_FILE_SIZE,
    REPLACEMENT_RATIO,
    VCS_DIR_NAME,
    file_extension,
    resolve_language,
)
from repo_viewer.exceptions import (
    BinaryFileError,
    DirectoryReadError,
    EncodingIssueError,
    FileAccessError,
    FileTooLargeError,
    UnrecognizedFileTypeError,
    os_error_reason,
)
from repo_viewer.logging import logger
from repo_viewer.models import AdmittedContent, Classification, DirectoryEntry, VisibilityPolicy

if TYPE_CHECKING:
    from repo_viewer.vcs import IgnoreClassifier

# Control bytes that make a file look binary; tab, LF and CR are whitespace.
_CONTROL_BYTES = bytes(b for b in (*range(0x20), 0x7F) if b not in {0x09, 0x0A, 0x0D})
_REPLACEMENT_CHAR = "�"


def relpath(path: Path, root: Path) -> str | None:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str | None: the relative path from root to path, with POSIX separators,
            or None if path is not under root.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return None


def count_control_bytes(data: bytes) -> int:
    """Count control bytes other than tab, newline and carriage return.

    Args:
        data (bytes): the raw file content

    Returns:
        int: the number of control bytes in ``data``
    """
    return len(data) - len(data.translate(None, _CONTROL_BYTES))


def decode_text(data: bytes) -> str:
    """Decode ``data`` as UTF-8, tolerating a handful of invalid sequences.

    Strict decoding is tried first. Otherwise the bytes are decoded with
    replacement characters, and the result is accepted only while replacements
    stay under 1/1000 of the decoded text's UTF-8 byte length.

    Args:
        data (bytes): the raw file content

    Raises:
        EncodingIssueError: if too many bytes are not valid UTF-8

    Returns:
        str: the decoded text
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        text = data.decode("utf-8", errors="replace")
    replacements = text.count(_REPLACEMENT_CHAR)
    if replacements < len(text.encode("utf-8")) // REPLACEMENT_RATIO:
        return text
    raise EncodingIssueError


def admit(path: Path, max_size: int = MAX_FILE_SIZE) -> AdmittedContent:
    """Run the admission pipeline on one file.

    The checks short-circuit in this order: file type allow-list (no I/O),
    size ceiling (stat), NUL bytes, control byte ratio, UTF-8 decoding.

    Args:
        path (Path): the file to admit
        max_size (int, optional): the size ceiling in bytes. Defaults to MAX_FILE_SIZE.

    Raises:
        UnrecognizedFileTypeError: if the name and extension are not on the allow-list
        FileTooLargeError: if the file is larger than ``max_size``
        BinaryFileError: if the content looks binary
        EncodingIssueError: if the content is not UTF-8 enough
        FileAccessError: if the file cannot be stat-ed or read

    Returns:
        AdmittedContent: the decoded text with its fence language
    """
    language = resolve_language(path)
    if language is None:
        raise UnrecognizedFileTypeError(extension=file_extension(path))

    try:
        size = path.stat().st_size
        if size > max_size:
            raise FileTooLargeError(size=size, max_size=max_size)
        data = path.read_bytes()
    except OSError as e:
        raise FileAccessError(path=path, reason=os_error_reason(e)) from e

    # The file may have grown between stat and read.
    if len(data) > max_size:
        raise FileTooLargeError(size=len(data), max_size=max_size)
    if b"\x00" in data:
        raise BinaryFileError
    if count_control_bytes(data) > len(data) // CONTROL_BYTE_RATIO:
        raise BinaryFileError

    text = decode_text(data)
    return AdmittedContent(text=text, language=language, size=len(data))


def fingerprint(text: str) -> str:
    """Compute a short, fast hash of captured text for equality checks.

    Returns:
        str: a 16 hex digit BLAKE2b digest
    """
    return hashlib.blake2b(text.encode("utf-8"), digest_size=8).hexdigest()


def is_hidden(name: str, st: os.stat_result | None = None) -> bool:
    """Check if an entry is hidden.

    Dotfiles are hidden everywhere; on Windows the hidden file attribute counts too.

    Args:
        name (str): the entry name
        st (os.stat_result | None): the entry's stat result, if available

    Returns:
        bool: True if the entry is hidden
    """
    if name.startswith("."):
        return True
    attributes = getattr(st, "st_file_attributes", 0) if st is not None else 0
    return bool(attributes & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0x2))


def is_visible(
    path: Path,
    *,
    is_dir: bool,
    hidden: bool,
    policy: VisibilityPolicy,
    classifier: IgnoreClassifier | None = None,
) -> bool:
    """Apply the visibility policy to one entry.

    A path whitelisted by the ignore rules is always visible. Otherwise hidden
    entries need ``show_hidden`` and ignored entries need ``show_ignored``.

    Returns:
        bool: True if the entry should be listed
    """
    classification = classifier.classify(path, is_dir=is_dir) if classifier is not None else Classification.INCLUDED
    if classification is Classification.WHITELISTED:
        return True
    if hidden and not policy.show_hidden:
        return False
    return not (classification is Classification.IGNORED and not policy.show_ignored)


def list_directory(
    directory: Path,
    policy: VisibilityPolicy,
    classifier: IgnoreClassifier | None = None,
) -> list[DirectoryEntry]:
    """List the direct children of ``directory`` that the policy lets through.

    The VCS metadata directory is never listed. An entry that cannot be
    stat-ed is skipped so one unreadable entry does not abort the listing.

    Args:
        directory (Path): the directory to list
        policy (VisibilityPolicy): hidden / ignored visibility settings
        classifier (IgnoreClassifier | None): the repository ignore rules, if any

    Raises:
        DirectoryReadError: if ``directory`` itself cannot be read

    Returns:
        list[DirectoryEntry]: directories first, then files, each by name
    """
    entries: list[DirectoryEntry] = []
    try:
        with os.scandir(directory) as it:
            for child in it:
                if child.name == VCS_DIR_NAME:
                    continue
                path = Path(child.path)
                try:
                    st = child.stat()
                    is_symlink = child.is_symlink()
                except OSError as e:
                    logger.debug("Skipping unreadable entry %s: %s", path, e)
                    continue
                is_dir = stat.S_ISDIR(st.st_mode)
                hidden = is_hidden(child.name, st)
                if not is_visible(path, is_dir=is_dir, hidden=hidden, policy=policy, classifier=classifier):
                    continue
                entries.append(
                    DirectoryEntry(
                        path=path,
                        name=child.name,
                        is_dir=is_dir,
                        is_symlink=is_symlink,
                        is_hidden=hidden,
                    ),
                )
    except OSError as e:
        raise DirectoryReadError(path=directory, reason=os_error_reason(e)) from e

    return sorted(entries, key=lambda entry: (not entry.is_dir, entry.name))
