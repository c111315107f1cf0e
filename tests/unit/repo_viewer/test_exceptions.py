from __future__ import annotations

from pathlib import Path

import pytest

from repo_viewer.exceptions import (
    AdmissionError,
    BinaryFileError,
    ClipboardUnavailableError,
    DirectoryNotFoundError,
    DirectoryReadError,
    EncodingIssueError,
    FileAccessError,
    InvalidSnapshotIndexError,
    NotADirectoryPathError,
    NotAFileError,
    NotInRepositoryError,
    RepoViewerError,
    UnrecognizedFileTypeError,
    describe_error,
    os_error_reason,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("error", "message"),
    [
        (UnrecognizedFileTypeError(extension="exe"), "Unsupported file type: .exe"),
        (BinaryFileError(), "Cannot collect binary files - only text files are supported"),
        (EncodingIssueError(), "File has encoding issues - too many invalid UTF-8 characters"),
        (NotAFileError(), "Cannot collect directories"),
        (FileAccessError(path=Path("/x/a.py"), reason="permission denied"), "Failed to read a.py: permission denied"),
        (DirectoryReadError(path=Path("/x"), reason="permission denied"), "Cannot read directory /x: permission denied"),
        (DirectoryNotFoundError(path=Path("/nope")), "Directory not found: /nope"),
        (NotADirectoryPathError(path=Path("/f.txt")), "Not a directory: /f.txt"),
        (NotInRepositoryError(), "Not in a git repository"),
        (ClipboardUnavailableError(reason="no xclip"), "Clipboard unavailable: no xclip"),
    ],
)
def test_describe_error_messages(error: RepoViewerError, message: str) -> None:
    assert describe_error(error) == message
    assert str(error) == message


@pytest.mark.unit
def test_describe_error_for_logic_error_mentions_bug() -> None:
    message = describe_error(InvalidSnapshotIndexError(index=4, length=2))

    assert "4" in message
    assert "bug" in message


@pytest.mark.unit
def test_describe_error_translates_os_errors() -> None:
    assert describe_error(PermissionError(13, "Permission denied")) == "I/O error: permission denied"
    assert describe_error(ValueError("boom")) == "boom"


@pytest.mark.unit
def test_os_error_reason_distinguishes_cases() -> None:
    assert os_error_reason(FileNotFoundError(2, "No such file")) == "no such file or directory"
    assert os_error_reason(NotADirectoryError(20, "Not a directory")) == "not a directory"
    assert os_error_reason(OSError(5, "Input/output error")) == "input/output error"


@pytest.mark.unit
def test_admission_errors_share_a_base_and_can_be_chained() -> None:
    error = BinaryFileError()

    assert isinstance(error, AdmissionError)
    with pytest.raises(AdmissionError) as exc_info:
        try:
            raise OSError("inner")
        except OSError as e:
            raise error from e
    assert isinstance(exc_info.value.__cause__, OSError)


@pytest.mark.unit
def test_base_errors_describe_themselves_by_class_name() -> None:
    assert str(AdmissionError()) == "AdmissionError"
    assert str(NotInRepositoryError()) == "Not in a git repository"
