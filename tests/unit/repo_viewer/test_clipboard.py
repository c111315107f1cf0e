from __future__ import annotations

import pyperclip
import pytest
from pytest_mock import MockerFixture

from repo_viewer import clipboard
from repo_viewer.exceptions import ClipboardUnavailableError


@pytest.mark.unit
@pytest.mark.parametrize(
    ("environ", "platform", "expected"),
    [
        ({"XDG_SESSION_TYPE": "wayland"}, "linux", True),
        ({"XDG_SESSION_TYPE": "x11"}, "linux", True),
        ({"DISPLAY": ":0"}, "linux", True),
        ({"WSL_DISTRO_NAME": "Ubuntu"}, "linux", True),
        ({"XDG_SESSION_TYPE": "tty"}, "linux", False),
        ({}, "linux", False),
        ({"DISPLAY": ":0"}, "darwin", False),
        ({}, "win32", False),
    ],
)
def test_needs_background_copy(environ: dict[str, str], platform: str, expected: bool) -> None:
    assert clipboard.needs_background_copy(environ, platform) is expected


@pytest.mark.unit
def test_copy_text_direct(mocker: MockerFixture) -> None:
    copy = mocker.patch.object(clipboard.pyperclip, "copy")

    clipboard.copy_text("hello", environ={}, platform="darwin")

    copy.assert_called_once_with("hello")


@pytest.mark.unit
def test_copy_text_wraps_pyperclip_errors(mocker: MockerFixture) -> None:
    mocker.patch.object(clipboard.pyperclip, "copy", side_effect=pyperclip.PyperclipException("no mechanism"))

    with pytest.raises(ClipboardUnavailableError) as exc_info:
        clipboard.copy_text("hello", environ={}, platform="linux")

    assert "no mechanism" in exc_info.value.reason


@pytest.mark.unit
def test_copy_text_hands_off_to_daemon_thread(mocker: MockerFixture) -> None:
    thread_cls = mocker.patch.object(clipboard.threading, "Thread")

    clipboard.copy_text("hello", environ={"XDG_SESSION_TYPE": "x11"}, platform="linux")

    kwargs = thread_cls.call_args.kwargs
    assert kwargs["args"] == ("hello",)
    assert kwargs["daemon"] is True
    thread_cls.return_value.start.assert_called_once_with()
    thread_cls.return_value.join.assert_not_called()


@pytest.mark.unit
def test_background_copy_logs_failures(mocker: MockerFixture) -> None:
    mocker.patch.object(clipboard.pyperclip, "copy", side_effect=pyperclip.PyperclipException("boom"))
    error = mocker.patch.object(clipboard.logger, "error")

    clipboard._background_copy("hello")  # noqa: SLF001

    error.assert_called_once()
