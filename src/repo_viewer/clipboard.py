from __future__ import annotations

import os
import sys
import threading
from typing import TYPE_CHECKING

import pyperclip

from repo_viewer.exceptions import ClipboardUnavailableError
from repo_viewer.logging import logger

if TYPE_CHECKING:
    from collections.abc import Mapping

_DESKTOP_SESSIONS = {"x11", "wayland"}
_DISPLAY_VARIABLES = ("WSL_DISTRO_NAME", "WSL_INTEROP", "WAYLAND_DISPLAY", "DISPLAY")


def needs_background_copy(environ: Mapping[str, str] | None = None, platform: str | None = None) -> bool:
    """Tell whether the clipboard write should happen on a detached thread.

    X11 and Wayland clipboards are owned by the writing process, which can make
    the copy block until another client reads it.

    Args:
        environ (Mapping[str, str] | None): environment to inspect. Defaults to os.environ.
        platform (str | None): platform name. Defaults to sys.platform.

    Returns:
        bool: True on Linux desktop sessions (X11, Wayland, WSLg)
    """
    environ = os.environ if environ is None else environ
    platform = sys.platform if platform is None else platform
    if not platform.startswith("linux"):
        return False
    if environ.get("XDG_SESSION_TYPE", "").lower() in _DESKTOP_SESSIONS:
        return True
    return any(environ.get(name) for name in _DISPLAY_VARIABLES)


def _background_copy(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.error("Background clipboard copy failed: %s", e)


def copy_text(text: str, environ: Mapping[str, str] | None = None, platform: str | None = None) -> None:
    """Put ``text`` on the system clipboard.

    On Linux desktop sessions the copy is handed to a daemon thread and not
    awaited; failures there are only logged.

    Raises:
        ClipboardUnavailableError: if no clipboard mechanism is available
    """
    if needs_background_copy(environ, platform):
        thread = threading.Thread(target=_background_copy, args=(text,), name="clipboard-copy", daemon=True)
        thread.start()
        return
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.warning("Clipboard copy failed: %s", e)
        raise ClipboardUnavailableError(reason=str(e)) from e
