"""Line-oriented terminal front end.

Renders a ViewState with Rich and reads one command per line. The key map is
static; every command is a method call on RepoViewer.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from repo_viewer.config import format_size
from repo_viewer.exceptions import RepoViewerError, describe_error
from repo_viewer.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from repo_viewer.app import RepoViewer
    from repo_viewer.models import ViewState

QUIT_KEYS = frozenset({"q", "quit", "exit"})

KEY_BINDINGS: Mapping[str, Callable[[RepoViewer], object]] = MappingProxyType(
    {
        "j": lambda app: app.move_selection(1),
        "k": lambda app: app.move_selection(-1),
        "l": lambda app: app.navigate_into(),
        "b": lambda app: app.navigate_up(),
        "^": lambda app: app.select_first(),
        "$": lambda app: app.select_last(),
        "~": lambda app: app.navigate_to_start(),
        "G": lambda app: app.navigate_to_repo_root(),
        "h": lambda app: app.toggle_hidden(),
        "g": lambda app: app.toggle_ignored(),
        "a": lambda app: app.add_selected(),
        "A": lambda app: app.add_all_in_directory(),
        "d": lambda app: app.remove_selected(),
        "D": lambda app: app.clear_collection(),
        "r": lambda app: app.refresh_collection(),
        "S": lambda app: app.save_collection(),
        "C": lambda app: app.copy_collection(),
        "t": lambda app: app.save_tree(),
        "c": lambda app: app.copy_tree(),
        "?": lambda app: app.toggle_help(),
    },
)

HELP_ROWS: tuple[tuple[str, str, str], ...] = (
    ("Navigate", "j / k", "Select next / previous"),
    ("Navigate", "^ / $", "First / last entry"),
    ("Navigate", "<number>", "Select entry by number"),
    ("Navigate", "l / b", "Open directory / go back"),
    ("Navigate", "~ / G", "Start directory / repository root"),
    ("Toggle", "h", "Hidden files"),
    ("Toggle", "g", "Ignored files (repository only)"),
    ("Collection", "a / A", "Add file / add all files here"),
    ("Collection", "d / D", "Remove file / clear collection"),
    ("Collection", "r", "Refresh collected files"),
    ("Export", "S / C", "Save / copy collection as markdown"),
    ("Export", "t / c", "Save / copy directory tree"),
    ("Exit", "q", "Quit"),
)


def build_header(state: ViewState) -> Panel:
    lines = [f"📁 {escape(str(state.current_dir))}"]
    if state.repo_root is not None:
        lines.append(f"🔧 Git root: {escape(str(state.repo_root))}")
    if state.collection_count:
        lines.append(f"📦 Collection: {state.collection_count} files ({format_size(state.collection_size)})")
    return Panel("\n".join(lines), title="RepoViewer", subtitle=escape(state.header))


def build_listing(state: ViewState) -> Table:
    title = f"Files [{len(state.entries)}]"
    if state.collection_count:
        title += f" | Collected [{state.collection_count}]"
    table = Table(title=title, show_header=True, header_style="bold", expand=True)
    table.add_column("#", justify="right", width=4)
    table.add_column("Name", no_wrap=True)
    table.add_column("", width=2)

    for idx, entry in enumerate(state.entries):
        icon = "📁" if entry.is_dir else "📄"
        name = escape(entry.name) + ("/" if entry.is_dir else "")
        if entry.is_symlink:
            name += " [dim]→[/dim]"
        mark = "[green]✓[/green]" if entry.path in state.collected else ""
        style = "reverse" if idx == state.selected else ("dim" if entry.is_hidden else None)
        table.add_row(str(idx + 1), f"{icon} {name}", mark, style=style)
    return table


def build_toggles(state: ViewState) -> Text:
    text = Text("Toggle: ", style="bold")
    text.append("h", style="yellow")
    text.append(" Hidden[")
    text.append("ON" if state.policy.show_hidden else "OFF", style="green" if state.policy.show_hidden else "red")
    text.append("]  ")
    text.append("g", style="yellow" if state.repo_root is not None else "bright_black")
    text.append(" Gitignore[")
    text.append("SHOW" if state.policy.show_ignored else "HIDE", style="green" if state.policy.show_ignored else "red")
    text.append("]   ? Help")
    return text


def build_help() -> Table:
    table = Table(title="Keys", show_header=True, header_style="bold")
    table.add_column("Group")
    table.add_column("Key", style="yellow")
    table.add_column("Action")
    for group, key, action in HELP_ROWS:
        table.add_row(group, escape(key), action)
    return table


def render(state: ViewState, console: Console) -> None:
    """Draw one frame for ``state``."""
    parts: list[object] = [build_header(state), build_listing(state), build_toggles(state)]
    if state.show_help:
        parts.append(build_help())
    if state.message is not None:
        title = "Success" if state.message.success else "Notice"
        style = "green" if state.message.success else "red"
        parts.append(Panel(escape(state.message.text), title=title, border_style=style))
    if state.hint:
        parts.append(Text(state.hint, style="dim italic"))
    console.print(Group(*parts))


def dispatch(app: RepoViewer, command: str) -> bool:
    """Run one command line against ``app``.

    Args:
        app (RepoViewer): the session
        command (str): the line typed by the user

    Returns:
        bool: False when the user asked to quit
    """
    command = command.strip()
    if not command:
        return True
    if command in QUIT_KEYS:
        return False
    if command.isdigit():
        app.select_index(int(command) - 1)
        return True

    action = KEY_BINDINGS.get(command)
    if action is None:
        app.set_error_message(f"Unknown command: {command} (press '?' for help)")
        return True
    try:
        action(app)
    except RepoViewerError as e:
        logger.info("Command %s failed: %s", command, e)
        app.set_error_message(describe_error(e))
    return True


def run_interactive(
    app: RepoViewer,
    console: Console | None = None,
    input_fn: Callable[[str], str] | None = None,
) -> None:
    """Render, read a command, dispatch; until the user quits or input ends."""
    console = console or Console()
    read = input_fn or console.input
    while True:
        render(app.view_state(), console)
        try:
            command = read("> ")
        except (EOFError, KeyboardInterrupt):
            break
        if not dispatch(app, command):
            break
