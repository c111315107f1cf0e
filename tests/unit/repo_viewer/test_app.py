from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from repo_viewer.app import CROSSING_TIP, RepoViewer, describe_refresh, size_warning_text
from repo_viewer.config import MEGABYTE
from repo_viewer.exceptions import (
    ClipboardUnavailableError,
    DirectoryNotFoundError,
    NotADirectoryPathError,
    NotInRepositoryError,
)
from repo_viewer.models import BulkAddSummary, RefreshSummary, SizeWarning, VisibilityPolicy


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class ClipboardSpy:
    def __init__(self) -> None:
        self.copied: list[str] = []

    def __call__(self, text: str) -> None:
        self.copied.append(text)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src" / "pkg").mkdir(parents=True)
    (root / "src" / "main.py").write_text("print('hi')\n", encoding="utf-8")
    (root / "src" / "pkg" / "mod.py").write_text("x = 1\n", encoding="utf-8")
    (root / "README.md").write_text("# demo\n", encoding="utf-8")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n")
    return root


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def spy() -> ClipboardSpy:
    return ClipboardSpy()


@pytest.fixture
def app(project: Path, clock: FakeClock, spy: ClipboardSpy) -> RepoViewer:
    return RepoViewer(project, clock=clock, copy=spy)


def select(app: RepoViewer, name: str) -> None:
    names = [e.name for e in app.entries]
    app.select_index(names.index(name))


@pytest.mark.unit
def test_initial_listing_selects_first_entry(app: RepoViewer) -> None:
    assert [e.name for e in app.entries] == ["src", "README.md", "logo.png"]
    assert app.selected == 0
    assert app.repo_root is None
    assert app.classifier is None


@pytest.mark.unit
def test_move_selection_is_clamped(app: RepoViewer) -> None:
    app.move_selection(-5)
    assert app.selected == 0
    app.move_selection(10)
    assert app.selected == 2
    app.select_first()
    assert app.selected == 0
    app.select_last()
    assert app.selected == 2


@pytest.mark.unit
def test_navigation_updates_depth_and_breadcrumbs(app: RepoViewer, project: Path) -> None:
    app.navigate_into()
    assert app.current_dir == project / "src"
    assert app.depth() == 1
    assert [name for name, _ in app.breadcrumbs()] == ["project", "src"]

    app.navigate_up()
    assert app.current_dir == project
    assert app.depth() == 0


@pytest.mark.unit
def test_navigate_into_file_does_nothing(app: RepoViewer, project: Path) -> None:
    select(app, "README.md")

    app.navigate_into()

    assert app.current_dir == project
    assert not app.can_navigate_into_selection()


@pytest.mark.unit
def test_navigate_to_validates_target(app: RepoViewer, project: Path) -> None:
    with pytest.raises(DirectoryNotFoundError):
        app.navigate_to(project / "missing")
    with pytest.raises(NotADirectoryPathError):
        app.navigate_to(project / "README.md")
    assert app.current_dir == project


@pytest.mark.unit
def test_navigate_to_start_returns_home(app: RepoViewer, project: Path) -> None:
    app.navigate_to(project / "src" / "pkg")

    app.navigate_to_start()

    assert app.current_dir == project
    assert app.namer.current_dir == project


@pytest.mark.unit
def test_repository_only_actions_outside_repository(app: RepoViewer) -> None:
    with pytest.raises(NotInRepositoryError):
        app.navigate_to_repo_root()
    with pytest.raises(NotInRepositoryError):
        app.toggle_ignored()


@pytest.mark.unit
def test_repository_is_discovered_with_ignore_rules(project: Path) -> None:
    (project / ".git").mkdir()
    (project / ".gitignore").write_text("*.png\n", encoding="utf-8")

    app = RepoViewer(project / "src", copy=ClipboardSpy())

    assert app.repo_root == project.resolve()
    app.navigate_to_repo_root()
    assert [e.name for e in app.entries] == ["src", "README.md"]
    app.toggle_ignored()
    assert [e.name for e in app.entries] == ["src", "README.md", "logo.png"]
    assert app.policy.show_ignored


@pytest.mark.unit
def test_toggle_hidden_relists(app: RepoViewer, project: Path) -> None:
    (project / ".env").write_text("A=1\n", encoding="utf-8")
    app.refresh_listing()
    assert ".env" not in [e.name for e in app.entries]

    app.toggle_hidden()

    assert ".env" in [e.name for e in app.entries]


@pytest.mark.unit
def test_add_selected_reports_added_then_updated(app: RepoViewer, project: Path) -> None:
    select(app, "README.md")

    app.add_selected()
    assert app.message is not None
    assert app.message.success
    assert app.message.text == "Added README.md (0 KB) - Total: 1 files"

    app.add_selected()
    assert app.message.text == "Updated README.md (0 KB) - Total: 1 files"
    assert app.is_collected(project / "README.md")


@pytest.mark.unit
def test_add_selected_rejections_become_error_messages(app: RepoViewer) -> None:
    select(app, "src")
    app.add_selected()
    assert app.message is not None
    assert not app.message.success
    assert app.message.text == "Cannot collect directories"

    select(app, "logo.png")
    app.add_selected()
    assert app.message.text == "Unsupported file type: .png"


@pytest.mark.unit
def test_add_all_in_directory_summary(app: RepoViewer) -> None:
    app.add_all_in_directory()

    assert app.message is not None
    assert app.message.text == (
        "Added 1 files, updated 0, skipped 2 (errors: 0) - Total: 1 files (7 bytes)"
    )


@pytest.mark.unit
def test_add_all_in_directory_appends_crossing_tip(app: RepoViewer, mocker: MockerFixture) -> None:
    summary = BulkAddSummary(added=3, warning=SizeWarning.LARGE, crossed_warning=True)
    mocker.patch.object(app.collection, "add_all_in", return_value=summary)

    app.add_all_in_directory()

    assert app.message is not None
    assert app.message.text.endswith(f"\n{CROSSING_TIP}")
    assert "⚠️ Collection is getting large" in app.message.text


@pytest.mark.unit
def test_remove_selected_and_clear(app: RepoViewer) -> None:
    select(app, "README.md")
    app.remove_selected()
    assert app.message is not None
    assert app.message.text == "README.md is not in the collection"

    app.add_selected()
    app.remove_selected()
    assert app.message.text == "Removed README.md (0 KB) - Total: 0 files"

    app.clear_collection()
    assert app.message.text == "Collection is already empty"

    app.add_selected()
    app.clear_collection()
    assert app.message.text == "Cleared 1 files from collection"


@pytest.mark.unit
def test_refresh_collection_messages(app: RepoViewer, project: Path) -> None:
    assert app.refresh_collection() is None
    assert app.message is not None
    assert app.message.text == "No files in collection to refresh"

    select(app, "README.md")
    app.add_selected()
    app.refresh_collection()
    assert app.message.text == "✓ Collection is up to date (1 files checked)"

    (project / "README.md").unlink()
    summary = app.refresh_collection()
    assert summary is not None
    assert summary.deleted == 1
    assert app.message.text == "Refresh complete: 1 deleted | 1 → 0 files"
    assert app.message.success


@pytest.mark.unit
def test_describe_refresh_lists_changes_in_order() -> None:
    summary = RefreshSummary(unchanged=1, updated=2, deleted=1, inaccessible=1, failed=1)

    text = describe_refresh(summary, initial_count=6, final_count=4)

    assert text == "Refresh complete: 2 updated, 1 deleted, 1 inaccessible, 1 failed | 6 → 4 files"


@pytest.mark.unit
def test_size_warning_text() -> None:
    assert size_warning_text(None, 10) is None
    assert size_warning_text(SizeWarning.LARGE, 30 * MEGABYTE) == "⚠️ Collection is getting large (30.00 MB)"
    assert "Consider removing" in (size_warning_text(SizeWarning.VERY_LARGE, 60 * MEGABYTE) or "")


@pytest.mark.unit
def test_save_collection_writes_markdown(app: RepoViewer, project: Path) -> None:
    assert app.save_collection() is None
    assert app.message is not None
    assert app.message.text == "Collection is empty"

    select(app, "README.md")
    app.add_selected()
    output = app.save_collection("export.md")

    assert output == project / "export.md"
    text = output.read_text(encoding="utf-8")
    assert text.startswith("# Code Context\n\nGenerated from: project\n\n")
    assert "## README.md" in text
    assert app.message.text == "Saved 1 files (7 bytes) to export.md"


@pytest.mark.unit
def test_save_collection_default_name(app: RepoViewer, project: Path, mocker: MockerFixture) -> None:
    mocker.patch("repo_viewer.app.time.time", return_value=1_700_000_000.5)
    select(app, "README.md")
    app.add_selected()

    output = app.save_collection()

    assert output == project / "code_context_1700000000.md"


@pytest.mark.unit
def test_copy_collection_uses_clipboard(app: RepoViewer, spy: ClipboardSpy) -> None:
    assert app.copy_collection() is False

    select(app, "README.md")
    app.add_selected()
    assert app.copy_collection() is True

    assert spy.copied == [app.generate_markdown()]
    assert app.message is not None
    assert app.message.text.startswith("Copied 1 files (")
    assert app.message.text.endswith(") to clipboard!")


@pytest.mark.unit
def test_copy_collection_reports_clipboard_errors(project: Path) -> None:
    def broken(_: str) -> None:
        raise ClipboardUnavailableError(reason="no clipboard")

    app = RepoViewer(project, copy=broken)
    select(app, "README.md")
    app.add_selected()

    assert app.copy_collection() is False
    assert app.message is not None
    assert app.message.text == "Clipboard unavailable: no clipboard"


@pytest.mark.unit
def test_tree_export(app: RepoViewer, project: Path, spy: ClipboardSpy) -> None:
    tree = app.generate_tree(max_depth=1)
    assert tree == ".\n├── src/\n├── README.md\n└── logo.png\n"

    output = app.save_tree()
    assert output == project / "tree.txt"
    assert app.message is not None
    assert app.message.text == "Tree saved to tree.txt"

    assert app.copy_tree() is True
    assert spy.copied[-1].startswith(".\n")
    assert app.message.text.startswith("Tree (")


@pytest.mark.unit
def test_messages_expire_after_three_seconds(app: RepoViewer, clock: FakeClock) -> None:
    app.set_success_message("done")
    clock.now += 2.9
    app.tick()
    assert app.message is not None

    clock.now += 0.2
    app.tick()
    assert app.message is None


@pytest.mark.unit
def test_new_message_replaces_previous(app: RepoViewer) -> None:
    app.set_success_message("one")
    app.set_error_message("two")

    assert app.message is not None
    assert app.message.text == "two"
    assert not app.message.success


@pytest.mark.unit
def test_contextual_hints_for_new_user(app: RepoViewer) -> None:
    assert app.contextual_hint() == "Press 'A' to add all files in this directory"
    select(app, "README.md")
    assert app.contextual_hint() == "Press 'a' to add this file to your collection"
    app.toggle_help()
    assert app.contextual_hint() == "Press '?' to close help"


@pytest.mark.unit
def test_contextual_hints_with_collection(app: RepoViewer) -> None:
    select(app, "README.md")
    app.add_selected()

    assert app.contextual_hint() == "1 files collected - 'a' to add more, 'S' to save"
    later = datetime.now(timezone.utc) + timedelta(minutes=6)
    assert app.contextual_hint(now=later) == "Files collected a while ago - press 'r' to refresh"


@pytest.mark.unit
def test_contextual_hint_deep_navigation(app: RepoViewer, project: Path) -> None:
    deep = project / "a" / "b" / "c" / "d"
    deep.mkdir(parents=True)

    app.navigate_to(deep)

    assert app.contextual_hint() == "Tip: Press '~' to quickly return to the start directory"


@pytest.mark.unit
def test_view_state_snapshot(app: RepoViewer, project: Path) -> None:
    select(app, "README.md")
    app.add_selected()

    state = app.view_state()

    assert state.current_dir == project
    assert state.header == "project"
    assert state.selected == 1
    assert state.collected == frozenset({project / "README.md"})
    assert state.collection_count == 1
    assert state.collection_size == len("# demo\n")
    assert state.policy == VisibilityPolicy()
    assert state.message is not None
