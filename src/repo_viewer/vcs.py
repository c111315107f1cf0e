from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from gitignore_parser import IgnoreRule, rule_from_pattern

from repo_viewer.config import GITIGNORE_NAME, VCS_DIR_NAME
from repo_viewer.file_manipulation import relpath
from repo_viewer.logging import logger
from repo_viewer.models import Classification


class IgnoreClassifier(Protocol):
    """Anything able to tell whether a path is ignored by version control."""

    def classify(self, path: Path, *, is_dir: bool) -> Classification: ...


def rule_matches(rule: IgnoreRule, path: Path, root: Path, *, is_dir: bool) -> bool:
    """Tell whether one parsed ``.gitignore`` rule applies to ``path``.

    A directory-only rule reaches a file through the file's parent directory.

    Args:
        rule (IgnoreRule): a rule parsed relative to ``root``
        path (Path): an absolute path under ``root``
        root (Path): the repository root
        is_dir (bool): whether the path is a directory

    Returns:
        bool: True when the rule matches
    """
    if rule.directory_only and not is_dir:
        parent = path.parent
        return parent != root and rule.match(parent)
    # directory-only negations only match a path spelled with a trailing slash
    if is_dir and rule.directory_only:
        return rule.match(f"{path}/")
    return rule.match(path)


@dataclass(frozen=True)
class IgnoreRules:
    """Ignore rules of the root ``.gitignore`` of a repository.

    The last matching rule wins; a matching ``!`` rule whitelists the path.
    """

    root: Path
    rules: tuple[IgnoreRule, ...] = ()

    @classmethod
    def from_lines(cls, root: Path, lines: list[str]) -> IgnoreRules:
        parsed = (rule_from_pattern(line, base_path=str(root)) for line in lines)
        return cls(root=root, rules=tuple(rule for rule in parsed if rule is not None))

    @classmethod
    def load(cls, root: Path) -> IgnoreRules:
        """Read ``<root>/.gitignore``; a missing or unreadable file yields no rules.

        Args:
            root (Path): the repository root

        Returns:
            IgnoreRules: the parsed rules
        """
        gitignore = root / GITIGNORE_NAME
        try:
            lines = gitignore.read_text(encoding="utf-8", errors="replace").splitlines()
        except FileNotFoundError:
            return cls(root=root)
        except OSError as e:
            logger.warning("Cannot read %s: %s", gitignore, e)
            return cls(root=root)
        return cls.from_lines(root, lines)

    def classify(self, path: Path, *, is_dir: bool) -> Classification:
        """Classify ``path`` against the rules.

        Args:
            path (Path): an absolute path
            is_dir (bool): whether the path is a directory

        Returns:
            Classification: INCLUDED when no rule matches or the path is outside the repository
        """
        rel = relpath(path, self.root)
        if not rel or rel == ".":
            return Classification.INCLUDED
        result = Classification.INCLUDED
        for rule in self.rules:
            if rule_matches(rule, path, self.root, is_dir=is_dir):
                result = Classification.WHITELISTED if rule.negation else Classification.IGNORED
        return result


def discover_repository(start: Path) -> Path | None:
    """Find the nearest ancestor of ``start`` (inclusive) holding a ``.git`` entry.

    Args:
        start (Path): the directory to start from

    Returns:
        Path | None: the repository root, or None outside any repository
    """
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / VCS_DIR_NAME).exists():
            logger.debug("Found repository root %s", candidate)
            return candidate
    return None
