from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

MEGABYTE = 1024 * 1024

# Admission policy. These are fixed on purpose and not exposed in Settings.
MAX_FILE_SIZE = 10 * MEGABYTE
CONTROL_BYTE_RATIO = 20
REPLACEMENT_RATIO = 1000

# Collection size thresholds (strictly greater than).
LARGE_COLLECTION_SIZE = 25 * MEGABYTE
VERY_LARGE_COLLECTION_SIZE = 50 * MEGABYTE

MESSAGE_DURATION_SECONDS = 3.0
STALE_COLLECTION_SECONDS = 300
LABEL_MAX_LENGTH = 60

VCS_DIR_NAME = ".git"
GITIGNORE_NAME = ".gitignore"
DEFAULT_EXPORT_PREFIX = "code_context_"
TREE_EXPORT_NAME = "tree.txt"

# Fence language -> lowercased file names and extensions (without the dot).
_LANGUAGE_GROUPS: dict[str, tuple[str, ...]] = {
    # Programming languages
    "rust": ("rs",),
    "python": ("py", "pyw", "pyi"),
    "javascript": ("js", "mjs", "cjs"),
    "typescript": ("ts", "tsx"),
    "jsx": ("jsx",),
    "java": ("java",),
    "cpp": ("cpp", "c++", "cxx", "cc", "hpp", "h++", "hxx", "h"),
    "c": ("c",),
    "csharp": ("cs", "csx"),
    "go": ("go", "go.mod", "go.sum"),
    "swift": ("swift",),
    "kotlin": ("kt", "kts"),
    "scala": ("scala", "sc"),
    "ruby": ("rb", "rbw", "rake", "gemspec"),
    "php": ("php", "php3", "php4", "php5", "phtml"),
    "perl": ("pl", "pm", "pod"),
    "lua": ("lua",),
    "r": ("r", "rmd"),
    "julia": ("jl",),
    "dart": ("dart",),
    "haskell": ("hs", "lhs"),
    "clojure": ("clj", "cljs", "cljc", "edn"),
    "elixir": ("ex", "exs"),
    "erlang": ("erl", "hrl"),
    "ocaml": ("ml", "mli"),
    "fsharp": ("fs", "fsx", "fsi"),
    "nim": ("nim", "nims"),
    "zig": ("zig",),
    "crystal": ("cr",),
    "v": ("v",),
    "solidity": ("sol",),
    # Web
    "html": ("html", "htm", "xhtml"),
    "css": ("css",),
    "scss": ("scss", "sass"),
    "less": ("less",),
    "vue": ("vue",),
    "svelte": ("svelte",),
    "astro": ("astro",),
    # Shell and scripts
    "bash": ("sh", "bash", "zsh", "fish", "ksh", "csh"),
    "powershell": ("ps1", "psm1", "psd1"),
    "batch": ("bat", "cmd"),
    # Config and data
    "json": ("json", "jsonc", "json5"),
    "yaml": ("yaml", "yml"),
    "toml": ("toml",),
    "xml": ("xml", "xsd", "xsl", "xslt", "svg"),
    "ini": ("ini", "cfg", "conf", "config"),
    "kdl": ("kdl",),
    "properties": ("properties", "props"),
    "graphql": ("graphql", "gql"),
    "protobuf": ("proto",),
    # Markup and documentation
    "markdown": ("md", "markdown", "mdown", "mdx"),
    "restructuredtext": ("rst", "rest"),
    "asciidoc": ("adoc", "asciidoc", "asc"),
    "latex": ("tex", "latex", "ltx"),
    "org": ("org",),
    # Build and infrastructure
    "gradle": ("gradle", "gradle.kts"),
    "maven": ("pom",),
    "terraform": ("tf", "tfvars"),
    "hcl": ("hcl",),
    "makefile": ("makefile", "mk", "mak"),
    "cmake": ("cmakelists.txt", "cmake"),
    "dockerfile": ("dockerfile", "containerfile"),
    # Database
    "sql": ("sql", "psql", "mysql"),
    # Other
    "diff": ("diff", "patch"),
    "plaintext": (
        "txt",
        "text",
        "log",
        "logs",
        "out",
        "csv",
        "tsv",
        "lock",
        # well-known documentation files
        "license",
        "licence",
        "readme",
        "changelog",
        "authors",
        "contributors",
        "todo",
        "notes",
        # dotfiles, matched by full name
        ".gitignore",
        ".gitattributes",
        ".gitmodules",
        ".gitkeep",
        ".dockerignore",
        ".npmignore",
        ".eslintignore",
        ".env",
        ".env.example",
        ".env.sample",
        ".editorconfig",
        ".prettierrc",
        ".eslintrc",
        ".babelrc",
        ".nvmrc",
        ".rvmrc",
        "ruby-version",
        "node-version",
    ),
}


def _invert(groups: dict[str, tuple[str, ...]]) -> Mapping[str, str]:
    table: dict[str, str] = {}
    for language, keys in groups.items():
        for key in keys:
            table.setdefault(key, language)
    return MappingProxyType(table)


TEXT_FILE_LANGUAGES: Mapping[str, str] = _invert(_LANGUAGE_GROUPS)


def file_extension(path: Path) -> str | None:
    """Return the extension of ``path`` without the leading dot.

    Dotfiles such as ``.gitignore`` have no extension, matching ``Path.suffix``.

    Returns:
        str | None: the extension, or None when the name has none.
    """
    suffix = path.suffix
    return suffix[1:] if suffix else None


def resolve_language(path: Path) -> str | None:
    """Resolve the code fence language for ``path`` from the allow-list.

    The full lowercased file name is tried first (``Dockerfile``, ``.env``,
    ``CMakeLists.txt``), then the lowercased extension.

    Args:
        path (Path): the file to classify. Only its name is inspected.

    Returns:
        str | None: the fence language, or None when the file type is not allowed.
    """
    language = TEXT_FILE_LANGUAGES.get(path.name.lower())
    if language is not None:
        return language
    ext = file_extension(path)
    if ext is None:
        return None
    return TEXT_FILE_LANGUAGES.get(ext.lower())


def format_size(num_bytes: int) -> str:
    """Format a byte count for humans (1024 based).

    Returns:
        str: e.g. ``"512 bytes"``, ``"1.50 KB"``, ``"25.00 MB"``.
    """
    kilo = 1024
    mega = kilo * 1024
    giga = mega * 1024
    if num_bytes >= giga:
        return f"{num_bytes / giga:.2f} GB"
    if num_bytes >= mega:
        return f"{num_bytes / mega:.2f} MB"
    if num_bytes >= kilo:
        return f"{num_bytes / kilo:.2f} KB"
    return f"{num_bytes} bytes"
