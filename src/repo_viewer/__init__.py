"""repo_viewer: browse a directory tree and collect text files into one markdown export."""

__version__ = "0.1.0"
