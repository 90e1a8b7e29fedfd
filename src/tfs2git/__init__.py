"""tfs2git package.

Replays the changeset history of a TFVC server path as a linear Git history,
one commit per changeset.
"""

__version__ = "0.1.0"

__all__ = [
    "authors",
    "cli",
    "config",
    "errors",
    "git",
    "replay",
    "tfvc",
]
