"""Team Foundation Version Control integration: history, metadata and ``tf``."""

from .client import TfClient
from .history import ChangesetRange, ChangesetSequence, build_sequence, read_history_file
from .metadata import ChangesetItem, ChangesetMetadata, parse_changeset

__all__ = [
    "TfClient",
    "ChangesetRange",
    "ChangesetSequence",
    "build_sequence",
    "read_history_file",
    "ChangesetItem",
    "ChangesetMetadata",
    "parse_changeset",
]
