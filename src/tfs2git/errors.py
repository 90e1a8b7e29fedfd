"""Exception types raised while replaying TFVC history into Git."""

from __future__ import annotations


class MigrationError(Exception):
    """Base class for every failure surfaced by a migration run."""


class SequencingError(MigrationError):
    """Raised before the replay loop when no changesets can be scheduled."""


class EmptyHistory(SequencingError):
    """The history listing did not contain a single changeset number."""


class NoChangesetsInRange(SequencingError):
    """Changesets exist, but none of them fall within the requested range."""


class HistoryFailure(SequencingError):
    """``tf history`` could not be run or read."""


class UserMappingError(MigrationError):
    """A user-mapping file could not be parsed."""


class ReplayError(MigrationError):
    """A failure tied to a single changeset.

    Attributes
    ----------
    changeset_id:
        Changeset being replayed when the failure happened.
    output:
        Raw diagnostic output of the external tool, if any.
    """

    def __init__(self, changeset_id: int, message: str, output: str = "") -> None:
        super().__init__(f"changeset {changeset_id}: {message}")
        self.changeset_id = changeset_id
        self.output = output


class RetrievalFailure(ReplayError):
    """``tf get`` failed; the working tree is in an unknown state."""


class MetadataFailure(ReplayError):
    """``tf changeset`` failed or returned output that could not be parsed."""


class StagingFailure(ReplayError):
    """Staging the working tree into the Git index failed."""


class CommitFailure(ReplayError):
    """``git commit`` failed."""


class RenameFailure(ReplayError):
    """A case-only rename could not be applied to the Git index."""
