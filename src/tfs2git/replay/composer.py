"""Turn the materialized working tree into one Git commit per changeset."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Tuple

from git import GitCommandError

from ..authors import UserMapping
from ..errors import CommitFailure, StagingFailure
from ..git.repository import GitTarget
from ..tfvc.metadata import ChangesetMetadata
from .reconciler import Rename

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """Outcome of replaying one changeset."""

    changeset_id: int
    commit_hash: str
    author: str
    renames: Tuple[Rename, ...] = ()


def _tool_output(error: GitCommandError) -> str:
    return str(error.stderr or error.stdout or error).strip()


class CommitComposer:
    """Stage the working tree and commit it with the changeset's metadata.

    The message is written to ``message_file`` inside the working tree, since
    ``git commit -F`` reads it from there, and is unstaged before committing
    so it never becomes part of the history.
    """

    def __init__(self, target: GitTarget, message_file: str):
        self.target = target
        self.message_file = message_file

    @property
    def message_path(self) -> Path:
        return self.target.path / self.message_file

    def compose(
        self,
        changeset_id: int,
        metadata: ChangesetMetadata,
        user_mapping: UserMapping,
        renames: Sequence[Rename] = (),
    ) -> CommitRecord:
        message_path = self.message_path
        message_path.write_text(metadata.render(), encoding="utf-8", newline="\n")
        try:
            try:
                self.target.stage_all()
                self.target.unstage(self.message_file)
            except GitCommandError as e:
                raise StagingFailure(changeset_id, "git add failed", _tool_output(e)) from e

            author = user_mapping.resolve(metadata.user)
            try:
                commit_hash = self.target.commit(message_path, author, metadata.timestamp)
            except GitCommandError as e:
                raise CommitFailure(changeset_id, "git commit failed", _tool_output(e)) from e
        finally:
            message_path.unlink(missing_ok=True)

        logger.info("C%d committed as %s by %s", changeset_id, commit_hash[:10], author)
        return CommitRecord(
            changeset_id=changeset_id,
            commit_hash=commit_hash,
            author=author,
            renames=tuple(renames),
        )
