"""Configuration for a single TFVC to Git migration run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .authors import UserMapping, load_user_mapping
from .tfvc.history import ChangesetRange

DEFAULT_MESSAGE_FILE = ".tfs2git-changeset.txt"


@dataclass(slots=True)
class MigrationConfig:
    """Runtime configuration for replaying one TFVC server path.

    Attributes
    ----------
    server_path:
        TFVC server path being migrated, e.g. ``$/Project/Main``. Changeset
        items outside this root are ignored by case reconciliation.
    work_dir:
        Local folder mapped to ``server_path`` in the TFVC workspace. It is
        also the Git working tree that receives the commits.
    collection:
        Optional team project collection URL passed as ``/collection:``.
    login:
        Optional ``user,password`` pair passed as ``/login:``.
    tf_command:
        Name or path of the ``tf`` executable.
    start, end:
        Optional inclusive changeset bounds.
    case_sensitive:
        Declares that the source history never renamed anything by case only.
        Case reconciliation is skipped when set.
    authors_file:
        Optional user-mapping file (JSON, YAML or ``source = Name <email>``
        lines).
    mail_domain:
        Domain used to build e-mail addresses for unmapped users.
    message_file:
        Name of the transient commit-message file written into ``work_dir``.
    history_file:
        Saved ``tf history /format:brief`` output to read instead of querying
        the server.
    """

    server_path: str
    work_dir: Path
    collection: str | None = None
    login: str | None = None
    tf_command: str = "tf"
    start: int | None = None
    end: int | None = None
    case_sensitive: bool = False
    authors_file: Path | None = None
    mail_domain: str | None = None
    message_file: str = DEFAULT_MESSAGE_FILE
    history_file: Path | None = None

    def resolved_work_dir(self) -> Path:
        """Return the absolute working directory, creating it when missing."""

        self.work_dir.mkdir(parents=True, exist_ok=True)
        return self.work_dir.resolve()

    def changeset_range(self) -> ChangesetRange | None:
        if self.start is None and self.end is None:
            return None
        return ChangesetRange(self.start, self.end)

    def user_mapping(self) -> UserMapping:
        """Load the configured user mapping, or an empty pass-through one."""
        if self.authors_file is None:
            return UserMapping(mail_domain=self.mail_domain)
        return load_user_mapping(self.authors_file, mail_domain=self.mail_domain)
