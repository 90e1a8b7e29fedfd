"""Per-changeset replay loop and the wiring of a complete migration."""

from __future__ import annotations

import enum
import logging
from typing import Callable, Iterable, List, Optional

from ..authors import UserMapping
from ..config import MigrationConfig
from ..errors import ReplayError
from ..git.repository import GitTarget
from ..tfvc.client import TfClient
from ..tfvc.history import ChangesetSequence, build_sequence, read_history_file
from .composer import CommitComposer, CommitRecord
from .materializer import WorkspaceMaterializer
from .reconciler import CaseReconciler

logger = logging.getLogger(__name__)

# Local-workspace bookkeeping folders created by tf inside the mapped folder
TFVC_METADATA_DIRS = ("$tf/", ".tf/")


class ReplayState(enum.Enum):
    IDLE = "idle"
    MATERIALIZING_FIRST = "materializing-first"
    MATERIALIZING = "materializing"
    RECONCILING = "reconciling"
    COMPOSING = "composing"
    DONE = "done"
    FAILED = "failed"


class ReplayOrchestrator:
    """Replay changesets one at a time, oldest first.

    For every changeset the working tree is materialized, the metadata is
    fetched, case-only renames are reconciled and a commit is composed. The
    first fatal error stops the loop; commits created before it stay in the
    repository.
    """

    def __init__(
        self,
        client: TfClient,
        materializer: WorkspaceMaterializer,
        reconciler: CaseReconciler,
        composer: CommitComposer,
        user_mapping: UserMapping,
        on_commit: Optional[Callable[[CommitRecord], None]] = None,
    ):
        self.client = client
        self.materializer = materializer
        self.reconciler = reconciler
        self.composer = composer
        self.user_mapping = user_mapping
        self.on_commit = on_commit
        self.state = ReplayState.IDLE
        self.current: Optional[int] = None

    def replay_one(self, changeset_id: int, is_first: bool) -> CommitRecord:
        self.current = changeset_id
        self.state = ReplayState.MATERIALIZING_FIRST if is_first else ReplayState.MATERIALIZING
        self.materializer.materialize(changeset_id, is_first)
        metadata = self.client.get_changeset(changeset_id)

        self.state = ReplayState.RECONCILING
        renames = self.reconciler.reconcile(changeset_id, metadata)

        self.state = ReplayState.COMPOSING
        return self.composer.compose(changeset_id, metadata, self.user_mapping, renames)

    def run(self, changesets: Iterable[int]) -> List[CommitRecord]:
        """Replay ``changesets`` and return one record per changeset.

        Raises
        ------
        ReplayError:
            The first fatal failure, after the state moved to ``FAILED``.
        """
        records: List[CommitRecord] = []
        try:
            for index, changeset_id in enumerate(changesets):
                record = self.replay_one(changeset_id, is_first=index == 0)
                records.append(record)
                if self.on_commit is not None:
                    self.on_commit(record)
        except ReplayError as e:
            self.state = ReplayState.FAILED
            logger.error("Replay stopped at changeset %d: %s", e.changeset_id, e)
            if e.output:
                logger.error("Tool output:\n%s", e.output)
            if records:
                logger.error(
                    "Last committed changeset is %d; restart with --start %d",
                    records[-1].changeset_id,
                    e.changeset_id,
                )
            raise
        except Exception:
            self.state = ReplayState.FAILED
            logger.exception("Replay stopped at changeset %s", self.current)
            raise

        self.state = ReplayState.DONE
        logger.info("Replayed %d changesets", len(records))
        return records


def load_sequence(config: MigrationConfig, client: TfClient) -> ChangesetSequence:
    """Build the changeset sequence from a saved history file or ``tf history``."""
    if config.history_file is not None:
        history = read_history_file(config.history_file)
    else:
        history = client.get_history(config.server_path)
    return build_sequence(history, config.changeset_range())


def run_migration(
    config: MigrationConfig,
    client: Optional[TfClient] = None,
    on_commit: Optional[Callable[[CommitRecord], None]] = None,
) -> List[CommitRecord]:
    """Migrate ``config.server_path`` into the Git repository at ``config.work_dir``.

    Sequencing and user-mapping errors are raised before the repository is
    touched.
    """
    client = client or TfClient(config.tf_command, config.collection, config.login)
    sequence = load_sequence(config, client)
    user_mapping = config.user_mapping()
    logger.info("Loaded %d user mappings", len(user_mapping))

    work_dir = config.resolved_work_dir()
    target = GitTarget.init(work_dir, excludes=(config.message_file, *TFVC_METADATA_DIRS))
    if target.has_commits:
        logger.warning("%s already has commits; new commits are appended", work_dir)

    orchestrator = ReplayOrchestrator(
        client=client,
        materializer=WorkspaceMaterializer(client, config.server_path, work_dir),
        reconciler=CaseReconciler(target, config.server_path, enabled=not config.case_sensitive),
        composer=CommitComposer(target, config.message_file),
        user_mapping=user_mapping,
        on_commit=on_commit,
    )
    return orchestrator.run(sequence)
