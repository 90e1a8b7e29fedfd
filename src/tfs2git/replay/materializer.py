"""Bring the TFVC workspace folder to the state of a given changeset."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..tfvc.client import TfClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WorkingTree:
    """The working directory after it was updated to ``changeset_id``."""

    path: Path
    changeset_id: int


class WorkspaceMaterializer:
    """Run ``tf get`` for each changeset into one fixed working directory.

    The first retrieval of a run is a forced, full get so that whatever was
    left in the folder is overwritten. Later retrievals are incremental and
    rely on the server's record of what the workspace already has.
    """

    def __init__(self, client: TfClient, server_path: str, work_dir: Path):
        self.client = client
        self.server_path = server_path
        self.work_dir = work_dir
        self.current: Optional[int] = None

    def materialize(self, changeset_id: int, is_first: bool) -> WorkingTree:
        if is_first:
            logger.info("Full retrieval of %s at C%d", self.server_path, changeset_id)
        else:
            logger.info(
                "Incremental retrieval C%s -> C%d",
                self.current if self.current is not None else "?",
                changeset_id,
            )
        # RetrievalFailure propagates; there is no partial resume
        self.client.get(
            self.server_path,
            changeset_id,
            cwd=self.work_dir,
            recursive=True,
            force=is_first,
        )
        self.current = changeset_id
        return WorkingTree(path=self.work_dir, changeset_id=changeset_id)
