from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from tfs2git.errors import RetrievalFailure
from tfs2git.tfvc.metadata import ChangesetItem, ChangesetMetadata

SERVER_ROOT = "$/Project/Main"

Tree = Dict[str, Optional[str]]


@dataclass
class GetCall:
    changeset_id: int
    force: bool
    recursive: bool
    cwd: Path


class FakeTfClient:
    """In-memory stand-in for ``TfClient``.

    ``changes`` maps a changeset to the files it writes (``None`` deletes).
    A forced get replays every changeset up to the requested one, an
    incremental get applies only the requested changeset.
    """

    def __init__(
        self,
        changes: Dict[int, Tree],
        fail_get: Iterable[int] = (),
        history: str = "",
        comments: Optional[Dict[int, str]] = None,
    ):
        self.changes = changes
        self.fail_get = set(fail_get)
        self.history = history
        self.comments = comments or {}
        self.get_calls: List[GetCall] = []
        self.metadata_calls: List[int] = []

    def get_history(self, server_path: str) -> str:
        return self.history

    def get(self, server_path, changeset_id, cwd, recursive=True, force=False):
        self.get_calls.append(GetCall(changeset_id, force, recursive, Path(cwd)))
        if changeset_id in self.fail_get:
            raise RetrievalFailure(
                changeset_id, "tf get exited with 100", "TF14045: The identity could not be found."
            )
        to_apply = sorted(cs for cs in self.changes if cs <= changeset_id) if force else [changeset_id]
        for cs in to_apply:
            for relative, content in self.changes.get(cs, {}).items():
                target = Path(cwd) / relative
                if content is None:
                    target.unlink(missing_ok=True)
                else:
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_text(content, encoding="utf-8")
        return ""

    def get_changeset(self, changeset_id: int) -> ChangesetMetadata:
        self.metadata_calls.append(changeset_id)
        return make_metadata(
            changeset_id,
            self.changes.get(changeset_id, {}),
            comment=self.comments.get(changeset_id, f"Change number {changeset_id}"),
        )


def make_metadata(
    changeset_id: int,
    tree: Tree,
    comment: str = "",
    user: str = "CORP\\jdoe",
) -> ChangesetMetadata:
    items = tuple(
        ChangesetItem("edit" if content is not None else "delete", f"{SERVER_ROOT}/{relative}")
        for relative, content in tree.items()
    )
    timestamp = datetime(2017, 3, 2, 15, 0, 0) + timedelta(minutes=changeset_id)
    return ChangesetMetadata(
        changeset_id=changeset_id,
        user=user,
        date=timestamp.strftime("%m/%d/%Y %I:%M:%S %p"),
        comment=comment,
        items=items,
        timestamp=timestamp,
    )


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path
