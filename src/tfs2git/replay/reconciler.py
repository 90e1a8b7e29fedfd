"""Repair Git index entries whose case no longer matches the files on disk.

TFVC compares paths without regard to case, Git does not. When a changeset
renames ``Foo/bar.txt`` to ``foo/bar.txt``, staging the tree as-is can leave
Git tracking the old spelling next to (or instead of) the new one. For every
file a changeset touched, the reconciler looks up the real on-disk name and
moves the stale index entry onto it.

This is a best-effort heuristic. Renames made outside the changeset's item
list, for instance a parent folder renamed by case in an earlier changeset
that was never touched again, are only picked up once one of their files
appears in a later changeset.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set

from git import GitCommandError

from ..errors import RenameFailure, StagingFailure
from ..git.repository import GitTarget
from ..tfvc.metadata import ChangesetMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Rename:
    source: str
    target: str


def find_on_disk(root: Path, relative: str) -> Optional[str]:
    """Return ``relative`` spelled the way it exists under ``root``.

    Each path component is matched exactly first and then case-insensitively
    against the directory listing. ``None`` when no such file exists.
    """
    current = root
    found: List[str] = []
    for part in relative.split("/"):
        if not part:
            continue
        try:
            entries = os.listdir(current)
        except OSError:
            return None
        if part in entries:
            real = part
        else:
            folded = part.casefold()
            matches = sorted(entry for entry in entries if entry.casefold() == folded)
            if not matches:
                return None
            real = matches[0]
        found.append(real)
        current = current / real
    if not found or not current.is_file():
        return None
    return "/".join(found)


class CaseReconciler:
    """Align tracked file names with their on-disk case before staging."""

    def __init__(self, target: GitTarget, server_root: str, enabled: bool = True):
        self.target = target
        self.server_root = server_root.rstrip("/")
        self.enabled = enabled

    def relative_path(self, server_path: str) -> Optional[str]:
        """Map a ``$/...`` server path to a path inside the working tree."""
        prefix = self.server_root + "/"
        if not server_path.casefold().startswith(prefix.casefold()):
            return None
        relative = server_path[len(prefix):].strip("/")
        return relative or None

    def reconcile(self, changeset_id: int, metadata: ChangesetMetadata) -> List[Rename]:
        if not self.enabled:
            return []

        try:
            tracked: Set[str] = self.target.tracked_files()
        except GitCommandError as e:
            raise StagingFailure(
                changeset_id, "cannot list tracked files", str(e.stderr or e).strip()
            ) from e
        by_case: Dict[str, List[str]] = {}
        for name in tracked:
            by_case.setdefault(name.casefold(), []).append(name)

        renames: List[Rename] = []
        for server_path in metadata.paths:
            relative = self.relative_path(server_path)
            if relative is None or relative in tracked:
                continue

            real = find_on_disk(self.target.path, relative)
            if real is None or real in tracked:
                continue

            stale = [name for name in by_case.get(real.casefold(), []) if name != real]
            source = stale[0] if stale else relative
            if source == real:
                continue

            try:
                self.target.rename(source, real)
            except GitCommandError as e:
                failure = RenameFailure(
                    changeset_id, f"cannot rename {source} -> {real}", str(e.stderr or e)
                )
                logger.warning("Skipping case rename: %s", failure)
                continue

            logger.info("C%d: case rename %s -> %s", changeset_id, source, real)
            renames.append(Rename(source, real))
            tracked.discard(source)
            tracked.add(real)
            by_case[real.casefold()] = [name for name in by_case.get(real.casefold(), []) if name != source] + [real]

        return renames
