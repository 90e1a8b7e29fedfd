"""Thin wrapper around the ``tf`` command line client."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import HistoryFailure, MetadataFailure, RetrievalFailure
from .metadata import ChangesetMetadata, parse_changeset

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TfResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


class TfClient:
    """Run ``tf`` subcommands against one team project collection.

    Every call blocks until ``tf`` exits. The working directory is passed per
    call, so no process-wide state is touched.
    """

    def __init__(
        self,
        command: str = "tf",
        collection: Optional[str] = None,
        login: Optional[str] = None,
    ):
        self.command = command
        self.collection = collection
        self.login = login

    def _global_options(self) -> List[str]:
        options = ["/noprompt"]
        if self.collection:
            options.append(f"/collection:{self.collection}")
        if self.login:
            options.append(f"/login:{self.login}")
        return options

    def run(self, args: Sequence[str], cwd: Optional[Path] = None) -> TfResult:
        """Execute ``tf`` with ``args`` and capture its output."""
        argv = [self.command, *args, *self._global_options()]
        logger.debug("Executing %s (cwd=%s)", " ".join(argv), cwd or ".")
        try:
            completed = subprocess.run(
                argv,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as e:
            return TfResult(returncode=-1, stdout="", stderr=f"cannot execute {self.command}: {e}")
        return TfResult(completed.returncode, completed.stdout or "", completed.stderr or "")

    def get_history(self, server_path: str) -> str:
        """Return ``tf history /format:brief`` output for ``server_path``."""
        result = self.run(["history", server_path, "/recursive", "/format:brief"])
        if result.returncode != 0:
            raise HistoryFailure(
                f"tf history {server_path} failed with exit code {result.returncode}:\n"
                f"{result.output}"
            )
        return result.stdout

    def get(
        self,
        server_path: str,
        changeset_id: int,
        cwd: Path,
        recursive: bool = True,
        force: bool = False,
    ) -> str:
        """Update the mapped working folder to ``changeset_id``.

        ``force`` re-downloads every file and overwrites local content; without
        it the server only sends what changed since the last get.
        """
        args = ["get", server_path, f"/version:C{changeset_id}"]
        if recursive:
            args.append("/recursive")
        if force:
            args.append("/force")
        result = self.run(args, cwd=cwd)
        # exit code 1 means "partial success", e.g. nothing to update
        if result.returncode not in (0, 1) or (result.returncode == 1 and result.stderr.strip()):
            raise RetrievalFailure(
                changeset_id, f"tf get exited with {result.returncode}", result.output
            )
        return result.stdout

    def get_changeset(self, changeset_id: int) -> ChangesetMetadata:
        result = self.run(["changeset", str(changeset_id)])
        if result.returncode != 0:
            raise MetadataFailure(
                changeset_id, f"tf changeset exited with {result.returncode}", result.output
            )
        return parse_changeset(result.stdout, changeset_id)
