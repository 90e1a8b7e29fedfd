"""Destination Git repository operations used while replaying changesets."""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional, Set

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

logger = logging.getLogger(__name__)

_IDENTITY = re.compile(r"^\s*(?P<name>[^<>]*?)\s*<(?P<email>[^<>]*)>\s*$")


def split_identity(identity: str) -> tuple[str, str]:
    """Split ``"Name <email>"`` into its parts."""
    match = _IDENTITY.match(identity)
    if not match:
        return identity.strip(), ""
    return match["name"] or match["email"], match["email"]


class GitTarget:
    """Wrapper around GitPython for the repository receiving the history.

    The repository's working tree is the TFVC workspace folder, so ``tf get``
    and Git operate on the same files.
    """

    def __init__(self, repo_path: Path):
        self.path = repo_path.resolve()
        try:
            self.repo = Repo(self.path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise ValueError(f"Not a valid git repository: {repo_path}") from e

    @classmethod
    def init(cls, repo_path: Path, excludes: Iterable[str] = ()) -> "GitTarget":
        """Open ``repo_path`` as a Git repository, running ``git init`` if needed.

        Parameters
        ----------
        repo_path:
            Directory that becomes the working tree.
        excludes:
            Patterns appended to ``.git/info/exclude`` so they are never
            staged, without adding a tracked ``.gitignore``.
        """
        repo_path.mkdir(parents=True, exist_ok=True)
        try:
            target = cls(repo_path)
        except ValueError:
            logger.info("Initialising git repository in %s", repo_path)
            Repo.init(repo_path)
            target = cls(repo_path)
        target.add_excludes(excludes)
        return target

    def add_excludes(self, patterns: Iterable[str]) -> None:
        exclude_file = Path(self.repo.git_dir) / "info" / "exclude"
        exclude_file.parent.mkdir(parents=True, exist_ok=True)
        existing = exclude_file.read_text(encoding="utf-8").splitlines() if exclude_file.exists() else []
        missing = [pattern for pattern in patterns if pattern not in existing]
        if not missing:
            return
        with open(exclude_file, "a", encoding="utf-8") as f:
            if existing and existing[-1] != "":
                f.write("\n")
            for pattern in missing:
                f.write(f"{pattern}\n")

    @property
    def has_commits(self) -> bool:
        return self.repo.head.is_valid()

    def stage_all(self) -> None:
        """Stage additions, modifications and deletions of the whole tree."""
        self.repo.git.add("-A")

    def unstage(self, name: str) -> None:
        """Remove ``name`` from the index, keeping the file on disk."""
        self.repo.git.rm("--cached", "--quiet", "--ignore-unmatch", "--", name)

    def tracked_files(self) -> Set[str]:
        output = self.repo.git.ls_files("-z")
        return {name for name in output.split("\0") if name}

    def is_tracked(self, name: str) -> bool:
        return name in self.tracked_files()

    def rename(self, source: str, target: str) -> None:
        """Move ``source`` to ``target`` in the index.

        On a case-insensitive filesystem both names refer to the same file and
        ``git mv`` performs the case-only rename. Otherwise the stale entry is
        dropped from the index and the on-disk name is added in its place.
        An untracked ``source`` has no index entry to drop, so only the
        on-disk name is added.
        """
        if not self.is_tracked(source):
            self.repo.git.add("--", target)
            return
        source_file = self.path / source
        target_file = self.path / target
        if source_file.exists() and target_file.exists() and os.path.samefile(source_file, target_file):
            self.repo.git.mv("--", source, target)
            return
        self.repo.git.rm("--cached", "--quiet", "--", source)
        self.repo.git.add("--", target)

    def commit(
        self,
        message_file: Path,
        author: str,
        date: Optional[datetime] = None,
    ) -> str:
        """Commit everything staged and return the new commit SHA.

        Empty commits are allowed so every changeset yields exactly one commit.
        The committer identity and date mirror the author's.
        """
        name, email = split_identity(author)
        env: Dict[str, str] = {
            "GIT_COMMITTER_NAME": name,
            "GIT_COMMITTER_EMAIL": email,
        }
        if date is not None:
            stamp = date.isoformat(timespec="seconds")
            env["GIT_AUTHOR_DATE"] = stamp
            env["GIT_COMMITTER_DATE"] = stamp

        self.repo.git.commit(
            "--quiet",
            "--allow-empty",
            "--no-verify",
            "--cleanup=whitespace",
            f"--author={author}",
            "-F",
            str(message_file),
            env=env,
        )
        return self.repo.head.commit.hexsha
