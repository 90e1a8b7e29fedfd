"""Changeset sequencing from ``tf history`` output."""

from __future__ import annotations

import codecs
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set

from ..errors import EmptyHistory, HistoryFailure, NoChangesetsInRange

logger = logging.getLogger(__name__)

_LEADING_ID = re.compile(r"^\s*(\d+)(?:\s|$)")


@dataclass(frozen=True, slots=True)
class ChangesetRange:
    """Inclusive changeset bounds; either side may be open."""

    start: Optional[int] = None
    end: Optional[int] = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(
                f"Changeset range start {self.start} is after end {self.end}"
            )

    def __contains__(self, changeset_id: object) -> bool:
        if not isinstance(changeset_id, int):
            return False
        if self.start is not None and changeset_id < self.start:
            return False
        if self.end is not None and changeset_id > self.end:
            return False
        return True

    def __str__(self) -> str:
        start = "" if self.start is None else str(self.start)
        end = "" if self.end is None else str(self.end)
        return f"[{start}..{end}]"


class ChangesetSequence:
    """Ascending, de-duplicated changeset numbers.

    The numbers are sorted once, when the sequence is built, since the whole
    history has to be read before the oldest changeset is known. The sequence
    can then be iterated any number of times; every iteration starts again
    from the oldest changeset.
    """

    __slots__ = ("_ids",)

    def __init__(self, ids: Iterable[int]) -> None:
        self._ids = tuple(sorted(set(ids)))

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __getitem__(self, index: int) -> int:
        return self._ids[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ChangesetSequence):
            return self._ids == other._ids
        if isinstance(other, (list, tuple)):
            return list(self._ids) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ChangesetSequence({list(self._ids)!r})"


def parse_changeset_ids(lines: Iterable[str]) -> Set[int]:
    """Collect the changeset number leading each history line.

    Header rows, dash rulers, blank lines and anything else that does not
    start with a decimal token are skipped.
    """
    ids: Set[int] = set()
    for line in lines:
        match = _LEADING_ID.match(line)
        if not match:
            continue
        changeset_id = int(match.group(1))
        if changeset_id <= 0:
            logger.debug("Ignoring non-positive changeset number in %r", line)
            continue
        ids.add(changeset_id)
    return ids


def build_sequence(
    history: str | Iterable[str],
    changeset_range: Optional[ChangesetRange] = None,
) -> ChangesetSequence:
    """Turn raw history text into the sequence of changesets to replay.

    Parameters
    ----------
    history:
        Output of ``tf history /format:brief``, as one string or as lines.
    changeset_range:
        Optional inclusive bounds applied before sorting.

    Raises
    ------
    EmptyHistory:
        No line carried a changeset number.
    NoChangesetsInRange:
        None of the parsed changesets fall within ``changeset_range``.
    """
    lines = history.splitlines() if isinstance(history, str) else history
    ids = parse_changeset_ids(lines)
    if not ids:
        raise EmptyHistory("History listing contains no changesets")

    if changeset_range is not None:
        selected = [cs for cs in ids if cs in changeset_range]
        if not selected:
            raise NoChangesetsInRange(
                f"None of the {len(ids)} changesets fall within {changeset_range}"
            )
        ids = set(selected)

    sequence = ChangesetSequence(ids)
    logger.info(
        "Scheduled %d changesets (%d..%d)", len(sequence), sequence[0], sequence[-1]
    )
    return sequence


def read_history_file(path: Path) -> str:
    """Read a saved ``tf history`` listing.

    Redirecting ``tf history`` to a file from a Windows console usually
    produces UTF-16 with a byte order mark, so the BOM decides the encoding.
    Files without one are read as UTF-8.
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise HistoryFailure(f"Cannot read history file {path}: {e}") from e
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        try:
            return raw.decode("utf-16")
        except UnicodeDecodeError as e:
            raise HistoryFailure(f"History file {path} is not valid UTF-16: {e}") from e
    return raw.decode("utf-8-sig", errors="replace")

