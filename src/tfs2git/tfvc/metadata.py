"""Structured parsing of ``tf changeset /noprompt`` output.

The detailed changeset report looks like::

    Changeset: 1234
    User: CORP\\jdoe
    Checked in by: CORP\\jdoe
    Date: Thursday, March 2, 2017 3:04:05 PM

    Comment:
      Fix the thing

    Items:
      edit $/Project/Main/Dir/File.txt
      delete $/Project/Main/Old.cs;X42

    Check-in Notes:
      Code Reviewer:

Header fields start in the first column, section bodies are indented.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..errors import MetadataFailure

SECTIONS = ("Comment", "Items", "Check-in Notes", "Policy Warnings", "Policy Override Comment")

_FIELD = re.compile(r"^(?P<key>\S[^:]*):[ \t]*(?P<value>.*?)\s*$")
_VERSION_SUFFIX = re.compile(r";[XC]\d+$")

DATE_FORMATS = (
    "%A, %B %d, %Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%d.%m.%Y %H:%M:%S",
)


@dataclass(frozen=True, slots=True)
class ChangesetItem:
    """One pending-change entry, e.g. ``("edit", "$/Project/a.cs")``."""

    change: str
    server_path: str


@dataclass(frozen=True, slots=True)
class ChangesetMetadata:
    """Metadata recorded by TFVC for a single changeset."""

    changeset_id: int
    user: str
    date: str
    comment: str = ""
    items: Tuple[ChangesetItem, ...] = ()
    committer: Optional[str] = None
    timestamp: Optional[datetime] = None
    raw: str = field(default="", repr=False, compare=False)

    @property
    def paths(self) -> List[str]:
        return [item.server_path for item in self.items]

    def render(self) -> str:
        """Render the commit message for this changeset.

        The comment comes first so it becomes the Git subject line, followed by
        a trailer block with the original changeset fields. The text holds no
        trailing whitespace and no consecutive blank lines, so ``git commit
        -F`` stores it unchanged.
        """
        comment_lines = [line.rstrip() for line in self.comment.strip().splitlines()]
        comment = _collapse_blank_lines(comment_lines) or [f"Changeset {self.changeset_id}"]

        lines = list(comment)
        lines.append("")
        lines.append(f"Changeset: {self.changeset_id}")
        lines.append(f"User: {self.user}")
        if self.committer and self.committer != self.user:
            lines.append(f"Checked in by: {self.committer}")
        lines.append(f"Date: {self.date}")
        if self.items:
            lines.append("")
            lines.append("Items:")
            lines.extend(f"  {item.change} {item.server_path}" for item in self.items)
        return "\n".join(lines) + "\n"


def _collapse_blank_lines(lines: List[str]) -> List[str]:
    collapsed: List[str] = []
    for line in lines:
        if not line and collapsed and not collapsed[-1]:
            continue
        collapsed.append(line)
    return collapsed


def parse_date(value: str) -> Optional[datetime]:
    """Parse a ``Date:`` field; ``None`` when the locale format is unknown."""
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_item(line: str) -> Optional[ChangesetItem]:
    """Parse an ``Items:`` entry such as ``add, encoding $/Project/File.cs``."""
    text = line.strip()
    start = text.find("$/")
    if start <= 0:
        return None
    change = text[:start].strip()
    path = _VERSION_SUFFIX.sub("", text[start:].rstrip())
    return ChangesetItem(change=change, server_path=path)


def parse_changeset(text: str, changeset_id: Optional[int] = None) -> ChangesetMetadata:
    """Parse the detailed report printed by ``tf changeset``.

    Parameters
    ----------
    text:
        Raw tool output.
    changeset_id:
        Changeset that was requested. When given, the report must describe
        that changeset.

    Raises
    ------
    MetadataFailure:
        The report has no ``Changeset:`` header or describes another changeset.
    """
    fields: Dict[str, str] = {}
    sections: Dict[str, List[str]] = {}
    current: Optional[str] = None

    for line in text.splitlines():
        match = _FIELD.match(line)
        if match:
            key, value = match["key"], match["value"]
            if not value and key in SECTIONS:
                current = key
                sections.setdefault(key, [])
                continue
            current = None
            fields.setdefault(key, value)
            continue
        if current is not None:
            sections[current].append(line)

    requested = changeset_id if changeset_id is not None else 0
    try:
        parsed_id = int(fields["Changeset"].split()[0])
    except (KeyError, IndexError, ValueError) as e:
        raise MetadataFailure(requested, "no changeset header in tf output", text) from e
    if changeset_id is not None and parsed_id != changeset_id:
        raise MetadataFailure(
            changeset_id, f"tf reported changeset {parsed_id} instead", text
        )

    comment_lines = [line.strip() for line in sections.get("Comment", [])]
    items = tuple(
        item for item in map(parse_item, sections.get("Items", [])) if item is not None
    )
    date = fields.get("Date", "")

    return ChangesetMetadata(
        changeset_id=parsed_id,
        user=fields.get("User", ""),
        committer=fields.get("Checked in by"),
        date=date,
        timestamp=parse_date(date) if date else None,
        comment="\n".join(comment_lines).strip(),
        items=items,
        raw=text,
    )
