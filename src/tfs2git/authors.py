"""Mapping of TFVC user identities to Git author identities."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import UserMappingError

_AUTHOR_LINE = re.compile(r"\s*(?P<key>[^=]*?\S)\s*=\s*(?P<value>.*\S)\s*")
_GIT_IDENTITY = re.compile(r"^[^<>]*<[^<>]*>$")


@dataclass(slots=True)
class UserMapping:
    """Translate source identities such as ``CORP\\jdoe`` to ``Name <email>``.

    Lookups try the exact identity first and then a case-insensitive match,
    since TFVC compares account names without regard to case. Unknown users
    pass through unchanged, formatted as a valid Git identity.
    """

    entries: Dict[str, str] = field(default_factory=dict)
    mail_domain: Optional[str] = None

    def __len__(self) -> int:
        return len(self.entries)

    def lookup(self, user: str) -> Optional[str]:
        if user in self.entries:
            return self.entries[user]
        folded = user.casefold()
        for key, value in self.entries.items():
            if key.casefold() == folded:
                return value
        return None

    def resolve(self, user: str) -> str:
        """Return the Git author for ``user``."""
        mapped = self.lookup(user)
        if mapped is not None:
            return mapped
        if _GIT_IDENTITY.match(user):
            return user
        login = user.strip() or "unknown"
        if self.mail_domain:
            account = login.rsplit("\\", 1)[-1].replace(" ", ".")
            return f"{login} <{account}@{self.mail_domain}>"
        return f"{login} <{login}>"


def _parse_authormap(text: str, path: Path) -> Dict[str, str]:
    entries: Dict[str, str] = {}
    for line_no, line in enumerate(text.splitlines(), 1):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        match = _AUTHOR_LINE.fullmatch(line)
        if not match:
            raise UserMappingError(
                f"Invalid syntax in {path} at line {line_no}: {line.rstrip()!r}"
            )
        value = match["value"]
        if not _GIT_IDENTITY.match(value):
            raise UserMappingError(
                f"{path} line {line_no}: {value!r} is not in 'Name <email>' form"
            )
        entries[match["key"]] = value
    return entries


def _coerce_entries(data: Any, path: Path) -> Dict[str, str]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise UserMappingError(f"{path} must contain a mapping of users to authors")
    entries = {str(key): str(value) for key, value in data.items()}
    for key, value in entries.items():
        if not _GIT_IDENTITY.match(value):
            raise UserMappingError(
                f"{path}: author for {key!r} is not in 'Name <email>' form: {value!r}"
            )
    return entries


def load_user_mapping(path: Path, mail_domain: Optional[str] = None) -> UserMapping:
    """Load a user mapping file.

    Parameters
    ----------
    path:
        ``.json`` and ``.yaml``/``.yml`` files must hold a single mapping.
        Any other file is read as ``source = Name <email>`` lines where blank
        lines and lines starting with ``#`` are ignored.
    mail_domain:
        Domain used for users missing from the file.

    Returns
    -------
    UserMapping
    """
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise UserMappingError(f"Cannot read user mapping {path}: {e}") from e

    suffix = path.suffix.lower()
    if suffix == ".json":
        try:
            entries = _coerce_entries(json.loads(text), path)
        except json.JSONDecodeError as e:
            raise UserMappingError(f"Invalid JSON in {path}: {e}") from e
    elif suffix in (".yaml", ".yml"):
        try:
            entries = _coerce_entries(yaml.safe_load(text), path)
        except yaml.YAMLError as e:
            raise UserMappingError(f"Invalid YAML in {path}: {e}") from e
    else:
        entries = _parse_authormap(text, path)

    return UserMapping(entries=entries, mail_domain=mail_domain)
