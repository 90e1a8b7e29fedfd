"""Command line interface for replaying TFVC history into Git."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable

from . import __version__
from .config import DEFAULT_MESSAGE_FILE, MigrationConfig
from .errors import MigrationError
from .logging_config import setup_logging
from .replay.composer import CommitRecord
from .replay.orchestrator import load_sequence, run_migration
from .tfvc.client import TfClient


def _resolve_config(args: argparse.Namespace) -> MigrationConfig:
    return MigrationConfig(
        server_path=args.server_path,
        work_dir=getattr(args, "work_dir", None) or Path.cwd(),
        collection=args.collection,
        login=args.login,
        tf_command=args.tf,
        start=args.start,
        end=args.end,
        case_sensitive=getattr(args, "case_sensitive", False),
        authors_file=getattr(args, "authors", None),
        mail_domain=getattr(args, "mail_domain", None),
        message_file=getattr(args, "message_file", DEFAULT_MESSAGE_FILE),
        history_file=args.history_file,
    )


def _print_commit(record: CommitRecord) -> None:
    print(f"  C{record.changeset_id} -> {record.commit_hash[:10]} ({record.author})")
    for rename in record.renames:
        print(f"      case rename: {rename.source} -> {rename.target}")


def _migrate(args: argparse.Namespace) -> None:
    config = _resolve_config(args)
    print(f"Migrating {config.server_path} into {config.work_dir}")
    try:
        records = run_migration(config, on_commit=_print_commit)
    except MigrationError as e:
        print(f"Error: {e}")
        raise SystemExit(1) from e
    print(f"\n✓ Replayed {len(records)} changesets")


def _list_changesets(args: argparse.Namespace) -> None:
    config = _resolve_config(args)
    client = TfClient(config.tf_command, config.collection, config.login)
    try:
        sequence = load_sequence(config, client)
    except MigrationError as e:
        print(f"Error: {e}")
        raise SystemExit(1) from e
    print(f"{len(sequence)} changesets to replay:")
    for changeset_id in sequence:
        print(f"  {changeset_id}")


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("server_path", help="TFVC server path, e.g. $/Project/Main")
    parser.add_argument("--collection", help="Team project collection URL")
    parser.add_argument("--login", help="Credentials passed to tf as /login:user,password")
    parser.add_argument("--tf", default="tf", help="tf executable (default: tf)")
    parser.add_argument("--start", type=int, help="First changeset to replay (inclusive)")
    parser.add_argument("--end", type=int, help="Last changeset to replay (inclusive)")
    parser.add_argument(
        "--history-file",
        type=Path,
        help="Saved 'tf history /format:brief' output to use instead of querying the server",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tfs2git", description=__doc__)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        help="DEBUG, INFO, WARNING or ERROR (defaults to $TFS2GIT_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate_parser = subparsers.add_parser(
        "migrate", help="Replay every changeset as a Git commit"
    )
    _add_source_arguments(migrate_parser)
    migrate_parser.add_argument(
        "work_dir",
        type=Path,
        help="Local folder mapped to the server path; becomes the Git working tree",
    )
    migrate_parser.add_argument(
        "--authors",
        type=Path,
        help="User mapping file (.json, .yaml or 'DOMAIN\\user = Name <email>' lines)",
    )
    migrate_parser.add_argument(
        "--mail-domain",
        help="E-mail domain for users missing from the mapping",
    )
    migrate_parser.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Skip case reconciliation; the history never renamed files by case only",
    )
    migrate_parser.add_argument(
        "--message-file",
        default=DEFAULT_MESSAGE_FILE,
        help="Name of the transient commit message file in the working tree",
    )
    migrate_parser.set_defaults(func=_migrate)

    list_parser = subparsers.add_parser(
        "changesets", help="List the changesets a migration would replay"
    )
    _add_source_arguments(list_parser)
    list_parser.set_defaults(func=_list_changesets)

    return parser


def main(argv: Iterable[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.start is not None and args.end is not None and args.start > args.end:
        parser.error("--start must not be greater than --end")
    setup_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
