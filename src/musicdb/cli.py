"""CLI entrypoint for musicdb."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from musicdb.api.musics_api import create_music, delete_music, list_musics, show_music, update_music
from musicdb.config.loader import (
    get_database_url,
    get_default_page_size,
    get_list_timeout,
    load_config,
)
from musicdb.database.client import session_context
from musicdb.database.schema import create_all
from musicdb.errors import (
    EditConflictError,
    InternalError,
    MusicDBError,
    RecordNotFoundError,
    ValidationFailedError,
)
from musicdb.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_INTERNAL = 1
EXIT_VALIDATION = 2
EXIT_NOT_FOUND = 3
EXIT_EDIT_CONFLICT = 4

# options whose values may legitimately start with "-"
DASH_VALUE_OPTIONS = ("--sort",)


def _load(args: argparse.Namespace) -> Dict[str, Any]:
    config = load_config(Path(args.config) if args.config else None)
    if args.database_url:
        config["storage"]["database_url"] = args.database_url
    return config


def _emit(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        print(payload.model_dump_json(indent=2))
    else:
        print(json.dumps(payload, indent=2, sort_keys=True))


def _write_payload(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect only the write fields given on the command line."""
    payload: Dict[str, Any] = {}
    if args.title is not None:
        payload["title"] = args.title
    if args.duration is not None:
        payload["duration"] = args.duration
    if args.popularity is not None:
        payload["popularity"] = args.popularity
    if args.genre:
        payload["genres"] = args.genre
    return payload


def cmd_init_db(args: argparse.Namespace) -> None:
    """Create the musics table if it does not exist."""
    database_url = get_database_url(_load(args))
    create_all(database_url)
    _emit({"message": "musics table ready", "database_url": database_url})


def cmd_create(args: argparse.Namespace) -> None:
    with session_context(get_database_url(_load(args))) as session:
        _emit(create_music(session, _write_payload(args)))


def cmd_show(args: argparse.Namespace) -> None:
    with session_context(get_database_url(_load(args))) as session:
        _emit(show_music(session, args.id))


def cmd_update(args: argparse.Namespace) -> None:
    with session_context(get_database_url(_load(args))) as session:
        music = update_music(
            session,
            args.id,
            _write_payload(args),
            expected_version=args.expected_version,
        )
        _emit(music)


def cmd_delete(args: argparse.Namespace) -> None:
    with session_context(get_database_url(_load(args))) as session:
        delete_music(session, args.id)
    _emit({"message": "music successfully deleted"})


def cmd_list(args: argparse.Namespace) -> None:
    config = _load(args)
    params = {
        key: value
        for key, value in (
            ("title", args.title),
            ("genres", args.genres),
            ("page", args.page),
            ("page_size", args.page_size),
            ("sort", args.sort),
        )
        if value is not None
    }
    with session_context(get_database_url(config)) as session:
        result = list_musics(
            session,
            params,
            timeout_seconds=get_list_timeout(config),
            default_page_size=get_default_page_size(config),
        )
    _emit(result)


def _exit_code(error: MusicDBError) -> int:
    if isinstance(error, ValidationFailedError):
        return EXIT_VALIDATION
    if isinstance(error, RecordNotFoundError):
        return EXIT_NOT_FOUND
    if isinstance(error, EditConflictError):
        return EXIT_EDIT_CONFLICT
    return EXIT_INTERNAL


def _error_body(error: MusicDBError) -> Dict[str, Any]:
    if isinstance(error, ValidationFailedError):
        return {"error": dict(error.errors)}
    if isinstance(error, EditConflictError):
        return {"error": "unable to update the record due to an edit conflict, please try again"}
    if isinstance(error, RecordNotFoundError):
        return {"error": "the requested resource could not be found"}
    return {"error": str(error)}


def _add_write_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title", help="Track title")
    parser.add_argument("--duration", help="Duration in seconds")
    parser.add_argument("--popularity", help="Popularity score (> 0)")
    parser.add_argument(
        "--genre",
        action="append",
        default=[],
        help="Genre (repeat for several)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="musicdb",
        description="Versioned music track store",
    )
    parser.add_argument("--config", help="Path to musicdb.config.yaml")
    parser.add_argument("--database-url", help="Override storage.database_url")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-db", help="Create the musics table")
    init_parser.set_defaults(func=cmd_init_db)

    create_parser = subparsers.add_parser("create", help="Insert a music record")
    _add_write_arguments(create_parser)
    create_parser.set_defaults(func=cmd_create)

    show_parser = subparsers.add_parser("show", help="Show a music record")
    show_parser.add_argument("id", type=int)
    show_parser.set_defaults(func=cmd_show)

    update_parser = subparsers.add_parser("update", help="Partially update a music record")
    update_parser.add_argument("id", type=int)
    update_parser.add_argument(
        "--expected-version",
        type=int,
        default=None,
        help="Fail with an edit conflict unless the stored version equals this",
    )
    _add_write_arguments(update_parser)
    update_parser.set_defaults(func=cmd_update)

    delete_parser = subparsers.add_parser("delete", help="Delete a music record")
    delete_parser.add_argument("id", type=int)
    delete_parser.set_defaults(func=cmd_delete)

    list_parser = subparsers.add_parser("list", help="List music records")
    list_parser.add_argument("--title", help="Free-text title search")
    list_parser.add_argument("--genres", help="Comma-separated genres every result must have")
    list_parser.add_argument("--page", help="Page number (default: 1)")
    list_parser.add_argument("--page-size", dest="page_size", help="Page size, 1-100")
    list_parser.add_argument("--sort", help="id, title, duration, popularity; prefix '-' for descending")
    list_parser.set_defaults(func=cmd_list)

    return parser


def join_dash_values(argv: List[str], options: Sequence[str] = DASH_VALUE_OPTIONS) -> List[str]:
    """
    Rewrite `--sort -title` as `--sort=-title`.

    argparse reads a value starting with "-" as another option, so descending
    sort keys must be attached to their option before parsing.
    """
    joined: List[str] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in options and i + 1 < len(argv) and argv[i + 1].startswith("-"):
            joined.append(f"{arg}={argv[i + 1]}")
            i += 2
            continue
        joined.append(arg)
        i += 1
    return joined


def main(argv: Optional[list] = None) -> int:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(join_dash_values(sys.argv[1:] if argv is None else list(argv)))

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args.log_level)

    try:
        args.func(args)
    except MusicDBError as e:
        if isinstance(e, InternalError):
            logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        print(json.dumps(_error_body(e), indent=2, sort_keys=True), file=sys.stderr)
        return _exit_code(e)
    return 0


if __name__ == "__main__":
    sys.exit(main())
