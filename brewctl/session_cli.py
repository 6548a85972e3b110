"""
brewctl-sessions: inspect and move brew session documents.

Usage:
    brewctl-sessions list
    brewctl-sessions show <session_id>
    brewctl-sessions import sessions.json [--replace]
    brewctl-sessions export [<session_id>] [-o out.json]

``import`` accepts a single session document, a list of documents or a
lokijs database dump (``{"collections": [{"name": "brewSessions", "data": [...]}]}``).
Legacy documents (numeric status, ``temp``/``time`` keys, epoch millisecond
timestamps) are normalised on the way in.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from brewctl.config import load_config
from brewctl.domain.exceptions import BrewCtlError
from brewctl.domain.session import BrewSession
from brewctl.enums.brew import BrewStep, ExitCode
from infrastructure.database.repositories.brew_sessions import BrewSessionRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

logger = logging.getLogger(__name__)

LOKI_COLLECTION = "brewSessions"


def extract_documents(payload: Any) -> list[dict[str, Any]]:
    """Pull session documents out of any of the accepted import shapes."""
    if isinstance(payload, list):
        documents = payload
    elif isinstance(payload, dict) and isinstance(payload.get("collections"), list):
        documents = []
        for collection in payload["collections"]:
            if isinstance(collection, dict) and collection.get("name") == LOKI_COLLECTION:
                documents.extend(collection.get("data") or [])
    elif isinstance(payload, dict):
        documents = [payload]
    else:
        raise ValueError("expected a session document, a list of documents or a lokijs dump")

    cleaned = []
    for document in documents:
        if not isinstance(document, dict):
            raise ValueError(f"session document must be an object, got {type(document).__name__}")
        # lokijs keys its documents by "$loki"
        cleaned_document = {k: v for k, v in document.items() if k not in {"meta", "$loki"}}
        if "id" not in cleaned_document and "$loki" in document:
            cleaned_document["id"] = document["$loki"]
        cleaned.append(cleaned_document)
    return cleaned


def cmd_list(repository: BrewSessionRepository, args: argparse.Namespace) -> int:
    summaries = repository.list_sessions()
    if not summaries:
        print("No brew sessions stored.")
        return 0
    for summary in summaries:
        step = summary.get("step") or BrewStep.PRE_HEAT
        print(
            f"{summary['id']:<20} {str(summary.get('status')):<9} "
            f"step {step} ({BrewStep.from_value(int(step)).label})  updated {summary.get('updated_at')}"
        )
    return 0


def cmd_show(repository: BrewSessionRepository, args: argparse.Namespace) -> int:
    session = repository.get(args.session_id)
    if session is None:
        print(f"BrewSession not found: {args.session_id}", file=sys.stderr)
        return int(ExitCode.SESSION_NOT_FOUND)
    print(json.dumps(session.to_document(), indent=2))
    return 0


def cmd_import(repository: BrewSessionRepository, args: argparse.Namespace) -> int:
    try:
        payload = json.loads(Path(args.path).read_text(encoding="utf-8"))
        documents = extract_documents(payload)
    except (OSError, ValueError) as e:
        print(f"Cannot read {args.path}: {e}", file=sys.stderr)
        return int(ExitCode.USAGE)

    imported = 0
    for document in documents:
        try:
            session = BrewSession.from_document(document)
        except ValidationError as e:
            print(f"Skipping invalid session {document.get('id')!r}: {e}", file=sys.stderr)
            continue
        if args.replace:
            repository.save(session)
        else:
            try:
                repository.create(session)
            except BrewCtlError as e:
                print(f"Skipping {session.id}: {e}", file=sys.stderr)
                continue
        imported += 1
    print(f"Imported {imported} of {len(documents)} brew sessions.")
    return 0


def cmd_export(repository: BrewSessionRepository, args: argparse.Namespace) -> int:
    if args.session_id:
        session = repository.get(args.session_id)
        if session is None:
            print(f"BrewSession not found: {args.session_id}", file=sys.stderr)
            return int(ExitCode.SESSION_NOT_FOUND)
        payload: Any = session.to_document()
    else:
        payload = [repository.load(summary["id"]).to_document() for summary in repository.list_sessions()]

    text = json.dumps(payload, indent=2)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {args.output}")
    else:
        print(text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="brewctl-sessions", description="Manage stored brew sessions.")
    parser.add_argument("--db", dest="db", default=None, help="Path to the SQLite database (default: from config)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List stored sessions")
    p_list.set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="Print one session document")
    p_show.add_argument("session_id")
    p_show.set_defaults(func=cmd_show)

    p_import = sub.add_parser("import", help="Import session documents from a JSON file")
    p_import.add_argument("path")
    p_import.add_argument("--replace", action="store_true", help="Overwrite sessions that already exist")
    p_import.set_defaults(func=cmd_import)

    p_export = sub.add_parser("export", help="Export session documents as JSON")
    p_export.add_argument("session_id", nargs="?")
    p_export.add_argument("-o", "--output", help="Write to this file instead of stdout")
    p_export.set_defaults(func=cmd_export)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        database_path = args.db or load_config().database_path
    except BrewCtlError as e:
        print(f"brewctl-sessions: {e}", file=sys.stderr)
        return int(ExitCode.UNRECOVERABLE)

    db_handler = SQLiteDatabaseHandler(database_path)
    try:
        db_handler.init_db()
        return args.func(BrewSessionRepository(db_handler), args)
    except BrewCtlError as e:
        print(f"brewctl-sessions: {e}", file=sys.stderr)
        return int(ExitCode.UNRECOVERABLE)
    finally:
        db_handler.close_db()


if __name__ == "__main__":
    raise SystemExit(main())
