from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys

from salesmaster.api.utils import parse_instant
from salesmaster.core.config import get_settings
from salesmaster.core.errors import SalesMasterError
from salesmaster.core.logging import configure_logging
from salesmaster.core.security import authenticate, create_user
from salesmaster.core.session import AuthSession, FileTokenStorage, TokenStorage
from salesmaster.persistence.db import init_db, session_scope
from salesmaster.services.reports import REPORT_KINDS, ReportService

logger = logging.getLogger(__name__)


def _storage() -> TokenStorage:
    return FileTokenStorage(get_settings().session_file)


def _print(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SalesMaster CLI")
    top = parser.add_subparsers(dest="command", required=True)

    login = top.add_parser("login", help="Sign in and remember the session")
    login.add_argument("username")
    login.add_argument("--password", default=None, help="Prompted for when omitted")

    top.add_parser("logout", help="Forget the saved session")
    top.add_parser("whoami", help="Show the saved session")

    users = top.add_parser("users", help="User administration")
    users_sub = users.add_subparsers(dest="users_command", required=True)
    add = users_sub.add_parser("add", help="Create a login")
    add.add_argument("username")
    add.add_argument("--password", default=None, help="Prompted for when omitted")

    report = top.add_parser("report", help="Order reports")
    report_sub = report.add_subparsers(dest="report_command", required=True)
    counts = report_sub.add_parser("counts", help="Daily/weekly/yearly order counts")
    counts.add_argument("--now", default=None, help="ISO instant anchoring the windows")
    export = report_sub.add_parser("export", help="Export a report workbook and share it")
    export.add_argument("kind", choices=REPORT_KINDS)
    export.add_argument("--now", default=None, help="ISO instant anchoring the window")

    return parser


def _password(args: argparse.Namespace) -> str:
    return args.password if args.password is not None else getpass.getpass("Password: ")


def _login(args: argparse.Namespace) -> int:
    init_db()
    with session_scope() as session:
        auth = authenticate(session, args.username, _password(args))
    if auth is None:
        print("login failed: invalid username or password", file=sys.stderr)
        return 1
    auth.save(_storage())
    _print({"username": auth.username, "authenticated": True})
    return 0


def _logout(_: argparse.Namespace) -> int:
    AuthSession.clear(_storage())
    _print({"authenticated": False})
    return 0


def _whoami(_: argparse.Namespace) -> int:
    auth = AuthSession.load(_storage())
    _print({"username": auth.username, "authenticated": auth.is_authenticated})
    return 0 if auth.is_authenticated else 1


def _add_user(args: argparse.Namespace) -> int:
    init_db()
    with session_scope() as session:
        create_user(session, args.username, _password(args))
    _print({"username": args.username, "created": True})
    return 0


def _report(args: argparse.Namespace) -> int:
    init_db()
    service = ReportService.from_settings()
    now = parse_instant(args.now) if args.now else None
    if args.report_command == "counts":
        _print(service.counts(now).as_dict())
        return 0
    shared = service.export(args.kind, now)
    _print(
        {
            "kind": args.kind,
            "rows": shared.handle.row_count,
            "file": str(shared.handle.path),
            "location": shared.location,
        }
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)

    handlers = {
        "login": _login,
        "logout": _logout,
        "whoami": _whoami,
        "users": _add_user,
        "report": _report,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.error("unsupported command")
        return 2
    try:
        return handler(args)
    except SalesMasterError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
