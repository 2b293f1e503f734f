# src/roastr/scripts/admin.py
"""Operator commands for a Roastr deployment.

Examples::

    roastr-admin migrate
    roastr-admin seed-tags
    roastr-admin create-user alice --role superadmin --token
    roastr-admin token 1
"""
from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence

from alembic import command
from alembic.config import Config

from roastr.core.errors import RoastrError
from roastr.core.security import create_access_token
from roastr.core.settings import settings
from roastr.db.session import SessionLocal, create_tables
from roastr.models import UserRole
from roastr.services import user_service
from roastr.services.tags import TagService

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))


def run_upgrade_head() -> None:
    cfg = Config(os.path.join(PROJECT_ROOT, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(PROJECT_ROOT, "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    command.upgrade(cfg, "head")


def _init_db(args: argparse.Namespace) -> None:
    create_tables()
    print("Created database tables")


def _migrate(args: argparse.Namespace) -> None:
    run_upgrade_head()
    print("Database upgraded to head")


def _seed_tags(args: argparse.Namespace) -> None:
    with SessionLocal() as db:
        created = TagService(db).seed_defaults()
    print(f"Seeded {len(created)} tags")


def _create_user(args: argparse.Namespace) -> None:
    with SessionLocal() as db:
        user = user_service.create_user(db, args.username, role=UserRole(args.role), bio=args.bio)
        print(f"Created user {user.id} ({user.username}, {user.role.value})")
        if args.token:
            print(create_access_token(user.id))


def _token(args: argparse.Namespace) -> None:
    with SessionLocal() as db:
        user = user_service.get_user_or_404(db, args.user_id)
    print(create_access_token(user.id))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="roastr-admin", description="Manage a Roastr deployment")
    commands = parser.add_subparsers(dest="command", required=True)

    init_db = commands.add_parser("init-db", help="Create tables directly from the models")
    init_db.set_defaults(handler=_init_db)

    migrate = commands.add_parser("migrate", help="Apply Alembic migrations up to head")
    migrate.set_defaults(handler=_migrate)

    seed = commands.add_parser("seed-tags", help="Insert the default tag catalog")
    seed.set_defaults(handler=_seed_tags)

    create_user = commands.add_parser("create-user", help="Create a user profile")
    create_user.add_argument("username")
    create_user.add_argument(
        "--role",
        choices=[role.value for role in UserRole],
        default=UserRole.USER.value,
    )
    create_user.add_argument("--bio", default=None)
    create_user.add_argument("--token", action="store_true", help="Also print an access token")
    create_user.set_defaults(handler=_create_user)

    token = commands.add_parser("token", help="Mint an access token for an existing user")
    token.add_argument("user_id", type=int)
    token.set_defaults(handler=_token)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.handler(args)
    except RoastrError as exc:
        print(f"[roastr-admin] ERROR: {exc.detail}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
