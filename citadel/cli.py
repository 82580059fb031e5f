"""Administrative command line interface for Citadel.

Usage:
    python -m citadel seed
    python -m citadel get-role [--format table|json|plain] [--with-permissions]
                               [--with-users] [--role NAME] [--guard GUARD]
    python -m citadel create-super-admin [--name N] [--email E] [--password P] [--force]
"""

import argparse
import getpass
import json
import sys
from typing import List, Optional, Sequence, TextIO

from pydantic import ValidationError
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table
from sqlalchemy.orm import Session

from citadel.api.schemas.users import SuperAdminCreate
from citadel.common.logger import configure_logging
from citadel.core.config import Settings, get_settings
from citadel.core.rbac import Principal
from citadel.core.rbac.permissions import group_by_resource
from citadel.db.models import Role, User
from citadel.db.seed import create_super_admin, seed_roles_and_permissions
from citadel.db.store import SqlPermissionStore

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

MAX_LISTED_USERS = 5
MAX_LISTED_PERMISSIONS = 10

CONSOLE_WIDTH = 120


def _console(out: TextIO) -> Console:
    return Console(file=out, width=CONSOLE_WIDTH, highlight=False)


def _error_console() -> Console:
    return Console(stderr=True, width=CONSOLE_WIDTH, highlight=False)


def _details_table(title: str, rows: List[Sequence]) -> Table:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in rows:
        table.add_row(field, str(value))
    return table


# ---------------------------------------------------------------------------
# seed
# ---------------------------------------------------------------------------


def run_seed(db: Session, settings: Settings, args: Optional[argparse.Namespace] = None, out: TextIO = sys.stdout) -> int:
    console = _console(out)
    seed_roles_and_permissions(db, settings)
    db.commit()
    console.print("[green]Roles and permissions seeded successfully![/green]")
    console.print(f"Super Admin role: {settings.super_admin_role}", markup=False)
    console.print(f"Default User role: {settings.default_user_role}", markup=False)
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# get-role
# ---------------------------------------------------------------------------


def _role_json(role: Role, with_permissions: bool, with_users: bool) -> dict:
    data = {
        "id": role.id,
        "name": role.name,
        "guard_name": role.guard_name,
        "created_at": role.created_at.isoformat() if role.created_at else None,
        "updated_at": role.updated_at.isoformat() if role.updated_at else None,
    }
    if with_users:
        data["users_count"] = len(role.users)
        data["users"] = [u.email for u in role.users]
    if with_permissions:
        data["permissions_count"] = len(role.permissions)
        data["permissions"] = [p.name for p in role.permissions]
    return data


def _output_plain(roles: List[Role], with_permissions: bool, with_users: bool, console: Console) -> None:
    for role in roles:
        lines = [f"Role: {role.name}", f"  ID: {role.id}", f"  Guard: {role.guard_name}"]
        if role.created_at:
            lines.append(f"  Created: {role.created_at:%b %d, %Y %H:%M}")

        if with_users:
            lines.append(f"  Users: {len(role.users)}")
            lines.extend(f"    - {user.email}" for user in role.users[:MAX_LISTED_USERS])
            if len(role.users) > MAX_LISTED_USERS:
                lines.append(f"    ... and {len(role.users) - MAX_LISTED_USERS} more")

        if with_permissions:
            lines.append(f"  Permissions: {len(role.permissions)}")
            lines.extend(f"    - {p.name}" for p in role.permissions[:MAX_LISTED_PERMISSIONS])
            if len(role.permissions) > MAX_LISTED_PERMISSIONS:
                lines.append(f"    ... and {len(role.permissions) - MAX_LISTED_PERMISSIONS} more")

        for line in lines:
            console.print(line, markup=False)
        console.print()


def _output_table(roles: List[Role], with_permissions: bool, with_users: bool, guard: str, console: Console) -> None:
    console.print(f"Guard: {guard}", markup=False)
    console.print(f"Total Roles: {len(roles)}")
    console.print()

    table = Table(title="Roles")
    table.add_column("ID", justify="right")
    table.add_column("Role Name", style="cyan")
    table.add_column("Created")
    if with_users:
        table.add_column("Users Count", justify="right", style="green")
    if with_permissions:
        table.add_column("Permissions Count", justify="right", style="green")

    for role in roles:
        row = [str(role.id), role.name, f"{role.created_at:%b %d, %Y}" if role.created_at else ""]
        if with_users:
            row.append(str(len(role.users)))
        if with_permissions:
            row.append(str(len(role.permissions)))
        table.add_row(*row)
    console.print(table)

    if with_permissions:
        console.print()
        console.print("[bold]Detailed Permissions[/bold]")
        for role in roles:
            names = [p.name for p in role.permissions]
            if not names:
                console.print(f"{role.name}: No permissions assigned", markup=False)
                continue
            console.print(f"{role.name} ({len(names)} permissions):", markup=False)
            for category, category_names in group_by_resource(names).items():
                console.print(f"  {category}:", markup=False)
                for name in category_names:
                    console.print(f"    - {name}", markup=False)

    user_counts = {role.name: len(role.users) for role in roles}
    stats = [
        f"- Total roles: {len(roles)}",
        f"- Total users across all roles: {sum(user_counts.values())}",
        f"- Total permissions across all roles: {sum(len(r.permissions) for r in roles)}",
        f"- Roles with users: {sum(1 for c in user_counts.values() if c > 0)}",
        f"- Roles with permissions: {sum(1 for r in roles if r.permissions)}",
    ]
    most_used = max(roles, key=lambda r: user_counts[r.name])
    least_used = min(roles, key=lambda r: user_counts[r.name])
    if user_counts[most_used.name] > 0:
        stats.append(f"- Most used role: {most_used.name} ({user_counts[most_used.name]} users)")
    stats.append(f"- Least used role: {least_used.name} ({user_counts[least_used.name]} users)")

    console.print()
    console.print("[bold]Role Statistics[/bold]")
    for line in stats:
        console.print(line, markup=False)


def run_get_role(db: Session, settings: Settings, args: argparse.Namespace, out: TextIO = sys.stdout) -> int:
    console = _console(out)
    guard = args.guard or settings.permission_guard
    store = SqlPermissionStore(db, default_guard=guard)
    roles = store.list_roles(guard, name=args.role)

    if not roles:
        if args.role:
            _error_console().print(f"Role '{args.role}' not found for guard '{guard}'", markup=False)
            return EXIT_FAILURE
        console.print(f"No roles found for guard '{guard}'", markup=False)
        return EXIT_SUCCESS

    if args.format == "json":
        data = [_role_json(r, args.with_permissions, args.with_users) for r in roles]
        out.write(json.dumps(data, indent=4) + "\n")
    elif args.format == "plain":
        _output_plain(roles, args.with_permissions, args.with_users, console)
    else:
        _output_table(roles, args.with_permissions, args.with_users, guard, console)
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# create-super-admin
# ---------------------------------------------------------------------------


def run_create_super_admin(db: Session, settings: Settings, args: argparse.Namespace, out: TextIO = sys.stdout) -> int:
    console = _console(out)
    name = args.name or Prompt.ask("Enter super admin name", console=console)
    email = args.email or Prompt.ask("Enter super admin email", console=console)
    password = args.password or getpass.getpass("Enter super admin password: ")

    existing = db.query(User).filter(User.email == email).first()
    if existing is None:
        try:
            SuperAdminCreate(name=name, email=email, password=password)
        except ValidationError as e:
            err = _error_console()
            err.print("[red]Validation failed:[/red]")
            for error in e.errors():
                field = ".".join(str(loc) for loc in error["loc"])
                err.print(f"   - {field}: {error['msg']}", markup=False)
            return EXIT_FAILURE
    else:
        store = SqlPermissionStore(db, default_guard=settings.permission_guard)
        principal = Principal(existing.id, settings.permission_guard)
        if store.has_role(principal, settings.super_admin_role, settings.permission_guard):
            console.print(f"User with email '{email}' already exists and has super admin role.", markup=False)
            return EXIT_SUCCESS
        if not args.force and not Confirm.ask(
            f"User with email '{email}' exists but is not a super admin. Assign super admin role?",
            console=console,
            default=False,
        ):
            console.print("Operation cancelled.")
            return EXIT_SUCCESS

    if existing is None and not args.force:
        console.print(_details_table("New Super Admin", [
            ("Name", name),
            ("Email", email),
            ("Role", settings.super_admin_role),
            ("Guard", settings.permission_guard),
        ]))
        if not Confirm.ask("Create super admin with the above details?", console=console, default=False):
            console.print("Operation cancelled.")
            return EXIT_SUCCESS

    user, created = create_super_admin(db, name=name, email=email, password=password, settings=settings)
    db.commit()

    if created:
        console.print("[green]Super admin created successfully![/green]")
        console.print(_details_table("Super Admin", [
            ("ID", user.id),
            ("Name", user.name),
            ("Email", user.email),
            ("Role", settings.super_admin_role),
        ]))
    else:
        console.print(
            f"Super admin role assigned to existing user: {user.name} ({user.email})", markup=False
        )
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="citadel", description="Citadel administration")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Seed default roles and permissions")

    get_role = sub.add_parser("get-role", help="Display roles with their permissions and statistics")
    get_role.add_argument("--format", choices=["table", "json", "plain"], default="table")
    get_role.add_argument("--with-permissions", action="store_true", help="Include permissions for each role")
    get_role.add_argument("--with-users", action="store_true", help="Include user count for each role")
    get_role.add_argument("--role", help="Filter by specific role name")
    get_role.add_argument("--guard", help="Filter by guard (default: configured guard)")

    create = sub.add_parser("create-super-admin", help="Create a super admin user")
    create.add_argument("--name", help="The name of the super admin")
    create.add_argument("--email", help="The email of the super admin")
    create.add_argument("--password", help="The password of the super admin")
    create.add_argument("--force", action="store_true", help="Skip confirmation prompts")

    return parser


COMMANDS = {
    "seed": run_seed,
    "get-role": run_get_role,
    "create-super-admin": run_create_super_admin,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the administration CLI."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    from citadel.db.session import SessionLocal, init_db

    init_db()
    db = SessionLocal()
    try:
        return COMMANDS[args.command](db, settings, args)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
