"""CLI module for predata DDL backup.

Renders catalog snapshots into an ordered metadata file, inspects the
resolved dependency order, and reads object metadata from a live catalog.

Usage:
    ddl-backup render catalog.json --output metadata.sql --toc toc.json
    ddl-backup render catalog.json --leaf-partition-data --include-relation public.sales
    ddl-backup order catalog.json
    ddl-backup profiles
    ddl-backup --config prod.toml acl prod relation

Commands:
    render    - Write CREATE statements and a table of contents for a snapshot
    order     - Show the dependency order of functions, types and tables
    profiles  - List available profiles
    acl       - Show owners, comments and privileges for an object type
"""

import argparse
import logging
import sys
from pathlib import Path

import psycopg
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ddl_backup.backup.models import CatalogSnapshot
from ddl_backup.backup.predata import backup_predata, retrieve_and_process_tables
from ddl_backup.config.loader import DEFAULT_CONFIG_PATH, load_backup_config
from ddl_backup.config.models import DdlBackupConfig
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.factory import ProfileNotFoundError, get_introspector
from ddl_backup.schema.dependencies import (
    DependencyCycleError,
    ShellType,
    sort_functions_and_types_and_tables,
)
from ddl_backup.schema.introspector import (
    TYPE_CONSTRAINT,
    TYPE_FUNCTION,
    TYPE_RELATION,
    TYPE_SCHEMA,
    TYPE_TABLESPACE,
    TYPE_TS_CONFIGURATION,
    TYPE_TS_DICTIONARY,
    TYPE_TS_PARSER,
    TYPE_TS_TEMPLATE,
    TYPE_TYPE,
)
from ddl_backup.schema.models import ACL, Function, Relation, Type

console = Console()

# Object types whose catalog has owners or ACLs use the full metadata query;
# the rest only carry comments.
OBJECT_TYPES = {
    "relation": (TYPE_RELATION, True),
    "function": (TYPE_FUNCTION, True),
    "type": (TYPE_TYPE, True),
    "schema": (TYPE_SCHEMA, True),
    "tablespace": (TYPE_TABLESPACE, True),
    "constraint": (TYPE_CONSTRAINT, False),
    "ts-parser": (TYPE_TS_PARSER, False),
    "ts-template": (TYPE_TS_TEMPLATE, False),
    "ts-dictionary": (TYPE_TS_DICTIONARY, True),
    "ts-configuration": (TYPE_TS_CONFIGURATION, True),
}


# ============================================================================
# Helpers
# ============================================================================


def _load_config(args: argparse.Namespace) -> DdlBackupConfig:
    """Load the config file, falling back to defaults when none exists.

    An explicit ``--config`` path must exist; the implicit ``backup.toml``
    is optional.
    """
    if args.config is None and not DEFAULT_CONFIG_PATH.exists():
        return DdlBackupConfig()
    return load_backup_config(args.config)


def _load_snapshot(path: str) -> CatalogSnapshot:
    """Read a JSON catalog snapshot.

    Raises:
        FileNotFoundError: If the snapshot file does not exist.
        ValueError: If the file is not a valid snapshot.
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"Snapshot not found: {snapshot_path}")
    try:
        return CatalogSnapshot.model_validate_json(snapshot_path.read_text())
    except ValidationError as e:
        raise ValueError(f"Invalid catalog snapshot {snapshot_path}:\n{e}") from e


def _object_kind(obj) -> str:
    if isinstance(obj, ShellType):
        return "shell type"
    if isinstance(obj, Type):
        return "type"
    if isinstance(obj, Function):
        return "function"
    if isinstance(obj, Relation):
        return "table"
    return type(obj).__name__.lower()


def _format_acl(acl: ACL) -> str:
    """Render an ACL as ``grantee: select, insert*`` (``*`` = WITH GRANT OPTION)."""
    granted = []
    for field_name in ACL.model_fields:
        if field_name == "grantee" or field_name.endswith("_with_grant"):
            continue
        if getattr(acl, f"{field_name}_with_grant"):
            granted.append(f"{field_name}*")
        elif getattr(acl, field_name):
            granted.append(field_name)
    grantee = acl.grantee or "PUBLIC"
    return f"{grantee}: {', '.join(granted)}"


# ============================================================================
# Command implementations
# ============================================================================


def cmd_render(args: argparse.Namespace) -> int:
    """Render a catalog snapshot into a metadata file and TOC.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_config(args)
        snapshot = _load_snapshot(args.snapshot)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    backup_config = config.backup
    updates = {}
    if args.leaf_partition_data:
        updates["leaf_partition_data"] = True
    if args.include_relation:
        updates["include_relations"] = args.include_relation
    if updates:
        backup_config = backup_config.model_copy(update=updates)

    output_path = Path(args.output or backup_config.metadata_file)
    toc_path = Path(args.toc or backup_config.toc_file)

    toc = TOC()
    try:
        with open(output_path, "w", encoding="utf-8") as f:
            result = backup_predata(snapshot, backup_config, MetadataFile(f), toc)
    except DependencyCycleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    toc.write(toc_path)

    table = Table(title="Predata Objects", show_header=True, header_style="bold")
    table.add_column("Object Type")
    table.add_column("Count", justify="right")
    for name, count in result.object_counts.items():
        table.add_row(name, str(count))
    console.print(table)

    if result.shell_types:
        console.print(
            f"[yellow]Shell types emitted to break cycles: {', '.join(result.shell_types)}[/yellow]"
        )
    console.print(f"\n[green]Metadata written to {output_path}[/green]")
    console.print(f"[green]Table of contents written to {toc_path}[/green]")
    return 0


def cmd_order(args: argparse.Namespace) -> int:
    """Show the resolved creation order of functions, types and tables.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_config(args)
        snapshot = _load_snapshot(args.snapshot)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    tables, _, _ = retrieve_and_process_tables(snapshot, config.backup)
    types = [t for t in snapshot.types if t.type in ("b", "c", "d")]
    try:
        ordered = sort_functions_and_types_and_tables(snapshot.functions, types, tables)
    except DependencyCycleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    table = Table(title="Dependency Order", show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Name")
    table.add_column("Shell")
    for position, obj in enumerate(ordered, start=1):
        shell = "[yellow]yes[/yellow]" if isinstance(obj, ShellType) else ""
        table.add_row(str(position), _object_kind(obj), obj.fqn(), shell)
    console.print(table)
    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from backup.toml.

    Reads only local TOML config -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if backup.toml not found.
    """
    try:
        config = load_backup_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("Profile")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        table.add_row(name, profile.description or "")

    console.print(table)
    return 0


def cmd_acl(args: argparse.Namespace) -> int:
    """Show owner, comment and privileges for every object of one type.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    params, has_acl = OBJECT_TYPES[args.object_type]
    try:
        config = load_backup_config(args.config)
        with get_introspector(args.profile, config=config) as introspector:
            if has_acl:
                metadata = introspector.get_metadata_for_object_type(params)
            else:
                metadata = introspector.get_comments_for_object_type(params)
    except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    except psycopg.Error as e:
        console.print(f"[red]Failed to query catalog: {escape(str(e))}[/red]")
        return 1

    table = Table(
        title=f"Metadata: {args.object_type}", show_header=True, header_style="bold"
    )
    table.add_column("OID", justify="right")
    table.add_column("Owner")
    table.add_column("Comment")
    table.add_column("Privileges")
    for oid, obj_metadata in sorted(metadata.items()):
        privileges = "\n".join(_format_acl(acl) for acl in obj_metadata.privileges)
        table.add_row(str(oid), obj_metadata.owner, obj_metadata.comment, privileges)
    console.print(table)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Args:
        argv: Argument list (defaults to ``sys.argv[1:]``).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="ddl-backup",
        description="Dependency-ordered DDL backup for MPP Postgres catalogs",
    )

    # Global options
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to backup config (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log each backup step",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # render command
    p_render = subparsers.add_parser(
        "render",
        help="Write CREATE statements and a table of contents for a snapshot",
    )
    p_render.add_argument("snapshot", help="Path to a JSON catalog snapshot")
    p_render.add_argument(
        "--output",
        "-o",
        help="Metadata file to write (default: [backup].metadata_file)",
    )
    p_render.add_argument(
        "--toc",
        help="Table of contents file to write (default: [backup].toc_file)",
    )
    p_render.add_argument(
        "--leaf-partition-data",
        action="store_true",
        help="Back up data per leaf partition instead of through the root",
    )
    p_render.add_argument(
        "--include-relation",
        action="append",
        default=[],
        metavar="SCHEMA.TABLE",
        help="Back up only this relation (repeatable)",
    )
    p_render.set_defaults(func=cmd_render)

    # order command
    p_order = subparsers.add_parser(
        "order",
        help="Show the dependency order of functions, types and tables",
    )
    p_order.add_argument("snapshot", help="Path to a JSON catalog snapshot")
    p_order.set_defaults(func=cmd_order)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # acl command
    p_acl = subparsers.add_parser(
        "acl",
        help="Show owners, comments and privileges for an object type",
    )
    p_acl.add_argument("profile", help="Profile name from the config file")
    p_acl.add_argument("object_type", choices=sorted(OBJECT_TYPES))
    p_acl.set_defaults(func=cmd_acl)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
