"""CREATE TABLE rendering for regular, external and foreign tables.

A table's TOC entry covers its CREATE statement, the per-column ALTER
statements that follow it, and its metadata (comments, owner,
privileges, security labels).

Usage:
    from ddl_backup.ddl.tables import print_create_table_statement

    print_create_table_statement(metadata_file, toc, table, table_def, table_metadata)
"""

from collections.abc import Sequence

from ddl_backup.ddl.metadata import (
    escape_single_quotes,
    print_object_metadata,
    print_statements,
    privileges_statements,
)
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import (
    ColumnDefinition,
    ExternalTableDefinition,
    ObjectMetadata,
    PartitionInfo,
    Relation,
    TableDefinition,
    make_fqn,
)

# External table kinds
READABLE = 0
READABLE_WEB = 1
WRITABLE = 2
WRITABLE_WEB = 3

# External table protocols
FILE = 0
GPFDIST = 1
GPHDFS = 2
HTTP = 3
S3 = 4

_EXTERNAL_TABLE_KEYWORDS = {
    READABLE: "READABLE EXTERNAL",
    READABLE_WEB: "READABLE EXTERNAL WEB",
    WRITABLE: "WRITABLE EXTERNAL",
    WRITABLE_WEB: "WRITABLE EXTERNAL WEB",
}

_PROTOCOL_PREFIXES = {
    "file": FILE,
    "gpfdist": GPFDIST,
    "gpfdists": GPFDIST,
    "gphdfs": GPHDFS,
    "http": HTTP,
    "https": HTTP,
    "s3": S3,
}

_FORMAT_NAMES = {
    "t": "text",
    "c": "csv",
    "b": "custom",
    "a": "avro",
    "p": "parquet",
}

_REPLICA_IDENTITY = {"f": "FULL", "n": "NOTHING"}


# ------------------------------------------------------------------
# Column definitions
# ------------------------------------------------------------------


def _ordered_columns(column_defs: Sequence[ColumnDefinition]) -> list[ColumnDefinition]:
    return sorted(column_defs, key=lambda column: column.num)


def column_definition(column: ColumnDefinition, typed_table: bool = False) -> str:
    """Render one column line (without indentation or separator).

    Order of clauses: type, OPTIONS, COLLATE, DEFAULT, NOT NULL, ENCODING.
    Columns of a typed table (``CREATE TABLE ... OF type``) take their type
    and default from the type, so only ``WITH OPTIONS`` and NOT NULL remain.
    """
    if typed_table:
        line = f"{column.name} WITH OPTIONS"
        if column.not_null:
            line += " NOT NULL"
        return line

    line = f"{column.name} {column.type}"
    if column.fdw_options:
        line += f" OPTIONS ({column.fdw_options})"
    if column.collation:
        line += f" COLLATE {column.collation}"
    if column.has_default:
        line += f" DEFAULT {column.default_val}"
    if column.not_null:
        line += " NOT NULL"
    if column.encoding:
        line += f" ENCODING ({column.encoding})"
    return line


def print_column_definitions(
    metadata_file: MetadataFile,
    column_defs: Sequence[ColumnDefinition],
    typed_table: bool = False,
) -> None:
    lines = [
        f"\t{column_definition(column, typed_table)}" for column in _ordered_columns(column_defs)
    ]
    if lines:
        metadata_file.write(",\n".join(lines) + "\n")


def print_alter_column_statements(
    metadata_file: MetadataFile, table: Relation, column_defs: Sequence[ColumnDefinition]
) -> None:
    """Write SET STATISTICS / SET STORAGE / SET (options) for columns that need them."""
    fqn = table.fqn()
    for column in _ordered_columns(column_defs):
        prefix = f"\nALTER TABLE ONLY {fqn} ALTER COLUMN {column.name}"
        if column.stat_target > -1:
            metadata_file.write(f"{prefix} SET STATISTICS {column.stat_target};")
        if column.storage_type:
            metadata_file.write(f"{prefix} SET STORAGE {column.storage_type};")
        if column.options:
            metadata_file.write(f"{prefix} SET ({column.options});")


# ------------------------------------------------------------------
# Regular and foreign tables
# ------------------------------------------------------------------


def print_regular_table_create_statement(
    metadata_file: MetadataFile,
    toc: TOC | None,
    table: Relation,
    table_def: TableDefinition,
) -> None:
    """Write ``CREATE [UNLOGGED ]TABLE`` with all table-level clauses.

    Clause order after the column list: INHERITS, WITH, TABLESPACE,
    distribution policy, partition definition.  A subpartition template is
    appended as its own statement, then any per-column ALTER statements.

    Args:
        metadata_file: Output buffer.
        toc: When given, a ``TABLE`` entry covering just this statement is added.
        table: The relation being created.
        table_def: Its definition.
    """
    start = metadata_file.byte_count
    fqn = table.fqn()
    unlogged = "UNLOGGED " if table_def.is_unlogged else ""
    of_type = f" OF {table_def.table_type}" if table_def.table_type else ""

    metadata_file.write(f"\n\nCREATE {unlogged}TABLE {fqn}{of_type} (\n")
    print_column_definitions(metadata_file, table_def.column_defs, bool(table_def.table_type))

    clauses = []
    if table.inherits:
        clauses.append(f"INHERITS ({', '.join(table.inherits)})")
    if table_def.storage_opts:
        clauses.append(f"WITH ({table_def.storage_opts})")
    if table_def.tablespace_name:
        clauses.append(f"TABLESPACE {table_def.tablespace_name}")
    if table_def.dist_policy:
        clauses.append(table_def.dist_policy)
    if table_def.part_def:
        clauses.append(table_def.part_def.strip())
    metadata_file.write(")" + "".join(f" {clause}" for clause in clauses) + ";\n")

    if table_def.part_template_def:
        metadata_file.write(table_def.part_template_def.strip() + ";\n")

    print_alter_column_statements(metadata_file, table, table_def.column_defs)
    _print_replica_identity(metadata_file, table, table_def)

    if toc is not None:
        toc.add_predata_entry(table.schema_name, table.name, "TABLE", "", start, metadata_file)


def print_foreign_table_create_statement(
    metadata_file: MetadataFile,
    toc: TOC | None,
    table: Relation,
    table_def: TableDefinition,
) -> None:
    """Write ``CREATE FOREIGN TABLE ... SERVER <server>[ OPTIONS (...)];``."""
    start = metadata_file.byte_count
    foreign_def = table_def.foreign_def
    metadata_file.write(f"\n\nCREATE FOREIGN TABLE {table.fqn()} (\n")
    print_column_definitions(metadata_file, table_def.column_defs)
    metadata_file.write(f") SERVER {foreign_def.server}")
    if foreign_def.options:
        metadata_file.write(f" OPTIONS ({foreign_def.options})")
    metadata_file.write(";\n")
    print_alter_column_statements(metadata_file, table, table_def.column_defs)

    if toc is not None:
        toc.add_predata_entry(table.schema_name, table.name, "TABLE", "", start, metadata_file)


def _print_replica_identity(metadata_file: MetadataFile, table: Relation, table_def: TableDefinition) -> None:
    identity = _REPLICA_IDENTITY.get(table_def.replica_identity)
    if identity:
        metadata_file.write(f"\nALTER TABLE {table.fqn()} REPLICA IDENTITY {identity};")


# ------------------------------------------------------------------
# External tables
# ------------------------------------------------------------------


def determine_external_table_characteristics(ext_def: ExternalTableDefinition) -> tuple[int, int]:
    """Work out ``(table_type, protocol)`` from the location and writability.

    A table without a location is an EXECUTE (web) table.  Otherwise the
    URI scheme decides both the protocol and whether the table is web.
    """
    if not ext_def.location:
        return (WRITABLE_WEB if ext_def.writable else READABLE_WEB), HTTP

    scheme = ext_def.location.split("://", 1)[0].lower()
    protocol = _PROTOCOL_PREFIXES.get(scheme, -1)
    is_web = scheme.startswith("http")
    if ext_def.writable:
        return (WRITABLE_WEB if is_web else WRITABLE), protocol
    return (READABLE_WEB if is_web else READABLE), protocol


def generate_execute_statement(ext_def: ExternalTableDefinition) -> str:
    """Render ``EXECUTE '<command>'`` plus the ON clause for the execute location."""
    statement = f"EXECUTE '{escape_single_quotes(ext_def.command)}'"
    location, _, argument = ext_def.exec_location.partition(":")
    if location == "HOST":
        statement += f" ON HOST '{argument}'" if argument else " ON HOST"
    elif location == "PER_HOST":
        statement += " ON HOST"
    elif location in ("MASTER_ONLY", "COORDINATOR_ONLY"):
        statement += " ON MASTER"
    elif location == "SEGMENT_ID":
        statement += f" ON SEGMENT {argument}"
    elif location == "TOTAL_SEGS":
        statement += f" ON {argument}"
    return statement


def print_external_table_statements(
    metadata_file: MetadataFile, ext_def: ExternalTableDefinition
) -> None:
    """Write everything after the column list of an external table."""
    if ext_def.location:
        uris = ext_def.uris or [ext_def.location]
        metadata_file.write("LOCATION (\n\t'" + "',\n\t'".join(uris) + "'\n)")
    elif ext_def.command:
        metadata_file.write(generate_execute_statement(ext_def))
    metadata_file.write("\n")

    format_name = _FORMAT_NAMES.get(ext_def.format_type, ext_def.format_type)
    metadata_file.write(f"FORMAT '{format_name}'")
    if ext_def.format_opts.strip():
        metadata_file.write(f" ({ext_def.format_opts.strip()})")
    metadata_file.write("\n")

    if ext_def.options:
        metadata_file.write(f"OPTIONS (\n\t{ext_def.options}\n)\n")
    metadata_file.write(f"ENCODING '{ext_def.encoding}'")

    if not ext_def.writable:
        if ext_def.log_errors:
            metadata_file.write("\nLOG ERRORS")
        if ext_def.reject_limit:
            limit_type = "PERCENT" if ext_def.reject_limit_type == "p" else "ROWS"
            metadata_file.write(f"\nSEGMENT REJECT LIMIT {ext_def.reject_limit} {limit_type}")


def print_external_table_create_statement(
    metadata_file: MetadataFile,
    toc: TOC | None,
    table: Relation,
    table_def: TableDefinition,
) -> None:
    """Write ``CREATE READABLE|WRITABLE EXTERNAL [WEB ]TABLE``.

    Writable external tables carry the distribution policy on its own line.
    """
    start = metadata_file.byte_count
    ext_def = table_def.ext_table_def
    table_type, _ = determine_external_table_characteristics(ext_def)

    metadata_file.write(
        f"\n\nCREATE {_EXTERNAL_TABLE_KEYWORDS[table_type]} TABLE {table.fqn()} (\n"
    )
    print_column_definitions(metadata_file, table_def.column_defs)
    metadata_file.write(") ")
    print_external_table_statements(metadata_file, ext_def)
    if ext_def.writable and table_def.dist_policy:
        metadata_file.write(f"\n{table_def.dist_policy}")
    metadata_file.write(";")

    if toc is not None:
        toc.add_predata_entry(table.schema_name, table.name, "TABLE", "", start, metadata_file)


# ------------------------------------------------------------------
# Post-create statements and the public entry point
# ------------------------------------------------------------------


def print_post_create_table_statements(
    metadata_file: MetadataFile,
    table: Relation,
    table_def: TableDefinition,
    table_metadata: ObjectMetadata,
) -> None:
    """Write table metadata, then comment/privileges/label per column.

    Column privileges start from REVOKE ALL for PUBLIC and for the table
    owner, and are written only for columns with ACL entries.
    """
    fqn = table.fqn()
    object_type = "FOREIGN TABLE" if table_def.foreign_def is not None else "TABLE"
    print_object_metadata(metadata_file, table_metadata, fqn, object_type)

    for column in _ordered_columns(table_def.column_defs):
        column_fqn = f"{fqn}.{column.name}"
        statements = []
        if column.comment:
            statements.append(
                f"COMMENT ON COLUMN {column_fqn} IS '{escape_single_quotes(column.comment)}';"
            )
        if column.acl:
            column_metadata = ObjectMetadata(privileges=column.acl, owner=table_metadata.owner)
            statements.append(privileges_statements(column_metadata, fqn, "COLUMN", column.name))
        if column.security_label_provider:
            statements.append(
                f"SECURITY LABEL FOR {column.security_label_provider} ON COLUMN {column_fqn} "
                f"IS '{escape_single_quotes(column.security_label)}';"
            )
        print_statements(metadata_file, statements)


def print_create_table_statement(
    metadata_file: MetadataFile,
    toc: TOC,
    table: Relation,
    table_def: TableDefinition,
    table_metadata: ObjectMetadata,
) -> None:
    """Write one table's CREATE and post-create statements under a single TOC entry."""
    start = metadata_file.byte_count
    if table_def.is_external:
        print_external_table_create_statement(metadata_file, None, table, table_def)
    elif table_def.foreign_def is not None:
        print_foreign_table_create_statement(metadata_file, None, table, table_def)
    else:
        print_regular_table_create_statement(metadata_file, None, table, table_def)
    print_post_create_table_statements(metadata_file, table, table_def, table_metadata)
    toc.add_predata_entry(table.schema_name, table.name, "TABLE", "", start, metadata_file)


# ------------------------------------------------------------------
# External partitions
# ------------------------------------------------------------------


def print_exchange_external_partition_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    ext_partitions: Sequence[PartitionInfo],
    partition_info_map: dict[int, PartitionInfo],
    tables: Sequence[Relation],
) -> None:
    """Swap each separately created external leaf into its partition hierarchy.

    Args:
        metadata_file: Output buffer.
        toc: Table of contents.
        ext_partitions: External leaf partitions.
        partition_info_map: All partition rules keyed by partition rule oid,
            used to walk up to the root through intermediate levels.
        tables: Relations in the backup (external leaves carry their
            suffixed names); partitions whose table is absent are skipped.
    """
    table_names = {table.oid: table.fqn() for table in tables}
    for partition in ext_partitions:
        ext_name = table_names.get(partition.relation_oid)
        if not ext_name:
            continue

        start = metadata_file.byte_count
        alter_partitions = ""
        current = partition
        while current.partition_parent_rule_oid:
            parent = partition_info_map.get(current.partition_parent_rule_oid)
            if parent is None:
                break
            if parent.partition_name:
                alter_partitions = f"ALTER PARTITION {parent.partition_name} " + alter_partitions
            else:
                alter_partitions = (
                    f"ALTER PARTITION FOR (RANK({parent.partition_rank})) " + alter_partitions
                )
            current = parent

        parent_name = make_fqn(partition.parent_schema, partition.parent_relation_name)
        if partition.partition_name:
            exchange = f"EXCHANGE PARTITION {partition.partition_name} "
        else:
            exchange = f"EXCHANGE PARTITION FOR (RANK({partition.partition_rank})) "
        metadata_file.write(
            f"\n\nALTER TABLE {parent_name} {alter_partitions}{exchange}"
            f"WITH TABLE {ext_name} WITHOUT VALIDATION;"
        )
        metadata_file.write(f"\n\nDROP TABLE {ext_name};")
        toc.add_predata_entry(
            partition.parent_schema,
            partition.parent_relation_name,
            "EXCHANGE PARTITION",
            "",
            start,
            metadata_file,
        )
