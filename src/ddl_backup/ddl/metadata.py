"""COMMENT, OWNER, GRANT/REVOKE and SECURITY LABEL statements for any object.

Each builder returns one statement (or a block of REVOKE/GRANT lines) as
a string, or ``""`` when there is nothing to emit.  ``print_object_metadata``
writes them in the fixed order comment, owner, privileges, security label.

Usage:
    from ddl_backup.ddl.metadata import print_object_metadata

    print_object_metadata(metadata_file, table_metadata, "public.sales", "TABLE")
"""

from ddl_backup.ddl.output import MetadataFile
from ddl_backup.schema.acl import GRANTEE_PLACEHOLDER
from ddl_backup.schema.models import ACL, ObjectMetadata

# Canonical GRANT order
PRIVILEGE_ORDER = [
    "select",
    "insert",
    "update",
    "delete",
    "truncate",
    "references",
    "trigger",
    "usage",
    "execute",
    "create",
    "temporary",
    "connect",
]

_TABLE_PRIVILEGES = frozenset(
    {"select", "insert", "update", "delete", "truncate", "references", "trigger"}
)

# Privileges that together are rendered as ALL, per object type
ALL_PRIVILEGES = {
    "COLUMN": frozenset({"select", "insert", "update", "references"}),
    "SEQUENCE": frozenset({"select", "usage", "update"}),
    "TABLE": _TABLE_PRIVILEGES,
    "VIEW": _TABLE_PRIVILEGES,
    "FOREIGN TABLE": _TABLE_PRIVILEGES,
    "FUNCTION": frozenset({"execute"}),
    "SCHEMA": frozenset({"usage", "create"}),
    "TYPE": frozenset({"usage"}),
    "DOMAIN": frozenset({"usage"}),
    "LANGUAGE": frozenset({"usage"}),
    "FOREIGN DATA WRAPPER": frozenset({"usage"}),
    "FOREIGN SERVER": frozenset({"usage"}),
    "DATABASE": frozenset({"create", "temporary", "connect"}),
    "TABLESPACE": frozenset({"create"}),
}


def escape_single_quotes(text: str) -> str:
    """Double every single quote so ``text`` can sit inside a SQL literal."""
    return text.replace("'", "''")


def _grant_keyword(object_type: str) -> str:
    if object_type in ("TABLE", "COLUMN", "FOREIGN TABLE"):
        return "TABLE "
    if object_type == "VIEW":
        return ""
    return f"{object_type} "


def comment_statement(
    obj_metadata: ObjectMetadata,
    object_name: str,
    object_type: str,
    owning_table: str = "",
) -> str:
    """Build ``COMMENT ON <type> <name> IS '<comment>';``.

    Args:
        obj_metadata: Metadata holding the comment.
        object_name: Qualified name as it appears in the DDL.
        object_type: SQL object keyword, e.g. ``TABLE`` or ``TEXT SEARCH PARSER``.
        owning_table: For constraints (and other table-scoped objects), the
            table named in ``ON <table>``.

    Returns:
        The statement, or ``""`` when there is no comment.
    """
    if not obj_metadata.comment:
        return ""
    target = f"{object_name} ON {owning_table}" if owning_table else object_name
    return f"COMMENT ON {object_type} {target} IS '{escape_single_quotes(obj_metadata.comment)}';"


def owner_statement(obj_metadata: ObjectMetadata, object_name: str, object_type: str) -> str:
    """Build ``ALTER <type> <name> OWNER TO <owner>;``.

    Sequences are altered through ``ALTER TABLE``.  Views get no owner
    statement.
    """
    if not obj_metadata.owner or object_type == "VIEW":
        return ""
    keyword = "TABLE" if object_type == "SEQUENCE" else object_type
    return f"ALTER {keyword} {object_name} OWNER TO {obj_metadata.owner};"


def _privilege_list(acl: ACL, object_type: str, with_grant: bool) -> str:
    """Render the privileges set on ``acl`` as ``ALL`` or a comma list (no spaces)."""
    suffix = "_with_grant" if with_grant else ""
    all_set = ALL_PRIVILEGES.get(object_type)
    granted = [
        name
        for name in PRIVILEGE_ORDER
        if getattr(acl, f"{name}{suffix}") and (all_set is None or name in all_set)
    ]
    if not granted:
        return ""
    if all_set is not None and set(granted) == all_set:
        return "ALL"
    return ",".join(name.upper() for name in granted)


def privileges_statements(
    obj_metadata: ObjectMetadata,
    object_name: str,
    object_type: str,
    column_name: str | None = None,
) -> str:
    """Build the REVOKE/GRANT block that reproduces an object's ACL.

    Starts from a clean slate (REVOKE ALL from PUBLIC and from the
    owner), then emits one GRANT per grantee, plus a WITH GRANT OPTION
    GRANT when any grant-option privilege is set.

    Args:
        obj_metadata: Metadata with privileges and owner.
        object_name: Qualified object name.
        object_type: SQL object keyword.  ``COLUMN`` grants use ``ON TABLE``
            and a ``(<column>)`` list.
        column_name: Column for column-level privileges.

    Returns:
        Newline-separated statements, or ``""`` when the object has no
        explicit privileges (the default ACL).

    Example:
        >>> privileges_statements(ObjectMetadata(privileges=[ACL(grantee="", select=True)]),
        ...                       "public.t", "TABLE")
        'REVOKE ALL ON TABLE public.t FROM PUBLIC;\\nGRANT SELECT ON TABLE public.t TO PUBLIC;'
    """
    if not obj_metadata.privileges:
        return ""

    keyword = _grant_keyword(object_type)
    column = f" ({column_name})" if column_name else ""
    target = f"ON {keyword}{object_name}"

    lines = [f"REVOKE ALL{column} {target} FROM PUBLIC;"]
    if obj_metadata.owner:
        lines.append(f"REVOKE ALL{column} {target} FROM {obj_metadata.owner};")

    for acl in obj_metadata.privileges:
        if acl.grantee == GRANTEE_PLACEHOLDER:
            continue
        grantee = acl.grantee or "PUBLIC"
        grants = _privilege_list(acl, object_type, with_grant=False)
        if grants:
            lines.append(f"GRANT {grants}{column} {target} TO {grantee};")
        grants_with_option = _privilege_list(acl, object_type, with_grant=True)
        if grants_with_option:
            lines.append(
                f"GRANT {grants_with_option}{column} {target} TO {grantee} WITH GRANT OPTION;"
            )
    return "\n".join(lines)


def security_label_statement(obj_metadata: ObjectMetadata, object_name: str, object_type: str) -> str:
    """Build ``SECURITY LABEL FOR <provider> ON <type> <name> IS '<label>';``."""
    if not obj_metadata.security_label_provider:
        return ""
    return (
        f"SECURITY LABEL FOR {obj_metadata.security_label_provider} ON {object_type} "
        f"{object_name} IS '{escape_single_quotes(obj_metadata.security_label)}';"
    )


def print_statements(metadata_file: MetadataFile, statements: list[str]) -> None:
    """Write each non-empty statement as its own ``\\n\\n<statement>\\n`` block."""
    for statement in statements:
        if statement:
            metadata_file.write(f"\n\n{statement}\n")


def print_object_metadata(
    metadata_file: MetadataFile,
    obj_metadata: ObjectMetadata,
    object_name: str,
    object_type: str,
    owning_table: str = "",
) -> None:
    """Write comment, owner, privileges and security label for one object."""
    print_statements(
        metadata_file,
        [
            comment_statement(obj_metadata, object_name, object_type, owning_table),
            owner_statement(obj_metadata, object_name, object_type),
            privileges_statements(obj_metadata, object_name, object_type),
            security_label_statement(obj_metadata, object_name, object_type),
        ],
    )
