"""Catalog queries for object metadata (owners, comments, privileges).

This module builds and runs the queries whose results feed the DDL
renderer's post-statements:
- Owner, comment and unnested ACL rows for any catalog table
- Comments only, for objects without owners or ACLs
- Per-column ACL rows for tables

Uses psycopg (v3) for PostgreSQL connections.
"""

from dataclasses import dataclass

import psycopg
from psycopg import Connection

from ddl_backup.schema.acl import (
    construct_column_privileges_map,
    construct_comments_map,
    construct_metadata_map,
)
from ddl_backup.schema.models import ACL, MetadataMap

# Schemas that never hold user objects
SYSTEM_SCHEMA_FILTER = (
    "n.nspname NOT LIKE 'pg_temp_%' AND n.nspname NOT LIKE 'pg_toast%' "
    "AND n.nspname NOT IN ('gp_toolkit', 'information_schema', 'pg_aoseg', "
    "'pg_bitmapindex', 'pg_catalog')"
)

EXTENSION_MEMBER_FILTER = "o.oid NOT IN (SELECT objid FROM pg_depend WHERE deptype='e')"


@dataclass(frozen=True)
class MetadataQueryParams:
    """Column and table names describing where an object type's metadata lives.

    Attributes:
        name_field: Column holding the object name.
        oid_field: Column holding the object oid.
        acl_field: aclitem[] column, "" for objects without privileges.
        owner_field: Owner oid column, "" for objects without owners.
        schema_field: Namespace oid column, "" for schema-less objects.
        catalog_table: Catalog table to read from, e.g. ``pg_class``.
        comment_table: Catalog used as ``classoid`` for comments
            (defaults to ``catalog_table``).
        shared: True for cluster-wide objects (comments in pg_shdescription).
    """

    name_field: str = ""
    oid_field: str = "oid"
    acl_field: str = ""
    owner_field: str = ""
    schema_field: str = ""
    catalog_table: str = ""
    comment_table: str = ""
    shared: bool = False


TYPE_RELATION = MetadataQueryParams(
    name_field="relname", acl_field="relacl", owner_field="relowner",
    schema_field="relnamespace", catalog_table="pg_class",
)
TYPE_FUNCTION = MetadataQueryParams(
    name_field="proname", acl_field="proacl", owner_field="proowner",
    schema_field="pronamespace", catalog_table="pg_proc",
)
TYPE_TYPE = MetadataQueryParams(
    name_field="typname", owner_field="typowner", schema_field="typnamespace",
    catalog_table="pg_type",
)
TYPE_SCHEMA = MetadataQueryParams(
    name_field="nspname", acl_field="nspacl", owner_field="nspowner",
    catalog_table="pg_namespace",
)
TYPE_CONSTRAINT = MetadataQueryParams(
    name_field="conname", schema_field="connamespace", catalog_table="pg_constraint",
)
TYPE_TS_PARSER = MetadataQueryParams(
    name_field="prsname", schema_field="prsnamespace", catalog_table="pg_ts_parser",
)
TYPE_TS_TEMPLATE = MetadataQueryParams(
    name_field="tmplname", schema_field="tmplnamespace", catalog_table="pg_ts_template",
)
TYPE_TS_DICTIONARY = MetadataQueryParams(
    name_field="dictname", owner_field="dictowner", schema_field="dictnamespace",
    catalog_table="pg_ts_dict",
)
TYPE_TS_CONFIGURATION = MetadataQueryParams(
    name_field="cfgname", owner_field="cfgowner", schema_field="cfgnamespace",
    catalog_table="pg_ts_config",
)
TYPE_TABLESPACE = MetadataQueryParams(
    name_field="spcname", acl_field="spcacl", owner_field="spcowner",
    catalog_table="pg_tablespace", shared=True,
)


def _description_join(params: MetadataQueryParams, oid_expr: str, join: str) -> str:
    comment_table = params.comment_table or params.catalog_table
    if params.shared:
        return (
            f"{join} pg_shdescription d ON (d.objoid = {oid_expr} "
            f"AND d.classoid = '{comment_table}'::regclass)"
        )
    return (
        f"{join} pg_description d ON (d.objoid = {oid_expr} "
        f"AND d.classoid = '{comment_table}'::regclass AND d.objsubid = 0)"
    )


def build_metadata_query(params: MetadataQueryParams, schema_filter: str = "") -> str:
    """Build the owner/comment/ACL query for one object type.

    Each row is ``(oid, privileges, kind, owner, comment)``; objects with
    several grantees produce one row per grantee.

    Args:
        params: Where the object type's metadata lives.
        schema_filter: Extra ``AND ...`` clause restricting namespaces
            (see ``BackupFilters.schema_filter_clause``).

    Returns:
        SQL text ordered by object oid.
    """
    if params.acl_field:
        acl = params.acl_field
        privileges = (
            "CASE\n"
            f"\t\tWHEN {acl} IS NULL OR array_upper({acl}, 1) = 0 THEN {acl}[0]\n"
            f"\t\tELSE unnest({acl})\n"
            "\t\tEND AS privileges"
        )
        kind = (
            "CASE\n"
            f"\t\tWHEN {acl} IS NULL THEN 'Default'\n"
            f"\t\tWHEN array_upper({acl}, 1) = 0 THEN 'Empty'\n"
            "\t\tELSE '' END AS kind"
        )
    else:
        privileges = "'' AS privileges"
        kind = "'' AS kind"

    owner = f"pg_get_userbyid({params.owner_field})" if params.owner_field else "''"

    lines = [
        "SELECT",
        f"\to.{params.oid_field},",
        f"\t{privileges},",
        f"\t{kind},",
        f"\t{owner} AS owner,",
        "\tcoalesce(description,'') AS comment",
        f"FROM {params.catalog_table} o "
        + _description_join(params, f"o.{params.oid_field}", "LEFT JOIN"),
    ]
    conditions = [EXTENSION_MEMBER_FILTER]
    if params.schema_field:
        lines.append(f"JOIN pg_namespace n ON o.{params.schema_field} = n.oid")
        conditions.insert(0, SYSTEM_SCHEMA_FILTER + schema_filter)
    lines.append("WHERE " + "\nAND ".join(conditions))
    lines.append(f"ORDER BY o.{params.oid_field};")
    return "\n".join(lines)


def build_comments_query(params: MetadataQueryParams, schema_filter: str = "") -> str:
    """Build the comment-only query for one object type.

    Each row is ``(oid, comment)``; objects without a comment are skipped.
    """
    lines = [
        "SELECT",
        f"\to.{params.oid_field} AS oid,",
        "\tcoalesce(description,'') AS comment",
        f"FROM {params.catalog_table} o "
        + _description_join(params, f"o.{params.oid_field}", "JOIN"),
    ]
    if params.schema_field:
        lines.append(f"JOIN pg_namespace n ON o.{params.schema_field} = n.oid")
        lines.append("WHERE " + SYSTEM_SCHEMA_FILTER + schema_filter)
    return "\n".join(lines) + ";"


COLUMN_PRIVILEGES_QUERY = """
    SELECT
        a.attrelid,
        quote_ident(a.attname),
        CASE
            WHEN a.attacl IS NULL OR array_upper(a.attacl, 1) = 0 THEN a.attacl[0]
            ELSE unnest(a.attacl)
            END AS privileges,
        CASE
            WHEN a.attacl IS NULL THEN 'Default'
            WHEN array_upper(a.attacl, 1) = 0 THEN 'Empty'
            ELSE '' END AS kind
    FROM pg_attribute a
    JOIN pg_class c ON a.attrelid = c.oid
    JOIN pg_namespace n ON c.relnamespace = n.oid
    WHERE c.relkind IN ('r', 'f')
      AND a.attnum > 0
      AND NOT a.attisdropped
      AND {schema_filter}
    ORDER BY a.attrelid, a.attname
"""


class CatalogIntrospector:
    """Reads object metadata from a live catalog.

    Usage:
        with CatalogIntrospector(database_url) as introspector:
            relation_metadata = introspector.get_metadata_for_object_type(TYPE_RELATION)
            constraint_comments = introspector.get_comments_for_object_type(TYPE_CONSTRAINT)
            column_acls = introspector.get_privileges_for_columns()
    """

    def __init__(self, database_url: str, schema_filter: str = ""):
        """Initialize with database connection URL.

        Args:
            database_url: PostgreSQL connection URL
            schema_filter: Extra ``AND ...`` namespace clause applied to
                every schema-scoped query
        """
        self._database_url = database_url
        self._schema_filter = schema_filter
        self._conn: Connection | None = None

    def __enter__(self) -> "CatalogIntrospector":
        """Context manager entry - opens connection."""
        # Append connect_timeout if not already in URL
        url = self._database_url
        if "connect_timeout" not in url:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}connect_timeout=10"

        self._conn = psycopg.connect(url)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _fetch(self, query: str) -> list[tuple]:
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use with statement.")
        with self._conn.cursor() as cur:
            cur.execute(query)
            return cur.fetchall()

    def get_metadata_for_object_type(self, params: MetadataQueryParams) -> MetadataMap:
        """Get owner, comment and privileges for every object of one type."""
        rows = self._fetch(build_metadata_query(params, self._schema_filter))
        return construct_metadata_map(rows)

    def get_comments_for_object_type(self, params: MetadataQueryParams) -> MetadataMap:
        """Get comments for every commented object of one type."""
        rows = self._fetch(build_comments_query(params, self._schema_filter))
        return construct_comments_map(rows)

    def get_privileges_for_columns(self) -> dict[int, dict[str, list[ACL]]]:
        """Get per-column ACLs keyed by table oid and column name."""
        query = COLUMN_PRIVILEGES_QUERY.format(
            schema_filter=SYSTEM_SCHEMA_FILTER + self._schema_filter
        )
        return construct_column_privileges_map(self._fetch(query))
