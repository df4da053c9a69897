"""Decode catalog ACL rows into ``ACL`` records and metadata maps.

The catalog query layer unnests each object's aclitem[] into one row per
grantee and tags rows with a ``kind`` marker:

- ``"Default"``: the ACL column is NULL, so the object has the built-in
  default privileges.  No REVOKE/GRANT statements are needed.
- ``"Empty"``: the ACL array exists but is empty (everything was revoked).
  This is represented by a single placeholder record for grantee
  ``GRANTEE`` so the renderer still emits the REVOKE statements.
- anything else: an ordinary ``grantee=privs/grantor`` row.

Usage:
    from ddl_backup.schema.acl import parse_acl, construct_column_privileges_map

    parse_acl("testrole=r*w/gpadmin")
    # ACL(grantee='testrole', select_with_grant=True, update=True)
"""

import logging
import re
from collections.abc import Iterable

from ddl_backup.schema.models import ACL, MetadataMap, ObjectMetadata

logger = logging.getLogger(__name__)

DEFAULT_KIND = "Default"
EMPTY_KIND = "Empty"
GRANTEE_PLACEHOLDER = "GRANTEE"

_ACL_PATTERN = re.compile(r"^(.*)=([a-zA-Z*]*)/(.*)$")

# aclitem privilege letters, see src/include/utils/acl.h
_PRIVILEGE_LETTERS = {
    "r": "select",
    "a": "insert",
    "w": "update",
    "d": "delete",
    "D": "truncate",
    "x": "references",
    "t": "trigger",
    "U": "usage",
    "X": "execute",
    "C": "create",
    "T": "temporary",
    "c": "connect",
}


def parse_acl(acl_text: str) -> ACL | None:
    """Parse one aclitem string into an ``ACL``.

    A ``*`` after a privilege letter turns that privilege into its
    WITH GRANT OPTION variant.  An empty grantee stands for PUBLIC.

    Args:
        acl_text: Text form of an aclitem, e.g. ``"=r/owner"`` or
            ``'"my role"=arwdDxt/owner'``.

    Returns:
        The decoded ACL, or None if the text is not an aclitem.

    Example:
        >>> parse_acl("gpadmin=a/gpadmin")
        ACL(grantee='gpadmin', insert=True, ...)
    """
    match = _ACL_PATTERN.match(acl_text)
    if not match:
        return None

    flags: dict[str, bool] = {}
    last_privilege = ""
    for char in match.group(2):
        if char == "*":
            if last_privilege:
                flags[last_privilege] = False
                flags[f"{last_privilege}_with_grant"] = True
            continue
        last_privilege = _PRIVILEGE_LETTERS.get(char, "")
        if last_privilege:
            flags[last_privilege] = True

    return ACL(grantee=match.group(1), **flags)


def _acl_for_row(oid: int, privileges: str | None, kind: str) -> ACL | None:
    if kind == EMPTY_KIND:
        return ACL(grantee=GRANTEE_PLACEHOLDER)
    if not privileges:
        return None
    acl = parse_acl(privileges)
    if acl is None:
        logger.warning("Skipping unparseable privilege %r for oid %s", privileges, oid)
    return acl


def _append_privilege(acl_list: list[ACL], acl: ACL) -> None:
    """Append ``acl`` unless it is a second copy of the empty-ACL placeholder."""
    if acl.grantee == GRANTEE_PLACEHOLDER and acl in acl_list:
        return
    acl_list.append(acl)


def construct_metadata_map(
    rows: Iterable[tuple[int, str | None, str, str, str]],
) -> MetadataMap:
    """Build a MetadataMap from ``(oid, privileges, kind, owner, comment)`` rows.

    Rows for the same oid must be adjacent (the query orders by oid); the
    owner and comment are taken from the first row of each object.

    Args:
        rows: Result rows of the metadata query.

    Returns:
        Dict mapping object oid to its ObjectMetadata.
    """
    metadata_map: MetadataMap = {}
    for oid, privileges, kind, owner, comment in rows:
        if oid not in metadata_map:
            metadata_map[oid] = ObjectMetadata(owner=owner or "", comment=comment or "")
        if kind == DEFAULT_KIND:
            continue
        acl = _acl_for_row(oid, privileges, kind)
        if acl is not None:
            _append_privilege(metadata_map[oid].privileges, acl)
    return metadata_map


def construct_comments_map(rows: Iterable[tuple[int, str]]) -> MetadataMap:
    """Build a MetadataMap holding only comments from ``(oid, comment)`` rows."""
    return {oid: ObjectMetadata(comment=comment or "") for oid, comment in rows}


def construct_column_privileges_map(
    rows: Iterable[tuple[int, str, str | None, str]],
) -> dict[int, dict[str, list[ACL]]]:
    """Group per-column ACL rows by table oid and column name.

    Args:
        rows: ``(table_oid, column_name, privileges, kind)`` rows.

    Returns:
        ``{table_oid: {column_name: [ACL, ...]}}``.  A ``Default`` column
        maps to an empty list and an ``Empty`` column maps to exactly one
        ``GRANTEE`` placeholder, however many rows it produced.

    Example:
        >>> construct_column_privileges_map([(1, "i", "gpadmin=r/gpadmin", "")])
        {1: {'i': [ACL(grantee='gpadmin', select=True, ...)]}}
    """
    column_privileges: dict[int, dict[str, list[ACL]]] = {}
    for table_oid, column_name, privileges, kind in rows:
        acl_list = column_privileges.setdefault(table_oid, {}).setdefault(column_name, [])
        if kind == DEFAULT_KIND:
            continue
        acl = _acl_for_row(table_oid, privileges, kind)
        if acl is not None:
            _append_privilege(acl_list, acl)
    return column_privileges
