"""Partition classification -- decide which relations get DDL and which get data.

A partitioned table is created by a single CREATE TABLE on its root, so
intermediate and leaf partitions never get their own DDL.  The exception
is an external leaf: it is created separately (under a suffixed name) and
exchanged into the hierarchy afterwards.

Usage:
    from ddl_backup.schema.partition import classify_relations, expand_include_relations

    include = expand_include_relations(["public.sales"], relations)
    metadata_tables, data_tables = classify_relations(
        relations, table_defs, ["public.sales"], leaf_partition_data=True
    )
"""

import logging
from collections.abc import Sequence

from ddl_backup.schema.models import PartitionType, Relation, TableDefinition, make_fqn

logger = logging.getLogger(__name__)

EXT_PART_SUFFIX = "_ext_part_"
MAX_IDENTIFIER_LENGTH = 63  # NAMEDATALEN - 1


class IdentifierLengthError(ValueError):
    """Raised when an identifier cannot be truncated to fit the length limit."""

    pass


# ------------------------------------------------------------------
# Identifier helpers
# ------------------------------------------------------------------


def _truncate_utf8(text: str, max_bytes: int) -> str:
    """Cut ``text`` to at most ``max_bytes`` UTF-8 bytes without splitting a character."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def append_ext_part_suffix(
    name: str,
    suffix: str = EXT_PART_SUFFIX,
    max_length: int = MAX_IDENTIFIER_LENGTH,
) -> str:
    """Append the external-partition suffix, truncating the name to fit.

    Quoted names keep their surrounding double quotes; truncation happens
    inside them and the quotes count towards ``max_length``.

    Args:
        name: Unqualified relation name, possibly double-quoted.
        suffix: Text to append.
        max_length: Maximum identifier length in bytes.

    Returns:
        The suffixed name, at most ``max_length`` bytes including quotes.

    Raises:
        IdentifierLengthError: If ``name`` is empty or ``suffix`` leaves no
            room for at least one byte of the name.

    Example:
        >>> append_ext_part_suffix('"!name"')
        '"!name_ext_part_"'
    """
    quoted = len(name) >= 2 and name.startswith('"') and name.endswith('"')
    core = name[1:-1] if quoted else name
    if not core:
        raise IdentifierLengthError(f"Cannot add suffix to empty identifier {name!r}")

    room = max_length - len(suffix.encode("utf-8")) - (2 if quoted else 0)
    if room < 1:
        raise IdentifierLengthError(
            f"Suffix {suffix!r} does not fit in a {max_length}-byte identifier"
        )

    result = _truncate_utf8(core, room) + suffix
    return f'"{result}"' if quoted else result


def expand_include_relations(include_list: Sequence[str], known_relations: Sequence[Relation]) -> list[str]:
    """Add known relations that live in the include list's schemas.

    Partition children get generated names the user never typed; this pulls
    them into the filter.  An empty include list stays empty, which means
    "no filter".

    Args:
        include_list: Schema-qualified names given by the user.
        known_relations: All relations found in the catalog.

    Returns:
        The include list followed by any newly added FQNs.
    """
    if not include_list:
        return []

    expanded = list(dict.fromkeys(include_list))
    schemas = {fqn.split(".", 1)[0] for fqn in include_list if "." in fqn}
    seen = set(expanded)
    for relation in known_relations:
        fqn = relation.fqn()
        if relation.schema_name in schemas and fqn not in seen:
            expanded.append(fqn)
            seen.add(fqn)
    return expanded


# ------------------------------------------------------------------
# Classification
# ------------------------------------------------------------------


def _kept_roots(
    relations: Sequence[Relation],
    definitions: dict[int, TableDefinition],
    included: set[str],
) -> tuple[set[str], bool]:
    """Root FQNs reachable from the include list.

    Returns the set of root FQNs named directly or through a member's
    ``root_name``, plus a flag that is True when some named partition
    member has no recorded root (so no parent can be ruled out).
    """
    roots: set[str] = set()
    unknown_root = False
    for relation in relations:
        fqn = relation.fqn()
        if fqn not in included:
            continue
        table_def = definitions.get(relation.oid, TableDefinition())
        if table_def.partition_type == PartitionType.PARENT:
            roots.add(fqn)
        elif table_def.partition_type in (PartitionType.INTERMEDIATE, PartitionType.LEAF):
            if table_def.root_name:
                roots.add(make_fqn(relation.schema_name, table_def.root_name))
            else:
                unknown_root = True
    return roots, unknown_root


def classify_relations(
    relations: Sequence[Relation],
    definitions: dict[int, TableDefinition],
    include_list: Sequence[str],
    leaf_partition_data: bool = False,
) -> tuple[list[Relation], list[Relation]]:
    """Split relations into the metadata set and the data set.

    Metadata set: parent and ordinary relations, plus external leaves
    renamed with the external-partition suffix, in input order.  With an
    include list only relations reachable from it are kept.

    Data set: in leaf-partition-data mode every leaf and ordinary relation;
    otherwise the relations the include list names, or every parent and
    ordinary relation when there is no include list.

    Args:
        relations: All candidate relations, in catalog order.
        definitions: Table definitions keyed by relation oid.
        include_list: Schema-qualified names the user asked for (may be empty).
        leaf_partition_data: Back up data per leaf partition instead of
            through the root.

    Returns:
        ``(metadata_set, data_set)``.  Suffixed relations are copies; the
        input relations are never modified.
    """
    included = set(include_list)
    roots, unknown_root = _kept_roots(relations, definitions, included)

    def reachable(relation: Relation, table_def: TableDefinition) -> bool:
        if not included:
            return True
        fqn = relation.fqn()
        if fqn in included:
            return True
        if table_def.partition_type == PartitionType.PARENT:
            return fqn in roots or unknown_root
        if table_def.external_leaf:
            if not table_def.root_name:
                return True
            return make_fqn(relation.schema_name, table_def.root_name) in roots
        return False

    metadata_set: list[Relation] = []
    data_set: list[Relation] = []
    for relation in relations:
        table_def = definitions.get(relation.oid, TableDefinition())
        partition_type = table_def.partition_type

        if table_def.external_leaf:
            if reachable(relation, table_def):
                renamed = relation.model_copy(
                    update={"name": append_ext_part_suffix(relation.name)}
                )
                metadata_set.append(renamed)
        elif partition_type in (PartitionType.PARENT, PartitionType.NONE):
            if reachable(relation, table_def):
                metadata_set.append(relation)

        if leaf_partition_data:
            if partition_type in (PartitionType.LEAF, PartitionType.NONE):
                data_set.append(relation)
        elif included:
            if relation.fqn() in included:
                data_set.append(relation)
        elif partition_type in (PartitionType.PARENT, PartitionType.NONE):
            data_set.append(relation)

    logger.debug(
        "Classified %d relations: %d for metadata, %d for data",
        len(relations),
        len(metadata_set),
        len(data_set),
    )
    return metadata_set, data_set


split_tables_by_partition_type = classify_relations
