"""CREATE SEQUENCE and ALTER SEQUENCE ... OWNED BY rendering.

Usage:
    from ddl_backup.ddl.sequences import print_create_sequence_statements

    print_create_sequence_statements(metadata_file, toc, sequences, relation_metadata)
    print_alter_sequence_statements(metadata_file, toc, sequences, owner_columns, tables)
"""

import re
from collections.abc import Sequence as SequenceOf

from ddl_backup.ddl.metadata import escape_single_quotes, print_object_metadata
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import MetadataMap, ObjectMetadata, Relation, Sequence

MAX_INT64 = 2**63 - 1
MIN_INT64 = -(2**63)

_IDENTIFIER_PART = re.compile(r'"(?:[^"]|"")*"|[^."]+')


def _owning_table(owner_column: str) -> str:
    """Strip the column from ``schema.table.column``, keeping dots inside quoted names."""
    parts = _IDENTIFIER_PART.findall(owner_column)
    return ".".join(parts[:-1])


def _max_value_clause(sequence: Sequence) -> str:
    default = MAX_INT64 if sequence.increment > 0 else -1
    if sequence.max_val == default:
        return "NO MAXVALUE"
    return f"MAXVALUE {sequence.max_val}"


def _min_value_clause(sequence: Sequence) -> str:
    default = 1 if sequence.increment > 0 else MIN_INT64
    if sequence.min_val == default:
        return "NO MINVALUE"
    return f"MINVALUE {sequence.min_val}"


def print_create_sequence_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    sequences: SequenceOf[Sequence],
    relation_metadata: MetadataMap,
) -> None:
    """Write CREATE SEQUENCE, the setval() call and metadata for each sequence.

    ``START WITH`` is only written for a sequence that was never advanced
    (``is_called`` false).  MAXVALUE/MINVALUE equal to the defaults for the
    increment's sign are written as NO MAXVALUE/NO MINVALUE.
    """
    for sequence in sequences:
        start = metadata_file.byte_count
        fqn = sequence.fqn()

        lines = [f"\n\nCREATE SEQUENCE {fqn}"]
        if not sequence.is_called:
            lines.append(f"\tSTART WITH {sequence.last_val}")
        lines.append(f"\tINCREMENT BY {sequence.increment}")
        lines.append(f"\t{_max_value_clause(sequence)}")
        lines.append(f"\t{_min_value_clause(sequence)}")
        lines.append(f"\tCACHE {sequence.cache_val}")
        if sequence.is_cycled:
            lines.append("\tCYCLE")
        metadata_file.write("\n".join(lines) + ";")

        is_called = "true" if sequence.is_called else "false"
        metadata_file.write(
            f"\n\nSELECT pg_catalog.setval('{escape_single_quotes(fqn)}', "
            f"{sequence.last_val}, {is_called});\n"
        )

        obj_metadata = relation_metadata.get(sequence.relation.oid, ObjectMetadata())
        print_object_metadata(metadata_file, obj_metadata, fqn, "SEQUENCE")
        toc.add_predata_entry(
            sequence.relation.schema_name, sequence.relation.name, "SEQUENCE", "", start, metadata_file
        )


def print_alter_sequence_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    sequences: SequenceOf[Sequence],
    column_owners: dict[str, str],
    tables: SequenceOf[Relation] | None = None,
) -> None:
    """Write ``ALTER SEQUENCE ... OWNED BY <table>.<column>;`` for owned sequences.

    Args:
        metadata_file: Output buffer.
        toc: Table of contents.
        sequences: Sequences in the backup.
        column_owners: Sequence FQN -> ``schema.table.column`` owning it.
        tables: Tables in the backup.  When given, sequences owned by a
            table outside this list are skipped.
    """
    table_names = {table.fqn() for table in tables} if tables is not None else None
    for sequence in sequences:
        owner_column = column_owners.get(sequence.fqn())
        if not owner_column:
            continue
        if table_names is not None and _owning_table(owner_column) not in table_names:
            continue

        start = metadata_file.byte_count
        metadata_file.write(f"\n\nALTER SEQUENCE {sequence.fqn()} OWNED BY {owner_column};\n")
        toc.add_predata_entry(
            sequence.relation.schema_name,
            sequence.relation.name,
            "SEQUENCE OWNER",
            "",
            start,
            metadata_file,
        )
