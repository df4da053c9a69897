"""ALTER TABLE ... ADD CONSTRAINT rendering."""

from collections.abc import Sequence

from ddl_backup.ddl.metadata import comment_statement, print_statements
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import Constraint, MetadataMap, ObjectMetadata

FOREIGN_KEY = "f"


def print_constraint_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    constraints: Sequence[Constraint],
    con_metadata: MetadataMap,
) -> None:
    """Write one ADD CONSTRAINT per table constraint, foreign keys last.

    Foreign keys need the referenced primary/unique keys to exist, so they
    follow every other constraint; input order is kept within each group.
    Domain constraints are skipped because CREATE DOMAIN already includes them.
    ``ONLY`` is left out for partition parents so the constraint reaches
    every partition.
    """
    table_constraints = [con for con in constraints if not con.is_domain_constraint]
    ordered = [con for con in table_constraints if con.con_type != FOREIGN_KEY] + [
        con for con in table_constraints if con.con_type == FOREIGN_KEY
    ]

    for constraint in ordered:
        start = metadata_file.byte_count
        only = "" if constraint.is_partition_parent else "ONLY "
        metadata_file.write(
            f"\n\nALTER TABLE {only}{constraint.owning_object} "
            f"ADD CONSTRAINT {constraint.name} {constraint.con_def};\n"
        )
        obj_metadata = con_metadata.get(constraint.oid, ObjectMetadata())
        print_statements(
            metadata_file,
            [comment_statement(obj_metadata, constraint.name, "CONSTRAINT", constraint.owning_object)],
        )
        toc.add_predata_entry(
            constraint.schema_name,
            constraint.name,
            "CONSTRAINT",
            constraint.owning_object,
            start,
            metadata_file,
        )
