"""CREATE VIEW rendering."""

from collections.abc import Sequence

from ddl_backup.ddl.metadata import print_object_metadata
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import MetadataMap, ObjectMetadata, View


def view_definition(view: View) -> str:
    """Stored view query, terminated by exactly one semicolon."""
    definition = view.definition.strip()
    if not definition.endswith(";"):
        definition += ";"
    return definition


def print_create_view_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    views: Sequence[View],
    relation_metadata: MetadataMap,
) -> None:
    """Write CREATE VIEW plus comment and privileges for each view, in the given order.

    Views get no owner statement and no column privileges.
    """
    for view in views:
        start = metadata_file.byte_count
        fqn = view.fqn()
        options = f" WITH ({view.options})" if view.options else ""
        metadata_file.write(f"\n\nCREATE VIEW {fqn}{options} AS {view_definition(view)}\n")
        print_object_metadata(
            metadata_file, relation_metadata.get(view.oid, ObjectMetadata()), fqn, "VIEW"
        )
        toc.add_predata_entry(view.schema_name, view.name, "VIEW", "", start, metadata_file)
