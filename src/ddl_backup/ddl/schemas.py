"""CREATE SCHEMA rendering."""

from collections.abc import Sequence

from ddl_backup.ddl.metadata import print_object_metadata
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import MetadataMap, ObjectMetadata, Schema


def print_create_schema_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    schemas: Sequence[Schema],
    schema_metadata: MetadataMap,
) -> None:
    """Write CREATE SCHEMA and schema metadata.

    ``public`` always exists on the target, so only its metadata is written.
    Schemas that produce no output get no TOC entry.
    """
    for schema in schemas:
        start = metadata_file.byte_count
        if schema.name != "public":
            metadata_file.write(f"\n\nCREATE SCHEMA {schema.name};\n")
        print_object_metadata(
            metadata_file, schema_metadata.get(schema.oid, ObjectMetadata()), schema.name, "SCHEMA"
        )
        if metadata_file.byte_count > start:
            toc.add_predata_entry(schema.name, schema.name, "SCHEMA", "", start, metadata_file)
