"""Catalog snapshot and backup result models.

A ``CatalogSnapshot`` holds every catalog object the predata pipeline
renders, so a backup can be produced from a JSON file without a live
connection.  Oids are only unique per catalog table, so each object kind
keeps its own metadata map.

Usage:
    from ddl_backup.backup.models import CatalogSnapshot

    snapshot = CatalogSnapshot.model_validate_json(Path("catalog.json").read_text())
    defs = snapshot.table_definitions()
"""

from pydantic import BaseModel, Field

from ddl_backup.schema.models import (
    ACL,
    Constraint,
    Function,
    MetadataMap,
    PartitionInfo,
    Relation,
    Schema,
    Sequence,
    TableDefinition,
    TextSearchConfiguration,
    TextSearchDictionary,
    TextSearchParser,
    TextSearchTemplate,
    Type,
    View,
)


class CatalogSnapshot(BaseModel):
    """Everything read from the catalog for one predata backup."""

    schemas: list[Schema] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)
    table_defs: dict[int, TableDefinition] = Field(default_factory=dict)
    column_privileges: dict[int, dict[str, list[ACL]]] = Field(default_factory=dict)
    sequences: list[Sequence] = Field(default_factory=list)
    sequence_owner_columns: dict[str, str] = Field(default_factory=dict)  # seq fqn -> schema.table.column
    views: list[View] = Field(default_factory=list)
    functions: list[Function] = Field(default_factory=list)
    types: list[Type] = Field(default_factory=list)
    constraints: list[Constraint] = Field(default_factory=list)
    text_search_parsers: list[TextSearchParser] = Field(default_factory=list)
    text_search_templates: list[TextSearchTemplate] = Field(default_factory=list)
    text_search_dictionaries: list[TextSearchDictionary] = Field(default_factory=list)
    text_search_configurations: list[TextSearchConfiguration] = Field(default_factory=list)
    external_partitions: list[PartitionInfo] = Field(default_factory=list)
    partition_info_map: dict[int, PartitionInfo] = Field(default_factory=dict)

    # Metadata maps, one per catalog table
    relation_metadata: MetadataMap = Field(default_factory=dict)
    function_metadata: MetadataMap = Field(default_factory=dict)
    type_metadata: MetadataMap = Field(default_factory=dict)
    schema_metadata: MetadataMap = Field(default_factory=dict)
    constraint_metadata: MetadataMap = Field(default_factory=dict)
    text_search_parser_metadata: MetadataMap = Field(default_factory=dict)
    text_search_template_metadata: MetadataMap = Field(default_factory=dict)
    text_search_dictionary_metadata: MetadataMap = Field(default_factory=dict)
    text_search_configuration_metadata: MetadataMap = Field(default_factory=dict)

    def table_definitions(self) -> dict[int, TableDefinition]:
        """Table definitions with ``column_privileges`` folded into their columns.

        Columns that already carry an ACL keep it.  Returns copies; the
        snapshot itself is unchanged.
        """
        definitions: dict[int, TableDefinition] = {}
        for oid, table_def in self.table_defs.items():
            column_acls = self.column_privileges.get(oid)
            if not column_acls:
                definitions[oid] = table_def
                continue
            columns = [
                column.model_copy(update={"acl": column_acls[column.name]})
                if not column.acl and column.name in column_acls
                else column
                for column in table_def.column_defs
            ]
            definitions[oid] = table_def.model_copy(update={"column_defs": columns})
        return definitions


class BackupResult(BaseModel):
    """Summary of one predata run."""

    object_counts: dict[str, int] = Field(default_factory=dict)
    metadata_tables: list[str] = Field(default_factory=list)
    data_tables: list[str] = Field(default_factory=list)
    shell_types: list[str] = Field(default_factory=list)

    def format_report(self) -> str:
        """Format counts as a human-readable report."""
        lines = ["Predata backup complete:"]
        for name, count in self.object_counts.items():
            lines.append(f"  {name}: {count}")
        if self.shell_types:
            lines.append(f"\n  Shell types emitted to break cycles: {', '.join(self.shell_types)}")
        return "\n".join(lines)
