"""Predata backup flow: write every object's DDL in restorable order.

Each ``backup_*`` step renders one object family into the metadata file
and records its count; ``backup_predata`` runs them in the order a
restore must replay them.

Usage:
    from ddl_backup.backup.predata import backup_predata
    from ddl_backup.ddl.output import TOC, MetadataFile

    metadata_file, toc = MetadataFile(), TOC()
    result = backup_predata(snapshot, config.backup, metadata_file, toc)
    toc.write("toc.json")
"""

import logging

from ddl_backup.backup.models import BackupResult, CatalogSnapshot
from ddl_backup.config.models import BackupConfig
from ddl_backup.ddl.constraints import print_constraint_statements
from ddl_backup.ddl.dependent import DependentObjectMetadata, print_dependent_objects
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.ddl.schemas import print_create_schema_statements
from ddl_backup.ddl.sequences import (
    print_alter_sequence_statements,
    print_create_sequence_statements,
)
from ddl_backup.ddl.tables import print_exchange_external_partition_statements
from ddl_backup.ddl.textsearch import (
    print_create_text_search_configuration_statements,
    print_create_text_search_dictionary_statements,
    print_create_text_search_parser_statements,
    print_create_text_search_template_statements,
)
from ddl_backup.ddl.types import (
    print_create_enum_type_statements,
    print_create_shell_type_statements,
)
from ddl_backup.ddl.views import print_create_view_statements
from ddl_backup.schema.dependencies import (
    ShellType,
    sort_functions_and_types_and_tables,
    sort_views,
    topological_sort,
)
from ddl_backup.schema.models import Relation, TableDefinition
from ddl_backup.schema.partition import classify_relations, expand_include_relations

logger = logging.getLogger(__name__)


# ============================================================================
# Table selection
# ============================================================================


def retrieve_and_process_tables(
    snapshot: CatalogSnapshot, config: BackupConfig
) -> tuple[list[Relation], list[Relation], dict[int, TableDefinition]]:
    """Filter the snapshot's relations and split them into metadata and data sets.

    Schema and exclude filters are applied first.  With an include list,
    only relations in the include list's schemas are considered (so
    unnamed partition children stay visible) and the classifier decides
    which of them are reachable from the names the user gave.

    Returns:
        ``(metadata_tables, data_tables, table_defs)``
    """
    logger.info("Gathering list of tables for backup")
    filters = config.filters()
    relations = [rel for rel in snapshot.relations if filters.includes_relation(rel.fqn())]

    expanded = set(expand_include_relations(config.include_relations, relations))
    if expanded:
        relations = [rel for rel in relations if rel.fqn() in expanded]

    table_defs = snapshot.table_definitions()
    metadata_tables, data_tables = classify_relations(
        relations,
        table_defs,
        config.include_relations,
        leaf_partition_data=config.leaf_partition_data,
    )
    return metadata_tables, data_tables, table_defs


# ============================================================================
# Backup steps
# ============================================================================


def backup_schemas(
    snapshot: CatalogSnapshot, config: BackupConfig, metadata_file: MetadataFile, toc: TOC, result: BackupResult
) -> None:
    logger.debug("Writing CREATE SCHEMA statements to metadata file")
    filters = config.filters()
    schemas = [schema for schema in snapshot.schemas if filters.includes_schema(schema.name)]
    result.object_counts["Schemas"] = len(schemas)
    print_create_schema_statements(metadata_file, toc, schemas, snapshot.schema_metadata)


def backup_shell_and_enum_types(
    snapshot: CatalogSnapshot, config: BackupConfig, metadata_file: MetadataFile, toc: TOC, result: BackupResult
) -> None:
    filters = config.filters()
    types = [t for t in snapshot.types if filters.includes_schema(t.schema_name)]

    logger.debug("Writing CREATE TYPE statements for shell types to metadata file")
    shells = [t for t in types if t.type == "p"]
    print_create_shell_type_statements(metadata_file, toc, shells)

    logger.debug("Writing CREATE TYPE statements for enum types to metadata file")
    enums = [t for t in types if t.type == "e"]
    print_create_enum_type_statements(metadata_file, toc, enums, snapshot.type_metadata)
    result.object_counts["Types"] = result.object_counts.get("Types", 0) + len(shells) + len(enums)


def backup_text_search_objects(
    snapshot: CatalogSnapshot, config: BackupConfig, metadata_file: MetadataFile, toc: TOC, result: BackupResult
) -> None:
    filters = config.filters()

    logger.debug("Writing CREATE TEXT SEARCH PARSER statements to metadata file")
    parsers = [p for p in snapshot.text_search_parsers if filters.includes_schema(p.schema_name)]
    result.object_counts["Text Search Parsers"] = len(parsers)
    print_create_text_search_parser_statements(
        metadata_file, toc, parsers, snapshot.text_search_parser_metadata
    )

    logger.debug("Writing CREATE TEXT SEARCH TEMPLATE statements to metadata file")
    templates = [t for t in snapshot.text_search_templates if filters.includes_schema(t.schema_name)]
    result.object_counts["Text Search Templates"] = len(templates)
    print_create_text_search_template_statements(
        metadata_file, toc, templates, snapshot.text_search_template_metadata
    )

    logger.debug("Writing CREATE TEXT SEARCH DICTIONARY statements to metadata file")
    dictionaries = [
        d for d in snapshot.text_search_dictionaries if filters.includes_schema(d.schema_name)
    ]
    result.object_counts["Text Search Dictionaries"] = len(dictionaries)
    print_create_text_search_dictionary_statements(
        metadata_file, toc, dictionaries, snapshot.text_search_dictionary_metadata
    )

    logger.debug("Writing CREATE TEXT SEARCH CONFIGURATION statements to metadata file")
    configurations = [
        c for c in snapshot.text_search_configurations if filters.includes_schema(c.schema_name)
    ]
    result.object_counts["Text Search Configurations"] = len(configurations)
    print_create_text_search_configuration_statements(
        metadata_file, toc, configurations, snapshot.text_search_configuration_metadata
    )


def _sequences_for_backup(snapshot: CatalogSnapshot, config: BackupConfig) -> list:
    filters = config.filters()
    return [seq for seq in snapshot.sequences if filters.includes_relation(seq.fqn())]


def backup_create_sequences(
    snapshot: CatalogSnapshot, config: BackupConfig, metadata_file: MetadataFile, toc: TOC, result: BackupResult
) -> None:
    logger.debug("Writing CREATE SEQUENCE statements to metadata file")
    sequences = _sequences_for_backup(snapshot, config)
    result.object_counts["Sequences"] = len(sequences)
    print_create_sequence_statements(metadata_file, toc, sequences, snapshot.relation_metadata)


def backup_functions_and_types_and_tables(
    snapshot: CatalogSnapshot,
    config: BackupConfig,
    metadata_file: MetadataFile,
    toc: TOC,
    result: BackupResult,
    tables: list[Relation],
    table_defs: dict[int, TableDefinition],
) -> None:
    """Write functions, base/composite/domain types and tables in one dependency order.

    A backup restricted to named relations writes tables only, ordered
    among themselves.
    """
    domain_constraints = [con for con in snapshot.constraints if con.is_domain_constraint]

    if config.include_relations:
        logger.debug("Writing CREATE TABLE statements to metadata file")
        ordered = topological_sort(tables)
    else:
        filters = config.filters()
        functions = [f for f in snapshot.functions if filters.includes_schema(f.schema_name)]
        types = [
            t
            for t in snapshot.types
            if t.type in ("b", "c", "d") and filters.includes_schema(t.schema_name)
        ]
        result.object_counts["Functions"] = len(functions)
        result.object_counts["Types"] = result.object_counts.get("Types", 0) + len(types)

        logger.debug("Writing CREATE FUNCTION statements to metadata file")
        logger.debug(
            "Writing CREATE TYPE statements for base, composite, and domain types to metadata file"
        )
        logger.debug("Writing CREATE TABLE statements to metadata file")
        ordered = sort_functions_and_types_and_tables(functions, types, tables)

    result.shell_types = [obj.fqn() for obj in ordered if isinstance(obj, ShellType)]
    metadata = DependentObjectMetadata(
        functions=snapshot.function_metadata,
        types=snapshot.type_metadata,
        relations=snapshot.relation_metadata,
    )
    print_dependent_objects(metadata_file, toc, ordered, metadata, table_defs, domain_constraints)

    if snapshot.external_partitions:
        logger.debug("Writing EXCHANGE PARTITION statements to metadata file")
        print_exchange_external_partition_statements(
            metadata_file, toc, snapshot.external_partitions, snapshot.partition_info_map, tables
        )


def backup_alter_sequences(
    snapshot: CatalogSnapshot, config: BackupConfig, metadata_file: MetadataFile, toc: TOC, tables: list[Relation]
) -> None:
    logger.debug("Writing ALTER SEQUENCE statements to metadata file")
    print_alter_sequence_statements(
        metadata_file,
        toc,
        _sequences_for_backup(snapshot, config),
        snapshot.sequence_owner_columns,
        tables,
    )


def backup_views(
    snapshot: CatalogSnapshot, config: BackupConfig, metadata_file: MetadataFile, toc: TOC, result: BackupResult
) -> None:
    logger.debug("Writing CREATE VIEW statements to metadata file")
    filters = config.filters()
    views = [view for view in snapshot.views if filters.includes_relation(view.fqn())]
    if config.include_relations:
        views = [view for view in views if view.fqn() in config.include_relations]
    result.object_counts["Views"] = len(views)
    print_create_view_statements(metadata_file, toc, sort_views(views), snapshot.relation_metadata)


def backup_constraints(
    snapshot: CatalogSnapshot, metadata_file: MetadataFile, toc: TOC, result: BackupResult, tables: list[Relation]
) -> None:
    logger.debug("Writing ADD CONSTRAINT statements to metadata file")
    table_names = {table.fqn() for table in tables}
    constraints = [
        con
        for con in snapshot.constraints
        if not con.is_domain_constraint and con.owning_object in table_names
    ]
    result.object_counts["Constraints"] = len(constraints)
    print_constraint_statements(metadata_file, toc, constraints, snapshot.constraint_metadata)


# ============================================================================
# Main entry point
# ============================================================================


def backup_predata(
    snapshot: CatalogSnapshot,
    config: BackupConfig,
    metadata_file: MetadataFile,
    toc: TOC,
) -> BackupResult:
    """Write all predata DDL for a snapshot.

    Order: schemas, shell and enum types, text search objects, sequences,
    functions/types/tables in dependency order, external partition
    exchanges, sequence ownership, views, constraints.

    Args:
        snapshot: Catalog objects to back up.
        config: Filters and partition-data mode.
        metadata_file: Output buffer.
        toc: Table of contents; entries are appended in emission order.

    Returns:
        BackupResult with object counts and the metadata/data table sets

    Raises:
        DependencyCycleError: If functions, types and tables form a cycle
            that no shell type can break.

    Example:
        >>> result = backup_predata(snapshot, BackupConfig(), MetadataFile(), TOC())
        >>> result.object_counts["Tables"]
        12
    """
    result = BackupResult()
    metadata_tables, data_tables, table_defs = retrieve_and_process_tables(snapshot, config)
    result.object_counts["Tables"] = len(metadata_tables)
    result.metadata_tables = [table.fqn() for table in metadata_tables]
    result.data_tables = [table.fqn() for table in data_tables]

    logger.info("Writing pre-data metadata")
    backup_schemas(snapshot, config, metadata_file, toc, result)
    if not config.include_relations:
        backup_shell_and_enum_types(snapshot, config, metadata_file, toc, result)
        backup_text_search_objects(snapshot, config, metadata_file, toc, result)
    backup_create_sequences(snapshot, config, metadata_file, toc, result)
    backup_functions_and_types_and_tables(
        snapshot, config, metadata_file, toc, result, metadata_tables, table_defs
    )
    backup_alter_sequences(snapshot, config, metadata_file, toc, metadata_tables)
    backup_views(snapshot, config, metadata_file, toc, result)
    backup_constraints(snapshot, metadata_file, toc, result, metadata_tables)
    logger.info("Pre-data metadata backup complete")

    return result
