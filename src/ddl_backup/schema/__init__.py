"""Catalog models, metadata queries, partition classification, and dependency ordering.

Provides the catalog entity models, ACL parsing (``parse_acl``,
``construct_metadata_map``), live catalog queries (``CatalogIntrospector``),
the partition classifier (``classify_relations``) and the dependency
resolver (``topological_sort``).

Usage:
    >>> from ddl_backup.schema import classify_relations, sort_functions_and_types_and_tables
    >>> from ddl_backup.schema.models import Relation, TableDefinition
"""

from ddl_backup.schema.acl import (
    construct_column_privileges_map,
    construct_comments_map,
    construct_metadata_map,
    parse_acl,
)
from ddl_backup.schema.dependencies import (
    DependencyCycleError,
    ShellType,
    sort_functions_and_types_and_tables,
    sort_views,
    topological_sort,
)
from ddl_backup.schema.introspector import CatalogIntrospector, MetadataQueryParams
from ddl_backup.schema.partition import (
    IdentifierLengthError,
    append_ext_part_suffix,
    classify_relations,
    expand_include_relations,
)

__all__ = [
    # ACL
    "parse_acl",
    "construct_metadata_map",
    "construct_comments_map",
    "construct_column_privileges_map",
    # Dependencies
    "DependencyCycleError",
    "ShellType",
    "topological_sort",
    "sort_functions_and_types_and_tables",
    "sort_views",
    # Introspector
    "CatalogIntrospector",
    "MetadataQueryParams",
    # Partitions
    "IdentifierLengthError",
    "append_ext_part_suffix",
    "classify_relations",
    "expand_include_relations",
]
