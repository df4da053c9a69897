"""Render the resolved function/type/table order.

``sort_functions_and_types_and_tables`` returns a mixed list; this module
sends each element to its renderer with the metadata map for its kind.
Oids are only unique per catalog table, so the maps stay separate.

Usage:
    from ddl_backup.ddl.dependent import DependentObjectMetadata, print_dependent_objects

    ordered = sort_functions_and_types_and_tables(functions, types, tables)
    metadata = DependentObjectMetadata(functions=func_md, types=type_md, relations=rel_md)
    print_dependent_objects(metadata_file, toc, ordered, metadata, table_defs, domain_constraints)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ddl_backup.ddl.functions import print_create_function_statement
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.ddl.tables import print_create_table_statement
from ddl_backup.ddl.types import print_create_shell_type_statement, print_create_type_statement
from ddl_backup.schema.dependencies import ShellType
from ddl_backup.schema.models import (
    Constraint,
    Function,
    MetadataMap,
    ObjectMetadata,
    Relation,
    TableDefinition,
    Type,
)

logger = logging.getLogger(__name__)


@dataclass
class DependentObjectMetadata:
    """Metadata maps for the three kinds of dependency-ordered objects."""

    functions: MetadataMap = field(default_factory=dict)
    types: MetadataMap = field(default_factory=dict)
    relations: MetadataMap = field(default_factory=dict)


def print_dependent_objects(
    metadata_file: MetadataFile,
    toc: TOC,
    sorted_objects: Sequence,
    metadata: DependentObjectMetadata,
    table_defs: dict[int, TableDefinition],
    domain_constraints: Sequence[Constraint] = (),
) -> None:
    """Write CREATE statements for an already ordered mix of objects.

    Args:
        metadata_file: Output buffer.
        toc: Table of contents.
        sorted_objects: Output of the dependency resolver (functions, types,
            relations and ``ShellType`` placeholders).
        metadata: Metadata maps per object kind.
        table_defs: Table definitions keyed by relation oid.
        domain_constraints: Constraints to inline into CREATE DOMAIN.

    Raises:
        TypeError: If an element is not a renderable object.
    """
    for obj in sorted_objects:
        if isinstance(obj, ShellType):
            print_create_shell_type_statement(metadata_file, toc, obj.type)
        elif isinstance(obj, Type):
            print_create_type_statement(
                metadata_file, toc, obj, metadata.types, domain_constraints
            )
        elif isinstance(obj, Function):
            print_create_function_statement(metadata_file, toc, obj, metadata.functions)
        elif isinstance(obj, Relation):
            table_def = table_defs.get(obj.oid)
            if table_def is None:
                logger.warning("No table definition found for %s, writing empty table", obj.fqn())
                table_def = TableDefinition()
            print_create_table_statement(
                metadata_file,
                toc,
                obj,
                table_def,
                metadata.relations.get(obj.oid, ObjectMetadata()),
            )
        else:
            raise TypeError(f"Cannot render object of type {type(obj).__name__}")
