"""CREATE TYPE / CREATE DOMAIN rendering.

Covers shell, base, composite, domain and enum types.  A shell type is
also how the dependency resolver forward-declares a type caught in a
cycle; the full definition then comes later in the same file.

Usage:
    from ddl_backup.ddl.types import print_create_type_statement

    print_create_type_statement(metadata_file, toc, type_, type_metadata, domain_constraints)
"""

from collections.abc import Sequence

from ddl_backup.ddl.metadata import escape_single_quotes, print_object_metadata, print_statements
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import Constraint, MetadataMap, ObjectMetadata, Type

_ALIGNMENTS = {"c": "char", "s": "int2", "i": "int4", "d": "double"}
_STORAGE = {"p": "plain", "e": "external", "m": "main", "x": "extended"}


def print_create_shell_type_statement(metadata_file: MetadataFile, toc: TOC, type_: Type) -> None:
    """Write ``CREATE TYPE <fqn>;`` with no body."""
    start = metadata_file.byte_count
    metadata_file.write(f"\n\nCREATE TYPE {type_.fqn()};\n")
    toc.add_predata_entry(type_.schema_name, type_.name, "TYPE", "", start, metadata_file)


def print_create_shell_type_statements(
    metadata_file: MetadataFile, toc: TOC, types: Sequence[Type]
) -> None:
    """Write shell declarations for the catalog's own shell types (typtype ``p``)."""
    for type_ in types:
        if type_.type == "p":
            print_create_shell_type_statement(metadata_file, toc, type_)


def _base_type_options(base: Type) -> list[str]:
    options = [f"INPUT = {base.input}", f"OUTPUT = {base.output}"]
    if base.receive:
        options.append(f"RECEIVE = {base.receive}")
    if base.send:
        options.append(f"SEND = {base.send}")
    if base.mod_in:
        options.append(f"TYPMOD_IN = {base.mod_in}")
    if base.mod_out:
        options.append(f"TYPMOD_OUT = {base.mod_out}")
    if base.internal_length > 0:
        options.append(f"INTERNALLENGTH = {base.internal_length}")
    if base.is_passed_by_value:
        options.append("PASSEDBYVALUE")
    if base.alignment:
        options.append(f"ALIGNMENT = {_ALIGNMENTS.get(base.alignment, base.alignment)}")
    if base.storage:
        options.append(f"STORAGE = {_STORAGE.get(base.storage, base.storage)}")
    if base.default_val:
        options.append(f"DEFAULT = '{escape_single_quotes(base.default_val)}'")
    if base.element:
        options.append(f"ELEMENT = {base.element}")
    if base.delimiter and base.delimiter != ",":
        options.append(f"DELIMITER = '{escape_single_quotes(base.delimiter)}'")
    if base.category and base.category != "U":
        options.append(f"CATEGORY = '{base.category}'")
    if base.preferred:
        options.append("PREFERRED = true")
    if base.collatable:
        options.append("COLLATABLE = true")
    return options


def print_create_base_type_statement(
    metadata_file: MetadataFile, toc: TOC, base: Type, type_metadata: MetadataMap
) -> None:
    """Write a base type's CREATE TYPE with its I/O functions and storage properties."""
    start = metadata_file.byte_count
    fqn = base.fqn()
    metadata_file.write(
        f"\n\nCREATE TYPE {fqn} (\n\t" + ",\n\t".join(_base_type_options(base)) + "\n);\n"
    )
    if base.storage_options:
        metadata_file.write(
            f"\nALTER TYPE {fqn}\n\tSET DEFAULT ENCODING ({base.storage_options});\n"
        )
    print_object_metadata(metadata_file, type_metadata.get(base.oid, ObjectMetadata()), fqn, "TYPE")
    toc.add_predata_entry(base.schema_name, base.name, "TYPE", "", start, metadata_file)


def print_create_composite_type_statement(
    metadata_file: MetadataFile, toc: TOC, composite: Type, type_metadata: MetadataMap
) -> None:
    """Write ``CREATE TYPE <fqn> AS (...)`` and any attribute comments."""
    start = metadata_file.byte_count
    fqn = composite.fqn()
    attributes = []
    for attribute in composite.attributes:
        line = f"{attribute.name} {attribute.type}"
        if attribute.collation:
            line += f" COLLATE {attribute.collation}"
        attributes.append(line)
    metadata_file.write(f"\n\nCREATE TYPE {fqn} AS (\n\t" + ",\n\t".join(attributes) + "\n);\n")

    print_object_metadata(
        metadata_file, type_metadata.get(composite.oid, ObjectMetadata()), fqn, "TYPE"
    )
    print_statements(
        metadata_file,
        [
            f"COMMENT ON COLUMN {fqn}.{attribute.name} IS '{escape_single_quotes(attribute.comment)}';"
            for attribute in composite.attributes
            if attribute.comment
        ],
    )
    toc.add_predata_entry(composite.schema_name, composite.name, "TYPE", "", start, metadata_file)


def print_create_domain_statement(
    metadata_file: MetadataFile,
    toc: TOC,
    domain: Type,
    type_metadata: MetadataMap,
    constraints: Sequence[Constraint],
) -> None:
    """Write CREATE DOMAIN with its CHECK constraints inline.

    Args:
        constraints: Domain constraints; only those owned by this domain
            are written.
    """
    start = metadata_file.byte_count
    fqn = domain.fqn()
    statement = f"\n\nCREATE DOMAIN {fqn} AS {domain.base_type}"
    if domain.default_val:
        statement += f" DEFAULT {domain.default_val}"
    if domain.collation:
        statement += f" COLLATE {domain.collation}"
    if domain.not_null:
        statement += " NOT NULL"
    for constraint in constraints:
        if constraint.owning_object == fqn:
            statement += f"\n\tCONSTRAINT {constraint.name} {constraint.con_def}"
    metadata_file.write(statement + ";\n")

    print_object_metadata(metadata_file, type_metadata.get(domain.oid, ObjectMetadata()), fqn, "DOMAIN")
    toc.add_predata_entry(domain.schema_name, domain.name, "DOMAIN", "", start, metadata_file)


def print_create_enum_type_statements(
    metadata_file: MetadataFile, toc: TOC, enums: Sequence[Type], type_metadata: MetadataMap
) -> None:
    for enum in enums:
        start = metadata_file.byte_count
        fqn = enum.fqn()
        labels = ",\n\t".join(f"'{escape_single_quotes(label)}'" for label in enum.enum_labels)
        metadata_file.write(f"\n\nCREATE TYPE {fqn} AS ENUM (\n\t{labels}\n);\n")
        print_object_metadata(metadata_file, type_metadata.get(enum.oid, ObjectMetadata()), fqn, "TYPE")
        toc.add_predata_entry(enum.schema_name, enum.name, "TYPE", "", start, metadata_file)


def print_create_type_statement(
    metadata_file: MetadataFile,
    toc: TOC,
    type_: Type,
    type_metadata: MetadataMap,
    domain_constraints: Sequence[Constraint] = (),
) -> None:
    """Dispatch on ``type_.type`` to the matching CREATE TYPE/DOMAIN renderer."""
    if type_.type == "p":
        print_create_shell_type_statement(metadata_file, toc, type_)
    elif type_.type == "b":
        print_create_base_type_statement(metadata_file, toc, type_, type_metadata)
    elif type_.type == "c":
        print_create_composite_type_statement(metadata_file, toc, type_, type_metadata)
    elif type_.type == "d":
        print_create_domain_statement(metadata_file, toc, type_, type_metadata, domain_constraints)
    elif type_.type == "e":
        print_create_enum_type_statements(metadata_file, toc, [type_], type_metadata)
    else:
        raise ValueError(f"Unknown type kind {type_.type!r} for {type_.fqn()}")
