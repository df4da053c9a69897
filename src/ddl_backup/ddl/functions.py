"""CREATE FUNCTION rendering."""

from ddl_backup.ddl.metadata import print_object_metadata
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import Function, MetadataMap, ObjectMetadata, make_fqn

_VOLATILITY = {"i": " IMMUTABLE", "s": " STABLE"}
_DATA_ACCESS = {"n": " NO SQL", "r": " READS SQL DATA", "m": " MODIFIES SQL DATA"}
_EXEC_LOCATION = {
    "m": " EXECUTE ON MASTER",
    "c": " EXECUTE ON COORDINATOR",
    "s": " EXECUTE ON ALL SEGMENTS",
    "i": " EXECUTE ON INITPLAN",
}
DEFAULT_ROWS = 1000


def dollar_quote_string(literal: str) -> str:
    """Wrap ``literal`` in the shortest of ``$$``, ``$_$``, ``$_X$``, ... not found in it.

    Example:
        >>> dollar_quote_string("SELECT $$x$$")
        '$_$SELECT $$x$$$_$'
    """
    tag = ""
    candidate = "$$"
    while candidate in literal:
        tag = "_" if not tag else tag + "X"
        candidate = f"${tag}$"
    return f"{candidate}{literal}{candidate}"


def _number(value: float) -> str:
    return f"{value:g}"


def function_modifiers(function: Function) -> str:
    """Render attributes that follow ``LANGUAGE <lang>``; defaults are omitted."""
    modifiers = ""
    if function.is_window:
        modifiers += " WINDOW"
    modifiers += _VOLATILITY.get(function.volatility, "")
    if function.is_strict:
        modifiers += " STRICT"
    if function.is_security_definer:
        modifiers += " SECURITY DEFINER"
    modifiers += _DATA_ACCESS.get(function.data_access, "")

    default_cost = 1 if function.language in ("c", "internal") else 100
    if function.cost and function.cost != default_cost:
        modifiers += f" COST {_number(function.cost)}"
    if function.returns_set and function.num_rows and function.num_rows != DEFAULT_ROWS:
        modifiers += f" ROWS {_number(function.num_rows)}"
    modifiers += _EXEC_LOCATION.get(function.exec_location, "")
    if function.config:
        modifiers += f"\n{function.config}"
    return modifiers


def print_create_function_statement(
    metadata_file: MetadataFile, toc: TOC, function: Function, function_metadata: MetadataMap
) -> None:
    """Write CREATE FUNCTION and its metadata.

    C functions are written as ``'<library>', '<symbol>'``; everything else
    gets a dollar-quoted body.
    """
    start = metadata_file.byte_count
    result_type = function.result_type
    if function.returns_set and not result_type.upper().startswith("SETOF "):
        result_type = f"SETOF {result_type}"

    metadata_file.write(
        f"\n\nCREATE FUNCTION {make_fqn(function.schema_name, function.name)}"
        f"({function.arguments}) RETURNS {result_type} AS"
    )
    if function.bin_path:
        metadata_file.write(f"\n'{function.bin_path}', '{function.function_body}'\n")
    else:
        metadata_file.write(f"\n{dollar_quote_string(function.function_body)}\n")
    metadata_file.write(f"LANGUAGE {function.language}{function_modifiers(function)};\n")

    print_object_metadata(
        metadata_file,
        function_metadata.get(function.oid, ObjectMetadata()),
        function.fqn(),
        "FUNCTION",
    )
    toc.add_predata_entry(
        function.schema_name,
        f"{function.name}({function.ident_args})",
        "FUNCTION",
        "",
        start,
        metadata_file,
    )
