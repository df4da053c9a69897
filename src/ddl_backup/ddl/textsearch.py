"""Text search parser, template, dictionary and configuration rendering.

Option lists use a fixed keyword order.  Configuration mappings are
written one ALTER per token, tokens sorted, dictionaries in stored order.

Usage:
    from ddl_backup.ddl.textsearch import print_create_text_search_parser_statements

    print_create_text_search_parser_statements(metadata_file, toc, parsers, parser_comments)
"""

from collections.abc import Sequence

from ddl_backup.ddl.metadata import print_object_metadata
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import (
    MetadataMap,
    ObjectMetadata,
    TextSearchConfiguration,
    TextSearchDictionary,
    TextSearchParser,
    TextSearchTemplate,
)


def _print_options(metadata_file: MetadataFile, object_type: str, fqn: str, options: list[str]) -> None:
    metadata_file.write(f"\n\nCREATE {object_type} {fqn} (\n\t" + ",\n\t".join(options) + "\n);")


def print_create_text_search_parser_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    parsers: Sequence[TextSearchParser],
    parser_metadata: MetadataMap,
) -> None:
    for parser in parsers:
        start = metadata_file.byte_count
        options = [
            f"START = {parser.start_func}",
            f"GETTOKEN = {parser.token_func}",
            f"END = {parser.end_func}",
            f"LEXTYPES = {parser.lex_types_func}",
        ]
        if parser.headline_func:
            options.append(f"HEADLINE = {parser.headline_func}")
        _print_options(metadata_file, "TEXT SEARCH PARSER", parser.fqn(), options)
        print_object_metadata(
            metadata_file,
            parser_metadata.get(parser.oid, ObjectMetadata()),
            parser.fqn(),
            "TEXT SEARCH PARSER",
        )
        toc.add_predata_entry(
            parser.schema_name, parser.name, "TEXT SEARCH PARSER", "", start, metadata_file
        )


def print_create_text_search_template_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    templates: Sequence[TextSearchTemplate],
    template_metadata: MetadataMap,
) -> None:
    for template in templates:
        start = metadata_file.byte_count
        options = []
        if template.init_func:
            options.append(f"INIT = {template.init_func}")
        options.append(f"LEXIZE = {template.lexize_func}")
        _print_options(metadata_file, "TEXT SEARCH TEMPLATE", template.fqn(), options)
        print_object_metadata(
            metadata_file,
            template_metadata.get(template.oid, ObjectMetadata()),
            template.fqn(),
            "TEXT SEARCH TEMPLATE",
        )
        toc.add_predata_entry(
            template.schema_name, template.name, "TEXT SEARCH TEMPLATE", "", start, metadata_file
        )


def print_create_text_search_dictionary_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    dictionaries: Sequence[TextSearchDictionary],
    dictionary_metadata: MetadataMap,
) -> None:
    """Write CREATE TEXT SEARCH DICTIONARY; ``init_option`` is copied verbatim."""
    for dictionary in dictionaries:
        start = metadata_file.byte_count
        options = [f"TEMPLATE = {dictionary.template}"]
        if dictionary.init_option:
            options.append(dictionary.init_option)
        _print_options(metadata_file, "TEXT SEARCH DICTIONARY", dictionary.fqn(), options)
        print_object_metadata(
            metadata_file,
            dictionary_metadata.get(dictionary.oid, ObjectMetadata()),
            dictionary.fqn(),
            "TEXT SEARCH DICTIONARY",
        )
        toc.add_predata_entry(
            dictionary.schema_name,
            dictionary.name,
            "TEXT SEARCH DICTIONARY",
            "",
            start,
            metadata_file,
        )


def print_create_text_search_configuration_statements(
    metadata_file: MetadataFile,
    toc: TOC,
    configurations: Sequence[TextSearchConfiguration],
    configuration_metadata: MetadataMap,
) -> None:
    """Write CREATE TEXT SEARCH CONFIGURATION and one ADD MAPPING per token."""
    for configuration in configurations:
        start = metadata_file.byte_count
        fqn = configuration.fqn()
        _print_options(
            metadata_file, "TEXT SEARCH CONFIGURATION", fqn, [f"PARSER = {configuration.parser}"]
        )
        for token in sorted(configuration.token_to_dicts):
            dictionaries = ", ".join(configuration.token_to_dicts[token])
            metadata_file.write(
                f"\n\nALTER TEXT SEARCH CONFIGURATION {fqn}\n"
                f'\tADD MAPPING FOR "{token}" WITH {dictionaries};'
            )
        print_object_metadata(
            metadata_file,
            configuration_metadata.get(configuration.oid, ObjectMetadata()),
            fqn,
            "TEXT SEARCH CONFIGURATION",
        )
        toc.add_predata_entry(
            configuration.schema_name,
            configuration.name,
            "TEXT SEARCH CONFIGURATION",
            "",
            start,
            metadata_file,
        )
