"""DDL renderers: CREATE/ALTER statements plus comments, owners and privileges.

Every renderer writes into a ``MetadataFile`` and appends one ``TOCEntry``
per object.

Usage:
    >>> from ddl_backup.ddl import TOC, MetadataFile
    >>> from ddl_backup.ddl.tables import print_create_table_statement
"""

from ddl_backup.ddl.metadata import print_object_metadata
from ddl_backup.ddl.output import TOC, MetadataFile, TOCEntry

__all__ = ["MetadataFile", "TOC", "TOCEntry", "print_object_metadata"]
