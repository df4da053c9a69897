"""Metadata output buffer and its table of contents.

Every renderer writes SQL text into a ``MetadataFile`` and records one
``TOCEntry`` per object with the byte range the object occupies.  The
restore side replays entries in order, so the TOC is append-only.

Usage:
    from ddl_backup.ddl.output import TOC, MetadataFile

    metadata_file = MetadataFile()
    toc = TOC()
    start = metadata_file.byte_count
    metadata_file.write("\\n\\nCREATE SCHEMA sales;\\n")
    toc.add_predata_entry("sales", "sales", "SCHEMA", "", start, metadata_file)

    for sql, entry in toc.statements(metadata_file.getvalue()):
        print(entry.object_type, sql.strip())
"""

import io
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

from pydantic import BaseModel, ConfigDict, Field


class MetadataFile:
    """Text sink that counts the UTF-8 bytes written to it."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream if stream is not None else io.StringIO()
        self.byte_count = 0

    def write(self, text: str) -> None:
        self._stream.write(text)
        self.byte_count += len(text.encode("utf-8"))

    def writeln(self, text: str = "") -> None:
        self.write(text + "\n")

    def getvalue(self) -> str:
        """Return everything written so far (in-memory streams only)."""
        if not isinstance(self._stream, io.StringIO):
            raise TypeError("getvalue() is only available for in-memory metadata files")
        return self._stream.getvalue()


class TOCEntry(BaseModel):
    """One object's position in the metadata file.

    Attributes:
        schema_name: Schema of the object (alias ``schema``).
        name: Object name as it appears in the DDL.
        object_type: Kind tag, e.g. ``TABLE`` or ``SEQUENCE OWNER``.
        reference_object: Owning object for dependent entries such as
            constraints, otherwise empty.
        start_byte: Offset of the first byte of the object's statements.
        end_byte: Offset just past its last byte.
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_name: str = Field(default="", alias="schema")
    name: str
    object_type: str
    reference_object: str = ""
    start_byte: int = 0
    end_byte: int = 0


class TOC(BaseModel):
    """Ordered predata table of contents."""

    predata_entries: list[TOCEntry] = Field(default_factory=list)

    def add_predata_entry(
        self,
        schema: str,
        name: str,
        object_type: str,
        reference_object: str,
        start_byte: int,
        metadata_file: MetadataFile,
    ) -> TOCEntry:
        """Record an object that spans from ``start_byte`` to the current end of the file."""
        entry = TOCEntry(
            schema=schema,
            name=name,
            object_type=object_type,
            reference_object=reference_object,
            start_byte=start_byte,
            end_byte=metadata_file.byte_count,
        )
        self.predata_entries.append(entry)
        return entry

    def statements(self, contents: str | bytes) -> Iterator[tuple[str, TOCEntry]]:
        """Yield ``(sql_text, entry)`` pairs by slicing ``contents`` on entry byte ranges."""
        data = contents.encode("utf-8") if isinstance(contents, str) else contents
        for entry in self.predata_entries:
            yield data[entry.start_byte:entry.end_byte].decode("utf-8"), entry

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    def write(self, path: str | Path) -> None:
        """Write the TOC as JSON to ``path``."""
        Path(path).write_text(self.to_json() + "\n")
