"""Tests for the metadata buffer and table of contents."""

import io
import json
from pathlib import Path

import pytest

from ddl_backup.ddl.output import TOC, MetadataFile, TOCEntry


class TestMetadataFile:
    """Byte counting of written text."""

    def test_counts_utf8_bytes(self) -> None:
        """byte_count counts encoded bytes, not characters."""
        metadata_file = MetadataFile()
        metadata_file.write("abc")
        metadata_file.write("é")
        assert metadata_file.byte_count == 5
        assert metadata_file.getvalue() == "abcé"

    def test_writeln(self) -> None:
        """writeln appends a newline."""
        metadata_file = MetadataFile()
        metadata_file.writeln("SELECT 1;")
        assert metadata_file.getvalue() == "SELECT 1;\n"

    def test_external_stream(self) -> None:
        """Text goes to a caller-supplied stream; getvalue() is unavailable for non-StringIO."""
        stream = io.BytesIO()
        wrapper = io.TextIOWrapper(stream, encoding="utf-8")
        metadata_file = MetadataFile(wrapper)
        metadata_file.write("x")
        wrapper.flush()

        assert stream.getvalue() == b"x"
        with pytest.raises(TypeError):
            metadata_file.getvalue()


class TestTOC:
    """Entries, slicing and serialization."""

    def test_add_predata_entry_records_range(self) -> None:
        """An entry spans from start_byte to the current end of the file."""
        metadata_file = MetadataFile()
        toc = TOC()
        metadata_file.write("\n\nCREATE SCHEMA s;\n")
        start = metadata_file.byte_count
        metadata_file.write("\n\nCREATE TABLE s.t ();\n")

        entry = toc.add_predata_entry("s", "t", "TABLE", "", start, metadata_file)

        assert entry == TOCEntry(
            schema="s", name="t", object_type="TABLE", start_byte=19, end_byte=42
        )
        assert toc.predata_entries == [entry]

    def test_statements_slices_by_bytes(self) -> None:
        """statements() yields exactly each entry's text, even after multi-byte output."""
        metadata_file = MetadataFile()
        toc = TOC()
        start = metadata_file.byte_count
        metadata_file.write("\n\nCOMMENT ON SCHEMA s IS 'café';\n")
        toc.add_predata_entry("s", "s", "SCHEMA", "", start, metadata_file)
        start = metadata_file.byte_count
        metadata_file.write("\n\nCREATE SCHEMA t;\n")
        toc.add_predata_entry("t", "t", "SCHEMA", "", start, metadata_file)

        pieces = [sql.strip() for sql, _ in toc.statements(metadata_file.getvalue())]

        assert pieces == ["COMMENT ON SCHEMA s IS 'café';", "CREATE SCHEMA t;"]

    def test_write_json(self, tmp_path: Path) -> None:
        """The TOC is written as JSON using the ``schema`` key."""
        toc = TOC(predata_entries=[TOCEntry(schema="s", name="t", object_type="TABLE")])
        path = tmp_path / "toc.json"

        toc.write(path)

        data = json.loads(path.read_text())
        assert data["predata_entries"][0]["schema"] == "s"
        assert TOC.model_validate_json(path.read_text()) == toc
