"""Tests for CREATE SCHEMA rendering."""

from ddl_backup.ddl.schemas import print_create_schema_statements
from ddl_backup.schema.models import ObjectMetadata, Schema


class TestCreateSchema:
    """CREATE SCHEMA and schema metadata."""

    def test_create(self, metadata_file, toc, hunks) -> None:
        """A schema is created by name."""
        print_create_schema_statements(metadata_file, toc, [Schema(oid=1, name="schemaname")], {})
        assert hunks() == ["CREATE SCHEMA schemaname;"]
        assert toc.predata_entries[0].object_type == "SCHEMA"

    def test_public_only_gets_metadata(self, metadata_file, toc, hunks) -> None:
        """public already exists, so only its metadata is written."""
        print_create_schema_statements(
            metadata_file,
            toc,
            [Schema(oid=2200, name="public")],
            {2200: ObjectMetadata(comment="standard public schema")},
        )
        assert hunks() == ["COMMENT ON SCHEMA public IS 'standard public schema';"]

    def test_public_without_metadata_has_no_entry(self, metadata_file, toc) -> None:
        """Nothing written means no TOC entry."""
        print_create_schema_statements(metadata_file, toc, [Schema(oid=2200, name="public")], {})
        assert toc.predata_entries == []

    def test_metadata(self, metadata_file, toc, hunks, default_metadata) -> None:
        """Owner and USAGE/CREATE grants follow the CREATE."""
        print_create_schema_statements(
            metadata_file, toc, [Schema(oid=1, name="schemaname")], {1: default_metadata("SCHEMA")}
        )
        assert hunks() == [
            "CREATE SCHEMA schemaname;\n\n\n"
            "COMMENT ON SCHEMA schemaname IS 'This is a schema comment.';\n\n\n"
            "ALTER SCHEMA schemaname OWNER TO testrole;\n\n\n"
            "REVOKE ALL ON SCHEMA schemaname FROM PUBLIC;\n"
            "REVOKE ALL ON SCHEMA schemaname FROM testrole;\n"
            "GRANT ALL ON SCHEMA schemaname TO testrole;"
        ]
