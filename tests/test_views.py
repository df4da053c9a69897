"""Tests for CREATE VIEW rendering."""

from ddl_backup.ddl.views import print_create_view_statements, view_definition
from ddl_backup.schema.models import View


class TestCreateView:
    """CREATE VIEW and its metadata."""

    def test_plain_view(self, metadata_file, toc, hunks) -> None:
        """The stored query follows AS; quoted names are kept."""
        view = View(oid=1, schema="public", name='"WowZa"', definition="SELECT rolname FROM pg_role;")
        print_create_view_statements(metadata_file, toc, [view], {})
        assert hunks() == ['CREATE VIEW public."WowZa" AS SELECT rolname FROM pg_role;']
        assert toc.predata_entries[0].object_type == "VIEW"

    def test_options(self, metadata_file, toc, hunks) -> None:
        """View options are written as a WITH clause."""
        view = View(
            oid=1,
            schema="public",
            name="v",
            options="security_barrier=true",
            definition="SELECT 1;",
        )
        print_create_view_statements(metadata_file, toc, [view], {})
        assert hunks() == ["CREATE VIEW public.v WITH (security_barrier=true) AS SELECT 1;"]

    def test_metadata_without_owner(self, metadata_file, toc, hunks, default_metadata) -> None:
        """Comment and privileges are written; the owner statement is not."""
        view = View(oid=1, schema="shamwow", name="shazam", definition="SELECT count(*) FROM pg_tables;")
        print_create_view_statements(metadata_file, toc, [view], {1: default_metadata("VIEW")})
        assert hunks() == [
            "CREATE VIEW shamwow.shazam AS SELECT count(*) FROM pg_tables;\n\n\n"
            "COMMENT ON VIEW shamwow.shazam IS 'This is a view comment.';\n\n\n"
            "REVOKE ALL ON shamwow.shazam FROM PUBLIC;\n"
            "REVOKE ALL ON shamwow.shazam FROM testrole;\n"
            "GRANT ALL ON shamwow.shazam TO testrole;"
        ]

    def test_order_preserved(self, metadata_file, toc) -> None:
        """Views are written in the order given."""
        views = [
            View(oid=2, schema="public", name="b", definition="SELECT 1;"),
            View(oid=1, schema="public", name="a", definition="SELECT 2;"),
        ]
        print_create_view_statements(metadata_file, toc, views, {})
        assert [entry.name for entry in toc.predata_entries] == ["b", "a"]


class TestViewDefinition:
    """view_definition() termination."""

    def test_adds_semicolon(self) -> None:
        """A definition without a semicolon gets one."""
        assert view_definition(View(name="v", definition=" SELECT 1\n")) == "SELECT 1;"

    def test_keeps_single_semicolon(self) -> None:
        """A terminated definition is left alone."""
        assert view_definition(View(name="v", definition="SELECT 1;")) == "SELECT 1;"
