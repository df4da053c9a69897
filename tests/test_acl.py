"""Tests for aclitem parsing and metadata map construction."""

import logging

import pytest

from ddl_backup.schema.acl import (
    construct_column_privileges_map,
    construct_comments_map,
    construct_metadata_map,
    parse_acl,
)
from ddl_backup.schema.models import ACL, ObjectMetadata


class TestParseAcl:
    """parse_acl() decoding of aclitem text."""

    def test_single_privilege(self) -> None:
        """One letter sets one privilege for the grantee."""
        assert parse_acl("gpadmin=a/gpadmin") == ACL(grantee="gpadmin", insert=True)

    def test_public_grantee(self) -> None:
        """An empty grantee means PUBLIC and is kept as ""."""
        assert parse_acl("=r/gpadmin") == ACL(grantee="", select=True)

    def test_all_table_privileges(self) -> None:
        """arwdDxt decodes to every table privilege."""
        acl = parse_acl("testrole=arwdDxt/gpadmin")
        assert acl == ACL(
            grantee="testrole",
            select=True,
            insert=True,
            update=True,
            delete=True,
            truncate=True,
            references=True,
            trigger=True,
        )

    def test_grant_option_replaces_plain_flag(self) -> None:
        """A * turns the preceding privilege into its WITH GRANT OPTION variant."""
        acl = parse_acl("testrole=r*w/gpadmin")
        assert acl.select is False
        assert acl.select_with_grant is True
        assert acl.update is True

    def test_quoted_grantee(self) -> None:
        """Quoted role names are kept verbatim."""
        acl = parse_acl('"my role"=UC/gpadmin')
        assert acl == ACL(grantee='"my role"', usage=True, create=True)

    @pytest.mark.parametrize("text", ["", "not an acl", "gpadmin"])
    def test_invalid_text(self, text: str) -> None:
        """Text that is not an aclitem parses to None."""
        assert parse_acl(text) is None


class TestConstructMetadataMap:
    """construct_metadata_map() grouping of query rows."""

    def test_rows_grouped_by_oid(self) -> None:
        """Several grantee rows of one object become one privilege list."""
        rows = [
            (1, "gpadmin=a/gpadmin", "", "testrole", ""),
            (1, "testrole=a/gpadmin", "", "testrole", ""),
            (2, "", "", "testrole", "This is a metadata comment."),
        ]
        result = construct_metadata_map(rows)

        assert result[1] == ObjectMetadata(
            privileges=[ACL(grantee="gpadmin", insert=True), ACL(grantee="testrole", insert=True)],
            owner="testrole",
        )
        assert result[2] == ObjectMetadata(owner="testrole", comment="This is a metadata comment.")

    def test_default_kind_has_no_privileges(self) -> None:
        """A NULL ACL (Default) produces an empty privilege list."""
        result = construct_metadata_map([(1, None, "Default", "testrole", "")])
        assert result[1].privileges == []

    def test_empty_kind_is_placeholder(self) -> None:
        """An empty ACL array produces one GRANTEE placeholder."""
        result = construct_metadata_map([(1, None, "Empty", "testrole", "")])
        assert result[1].privileges == [ACL(grantee="GRANTEE")]

    def test_null_owner_and_comment(self) -> None:
        """NULL owner/comment columns become empty strings."""
        result = construct_metadata_map([(3, None, "Default", None, None)])
        assert result[3] == ObjectMetadata()

    def test_unparseable_row_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """A privilege string that is not an aclitem is reported, not dropped quietly."""
        rows = [(7, "not-an-acl", "", "testrole", ""), (7, "bob=r/testrole", "", "testrole", "")]
        with caplog.at_level(logging.WARNING, logger="ddl_backup.schema.acl"):
            result = construct_metadata_map(rows)
        assert result[7].privileges == [ACL(grantee="bob", select=True)]
        assert "not-an-acl" in caplog.text
        assert "oid 7" in caplog.text


class TestConstructCommentsMap:
    """construct_comments_map() for comment-only object types."""

    def test_comments(self) -> None:
        """Each row becomes metadata holding only a comment."""
        result = construct_comments_map([(1, "This is a constraint comment.")])
        assert result == {1: ObjectMetadata(comment="This is a constraint comment.")}


class TestConstructColumnPrivilegesMap:
    """construct_column_privileges_map() grouping by table and column."""

    def test_columns_grouped_per_table(self) -> None:
        """Rows are grouped first by table oid, then by column name."""
        rows = [
            (1, "colI", "gpadmin=r/gpadmin", ""),
            (1, "colJ", "testrole=r/gpadmin", ""),
            (2, "colK", "gpadmin=r/gpadmin", ""),
            (2, "colK", "testrole=r/gpadmin", ""),
        ]
        result = construct_column_privileges_map(rows)

        assert result[1]["colI"] == [ACL(grantee="gpadmin", select=True)]
        assert result[1]["colJ"] == [ACL(grantee="testrole", select=True)]
        assert result[2]["colK"] == [
            ACL(grantee="gpadmin", select=True),
            ACL(grantee="testrole", select=True),
        ]

    def test_default_column(self) -> None:
        """A Default column maps to an empty list."""
        result = construct_column_privileges_map([(1, "i", None, "Default")])
        assert result == {1: {"i": []}}

    def test_empty_column_not_duplicated(self) -> None:
        """An Empty column maps to a single placeholder even over several rows."""
        rows = [(1, "i", None, "Empty"), (1, "i", None, "Empty")]
        result = construct_column_privileges_map(rows)
        assert result == {1: {"i": [ACL(grantee="GRANTEE")]}}
