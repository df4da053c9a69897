"""Shared fixtures for ddl-backup tests.

Renderer tests write into an in-memory ``MetadataFile`` and then slice the
buffer by TOC byte ranges, so every assertion is made against exactly the
text one object produced.
"""

from collections.abc import Callable

import pytest

from ddl_backup.ddl.metadata import ALL_PRIVILEGES
from ddl_backup.ddl.output import TOC, MetadataFile
from ddl_backup.schema.models import ACL, ObjectMetadata


@pytest.fixture
def metadata_file() -> MetadataFile:
    """Empty in-memory metadata buffer."""
    return MetadataFile()


@pytest.fixture
def toc() -> TOC:
    """Empty table of contents."""
    return TOC()


@pytest.fixture
def hunks(metadata_file: MetadataFile, toc: TOC) -> Callable[[], list[str]]:
    """Return a function that slices the buffer into stripped per-entry statements."""

    def _hunks() -> list[str]:
        return [sql.strip() for sql, _ in toc.statements(metadata_file.getvalue())]

    return _hunks


@pytest.fixture
def default_metadata() -> Callable[..., ObjectMetadata]:
    """Return a builder for fully populated metadata of an object type.

    Owner ``testrole``, comment ``This is a <type> comment.`` and, when
    ``privileges`` is true, an ACL granting ``testrole`` every privilege
    in the type's ALL set.
    """

    def _default_metadata(
        object_type: str, privileges: bool = True, owner: bool = True, comment: bool = True
    ) -> ObjectMetadata:
        acl = []
        if privileges:
            acl = [ACL(grantee="testrole", **{name: True for name in ALL_PRIVILEGES[object_type]})]
        return ObjectMetadata(
            privileges=acl,
            owner="testrole" if owner else "",
            comment=f"This is a {object_type.lower()} comment." if comment else "",
        )

    return _default_metadata
