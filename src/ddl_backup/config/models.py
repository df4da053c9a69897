"""Pydantic models for backup configuration (backup.toml)."""

from pydantic import BaseModel, Field


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from backup.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class BackupConfig(BaseModel):
    """The ``[backup]`` table: object filters and output locations.

    ``leaf_partition_data`` and the include list are passed on to the
    partition classifier as plain arguments; nothing reads them globally.
    """

    leaf_partition_data: bool = False
    include_relations: list[str] = Field(default_factory=list)
    exclude_relations: list[str] = Field(default_factory=list)
    include_schemas: list[str] = Field(default_factory=list)
    exclude_schemas: list[str] = Field(default_factory=list)
    metadata_file: str = "metadata.sql"
    toc_file: str = "toc.json"

    def filters(self) -> "BackupFilters":
        return BackupFilters(
            include_relations=self.include_relations,
            exclude_relations=self.exclude_relations,
            include_schemas=self.include_schemas,
            exclude_schemas=self.exclude_schemas,
        )


class DdlBackupConfig(BaseModel):
    """Complete configuration from backup.toml."""

    backup: BackupConfig = Field(default_factory=BackupConfig)
    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)


# ============================================================================
# Filters
# ============================================================================


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class BackupFilters(BaseModel):
    """Schema and relation filters derived from ``BackupConfig``.

    Example:
        >>> filters = BackupFilters(exclude_schemas=["scratch"])
        >>> filters.includes_schema("public")
        True
        >>> filters.schema_filter_clause()
        "\\nAND n.nspname NOT IN ('scratch')"
    """

    include_relations: list[str] = Field(default_factory=list)
    exclude_relations: list[str] = Field(default_factory=list)
    include_schemas: list[str] = Field(default_factory=list)
    exclude_schemas: list[str] = Field(default_factory=list)

    def includes_schema(self, name: str) -> bool:
        """True if objects in schema ``name`` belong in the backup."""
        if name in self.exclude_schemas:
            return False
        return not self.include_schemas or name in self.include_schemas

    def includes_relation(self, fqn: str) -> bool:
        """True if relation ``fqn`` passes the schema and exclude filters.

        The include list is not applied here; the partition classifier
        handles it because included parents pull in unnamed children.
        """
        if fqn in self.exclude_relations:
            return False
        return self.includes_schema(fqn.split(".", 1)[0])

    def schema_filter_clause(self, alias: str = "n") -> str:
        """Namespace restriction appended to catalog queries, "" if unfiltered."""
        clause = ""
        if self.include_schemas:
            names = ",".join(_quote_literal(name) for name in self.include_schemas)
            clause += f"\nAND {alias}.nspname IN ({names})"
        if self.exclude_schemas:
            names = ",".join(_quote_literal(name) for name in self.exclude_schemas)
            clause += f"\nAND {alias}.nspname NOT IN ({names})"
        return clause
