"""Pydantic models for catalog objects captured during a metadata backup.

Every model is a read-only snapshot of what the catalog query layer
returned.  The only in-memory changes the backup makes are copies (e.g. a
relation renamed with the external-partition suffix), never edits of the
caller's objects.

Usage:
    from ddl_backup.schema.models import Relation, TableDefinition, ColumnDefinition

    table = Relation(oid=16384, schema="public", name="sales")
    table_def = TableDefinition(
        dist_policy="DISTRIBUTED BY (id)",
        column_defs=[ColumnDefinition(num=1, name="id", type="integer")],
    )
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CatalogModel(BaseModel):
    """Base for catalog snapshots.

    ``schema`` is accepted as an alias for ``schema_name`` because
    ``BaseModel`` already owns a ``schema`` attribute.
    """

    model_config = ConfigDict(populate_by_name=True)


def make_fqn(schema: str, name: str) -> str:
    """Join an already-quoted schema and object name."""
    return f"{schema}.{name}"


# ============================================================================
# Privileges and per-object metadata
# ============================================================================


class ACL(BaseModel):
    """One grantee's privileges, decoded from an aclitem such as ``bob=arw*/owner``.

    An empty grantee means PUBLIC.  Each ``*_with_grant`` flag is set
    instead of (not in addition to) its plain twin.
    """

    grantee: str = ""
    select: bool = False
    select_with_grant: bool = False
    insert: bool = False
    insert_with_grant: bool = False
    update: bool = False
    update_with_grant: bool = False
    delete: bool = False
    delete_with_grant: bool = False
    truncate: bool = False
    truncate_with_grant: bool = False
    references: bool = False
    references_with_grant: bool = False
    trigger: bool = False
    trigger_with_grant: bool = False
    usage: bool = False
    usage_with_grant: bool = False
    execute: bool = False
    execute_with_grant: bool = False
    create: bool = False
    create_with_grant: bool = False
    temporary: bool = False
    temporary_with_grant: bool = False
    connect: bool = False
    connect_with_grant: bool = False


class ObjectMetadata(BaseModel):
    """Owner, comment, privileges and security label of one catalog object."""

    privileges: list[ACL] = Field(default_factory=list)
    owner: str = ""
    comment: str = ""
    security_label_provider: str = ""
    security_label: str = ""


MetadataMap = dict[int, ObjectMetadata]


# ============================================================================
# Relations and table definitions
# ============================================================================


class Relation(CatalogModel):
    """A table (or sequence) identified by its schema-qualified name."""

    schema_oid: int = 0
    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    depends_upon: list[str] = Field(default_factory=list)
    inherits: list[str] = Field(default_factory=list)

    def fqn(self) -> str:
        return make_fqn(self.schema_name, self.name)

    def dependencies(self) -> list[str]:
        """Recorded dependencies followed by inheritance parents, without repeats."""
        return list(dict.fromkeys([*self.depends_upon, *self.inherits]))


class ColumnDefinition(BaseModel):
    """One column of a table, ordered by ``num`` (1-based attribute number)."""

    oid: int = 0
    num: int = 0
    name: str
    type: str = ""
    not_null: bool = False
    has_default: bool = False
    default_val: str = ""
    encoding: str = ""
    stat_target: int = -1
    storage_type: str = ""
    options: str = ""
    acl: list[ACL] = Field(default_factory=list)
    comment: str = ""
    collation: str = ""
    security_label_provider: str = ""
    security_label: str = ""
    fdw_options: str = ""


class ExternalTableDefinition(BaseModel):
    """Location, format and error handling of an external table.

    ``type`` and ``protocol`` are ``-2`` for a table that is not external;
    the renderer recomputes both from ``location`` and ``writable``.
    """

    oid: int = 0
    type: int = -2
    protocol: int = -2
    location: str = ""
    exec_location: str = "ALL_SEGMENTS"
    format_type: str = ""
    format_opts: str = ""
    options: str = ""
    command: str = ""
    reject_limit: int = 0
    reject_limit_type: str = ""
    err_table_name: str = ""
    err_table_schema: str = ""
    log_errors: bool = False
    encoding: str = ""
    writable: bool = False
    uris: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return self.type == -2 and self.protocol == -2


class ForeignTableDefinition(BaseModel):
    """Server and table-level options of a foreign table."""

    oid: int = 0
    options: str = ""
    server: str = ""


class PartitionType(str, Enum):
    """Role of a relation inside a partition hierarchy."""

    NONE = "n"
    PARENT = "p"
    INTERMEDIATE = "i"
    LEAF = "l"


_PARTITION_TYPE_NAMES = {
    "": PartitionType.NONE,
    "none": PartitionType.NONE,
    "parent": PartitionType.PARENT,
    "intermediate": PartitionType.INTERMEDIATE,
    "leaf": PartitionType.LEAF,
}


class TableDefinition(BaseModel):
    """Everything needed to render one CREATE TABLE statement."""

    dist_policy: str = ""
    part_def: str = ""
    part_template_def: str = ""
    storage_opts: str = ""
    tablespace_name: str = ""
    column_defs: list[ColumnDefinition] = Field(default_factory=list)
    is_external: bool = False
    ext_table_def: ExternalTableDefinition = Field(default_factory=ExternalTableDefinition)
    partition_type: PartitionType = PartitionType.NONE
    is_external_leaf: bool = False
    root_name: str = ""  # unqualified name of the partition root, "" if unknown
    table_type: str = ""  # CREATE TABLE ... OF <table_type>
    is_unlogged: bool = False
    foreign_def: ForeignTableDefinition | None = None
    replica_identity: str = ""

    @field_validator("partition_type", mode="before")
    @classmethod
    def _accept_long_partition_names(cls, value):
        if isinstance(value, str) and value.lower() in _PARTITION_TYPE_NAMES:
            return _PARTITION_TYPE_NAMES[value.lower()]
        return value

    @property
    def external_leaf(self) -> bool:
        """True for an external table attached as a leaf partition."""
        return self.is_external_leaf or (
            self.is_external and self.partition_type == PartitionType.LEAF
        )


class PartitionInfo(BaseModel):
    """One pg_partition_rule row, used to exchange external leaf partitions back in."""

    partition_rule_oid: int = 0
    partition_parent_rule_oid: int = 0
    parent_relation_oid: int = 0
    parent_schema: str = ""
    parent_relation_name: str = ""
    relation_oid: int = 0
    partition_name: str = ""
    partition_rank: int = 0
    is_external: bool = False


# ============================================================================
# Sequences and views
# ============================================================================


class Sequence(BaseModel):
    """A sequence relation plus the state needed to recreate it."""

    relation: Relation
    last_val: int = 0
    increment: int = 1
    max_val: int = 0
    min_val: int = 0
    cache_val: int = 1
    log_cnt: int = 0
    is_cycled: bool = False
    is_called: bool = False

    def fqn(self) -> str:
        return self.relation.fqn()


class View(CatalogModel):
    """A view and the relations it reads from."""

    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    options: str = ""
    definition: str = ""
    depends_upon: list[str] = Field(default_factory=list)

    def fqn(self) -> str:
        return make_fqn(self.schema_name, self.name)

    def dependencies(self) -> list[str]:
        return list(self.depends_upon)


# ============================================================================
# Functions, types and constraints
# ============================================================================


class Function(CatalogModel):
    """A user-defined function.

    ``arguments`` is the full argument list with defaults (used in CREATE);
    ``ident_args`` is the identity signature (used in names and GRANTs).
    """

    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    returns_set: bool = False
    function_body: str = ""
    bin_path: str = ""
    arguments: str = ""
    ident_args: str = ""
    result_type: str = ""
    volatility: str = "v"
    is_strict: bool = False
    is_security_definer: bool = False
    config: str = ""
    cost: float = 0
    num_rows: float = 0
    data_access: str = ""
    language: str = ""
    is_window: bool = False
    exec_location: str = "a"
    depends_upon: list[str] = Field(default_factory=list)

    def fqn(self) -> str:
        return f"{make_fqn(self.schema_name, self.name)}({self.ident_args})"

    def dependencies(self) -> list[str]:
        return list(self.depends_upon)


class CompositeTypeAttribute(BaseModel):
    """One attribute of a composite type."""

    name: str
    type: str
    comment: str = ""
    collation: str = ""


class Type(CatalogModel):
    """A user-defined type.

    ``type`` is the pg_type.typtype letter: ``p`` shell, ``b`` base,
    ``c`` composite, ``d`` domain, ``e`` enum.
    """

    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    type: str = "b"
    input: str = ""
    output: str = ""
    receive: str = ""
    send: str = ""
    mod_in: str = ""
    mod_out: str = ""
    internal_length: int = 0
    is_passed_by_value: bool = False
    alignment: str = ""
    storage: str = ""
    default_val: str = ""
    element: str = ""
    category: str = ""
    preferred: bool = False
    delimiter: str = ""
    storage_options: str = ""
    collatable: bool = False
    attributes: list[CompositeTypeAttribute] = Field(default_factory=list)
    base_type: str = ""
    not_null: bool = False
    collation: str = ""
    enum_labels: list[str] = Field(default_factory=list)
    depends_upon: list[str] = Field(default_factory=list)

    def fqn(self) -> str:
        return make_fqn(self.schema_name, self.name)

    def dependencies(self) -> list[str]:
        return list(self.depends_upon)


class Constraint(CatalogModel):
    """A table or domain constraint, rendered from its pg_get_constraintdef text."""

    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    con_type: str = ""
    con_def: str = ""
    owning_object: str = ""
    is_domain_constraint: bool = False
    is_partition_parent: bool = False


class Schema(BaseModel):
    """A namespace."""

    oid: int = 0
    name: str


# ============================================================================
# Text search objects
# ============================================================================


class TextSearchParser(CatalogModel):
    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    start_func: str = ""
    token_func: str = ""
    end_func: str = ""
    lex_types_func: str = ""
    headline_func: str = ""

    def fqn(self) -> str:
        return make_fqn(self.schema_name, self.name)


class TextSearchTemplate(CatalogModel):
    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    init_func: str = ""
    lexize_func: str = ""

    def fqn(self) -> str:
        return make_fqn(self.schema_name, self.name)


class TextSearchDictionary(CatalogModel):
    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    template: str = ""
    init_option: str = ""

    def fqn(self) -> str:
        return make_fqn(self.schema_name, self.name)


class TextSearchConfiguration(CatalogModel):
    oid: int = 0
    schema_name: str = Field(default="", alias="schema")
    name: str
    parser: str = ""
    token_to_dicts: dict[str, list[str]] = Field(default_factory=dict)

    def fqn(self) -> str:
        return make_fqn(self.schema_name, self.name)
