"""Tests for the dependency resolver."""

import logging

import pytest

from ddl_backup.schema.dependencies import (
    CATEGORY_BASE,
    CATEGORY_FUNCTION,
    CATEGORY_OTHER_TYPE,
    CATEGORY_SHELL,
    CATEGORY_TABLE,
    CATEGORY_VIEW,
    DependencyCycleError,
    ShellType,
    sort_category,
    sort_functions_and_types_and_tables,
    sort_views,
    topological_sort,
)
from ddl_backup.schema.models import Function, Relation, Type, View


def _names(objects: list) -> list[str]:
    return [
        f"shell:{obj.fqn()}" if isinstance(obj, ShellType) else obj.fqn() for obj in objects
    ]


class TestSortCategory:
    """Tie-break ranks."""

    def test_categories(self) -> None:
        """Shells, base types, other types, functions, tables and views rank in that order."""
        assert sort_category(Type(schema="s", name="p", type="p")) == CATEGORY_SHELL
        assert sort_category(ShellType(type=Type(schema="s", name="b"))) == CATEGORY_SHELL
        assert sort_category(Type(schema="s", name="b", type="b")) == CATEGORY_BASE
        assert sort_category(Type(schema="s", name="c", type="c")) == CATEGORY_OTHER_TYPE
        assert sort_category(Type(schema="s", name="d", type="d")) == CATEGORY_OTHER_TYPE
        assert sort_category(Function(schema="s", name="f")) == CATEGORY_FUNCTION
        assert sort_category(Relation(schema="s", name="t")) == CATEGORY_TABLE
        assert sort_category(View(schema="s", name="v")) == CATEGORY_VIEW


class TestTopologicalSort:
    """Ordering of acyclic graphs."""

    def test_dependencies_come_first(self) -> None:
        """An object follows everything it depends on."""
        table = Relation(schema="public", name="a_table", depends_upon=["public.mytype"])
        composite = Type(
            schema="public", name="mytype", type="c", depends_upon=["public.z_func()"]
        )
        func = Function(schema="public", name="z_func")

        ordered = sort_functions_and_types_and_tables([func], [composite], [table])

        assert _names(ordered) == ["public.z_func()", "public.mytype", "public.a_table"]

    def test_ties_broken_by_category_then_name(self) -> None:
        """Independent objects are ordered by category, then by name."""
        ordered = sort_functions_and_types_and_tables(
            [Function(schema="public", name="f")],
            [
                Type(schema="public", name="zbase", type="b"),
                Type(schema="public", name="acomp", type="c"),
            ],
            [Relation(schema="public", name="b"), Relation(schema="public", name="a")],
        )
        assert _names(ordered) == [
            "public.zbase",
            "public.acomp",
            "public.f()",
            "public.a",
            "public.b",
        ]

    def test_unknown_dependencies_ignored(self) -> None:
        """Names that match no object in the input do not block anything."""
        table = Relation(schema="public", name="t", depends_upon=["other.missing"])
        assert _names(topological_sort([table])) == ["public.t"]

    def test_self_reference_ignored(self) -> None:
        """An object listing itself as a dependency is still emitted."""
        table = Relation(schema="public", name="t", depends_upon=["public.t"])
        assert _names(topological_sort([table])) == ["public.t"]

    def test_empty_input(self) -> None:
        """Nothing in, nothing out."""
        assert topological_sort([]) == []

    def test_inheritance_orders_parent_first(self) -> None:
        """A child table follows the tables it inherits from."""
        child = Relation(schema="public", name="a_child", inherits=["public.z_parent"])
        parent = Relation(schema="public", name="z_parent")
        assert _names(topological_sort([child, parent])) == ["public.z_parent", "public.a_child"]

    def test_sort_views(self) -> None:
        """Views follow the views they select from."""
        v1 = View(schema="public", name="z_base_view")
        v2 = View(schema="public", name="a_top_view", depends_upon=["public.z_base_view"])
        assert _names(sort_views([v2, v1])) == ["public.z_base_view", "public.a_top_view"]


class TestCycleBreaking:
    """Shell types for base/composite cycles; errors otherwise."""

    def test_base_type_cycle_uses_shell(self) -> None:
        """A base type and its I/O function are split by a shell declaration."""
        base = Type(schema="public", name="mytype", type="b", depends_upon=["public.mytype_in(cstring)"])
        func = Function(
            schema="public", name="mytype_in", ident_args="cstring", depends_upon=["public.mytype"]
        )

        ordered = sort_functions_and_types_and_tables([func], [base], [])

        assert _names(ordered) == [
            "shell:public.mytype",
            "public.mytype_in(cstring)",
            "public.mytype",
        ]
        assert ordered[0].type is base

    def test_shell_logged_as_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Breaking a cycle is logged at WARNING."""
        base = Type(schema="public", name="mytype", type="b", depends_upon=["public.f()"])
        func = Function(schema="public", name="f", depends_upon=["public.mytype"])
        with caplog.at_level(logging.WARNING, logger="ddl_backup.schema.dependencies"):
            topological_sort([base, func])
        assert "public.mytype" in caplog.text

    def test_composite_cycle_through_table(self) -> None:
        """A composite type used by a table that the type depends on is shelled."""
        composite = Type(schema="public", name="comp", type="c", depends_upon=["public.t"])
        table = Relation(schema="public", name="t", depends_upon=["public.comp"])

        ordered = topological_sort([table, composite])

        assert _names(ordered) == ["shell:public.comp", "public.t", "public.comp"]

    def test_full_definition_emitted_once(self) -> None:
        """Each object appears exactly once besides its shell."""
        base = Type(schema="public", name="b1", type="b", depends_upon=["public.f()"])
        func = Function(schema="public", name="f", depends_upon=["public.b1"])
        table = Relation(schema="public", name="t", depends_upon=["public.b1"])

        ordered = topological_sort([base, func, table])

        assert _names(ordered).count("public.b1") == 1
        assert len(ordered) == 4

    def test_one_shell_per_cycle(self) -> None:
        """A longer cycle through two base types needs only one shell."""
        b1 = Type(schema="public", name="b1", type="b", depends_upon=["public.f1()"])
        f1 = Function(schema="public", name="f1", depends_upon=["public.b2"])
        b2 = Type(schema="public", name="b2", type="b", depends_upon=["public.f2()"])
        f2 = Function(schema="public", name="f2", depends_upon=["public.b1"])

        ordered = topological_sort([b1, f1, b2, f2])

        assert _names(ordered) == [
            "shell:public.b1",
            "public.f2()",
            "public.b2",
            "public.f1()",
            "public.b1",
        ]

    def test_full_definition_of_shell_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """The later full definition of a shelled type is logged at DEBUG."""
        base = Type(schema="public", name="mytype", type="b", depends_upon=["public.f()"])
        func = Function(schema="public", name="f", depends_upon=["public.mytype"])
        with caplog.at_level(logging.DEBUG, logger="ddl_backup.schema.dependencies"):
            topological_sort([base, func])
        assert "Full definition follows shell type public.mytype" in caplog.text

    def test_domain_cycle_raises(self) -> None:
        """Domains cannot be shelled, so a domain cycle is an error."""
        d1 = Type(schema="public", name="d1", type="d", depends_upon=["public.d2"])
        d2 = Type(schema="public", name="d2", type="d", depends_upon=["public.d1"])

        with pytest.raises(DependencyCycleError) as exc_info:
            topological_sort([d2, d1])

        assert exc_info.value.names == ["public.d1", "public.d2"]

    def test_table_cycle_raises(self) -> None:
        """Tables that depend on each other cannot be ordered."""
        t1 = Relation(schema="public", name="t1", depends_upon=["public.t2"])
        t2 = Relation(schema="public", name="t2", depends_upon=["public.t1"])
        other = Relation(schema="public", name="ok")

        with pytest.raises(DependencyCycleError, match="public.t1, public.t2"):
            topological_sort([t1, t2, other])
