"""Tests for CREATE FUNCTION rendering."""

import pytest

from ddl_backup.ddl.functions import (
    dollar_quote_string,
    function_modifiers,
    print_create_function_statement,
)
from ddl_backup.schema.models import Function


@pytest.fixture
def func() -> Function:
    return Function(
        oid=1,
        schema="public",
        name="func_name",
        function_body="SELECT $1 + $2",
        arguments="integer, integer",
        ident_args="integer, integer",
        result_type="integer",
        language="sql",
    )


class TestDollarQuote:
    """Shortest unused dollar-quote tag."""

    @pytest.mark.parametrize(
        "literal,expected",
        [
            ("SELECT 1", "$$SELECT 1$$"),
            ("SELECT $$x$$", "$_$SELECT $$x$$$_$"),
            ("$$ $_$", "$_X$$$ $_$$_X$"),
            ("$$ $_$ $_X$", "$_XX$$$ $_$ $_X$$_XX$"),
        ],
    )
    def test_tags(self, literal: str, expected: str) -> None:
        """Each collision lengthens the tag."""
        assert dollar_quote_string(literal) == expected


class TestFunctionModifiers:
    """Attributes after LANGUAGE."""

    def test_defaults_omitted(self, func) -> None:
        """A volatile, non-strict SQL function with default cost has no modifiers."""
        assert function_modifiers(func.model_copy(update={"cost": 100})) == ""

    def test_all_modifiers(self, func) -> None:
        """Modifiers appear in a fixed order."""
        modified = func.model_copy(
            update={
                "is_window": True,
                "volatility": "i",
                "is_strict": True,
                "is_security_definer": True,
                "data_access": "r",
                "cost": 5,
                "returns_set": True,
                "num_rows": 20,
                "exec_location": "m",
                "config": "SET search_path TO public",
            }
        )
        assert function_modifiers(modified) == (
            " WINDOW IMMUTABLE STRICT SECURITY DEFINER READS SQL DATA COST 5 ROWS 20"
            " EXECUTE ON MASTER\nSET search_path TO public"
        )

    def test_c_function_default_cost(self, func) -> None:
        """C functions default to a cost of 1."""
        assert function_modifiers(func.model_copy(update={"language": "c", "cost": 1})) == ""

    def test_rows_only_for_set_returning(self, func) -> None:
        """ROWS is only meaningful for set-returning functions."""
        assert "ROWS" not in function_modifiers(func.model_copy(update={"num_rows": 20}))


class TestCreateFunction:
    """CREATE FUNCTION statements."""

    def test_sql_function(self, metadata_file, toc, hunks, func) -> None:
        """The body is dollar-quoted; the TOC names the signature."""
        print_create_function_statement(metadata_file, toc, func, {})
        assert hunks() == [
            "CREATE FUNCTION public.func_name(integer, integer) RETURNS integer AS\n"
            "$$SELECT $1 + $2$$\n"
            "LANGUAGE sql;"
        ]
        assert toc.predata_entries[0].name == "func_name(integer, integer)"

    def test_set_returning(self, metadata_file, toc, hunks, func) -> None:
        """Set-returning functions return SETOF."""
        print_create_function_statement(
            metadata_file, toc, func.model_copy(update={"returns_set": True}), {}
        )
        assert "RETURNS SETOF integer AS" in hunks()[0]

    def test_c_function(self, metadata_file, toc, hunks, func) -> None:
        """C functions name their library and symbol."""
        c_func = func.model_copy(
            update={"language": "c", "bin_path": "$libdir/gp_example", "function_body": "example_add"}
        )
        print_create_function_statement(metadata_file, toc, c_func, {})
        assert hunks() == [
            "CREATE FUNCTION public.func_name(integer, integer) RETURNS integer AS\n"
            "'$libdir/gp_example', 'example_add'\n"
            "LANGUAGE c;"
        ]

    def test_metadata(self, metadata_file, toc, hunks, func, default_metadata) -> None:
        """Metadata uses the identity signature."""
        print_create_function_statement(metadata_file, toc, func, {1: default_metadata("FUNCTION")})
        assert hunks()[0].endswith(
            "COMMENT ON FUNCTION public.func_name(integer, integer) IS 'This is a function comment.';\n\n\n"
            "ALTER FUNCTION public.func_name(integer, integer) OWNER TO testrole;\n\n\n"
            "REVOKE ALL ON FUNCTION public.func_name(integer, integer) FROM PUBLIC;\n"
            "REVOKE ALL ON FUNCTION public.func_name(integer, integer) FROM testrole;\n"
            "GRANT ALL ON FUNCTION public.func_name(integer, integer) TO testrole;"
        )
