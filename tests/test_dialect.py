"""Tests for the SQL dialect registry and per-store rendering."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime

import pytest

from journal_spine.dialect import (
    BaseDialect,
    Dialect,
    MySQLDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    SQLServerDialect,
    get_dialect,
    register_dialect,
)
from journal_spine.errors import ConfigError, InvalidConfigError


class TestRegistry:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("sqlite", SQLiteDialect),
            ("sqlite3", SQLiteDialect),
            ("postgresql", PostgreSQLDialect),
            ("postgres", PostgreSQLDialect),
            ("mysql", MySQLDialect),
            ("sqlserver", SQLServerDialect),
            ("mssql", SQLServerDialect),
            ("SQLite", SQLiteDialect),
        ],
    )
    def test_lookup_by_name(self, name, expected):
        assert isinstance(get_dialect(name), expected)

    def test_instance_passes_through(self):
        dialect = SQLServerDialect()
        assert get_dialect(dialect) is dialect

    def test_unknown_name(self):
        with pytest.raises(ConfigError, match="Unknown dialect 'oracle'"):
            get_dialect("oracle")

    def test_unknown_name_lists_canonical_names_only(self):
        with pytest.raises(ConfigError) as exc_info:
            get_dialect("db2")
        assert "mssql" not in str(exc_info.value)
        assert "sqlserver" in str(exc_info.value)

    def test_register_custom_dialect(self):
        class DuckDialect(SQLiteDialect):
            dialect_name = "duck"

        register_dialect("Duck", DuckDialect())
        assert get_dialect("duck").name == "duck"

    @pytest.mark.parametrize("name", ["sqlite", "postgresql", "mysql", "sqlserver"])
    def test_builtins_satisfy_protocol(self, name):
        assert isinstance(get_dialect(name), Dialect)


class TestQuoting:
    @pytest.mark.parametrize(
        "dialect, name, expected",
        [
            ("sqlite", "SchemaVersions", '"SchemaVersions"'),
            ("sqlite", 'Odd"Name', '"Odd""Name"'),
            ("postgresql", "my table", '"my table"'),
            ("mysql", "Schema`Versions", "`Schema``Versions`"),
            ("sqlserver", "Schema]Versions", "[Schema]]Versions]"),
            ("sqlserver", "Schema[Versions", "[Schema[Versions]"),
        ],
    )
    def test_quote_identifier(self, dialect, name, expected):
        assert get_dialect(dialect).quote_identifier(name) == expected

    @pytest.mark.parametrize("schema", [None, ""])
    def test_qualify_without_schema(self, schema):
        assert get_dialect("sqlserver").qualify(schema, "SchemaVersions") == "[SchemaVersions]"

    def test_qualify_with_schema(self):
        assert get_dialect("postgresql").qualify("public", "SchemaVersions") == '"public"."SchemaVersions"'
        assert get_dialect("mysql").qualify("app", "SchemaVersions") == "`app`.`SchemaVersions`"

    def test_empty_table_rejected(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            get_dialect("sqlite").qualify("dbo", "")
        assert exc_info.value.key == "table"


class TestStatements:
    def test_count_query(self):
        assert get_dialect("sqlserver").count_query("[dbo].[SchemaVersions]") == (
            "SELECT COUNT(*) FROM [dbo].[SchemaVersions]"
        )

    @pytest.mark.parametrize(
        "dialect, table, order_by",
        [
            ("sqlite", '"SchemaVersions"', '"ScriptName"'),
            ("postgresql", '"SchemaVersions"', '"ScriptName" COLLATE "C"'),
            ("mysql", "`SchemaVersions`", "CAST(`ScriptName` AS BINARY)"),
            ("sqlserver", "[SchemaVersions]", "[ScriptName] COLLATE Latin1_General_BIN2"),
        ],
    )
    def test_select_orders_by_code_point(self, dialect, table, order_by):
        d = get_dialect(dialect)
        sql = d.select_scripts_query(table)
        assert sql == f"SELECT {d.quote_identifier('ScriptName')} FROM {table} ORDER BY {order_by}"

    def test_sqlite_order_is_case_sensitive(self):
        d = get_dialect("sqlite")
        table = d.qualify(None, "SchemaVersions")
        conn = sqlite3.connect(":memory:")
        try:
            conn.execute(d.create_table_ddl(table, "SchemaVersions"))
            for name in ["b_second", "B_first", "a_third"]:
                conn.execute(d.insert_script_statement(table), (name, "2026-01-01 00:00:00"))
            rows = conn.execute(d.select_scripts_query(table)).fetchall()
        finally:
            conn.close()
        assert [r[0] for r in rows] == sorted(["b_second", "B_first", "a_third"])

    @pytest.mark.parametrize(
        "dialect, placeholder",
        [("sqlite", "?"), ("postgresql", "%s"), ("mysql", "%s"), ("sqlserver", "?")],
    )
    def test_insert_uses_driver_placeholders(self, dialect, placeholder):
        d = get_dialect(dialect)
        sql = d.insert_script_statement(d.qualify(None, "SchemaVersions"))
        assert sql.endswith(f"VALUES ({placeholder}, {placeholder})")
        assert d.quote_identifier("ScriptName") in sql
        assert d.quote_identifier("AppliedAt") in sql

    @pytest.mark.parametrize("dialect", ["sqlite", "postgresql", "mysql"])
    def test_ddl_is_idempotent(self, dialect):
        d = get_dialect(dialect)
        ddl = d.create_table_ddl(d.qualify(None, "SchemaVersions"), "SchemaVersions")
        assert ddl.startswith("CREATE TABLE IF NOT EXISTS")
        assert "VARCHAR(255) NOT NULL" in ddl

    def test_sqlserver_ddl_guarded_by_object_id(self):
        d = get_dialect("sqlserver")
        ddl = d.create_table_ddl(d.qualify("dbo", "SchemaVersions"), "SchemaVersions")
        assert ddl.startswith("IF OBJECT_ID(N'[dbo].[SchemaVersions]', N'U') IS NULL")
        assert "CONSTRAINT [PK_SchemaVersions_Id] PRIMARY KEY" in ddl
        assert "NVARCHAR(255) NOT NULL" in ddl
        assert "[AppliedAt] DATETIME NOT NULL" in ddl

    def test_sqlserver_ddl_escapes_literal(self):
        d = get_dialect("sqlserver")
        ddl = d.create_table_ddl(d.qualify(None, "O'Brien"), "O'Brien")
        assert "OBJECT_ID(N'[O''Brien]', N'U')" in ddl

    def test_sqlite_ddl_executes(self):
        d = get_dialect("sqlite")
        table = d.qualify(None, "SchemaVersions")
        conn = sqlite3.connect(":memory:")
        try:
            conn.execute(d.create_table_ddl(table, "SchemaVersions"))
            conn.execute(d.create_table_ddl(table, "SchemaVersions"))
            conn.execute(d.insert_script_statement(table), ("V1", "2026-01-01 00:00:00"))
            assert conn.execute(d.select_scripts_query(table)).fetchall() == [("V1",)]
        finally:
            conn.close()

    def test_base_dialect_has_no_ddl(self):
        with pytest.raises(NotImplementedError):
            BaseDialect().create_table_ddl('"t"', "t")


class TestTimestampBinding:
    moment = datetime(2026, 10, 19, 8, 30, 15, tzinfo=UTC)

    def test_sqlite_binds_text(self):
        assert get_dialect("sqlite").bind_timestamp(self.moment) == "2026-10-19 08:30:15"

    @pytest.mark.parametrize("dialect", ["postgresql", "mysql", "sqlserver"])
    def test_server_dialects_bind_naive_utc(self, dialect):
        bound = get_dialect(dialect).bind_timestamp(self.moment)
        assert bound == datetime(2026, 10, 19, 8, 30, 15)
        assert bound.tzinfo is None


class _DriverError(Exception):
    pass


class TestMissingTableClassification:
    def test_sqlite(self):
        d = get_dialect("sqlite")
        assert d.is_missing_table_error(sqlite3.OperationalError("no such table: SchemaVersions"))
        assert not d.is_missing_table_error(sqlite3.OperationalError("database is locked"))

    def test_sqlite_real_error(self):
        conn = sqlite3.connect(":memory:")
        try:
            with pytest.raises(sqlite3.OperationalError) as exc_info:
                conn.execute('SELECT COUNT(*) FROM "SchemaVersions"')
        finally:
            conn.close()
        assert get_dialect("sqlite").is_missing_table_error(exc_info.value)

    def test_postgresql_pgcode(self):
        err = _DriverError('relation "SchemaVersions" does not exist')
        err.pgcode = "42P01"
        assert get_dialect("postgresql").is_missing_table_error(err)

    def test_postgresql_sqlstate(self):
        err = _DriverError("undefined table")
        err.sqlstate = "42P01"
        assert get_dialect("postgresql").is_missing_table_error(err)

    def test_postgresql_other_code(self):
        err = _DriverError("permission denied for schema public")
        err.pgcode = "42501"
        assert not get_dialect("postgresql").is_missing_table_error(err)
        assert not get_dialect("postgresql").is_missing_table_error(_DriverError("boom"))

    def test_mysql(self):
        d = get_dialect("mysql")
        assert d.is_missing_table_error(_DriverError(1146, "Table 'app.SchemaVersions' doesn't exist"))
        assert not d.is_missing_table_error(_DriverError(1045, "Access denied"))
        assert not d.is_missing_table_error(_DriverError())

    def test_mysql_connector_errno(self):
        err = _DriverError("1146 (42S02): Table 'app.SchemaVersions' doesn't exist")
        err.errno = 1146
        assert get_dialect("mysql").is_missing_table_error(err)

    @pytest.mark.parametrize(
        "err",
        [
            _DriverError("42S02", "[42S02] Invalid object name 'dbo.SchemaVersions'. (208)"),
            _DriverError((208, b"Invalid object name")),
            _DriverError("Invalid object name 'SchemaVersions'."),
        ],
    )
    def test_sqlserver_missing(self, err):
        assert get_dialect("sqlserver").is_missing_table_error(err)

    def test_sqlserver_other(self):
        err = _DriverError("28000", "[28000] Login failed for user 'sa'. (18456)")
        assert not get_dialect("sqlserver").is_missing_table_error(err)
