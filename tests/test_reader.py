from __future__ import annotations

import pytest

from ddlcat.core.adapters.sqlglot_reader import parse_sql
from ddlcat.core.errors import SqlParseError
from ddlcat.core.statements import (
    AlterSchema,
    AlterTable,
    CheckDefinition,
    CommentOn,
    CreateFunction,
    CreateIndex,
    CreatePolicy,
    CreateRole,
    CreateSchema,
    CreateTable,
    CreateTrigger,
    DropFunction,
    DropTable,
    ForeignKeyDefinition,
    GrantObjectKind,
    GrantPrivileges,
    GrantRole,
    ObjectName,
    OtherStatement,
    PolicyCommand,
    PrimaryKeyDefinition,
    RevokePrivileges,
    RowSecurityAction,
    SetTimeZone,
    TriggerEvent,
    TriggerOrientation,
    TriggerTiming,
    UniqueDefinition,
)


def _one(sql: str):
    statements = parse_sql(sql)
    assert len(statements) == 1
    return statements[0]


def test_parse_sql_splits_statements_in_order():
    statements = parse_sql("CREATE TABLE a (id INT); CREATE TABLE b (id INT);;")

    assert [s.name.name for s in statements] == ["a", "b"]


def test_create_table_lowers_inline_constraints():
    stmt = _one(
        """
        CREATE TABLE orders (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount DECIMAL(10, 2) CHECK (amount > 0),
            status VARCHAR(20) DEFAULT 'pending',
            UNIQUE (user_id, status)
        )
        """
    )

    assert isinstance(stmt, CreateTable)
    assert stmt.name == ObjectName("orders")
    assert [c.name for c in stmt.columns] == ["id", "user_id", "amount", "status"]
    assert stmt.columns[0].constraints == (PrimaryKeyDefinition(columns=("id",)),)
    assert stmt.columns[1].not_null is True
    fk = stmt.columns[1].constraints[0]
    assert isinstance(fk, ForeignKeyDefinition)
    assert fk.referenced_table == ObjectName("users")
    assert fk.referenced_columns == ("id",)
    assert fk.on_delete == "CASCADE"
    check = stmt.columns[2].constraints[0]
    assert isinstance(check, CheckDefinition)
    assert check.expression.sql == "amount > 0"
    assert stmt.columns[2].data_type == "DECIMAL(10, 2)"
    assert stmt.columns[3].default == "'pending'"
    assert stmt.constraints == (UniqueDefinition(columns=("user_id", "status")),)


def test_create_table_reads_named_table_constraints_and_schema():
    stmt = _one(
        "CREATE TABLE IF NOT EXISTS app.items ("
        " id BIGINT GENERATED ALWAYS AS IDENTITY,"
        " code TEXT,"
        " CONSTRAINT items_pk PRIMARY KEY (id),"
        " CONSTRAINT code_not_empty CHECK (code <> '')"
        ")"
    )

    assert stmt.if_not_exists is True
    assert stmt.name == ObjectName("items", "app")
    assert stmt.columns[0].generated is True
    assert stmt.columns[0].identity is True
    assert stmt.constraints[0] == PrimaryKeyDefinition(columns=("id",), name="items_pk")
    assert stmt.constraints[1].name == "code_not_empty"


def test_create_table_as_is_reported_as_other_statement():
    stmt = _one("CREATE TABLE copy AS SELECT * FROM source")

    assert isinstance(stmt, OtherStatement)
    assert stmt.kind == "CREATE TABLE AS"


def test_create_unique_index_keeps_item_expressions():
    stmt = _one("CREATE UNIQUE INDEX IF NOT EXISTS users_email ON users USING btree (lower(email), id DESC)")

    assert isinstance(stmt, CreateIndex)
    assert stmt.unique is True
    assert stmt.if_not_exists is True
    assert stmt.name == "users_email"
    assert stmt.table == ObjectName("users")
    assert [i.sql for i in stmt.items] == ["lower(email)", "id"]


def test_create_function_reads_arguments_and_dollar_quoted_body():
    stmt = _one(
        "CREATE OR REPLACE FUNCTION add(a integer, b integer DEFAULT 1) RETURNS integer "
        "AS $$ SELECT a + b $$ LANGUAGE sql IMMUTABLE"
    )

    assert isinstance(stmt, CreateFunction)
    assert stmt.or_replace is True
    assert [(a.name, a.data_type, a.default) for a in stmt.arguments] == [
        ("a", "integer", None),
        ("b", "integer", "1"),
    ]
    assert stmt.return_type == "integer"
    assert stmt.body.strip() == "SELECT a + b"
    assert stmt.language == "sql"


def test_function_argument_without_name_keeps_multiword_type():
    stmt = _one("CREATE FUNCTION f(double precision) RETURNS void AS 'select 1' LANGUAGE sql")

    assert stmt.arguments[0].name is None
    assert stmt.arguments[0].data_type == "double precision"


def test_drop_function_signatures():
    stmt = _one("DROP FUNCTION IF EXISTS f(integer), g CASCADE")

    assert isinstance(stmt, DropFunction)
    assert stmt.if_exists is True
    assert stmt.cascade is True
    assert stmt.targets[0].argument_types == ("integer",)
    assert stmt.targets[1].argument_types is None


def test_create_trigger():
    stmt = _one(
        "CREATE TRIGGER touch BEFORE INSERT OR UPDATE OF name ON users "
        "FOR EACH ROW EXECUTE FUNCTION set_updated_at()"
    )

    assert isinstance(stmt, CreateTrigger)
    assert stmt.timing == TriggerTiming.BEFORE
    assert stmt.events == (TriggerEvent.INSERT, TriggerEvent.UPDATE)
    assert stmt.update_columns == ("name",)
    assert stmt.orientation == TriggerOrientation.ROW
    assert stmt.function == ObjectName("set_updated_at")


def test_create_trigger_without_function_is_a_parse_error():
    with pytest.raises(SqlParseError, match="EXECUTE FUNCTION"):
        parse_sql("CREATE TRIGGER t AFTER DELETE ON users")


def test_create_policy():
    stmt = _one(
        "CREATE POLICY own_rows ON docs AS RESTRICTIVE FOR UPDATE TO app_user "
        "USING (owner = current_user) WITH CHECK (owner = current_user)"
    )

    assert isinstance(stmt, CreatePolicy)
    assert stmt.permissive is False
    assert stmt.command == PolicyCommand.UPDATE
    assert stmt.roles == ("app_user",)
    assert stmt.using is not None
    assert stmt.with_check is not None


@pytest.mark.parametrize(
    "sql, message",
    [
        ("CREATE POLICY p ON t FOR BOGUS USING (true)", "expected a policy command"),
        ("CREATE POLICY p ON t FOR", "expected a policy command"),
        (
            "CREATE TRIGGER tr BEFORE INSERT ON t FOR EACH BOGUS EXECUTE FUNCTION f()",
            "expected ROW or STATEMENT",
        ),
    ],
)
def test_unknown_policy_command_or_trigger_orientation(sql: str, message: str):
    with pytest.raises(SqlParseError, match=message):
        parse_sql(sql)


def test_create_user_implies_login_and_reads_options():
    stmt = _one("CREATE USER alice WITH CREATEDB CONNECTION LIMIT 3 IN ROLE staff PASSWORD 'x'")

    assert isinstance(stmt, CreateRole)
    assert stmt.login is True
    assert stmt.create_db is True
    assert stmt.connection_limit == 3
    assert stmt.member_of == ("staff",)


def test_grant_privileges_with_columns():
    stmt = _one("GRANT SELECT (id, name), UPDATE ON TABLE users TO app WITH GRANT OPTION")

    assert isinstance(stmt, GrantPrivileges)
    assert [str(p) for p in stmt.privileges] == ["SELECT (id, name)", "UPDATE"]
    assert stmt.objects.kind == GrantObjectKind.TABLES
    assert stmt.objects.names == (ObjectName("users"),)
    assert stmt.grantees == ("app",)
    assert stmt.with_grant_option is True


def test_grant_all_tables_in_schema():
    stmt = _one("GRANT ALL PRIVILEGES ON ALL TABLES IN SCHEMA public TO PUBLIC")

    assert stmt.all_privileges is True
    assert stmt.objects.kind == GrantObjectKind.ALL_TABLES_IN_SCHEMA
    assert stmt.grantees == ("PUBLIC",)


def test_grant_and_revoke_role_membership():
    grant = _one("GRANT staff TO alice, bob")
    revoke = _one("REVOKE GRANT OPTION FOR SELECT ON users FROM app")

    assert isinstance(grant, GrantRole)
    assert grant.roles == ("staff",)
    assert grant.grantees == ("alice", "bob")
    assert isinstance(revoke, RevokePrivileges)
    assert revoke.grant_option_for is True


def test_alter_table_keeps_row_level_security_actions_only():
    stmt = _one(
        "ALTER TABLE ONLY docs ENABLE ROW LEVEL SECURITY, ADD COLUMN x int, NO FORCE ROW LEVEL SECURITY"
    )

    assert isinstance(stmt, AlterTable)
    assert stmt.actions == (RowSecurityAction.ENABLE, RowSecurityAction.NO_FORCE)


def test_schema_statements():
    create = _one("CREATE SCHEMA AUTHORIZATION alice")
    rename = _one("ALTER SCHEMA app RENAME TO core")

    assert isinstance(create, CreateSchema)
    assert (create.name, create.authorization) == ("alice", "alice")
    assert isinstance(rename, AlterSchema)
    assert rename.new_name == "core"


@pytest.mark.parametrize(
    "sql, value",
    [
        ("SET TIME ZONE 'UTC'", "UTC"),
        ("SET TIME ZONE LOCAL", "LOCAL"),
        ("SET SESSION TIME ZONE DEFAULT", "DEFAULT"),
        ("SET timezone TO 'Europe/Amsterdam'", "Europe/Amsterdam"),
    ],
)
def test_set_time_zone(sql: str, value: str):
    stmt = _one(sql)

    assert isinstance(stmt, SetTimeZone)
    assert stmt.value == value


def test_other_set_forms_are_other_statements():
    stmt = _one("SET search_path TO app")

    assert isinstance(stmt, OtherStatement)
    assert stmt.kind == "SET"


def test_comment_on_column():
    stmt = _one("COMMENT ON COLUMN app.users.email IS 'Login address'")

    assert isinstance(stmt, CommentOn)
    assert stmt.object_kind == "COLUMN"
    assert stmt.target == ObjectName("users", "app")
    assert stmt.column == "email"
    assert stmt.text == "Login address"


def test_drop_table_rejects_trailing_tokens():
    with pytest.raises(SqlParseError, match="trailing"):
        parse_sql("DROP TABLE a CASCADE extra")


def test_drop_table_names():
    stmt = _one("DROP TABLE IF EXISTS a, app.b")

    assert isinstance(stmt, DropTable)
    assert stmt.names == (ObjectName("a"), ObjectName("b", "app"))
    assert stmt.if_exists is True
    assert stmt.cascade is False


@pytest.mark.parametrize(
    "sql, kind",
    [
        ("CREATE OR REPLACE VIEW v AS SELECT 1", "CREATE VIEW"),
        ("CREATE MATERIALIZED VIEW mv AS SELECT 1", "CREATE MATERIALIZED VIEW"),
        ("CREATE EXTENSION IF NOT EXISTS pgcrypto", "CREATE EXTENSION"),
        ("INSERT INTO t VALUES (1)", "INSERT"),
        ("CREATE DATABASE shop", "CREATE DATABASE"),
    ],
)
def test_statement_kind_of_unmodelled_statements(sql: str, kind: str):
    stmt = _one(sql)

    assert isinstance(stmt, OtherStatement)
    assert stmt.kind == kind
