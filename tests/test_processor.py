from __future__ import annotations

import pytest

from ddlcat.core.adapters.sqlglot_reader import parse_sql
from ddlcat.core.errors import (
    AlreadyExistsError,
    CatalogError,
    DropConflictError,
    InconsistentCatalogError,
    NotFoundError,
    UnknownColumnError,
    UnresolvedReferenceError,
    UnsupportedStatementError,
)
from ddlcat.core.loader import catalog_from_sql
from ddlcat.core.processor import StatementProcessor, build_catalog, is_ignored

USERS = """
CREATE TABLE users (
    id SERIAL PRIMARY KEY,
    email VARCHAR(255) NOT NULL UNIQUE,
    name TEXT
);
"""

ORDERS = """
CREATE TABLE orders (
    id SERIAL PRIMARY KEY,
    user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
    amount DECIMAL(10, 2) CHECK (amount > 0),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, created_at)
);
"""


def test_single_table_round_trip():
    catalog = catalog_from_sql("CREATE TABLE t (id INT PRIMARY KEY);")

    (table,) = catalog.tables()
    assert table.name == "t"
    assert table.schema is None
    assert [c.name for c in table.primary_key_columns(catalog)] == ["id"]
    (index,) = table.unique_indices(catalog)
    assert index.is_primary_key(catalog)
    assert table.is_root(catalog)


def test_columns_keep_declaration_order_and_attributes():
    catalog = catalog_from_sql(USERS + ORDERS)
    orders = catalog.table("orders")

    columns = orders.columns(catalog)
    assert [c.name for c in columns] == ["id", "user_id", "amount", "created_at"]
    assert [c.ordinal for c in columns] == [1, 2, 3, 4]
    assert columns[0].is_generated()
    assert columns[0].normalized_data_type() == "INT"
    assert not columns[0].is_nullable(catalog)
    assert columns[1].is_nullable(catalog)
    assert columns[3].has_default()
    (foreign_key,) = orders.foreign_keys(catalog)
    assert foreign_key.referenced_table(catalog) == catalog.table("users")
    assert foreign_key.on_delete == "CASCADE"
    assert [c.name for c in foreign_key.referenced_columns(catalog)] == ["id"]
    assert len(orders.unique_indices(catalog)) == 2
    assert orders.referenced_tables(catalog) == [catalog.table("users")]
    assert catalog.root_tables() == [catalog.table("users")]


def test_foreign_key_defaults_to_the_primary_key():
    catalog = catalog_from_sql(USERS + "CREATE TABLE posts (author INT REFERENCES users);")

    (foreign_key,) = catalog.table("posts").foreign_keys(catalog)
    assert foreign_key.referenced_column_names == ("id",)


@pytest.mark.parametrize(
    "sql, error, message",
    [
        ("CREATE TABLE a (x INT REFERENCES missing(id));", UnresolvedReferenceError, "missing"),
        (USERS + "CREATE TABLE a (x INT REFERENCES users(nope));", UnknownColumnError, "nope"),
        (
            "CREATE TABLE k (v INT); CREATE TABLE a (x INT REFERENCES k);",
            UnresolvedReferenceError,
            "primary key",
        ),
        (
            USERS + "CREATE TABLE a (x INT, y INT, FOREIGN KEY (x, y) REFERENCES users(id));",
            UnresolvedReferenceError,
            "column list",
        ),
        ("CREATE TABLE a (x INT, FOREIGN KEY (z) REFERENCES a(x));", UnknownColumnError, "z"),
    ],
)
def test_invalid_foreign_keys(sql: str, error: type, message: str):
    with pytest.raises(error, match=message):
        catalog_from_sql(sql)


@pytest.mark.parametrize(
    "sql, message",
    [
        ("CREATE TABLE t (a INT); CREATE TABLE t (b INT);", "Table `t`"),
        ("CREATE TABLE t (a INT, a TEXT);", "Column `t.a`"),
        ("CREATE TABLE t (a INT PRIMARY KEY, b INT PRIMARY KEY);", "Primary key"),
        ("CREATE TABLE public.t (a INT); CREATE TABLE t (a INT);", "Table `t`"),
    ],
)
def test_duplicates_are_rejected(sql: str, message: str):
    with pytest.raises(AlreadyExistsError, match=message):
        catalog_from_sql(sql)


def test_create_if_not_exists_keeps_the_first_definition():
    catalog = catalog_from_sql(
        "CREATE TABLE t (a INT); CREATE TABLE IF NOT EXISTS t (b INT, c INT);"
    )

    assert [c.name for c in catalog.table("t").columns(catalog)] == ["a"]


def test_unqualified_and_public_names_resolve_to_the_same_table():
    catalog = catalog_from_sql(
        "CREATE TABLE public.users (id INT PRIMARY KEY);"
        "CREATE TABLE posts (author INT REFERENCES users(id));"
    )

    (foreign_key,) = catalog.table("posts").foreign_keys(catalog)
    assert foreign_key.referenced_table_key == ("public", "users")


def test_self_referencing_table():
    catalog = catalog_from_sql(
        "CREATE TABLE nodes (id INT PRIMARY KEY, parent_id INT REFERENCES nodes(id));"
    )
    nodes = catalog.table("nodes")

    (foreign_key,) = nodes.foreign_keys(catalog)
    assert foreign_key.is_self_referential()
    assert nodes.is_root(catalog)
    assert nodes.referenced_tables(catalog) == []


def test_self_referencing_table_can_be_dropped():
    catalog = catalog_from_sql(
        "CREATE TABLE nodes (id INT PRIMARY KEY, parent_id INT REFERENCES nodes(id));"
        "DROP TABLE nodes;"
    )

    assert catalog.tables() == []


PARENT_CHILD = """
CREATE TABLE parent (id INT PRIMARY KEY);
CREATE TABLE child (id INT PRIMARY KEY, parent_id INT REFERENCES parent(id));
"""


def test_drop_of_referenced_table_is_refused():
    with pytest.raises(DropConflictError, match="parent") as info:
        catalog_from_sql(PARENT_CHILD + "DROP TABLE parent;")

    assert info.value.dependents == ["child"]


def test_dropping_a_table_together_with_its_dependents_is_allowed():
    catalog = catalog_from_sql(PARENT_CHILD + "DROP TABLE parent, child;")

    assert catalog.tables() == []


def test_drop_table_names_the_same_table_twice():
    catalog = catalog_from_sql(USERS + ORDERS + "DROP TABLE orders, users, public.orders;")

    assert catalog.tables() == []


def test_drop_cascade_leaves_dangling_foreign_keys():
    catalog = catalog_from_sql(PARENT_CHILD + "DROP TABLE parent CASCADE;")

    assert [t.name for t in catalog.tables()] == ["child"]
    (foreign_key,) = catalog.table("child").foreign_keys(catalog)
    assert foreign_key.referenced_table(catalog) is None
    with pytest.raises(InconsistentCatalogError, match="parent"):
        catalog.table_dag()


def test_drop_missing_table():
    with pytest.raises(NotFoundError, match="ghost"):
        catalog_from_sql("DROP TABLE ghost;")

    assert catalog_from_sql("DROP TABLE IF EXISTS ghost;").tables() == []


def test_recreating_a_dropped_table_gives_the_same_catalog():
    once = catalog_from_sql(USERS + ORDERS)
    twice = catalog_from_sql(USERS + ORDERS + "DROP TABLE orders; DROP TABLE users;" + USERS + ORDERS)

    assert once == twice


def test_drop_table_removes_its_triggers_and_policies():
    catalog = catalog_from_sql(
        USERS
        + """
        CREATE FUNCTION noop() RETURNS trigger AS $$ BEGIN RETURN NEW; END; $$ LANGUAGE plpgsql;
        CREATE TRIGGER users_noop BEFORE INSERT ON users FOR EACH ROW EXECUTE FUNCTION noop();
        CREATE POLICY users_all ON users USING (true);
        DROP TABLE users;
        DROP FUNCTION noop();
        """
    )

    assert catalog.triggers() == []
    assert catalog.policies() == []
    assert catalog.function("noop") is None


NOOP = """
CREATE FUNCTION noop() RETURNS trigger AS $$ BEGIN RETURN NEW; END; $$ LANGUAGE plpgsql;
"""


@pytest.mark.parametrize(
    "create, drop, recreate, read",
    [
        (
            "CREATE TRIGGER tr BEFORE INSERT ON users EXECUTE FUNCTION noop();",
            "DROP TRIGGER tr ON users;",
            "CREATE TRIGGER tr AFTER DELETE ON users FOR EACH ROW EXECUTE FUNCTION noop();",
            lambda catalog: [e.value for e in catalog.trigger("tr").events],
        ),
        (
            "CREATE POLICY p ON users USING (true);",
            "DROP POLICY p ON users;",
            "CREATE POLICY p ON users FOR DELETE USING (name IS NULL);",
            lambda catalog: catalog.policy("p").using.sql,
        ),
        (
            "CREATE ROLE r LOGIN;",
            "DROP ROLE r;",
            "CREATE ROLE r;",
            lambda catalog: catalog.role("r").login,
        ),
        (
            "CREATE INDEX i ON users (name);",
            "DROP INDEX i;",
            "CREATE INDEX i ON users (email);",
            lambda catalog: [c.name for c in catalog.table("users").indices(catalog)[0].columns(catalog)],
        ),
        (
            "CREATE FUNCTION f() RETURNS int AS 'select 1' LANGUAGE sql;",
            "DROP FUNCTION f();",
            "CREATE FUNCTION f() RETURNS int AS 'select 2' LANGUAGE sql;",
            lambda catalog: catalog.function("f").body,
        ),
    ],
)
def test_dropped_objects_can_be_recreated_differently(create: str, drop: str, recreate: str, read):
    first = catalog_from_sql(USERS + NOOP + create)
    recreated = catalog_from_sql(USERS + NOOP + create + drop + recreate)
    direct = catalog_from_sql(USERS + NOOP + recreate)

    assert read(recreated) == read(direct)
    assert read(recreated) != read(first)
    assert recreated == direct


FUNCTION = """
CREATE FUNCTION is_positive(x integer) RETURNS boolean AS $$ SELECT x > 0 $$ LANGUAGE sql;
"""


@pytest.mark.parametrize(
    "usage, dependent",
    [
        ("CREATE TABLE t (a INT CHECK (is_positive(a)));", "check constraint"),
        (
            "CREATE TABLE t (a INT); CREATE POLICY p ON t USING (is_positive(a));",
            "policy `p`",
        ),
        (
            "CREATE TABLE t (a INT); CREATE TRIGGER tr AFTER INSERT ON t "
            "FOR EACH ROW EXECUTE FUNCTION is_positive();",
            "trigger `tr`",
        ),
    ],
)
def test_function_in_use_cannot_be_dropped(usage: str, dependent: str):
    for drop in ("DROP FUNCTION is_positive;", "DROP FUNCTION IF EXISTS is_positive(integer) CASCADE;"):
        with pytest.raises(DropConflictError, match=dependent):
            catalog_from_sql(FUNCTION + usage + drop)


def test_function_can_be_dropped_once_unused():
    catalog = catalog_from_sql(
        FUNCTION
        + "CREATE TABLE t (a INT CHECK (is_positive(a)));"
        + "DROP TABLE t; DROP FUNCTION is_positive(int4);"
    )

    assert catalog.function("is_positive") is None


def test_one_overload_can_be_dropped_while_another_remains():
    catalog = catalog_from_sql(
        FUNCTION
        + "CREATE FUNCTION is_positive(x numeric) RETURNS boolean AS 'select x > 0' LANGUAGE sql;"
        + "CREATE TABLE t (a INT CHECK (is_positive(a)));"
        + "DROP FUNCTION is_positive(numeric);"
    )

    (function,) = [f for f in catalog.functions() if f.name == "is_positive"]
    assert function.normalized_argument_type_names() == ["INT"]


def test_function_redefinition():
    with pytest.raises(AlreadyExistsError, match=r"is_positive\(int4\)"):
        catalog_from_sql(
            FUNCTION + "CREATE FUNCTION is_positive(int4) RETURNS boolean AS 'select true' LANGUAGE sql;"
        )

    catalog = catalog_from_sql(
        FUNCTION
        + "CREATE OR REPLACE FUNCTION is_positive(x integer) RETURNS boolean "
        + "AS 'select x >= 0' LANGUAGE sql;"
    )
    assert catalog.function("IS_POSITIVE").body == "select x >= 0"


def test_builtin_functions_are_present_and_replaceable():
    catalog = catalog_from_sql(
        "CREATE FUNCTION lower(x text) RETURNS text AS 'select x' LANGUAGE sql;"
    )

    function = catalog.function("lower")
    assert function.body == "select x"
    assert not function.builtin
    assert catalog.function("length").builtin


def test_drop_missing_function():
    with pytest.raises(NotFoundError, match=r"ghost\(integer\)"):
        catalog_from_sql("DROP FUNCTION ghost(integer);")

    catalog_from_sql("DROP FUNCTION IF EXISTS ghost(integer);")


def test_indices():
    catalog = catalog_from_sql(
        USERS
        + """
        CREATE INDEX users_name ON users (name);
        CREATE UNIQUE INDEX users_lower_email ON users (lower(email));
        CREATE INDEX IF NOT EXISTS users_name ON users (email);
        """
    )
    users = catalog.table("users")

    (index,) = users.indices(catalog)
    assert index.name == "users_name"
    assert index.is_simple()
    assert [c.name for c in index.columns(catalog)] == ["name"]
    expression_index = users.unique_indices(catalog)[-1]
    assert expression_index.name == "users_lower_email"
    assert not expression_index.is_simple()
    assert expression_index.expression_sql == "lower(email)"


@pytest.mark.parametrize(
    "sql, error",
    [
        ("CREATE INDEX i ON users (name); CREATE INDEX i ON users (email);", AlreadyExistsError),
        ("CREATE INDEX i ON users (nope);", UnknownColumnError),
        ("CREATE INDEX i ON ghost (id);", UnresolvedReferenceError),
        ("DROP INDEX ghost;", NotFoundError),
    ],
)
def test_invalid_index_statements(sql: str, error: type):
    with pytest.raises(error):
        catalog_from_sql(USERS + sql)


def test_drop_index():
    catalog = catalog_from_sql(USERS + "CREATE INDEX i ON users (name); DROP INDEX i; DROP INDEX IF EXISTS i;")

    assert catalog.table("users").indices(catalog) == ()


def test_primary_key_index_cannot_be_dropped():
    with pytest.raises(DropConflictError, match="primary key"):
        catalog_from_sql("CREATE TABLE t (id INT, CONSTRAINT t_pk PRIMARY KEY (id)); DROP INDEX t_pk;")


def test_row_level_security():
    catalog = catalog_from_sql(
        USERS
        + """
        CREATE TABLE docs (id INT PRIMARY KEY);
        ALTER TABLE users ENABLE ROW LEVEL SECURITY;
        ALTER TABLE docs ENABLE ROW LEVEL SECURITY;
        ALTER TABLE docs FORCE ROW LEVEL SECURITY;
        ALTER TABLE users DISABLE ROW LEVEL SECURITY;
        ALTER TABLE IF EXISTS ghost ENABLE ROW LEVEL SECURITY;
        """
    )

    assert [t.name for t in catalog.rls_tables()] == ["docs"]
    assert [t.name for t in catalog.forced_rls_tables()] == ["docs"]
    assert catalog.number_of_rls_tables() == 1


def test_triggers():
    catalog = catalog_from_sql(
        USERS
        + """
        CREATE FUNCTION noop() RETURNS trigger AS $$ BEGIN RETURN NEW; END; $$ LANGUAGE plpgsql;
        CREATE TRIGGER t1 BEFORE UPDATE OF name ON users FOR EACH ROW EXECUTE FUNCTION noop();
        CREATE OR REPLACE TRIGGER t1 AFTER UPDATE ON users FOR EACH ROW EXECUTE FUNCTION noop();
        """
    )

    (trigger,) = catalog.triggers()
    assert trigger.timing.value == "AFTER"
    assert trigger.table(catalog) == catalog.table("users")
    assert trigger.function(catalog).name == "noop"
    assert catalog.table("users").triggers(catalog) == [trigger]


@pytest.mark.parametrize(
    "sql, error",
    [
        ("CREATE TRIGGER t BEFORE INSERT ON users EXECUTE FUNCTION ghost();", UnresolvedReferenceError),
        ("CREATE TRIGGER t BEFORE INSERT ON ghost EXECUTE FUNCTION now();", UnresolvedReferenceError),
        ("CREATE TRIGGER t BEFORE UPDATE OF nope ON users EXECUTE FUNCTION now();", UnknownColumnError),
        (
            "CREATE TRIGGER t BEFORE INSERT ON users EXECUTE FUNCTION now();"
            "CREATE TRIGGER t BEFORE INSERT ON users EXECUTE FUNCTION now();",
            AlreadyExistsError,
        ),
        ("DROP TRIGGER t ON users;", NotFoundError),
    ],
)
def test_invalid_trigger_statements(sql: str, error: type):
    with pytest.raises(error):
        catalog_from_sql(USERS + sql)


def test_policies():
    catalog = catalog_from_sql(
        USERS
        + """
        CREATE ROLE app;
        CREATE POLICY own ON users FOR SELECT TO app USING (lower(email) = current_user);
        CREATE POLICY everyone ON users USING (true);
        DROP POLICY everyone ON users;
        DROP POLICY IF EXISTS everyone ON users;
        """
    )

    (policy,) = catalog.policies()
    assert policy.name == "own"
    assert policy.command.value == "SELECT"
    assert [f.name for f in policy.using_functions(catalog)] == ["lower", "current_user"]
    assert [r.name for r in policy.roles(catalog)] == ["app"]
    assert catalog.role("app").policies(catalog) == [policy]


def test_duplicate_policy_on_the_same_table():
    with pytest.raises(AlreadyExistsError, match="p on users"):
        catalog_from_sql(USERS + "CREATE POLICY p ON users; CREATE POLICY p ON users;")


@pytest.mark.parametrize(
    "sql",
    [
        "CREATE VIEW active_users AS SELECT * FROM users",
        "SELECT 1",
        "CREATE EXTENSION IF NOT EXISTS pgcrypto",
        "INSERT INTO users (email) VALUES ('a@example.com')",
        "BEGIN",
        "COMMIT",
        "CREATE SEQUENCE s",
        "ALTER ROLE app SET search_path TO app",
    ],
)
def test_ignored_statements_leave_the_catalog_unchanged(sql: str):
    assert catalog_from_sql(USERS + sql + ";") == catalog_from_sql(USERS)


@pytest.mark.parametrize(
    "sql, kind",
    [
        ("CREATE DATABASE shop", "CREATE DATABASE"),
        ("CREATE TABLE copy AS SELECT * FROM users", "CREATE TABLE AS"),
        ("CREATE TABLESPACE fast LOCATION '/ssd'", "CREATE TABLESPACE"),
    ],
)
def test_unsupported_statements(sql: str, kind: str):
    with pytest.raises(UnsupportedStatementError) as info:
        catalog_from_sql(USERS + sql + ";")

    assert info.value.kind == kind


@pytest.mark.parametrize(
    "kind, ignored",
    [
        ("CREATE VIEW", True),
        ("CREATE TEXT SEARCH CONFIGURATION", True),
        ("SELECT", True),
        ("CREATE VIEWS", False),
        ("CREATE DATABASE", False),
    ],
)
def test_is_ignored(kind: str, ignored: bool):
    assert is_ignored(kind) is ignored


def test_first_failure_aborts_the_build():
    statements = parse_sql(USERS + "CREATE TABLE users (id INT);" + ORDERS)

    with pytest.raises(CatalogError):
        build_catalog(statements)


def test_processor_can_be_driven_statement_by_statement():
    processor = StatementProcessor("incremental")
    for statement in parse_sql(USERS + ORDERS):
        processor.process(statement)

    catalog = processor.builder.freeze()
    assert catalog.catalog_name == "incremental"
    assert [t.name for t in catalog.table_dag()] == ["users", "orders"]
