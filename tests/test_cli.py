from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from ddlcat.cli.cli import app
from ddlcat.cli.common import output

runner = CliRunner()

SCHEMA = """
CREATE TABLE users (
    id INT PRIMARY KEY,
    email TEXT NOT NULL CHECK (email <> ''),
    nickname VARCHAR(32) CHECK (length(nickname) <= 32),
    updated_at TIMESTAMP
);
CREATE TABLE posts (id INT PRIMARY KEY, author INT REFERENCES users(id), CHECK (1 = 1));
ALTER TABLE posts ENABLE ROW LEVEL SECURITY;

CREATE FUNCTION touch() RETURNS trigger AS $$
BEGIN
    NEW.updated_at = now();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
CREATE TRIGGER users_touch BEFORE UPDATE ON users FOR EACH ROW EXECUTE FUNCTION touch();

CREATE ROLE app LOGIN CONNECTION LIMIT 5;
GRANT SELECT ON users TO app;
"""


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(output.console, "width", 200)


@pytest.fixture
def schema_file(tmp_path: Path) -> Path:
    path = tmp_path / "schema.sql"
    path.write_text(SCHEMA, encoding="utf-8")
    return path


@pytest.fixture
def bare_file(tmp_path: Path) -> Path:
    path = tmp_path / "bare.sql"
    path.write_text("CREATE TABLE plain (id INT);", encoding="utf-8")
    return path


def test_summary_counts_entities(schema_file: Path):
    result = runner.invoke(app, ["--catalog-name", "blog", "summary", str(schema_file)])

    assert result.exit_code == 0, result.output
    assert "Catalog blog" in result.stdout
    assert "tables: 2" in result.stdout
    assert "functions: 1" in result.stdout
    assert "tables with RLS: 1" in result.stdout


def test_catalog_name_from_environment(schema_file: Path):
    result = runner.invoke(app, ["summary", str(schema_file)], env={"DDLCAT_CATALOG_NAME": "shop"})

    assert result.exit_code == 0, result.output
    assert "Catalog shop" in result.stdout


def test_tables_in_dependency_order(schema_file: Path):
    result = runner.invoke(app, ["tables", str(schema_file)])

    assert result.exit_code == 0, result.output
    assert "dag order" in result.stdout
    assert result.stdout.index("users") < result.stdout.index("posts")
    assert "enabled" in result.stdout


def test_tables_by_name(schema_file: Path):
    result = runner.invoke(app, ["tables", "--order", "name", str(schema_file)])

    assert result.exit_code == 0, result.output
    assert result.stdout.index("posts") < result.stdout.index("users")


def test_tables_rejects_unknown_order(schema_file: Path):
    result = runner.invoke(app, ["tables", "--order", "size", str(schema_file)])

    assert result.exit_code == 2
    assert "Invalid --order" in result.stdout


def test_checks_are_classified(schema_file: Path):
    result = runner.invoke(app, ["checks", str(schema_file)])

    assert result.exit_code == 0, result.output
    assert "not empty" in result.stdout
    assert "length < 33" in result.stdout
    assert "tautology" in result.stdout


def test_checks_for_one_table(schema_file: Path):
    result = runner.invoke(app, ["checks", "--table", "posts", str(schema_file)])

    assert result.exit_code == 0, result.output
    assert "tautology" in result.stdout
    assert "not empty" not in result.stdout


def test_checks_for_unknown_table(schema_file: Path):
    result = runner.invoke(app, ["checks", "--table", "ghost", str(schema_file)])

    assert result.exit_code == 1
    assert "Table 'ghost' not found." in result.stdout


def test_triggers_show_maintained_columns(schema_file: Path):
    result = runner.invoke(app, ["triggers", str(schema_file)])

    assert result.exit_code == 0, result.output
    assert "users_touch" in result.stdout
    assert "BEFORE UPDATE FOR EACH ROW" in result.stdout
    assert "updated_at = now()" in result.stdout


def test_roles_show_flags_and_grants(schema_file: Path):
    result = runner.invoke(app, ["roles", str(schema_file)])

    assert result.exit_code == 0, result.output
    assert "CONNECTION LIMIT 5" in result.stdout
    assert "SELECT ON TABLES users TO app" in result.stdout


@pytest.mark.parametrize(
    "command, message",
    [
        ("triggers", "No triggers found."),
        ("roles", "No roles found."),
        ("checks", "No check constraints found."),
    ],
)
def test_empty_results_warn_and_succeed(bare_file: Path, command: str, message: str):
    result = runner.invoke(app, [command, str(bare_file)])

    assert result.exit_code == 0, result.output
    assert message in result.stdout


def test_invalid_sql_exits_with_error(tmp_path: Path):
    bad = tmp_path / "bad.sql"
    bad.write_text("CREATE TABLE t (a INT REFERENCES ghost(id));", encoding="utf-8")

    result = runner.invoke(app, ["summary", str(bad)])

    assert result.exit_code == 1
    assert "ghost" in result.stdout


def test_missing_path_exits_with_error(tmp_path: Path):
    result = runner.invoke(app, ["summary", str(tmp_path / "missing.sql")])

    assert result.exit_code == 1
    assert "Cannot load" in result.stdout


def test_tables_reports_dangling_foreign_keys(tmp_path: Path):
    path = tmp_path / "dangling.sql"
    path.write_text(
        "CREATE TABLE parent (id INT PRIMARY KEY);"
        "CREATE TABLE child (id INT, parent_id INT REFERENCES parent(id));"
        "DROP TABLE parent CASCADE;",
        encoding="utf-8",
    )

    dag = runner.invoke(app, ["tables", str(path)])
    by_name = runner.invoke(app, ["tables", "--order", "name", str(path)])

    assert dag.exit_code == 1
    assert "--order name" in dag.stdout
    assert by_name.exit_code == 0, by_name.output
    assert "child" in by_name.stdout
