from __future__ import annotations

import pytest

from ddlcat.core.builder import CatalogBuilder
from ddlcat.core.dag import table_dag
from ddlcat.core.errors import InconsistentCatalogError
from ddlcat.core.loader import catalog_from_sql
from ddlcat.core.models import Column, ForeignKey, Table, TableMetadata


def _names(tables) -> list[str]:
    return [t.qualified_name for t in tables]


def test_tables_follow_the_tables_they_reference():
    catalog = catalog_from_sql(
        """
        CREATE TABLE extended_comments (id INT PRIMARY KEY);
        CREATE TABLE users (id INT PRIMARY KEY);
        CREATE TABLE comments (id INT PRIMARY KEY, user_id INT REFERENCES users(id));
        DROP TABLE extended_comments;
        CREATE TABLE extended_comments (
            id INT PRIMARY KEY REFERENCES comments(id),
            author_id INT REFERENCES users(id)
        );
        """
    )

    assert _names(catalog.table_dag()) == ["users", "comments", "extended_comments"]


def test_ties_keep_catalog_order():
    catalog = catalog_from_sql(
        """
        CREATE TABLE zeta (id INT PRIMARY KEY);
        CREATE TABLE alpha (id INT PRIMARY KEY, zeta_id INT REFERENCES zeta);
        CREATE TABLE beta (id INT PRIMARY KEY);
        """
    )

    assert _names(catalog.tables()) == ["alpha", "beta", "zeta"]
    assert _names(table_dag(catalog)) == ["beta", "zeta", "alpha"]


def test_self_references_and_parallel_edges_are_ignored():
    catalog = catalog_from_sql(
        """
        CREATE TABLE nodes (id INT PRIMARY KEY, parent_id INT REFERENCES nodes(id));
        CREATE TABLE edges (
            source INT REFERENCES nodes(id),
            target INT REFERENCES nodes(id)
        );
        """
    )

    assert _names(catalog.table_dag()) == ["nodes", "edges"]


def test_schema_qualified_tables_come_after_unqualified_ones():
    catalog = catalog_from_sql(
        """
        CREATE TABLE app.accounts (id INT PRIMARY KEY);
        CREATE TABLE audit (id INT PRIMARY KEY, account_id INT REFERENCES app.accounts(id));
        """
    )

    assert _names(catalog.tables()) == ["audit", "app.accounts"]
    assert _names(catalog.table_dag()) == ["app.accounts", "audit"]


def _with_foreign_keys(edges: dict[str, str]) -> CatalogBuilder:
    builder = CatalogBuilder("graph")
    for host, referenced in edges.items():
        builder.add_table(
            Table(name=host),
            TableMetadata(
                columns=(Column(table_key=(None, host), name="ref", data_type="INT"),),
                foreign_keys=(
                    ForeignKey(
                        host_table_key=(None, host),
                        host_column_names=("ref",),
                        referenced_table_key=(None, referenced),
                        referenced_column_names=("ref",),
                    ),
                ),
            ),
        )
    return builder


def test_cycle_is_reported():
    catalog = _with_foreign_keys({"a": "b", "b": "a"}).freeze()

    with pytest.raises(InconsistentCatalogError, match="cycle"):
        table_dag(catalog)


def test_dangling_reference_is_reported():
    catalog = _with_foreign_keys({"a": "gone"}).freeze()

    with pytest.raises(InconsistentCatalogError, match="gone"):
        table_dag(catalog)


def test_empty_catalog_has_empty_order():
    assert table_dag(CatalogBuilder("empty").freeze()) == []
