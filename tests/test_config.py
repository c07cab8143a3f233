"""Unit tests for create() option validation and the thenable switch."""

from __future__ import annotations

import pytest

import sqlchain
from sqlchain.builder import Builder, ThenableBuilder
from sqlchain.errors import ConfigError
from sqlchain.schema.keys import camel_case, identity, snake_case
from tests.fixtures import RecordingPool


def test_defaults(pool):
    sq = sqlchain.create(pool=pool)
    assert isinstance(sq, ThenableBuilder)
    assert sq.config.pool is pool
    assert sq.config.thenable is True
    assert sq.config.map_input_keys is snake_case
    assert sq.config.map_output_keys is camel_case
    assert sq.config.effective_dialect == "postgres"


def test_mappers_by_name(pool):
    sq = sqlchain.create(pool=pool, map_input_keys="identity", map_output_keys="identity")
    assert sq.config.map_input_keys is identity
    assert sq.config.map_output_keys is identity


def test_config_is_frozen(pool):
    sq = sqlchain.create(pool=pool)
    with pytest.raises(Exception):
        sq.config.thenable = False


def test_chained_builders_share_config(sq):
    assert sq.from_("t").where({"a": 1}).config is sq.config


class TestInvalidOptions:
    def test_missing_pool(self):
        with pytest.raises(ConfigError) as exc_info:
            sqlchain.create()
        assert exc_info.value.option == "pool"

    def test_pool_without_execute(self):
        with pytest.raises(ConfigError) as exc_info:
            sqlchain.create(pool=object())
        assert exc_info.value.option == "pool"

    def test_unknown_option(self, pool):
        with pytest.raises(ConfigError) as exc_info:
            sqlchain.create(pool=pool, mapKeys=identity)
        assert exc_info.value.option == "mapKeys"

    def test_unknown_mapper_name(self, pool):
        with pytest.raises(ConfigError) as exc_info:
            sqlchain.create(pool=pool, map_input_keys="kebab_case")
        assert exc_info.value.option == "map_input_keys"

    def test_non_callable_mapper(self, pool):
        with pytest.raises(ConfigError):
            sqlchain.create(pool=pool, map_output_keys=3)

    def test_unknown_dialect(self, pool):
        with pytest.raises(ConfigError, match="Unsupported dialect") as exc_info:
            sqlchain.create(pool=pool, dialect="oracle")
        assert exc_info.value.option == "dialect"

    def test_config_error_is_sqlchain_error(self):
        with pytest.raises(sqlchain.SqlChainError):
            sqlchain.create()


class TestThenable:
    @pytest.mark.asyncio
    async def test_awaiting_builder_executes(self):
        pool = RecordingPool(rows=[{"last_name": "Schmo"}])
        sq = sqlchain.create(pool=pool)
        rows = await sq("person")({"firstName": "Jo"})("last_name")
        assert rows == [{"lastName": "Schmo"}]
        assert pool.calls == [
            ("select last_name from person where (first_name = $1)", ["Jo"])
        ]

    @pytest.mark.asyncio
    async def test_explicit_true(self):
        pool = RecordingPool(rows=[{"last_name": "Schmo"}])
        sq = sqlchain.create(pool=pool, thenable=True)
        assert await sq("person")({"firstName": "Jo"})("last_name") == [{"lastName": "Schmo"}]

    @pytest.mark.asyncio
    async def test_awaiting_false_builder_returns_it_unchanged(self, pool):
        sq = sqlchain.create(pool=pool, thenable=False)
        query = sq("person")({"firstName": "Jo"})("last_name")
        assert type(query) is Builder
        assert not isinstance(query, ThenableBuilder)
        assert await query is query
        assert pool.calls == []

    @pytest.mark.asyncio
    async def test_false_builders_run_explicitly(self):
        pool = RecordingPool(rows=[{"last_name": "Schmo"}])
        sq = sqlchain.create(pool=pool, thenable=False)
        assert await sq("person")({"firstName": "Jo"})("last_name").all() == [
            {"lastName": "Schmo"}
        ]

    def test_construction_never_executes(self, sq, pool):
        sq.from_("person").where({"id": 1}).query
        assert pool.calls == []
