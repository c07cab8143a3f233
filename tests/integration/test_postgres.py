"""Integration tests: build → compile → execute against a real PostgreSQL instance.

Uses SQLCHAIN_PG_DSN (e.g. ``postgresql://postgres@localhost:5432/sqlchain_test``).
Skips all tests if the env var is unset, the ``postgres`` extra is missing or
the connection fails.  Mirrors the SQLite integration tests.
"""
from __future__ import annotations

import os

import pytest

pytest.importorskip("psycopg_pool", reason="psycopg-pool required for Postgres integration tests")

import sqlchain  # noqa: E402
from sqlchain.errors import MultipleRowsError  # noqa: E402
from sqlchain.execute.psycopg import PsycopgPool  # noqa: E402
from tests.fixtures import PEOPLE, load_ddl  # noqa: E402

pytestmark = pytest.mark.asyncio


async def _seeded(**options):
    dsn = os.environ.get("SQLCHAIN_PG_DSN")
    if not dsn:
        pytest.skip("SQLCHAIN_PG_DSN not set")
    sq = sqlchain.create(pool=PsycopgPool(dsn, timeout=5), **options)
    try:
        await sq.l("drop table if exists person").all()
    except Exception as e:
        await sq.end()
        pytest.skip(f"Cannot connect to Postgres: {e}")
    await sq.l(load_ddl("postgres")).all()
    await sq("person").insert(*PEOPLE).all()
    return sq


async def test_express_query():
    sq = await _seeded()
    try:
        assert await sq("person")({"firstName": "Jo"})("last_name") == [{"lastName": "Schmo"}]
    finally:
        await sq.end()


async def test_one_maps_keys_to_camel_case():
    sq = await _seeded()
    try:
        row = await sq("person")({"firstName": "Jo"})("id, first_name, last_name").one()
        assert row == {"id": 1, "firstName": "Jo", "lastName": "Schmo"}
    finally:
        await sq.end()


async def test_two_rows():
    sq = await _seeded()
    try:
        assert await sq.from_("person").return_("first_name").order_by("id") == [
            {"firstName": "Jo"},
            {"firstName": "Bo"},
        ]
        with pytest.raises(MultipleRowsError):
            await sq.from_("person").one(strict=True)
    finally:
        await sq.end()


async def test_insert_returning():
    sq = await _seeded()
    try:
        rows = await sq("person").insert({"firstName": "Mo"}).return_("id", "last_name")
        assert rows == [{"id": 3, "lastName": None}]
    finally:
        await sq.end()


async def test_percent_in_literal_text():
    sq = await _seeded()
    try:
        rows = await sq.from_("person").where("first_name like 'J%' and id > {}", 0).return_(
            "first_name"
        )
        assert rows == [{"firstName": "Jo"}]
    finally:
        await sq.end()


async def test_update_from_values_list():
    sq = await _seeded()
    try:
        await sq.from_("person", {"v": [{"id": 2, "name": "Moe"}]}).update(
            {"lastName": sqlchain.raw("v.name")}
        ).where("person.id = v.id").all()
        assert await sq("person")({"id": 2})("last_name").one() == {"lastName": "Moe"}
    finally:
        await sq.end()
