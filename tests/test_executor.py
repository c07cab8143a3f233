"""Unit tests for execution: all(), one(), end() and row key mapping."""

from __future__ import annotations

import pytest

import sqlchain
from sqlchain.errors import ExecutionError, MultipleRowsError, NoRowsError
from tests.fixtures import RecordingPool

PEOPLE_ROWS = [
    {"id": 1, "first_name": "Jo", "last_name": "Schmo"},
    {"id": 2, "first_name": "Bo", "last_name": "Mo"},
]


@pytest.mark.asyncio
async def test_all_maps_output_keys():
    pool = RecordingPool(rows=PEOPLE_ROWS)
    sq = sqlchain.create(pool=pool)
    rows = await sq.from_("person").all()
    assert rows == [
        {"id": 1, "firstName": "Jo", "lastName": "Schmo"},
        {"id": 2, "firstName": "Bo", "lastName": "Mo"},
    ]
    assert pool.calls == [("select * from person", [])]


@pytest.mark.asyncio
async def test_identity_output_mapper():
    sq = sqlchain.create(pool=RecordingPool(rows=PEOPLE_ROWS[:1]), map_output_keys="identity")
    assert await sq.from_("person").one() == {"id": 1, "first_name": "Jo", "last_name": "Schmo"}


@pytest.mark.asyncio
async def test_uppercase_output_mapper():
    sq = sqlchain.create(pool=RecordingPool(rows=PEOPLE_ROWS[:1]), map_output_keys=str.upper)
    assert await sq.from_("person").one() == {"ID": 1, "FIRST_NAME": "Jo", "LAST_NAME": "Schmo"}


@pytest.mark.asyncio
async def test_no_rows():
    sq = sqlchain.create(pool=RecordingPool())
    assert await sq.from_("person").where({"id": 999}) == []
    assert await sq.from_("person").one() is None


@pytest.mark.asyncio
async def test_one_returns_first_row():
    sq = sqlchain.create(pool=RecordingPool(rows=PEOPLE_ROWS))
    assert await sq.from_("person").one() == {"id": 1, "firstName": "Jo", "lastName": "Schmo"}


@pytest.mark.asyncio
async def test_one_sends_same_statement_as_all():
    pool = RecordingPool(rows=PEOPLE_ROWS)
    sq = sqlchain.create(pool=pool)
    q = sq.from_("person").where({"firstName": "Jo"})
    await q.one()
    await q.all()
    assert pool.calls[0] == pool.calls[1]


class TestStrictOne:
    @pytest.mark.asyncio
    async def test_no_rows_raises(self):
        sq = sqlchain.create(pool=RecordingPool())
        with pytest.raises(NoRowsError):
            await sq.from_("person").one(strict=True)

    @pytest.mark.asyncio
    async def test_multiple_rows_raises(self):
        sq = sqlchain.create(pool=RecordingPool(rows=PEOPLE_ROWS))
        with pytest.raises(MultipleRowsError) as exc_info:
            await sq.from_("person").one(strict=True)
        assert exc_info.value.count == 2

    @pytest.mark.asyncio
    async def test_single_row(self):
        sq = sqlchain.create(pool=RecordingPool(rows=PEOPLE_ROWS[1:]))
        assert await sq.from_("person").one(strict=True) == {
            "id": 2,
            "firstName": "Bo",
            "lastName": "Mo",
        }


@pytest.mark.asyncio
async def test_driver_errors_propagate_unchanged():
    error = RuntimeError('relation "nope" does not exist')
    sq = sqlchain.create(pool=RecordingPool(error=error))
    with pytest.raises(RuntimeError) as exc_info:
        await sq.from_("nope")
    assert exc_info.value is error


@pytest.mark.asyncio
async def test_non_mapping_rows_raise():
    class TuplePool(RecordingPool):
        async def execute(self, text, params):
            return [(1, "Jo")]

    sq = sqlchain.create(pool=TuplePool())
    with pytest.raises(ExecutionError, match="expected a mapping"):
        await sq.from_("person")


@pytest.mark.asyncio
async def test_none_result_is_empty():
    class NonePool(RecordingPool):
        async def execute(self, text, params):
            return None

    sq = sqlchain.create(pool=NonePool())
    assert await sq.from_("person").delete() == []


@pytest.mark.asyncio
async def test_end_closes_pool():
    pool = RecordingPool()
    sq = sqlchain.create(pool=pool)
    await sq.end()
    assert pool.closed


@pytest.mark.asyncio
async def test_underscore_prefixed_columns_stay_distinct():
    sq = sqlchain.create(pool=RecordingPool(rows=[{"id": 1, "_id": 2}]))
    assert await sq.from_("t") == [{"id": 1, "_id": 2}]


@pytest.mark.asyncio
async def test_colliding_output_keys_raise():
    sq = sqlchain.create(pool=RecordingPool(rows=[{"ID": 1, "id": 2}]), map_output_keys=str.lower)
    with pytest.raises(ExecutionError, match="same key 'id'"):
        await sq.from_("t")
