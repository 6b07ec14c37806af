from __future__ import annotations

import pytest

from conftest import make_items
from quiz_bot.core.errors import PoolUnavailableError, StoreUnavailableError
from quiz_bot.core.models import UserProgress
from quiz_bot.core.stores.memory_store import InMemoryProgressStore
from quiz_bot.core.stores.sqlite_store import (
    SqliteNameDirectory,
    SqliteProgressStore,
    SqliteQuestionPool,
    get_connection,
    init_db,
    replace_questions,
)


@pytest.fixture
def tmp_db(tmp_path):
    db_path = str(tmp_path / "data" / "quiz.db")
    init_db(db_path)
    return db_path


def test_init_db_creates_tables(tmp_db):
    conn = get_connection(tmp_db)
    tables = {row["name"] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert {"questions", "user_progress", "usernames"} <= tables


@pytest.mark.asyncio
async def test_question_pool_round_trip(tmp_db):
    items = make_items(5)
    assert replace_questions(tmp_db, items) == 5

    fetched = await SqliteQuestionPool(tmp_db).fetch_all()

    assert fetched == items


def test_replace_questions_overwrites_pool(tmp_db):
    replace_questions(tmp_db, make_items(5))
    assert replace_questions(tmp_db, make_items(2, prefix="Other")) == 2


@pytest.mark.asyncio
async def test_progress_upsert_and_read(tmp_db):
    store = SqliteProgressStore(tmp_db)
    assert await store.get("u") is None

    await store.put("u", UserProgress(user_id="u", level=1, score=4, asked_history=frozenset({"a", "b"})))
    await store.put("u", UserProgress(user_id="u", level=2, score=6, asked_history=frozenset({"a", "b", "c"})))

    progress = await store.get("u")
    assert progress == UserProgress(user_id="u", level=2, score=6, asked_history=frozenset({"a", "b", "c"}))


@pytest.mark.asyncio
async def test_get_all_keeps_insertion_order(tmp_db):
    store = SqliteProgressStore(tmp_db)
    for user_id in ("z", "a", "m"):
        await store.put(user_id, UserProgress(user_id=user_id, score=1))
    await store.put("z", UserProgress(user_id="z", score=5))

    records = await store.get_all()

    assert [user_id for user_id, _ in records] == ["z", "a", "m"]
    assert records[0][1].score == 5


@pytest.mark.asyncio
async def test_put_rejects_mismatched_user(tmp_db):
    with pytest.raises(ValueError):
        await SqliteProgressStore(tmp_db).put("u", UserProgress(user_id="v"))
    with pytest.raises(ValueError):
        await InMemoryProgressStore().put("u", UserProgress(user_id="v"))


@pytest.mark.asyncio
async def test_name_directory(tmp_db):
    directory = SqliteNameDirectory(tmp_db)
    assert await directory.lookup("1") is None
    await directory.remember("1", "amina")
    await directory.remember("1", "amina_2")
    assert await directory.lookup("1") == "amina_2"


@pytest.mark.asyncio
async def test_unreachable_database_raises_domain_errors(tmp_path):
    # A directory cannot be opened as a database file.
    broken = str(tmp_path)
    with pytest.raises(StoreUnavailableError):
        await SqliteProgressStore(broken).get("u")
    with pytest.raises(StoreUnavailableError):
        await SqliteNameDirectory(broken).lookup("u")
    with pytest.raises(PoolUnavailableError):
        await SqliteQuestionPool(broken).fetch_all()


@pytest.mark.asyncio
async def test_missing_tables_raise_store_errors(tmp_path):
    empty_db = str(tmp_path / "empty.db")
    with pytest.raises(StoreUnavailableError):
        await SqliteProgressStore(empty_db).get_all()


def test_progress_validation():
    with pytest.raises(ValueError):
        UserProgress(user_id="u", level=0)
    with pytest.raises(ValueError):
        UserProgress(user_id="u", score=-1)
