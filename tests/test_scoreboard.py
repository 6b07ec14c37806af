from __future__ import annotations

import pytest

from quiz_bot.constants.message_constants import NO_SCORES_MESSAGE
from quiz_bot.core.errors import StoreUnavailableError
from quiz_bot.core.models import UserProgress
from quiz_bot.core.name_resolver import NameResolver
from quiz_bot.core.services.scoreboard import LeaderboardBuilder
from quiz_bot.core.stores.memory_store import InMemoryNameDirectory, InMemoryProgressStore


class BrokenNameDirectory(InMemoryNameDirectory):
    async def lookup(self, user_id):
        raise StoreUnavailableError("names offline")


async def seeded_store(scores: dict[str, int]) -> InMemoryProgressStore:
    store = InMemoryProgressStore()
    for user_id, score in scores.items():
        await store.put(user_id, UserProgress(user_id=user_id, score=score))
    return store


@pytest.mark.asyncio
async def test_empty_store_yields_no_scores():
    builder = LeaderboardBuilder(InMemoryProgressStore(), NameResolver(InMemoryNameDirectory()))

    leaderboard = await builder.build_leaderboard(5)

    assert leaderboard.is_empty
    assert leaderboard.render() == NO_SCORES_MESSAGE


@pytest.mark.asyncio
async def test_sorted_descending_with_stable_ties():
    store = await seeded_store({"a": 3, "b": 7, "c": 3, "d": 10, "e": 0, "f": 7})
    names = InMemoryNameDirectory()
    await names.remember("d", "dana")
    builder = LeaderboardBuilder(store, NameResolver(names))

    leaderboard = await builder.build_leaderboard(5)

    rows = [(entry.rank, entry.display_name, entry.score) for entry in leaderboard.entries]
    assert rows == [
        (1, "dana", 10),
        (2, "Userb", 7),
        (3, "Userf", 7),
        (4, "Usera", 3),
        (5, "Userc", 3),
    ]
    scores = [entry.score for entry in leaderboard.entries]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_render_lists_entries():
    store = await seeded_store({"1": 4})
    names = InMemoryNameDirectory()
    await names.remember("1", "zed")
    leaderboard = await LeaderboardBuilder(store, NameResolver(names)).build_leaderboard()

    assert leaderboard.render() == "🏆 Leaderboard 🏆\n\n1. @zed: 4 points"


@pytest.mark.asyncio
async def test_name_lookup_failure_uses_placeholder():
    store = await seeded_store({"9": 1})
    builder = LeaderboardBuilder(store, NameResolver(BrokenNameDirectory()))

    leaderboard = await builder.build_leaderboard()

    assert leaderboard.entries[0].display_name == "User9"


@pytest.mark.asyncio
async def test_non_positive_top_n_is_empty():
    store = await seeded_store({"1": 4})
    builder = LeaderboardBuilder(store, NameResolver(InMemoryNameDirectory()))
    assert (await builder.build_leaderboard(0)).is_empty
