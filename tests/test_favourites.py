import asyncio

import pytest

from domain.favourites import FAVOURITES_KEY, FavouritesRepository
from domain.models import RecipeSummary
from domain.store import PersistentStore


def summary(id: int, title: str = "Stew") -> RecipeSummary:
    return RecipeSummary(id=id, title=title, image_url=f"{id}.jpg")


@pytest.mark.asyncio
async def test_empty_store_lists_nothing(favourites: FavouritesRepository) -> None:
    assert await favourites.list() == ()
    assert not await favourites.contains(1)


@pytest.mark.asyncio
async def test_add_is_idempotent(favourites: FavouritesRepository) -> None:
    s = summary(1)
    await favourites.add(s)
    await favourites.add(s)
    got = await favourites.list()
    assert [f.id for f in got] == [1]


@pytest.mark.asyncio
async def test_add_then_remove_restores(favourites: FavouritesRepository) -> None:
    await favourites.add(summary(3))
    await favourites.add(summary(5))
    before = await favourites.list()

    await favourites.add(summary(8))
    await favourites.remove(8)

    assert await favourites.list() == before


@pytest.mark.asyncio
async def test_insertion_order_kept(favourites: FavouritesRepository) -> None:
    for id in (9, 2, 7):
        await favourites.add(summary(id))
    assert [f.id for f in await favourites.list()] == [9, 2, 7]
    assert await favourites.contains(2)


@pytest.mark.asyncio
async def test_remove_absent_id(favourites: FavouritesRepository) -> None:
    await favourites.add(summary(1))
    assert await favourites.remove(99)
    assert [f.id for f in await favourites.list()] == [1]


@pytest.mark.asyncio
async def test_concurrent_adds_both_survive(favourites: FavouritesRepository) -> None:
    await asyncio.gather(favourites.add(summary(7)), favourites.add(summary(9)))
    assert {f.id for f in await favourites.list()} == {7, 9}


@pytest.mark.asyncio
async def test_concurrent_add_and_remove(favourites: FavouritesRepository) -> None:
    await favourites.add(summary(1))
    await asyncio.gather(
        favourites.add(summary(2)),
        favourites.remove(1),
        favourites.add(summary(2)),
    )
    assert [f.id for f in await favourites.list()] == [2]


@pytest.mark.asyncio
async def test_summary_round_trips(store: PersistentStore) -> None:
    s = RecipeSummary(
        id=4, title="Soup", image_url="4.jpg", image_format="jpg", ready_in_minutes=30
    )
    await FavouritesRepository(store).add(s)
    assert await store.get(FAVOURITES_KEY) == [
        {"id": 4, "title": "Soup", "image": "4.jpg", "imageType": "jpg", "readyInMinutes": 30}
    ]
    assert await FavouritesRepository(store).list() == (s,)


@pytest.mark.asyncio
async def test_malformed_entries_skipped(store: PersistentStore) -> None:
    await store.set(
        FAVOURITES_KEY,
        [{"id": 1, "title": "Stew", "image": "x.jpg"}, {"title": "no id"}, "junk"],
    )
    got = await FavouritesRepository(store).list()
    assert [f.id for f in got] == [1]


@pytest.mark.asyncio
async def test_malformed_value_is_empty(store: PersistentStore) -> None:
    await store.set(FAVOURITES_KEY, {"not": "a list"})
    assert await FavouritesRepository(store).list() == ()


@pytest.mark.asyncio
async def test_unavailable_store_degrades(broken_store: PersistentStore) -> None:
    favourites = FavouritesRepository(broken_store)
    assert await favourites.list() == ()
    assert favourites.degraded

    assert not await favourites.add(summary(1))
    assert await favourites.contains(1)
    assert not await favourites.remove(1)
    assert await favourites.list() == ()


@pytest.mark.asyncio
async def test_concurrent_adds_through_two_repositories(store: PersistentStore) -> None:
    first, second = FavouritesRepository(store), FavouritesRepository(store)
    await asyncio.gather(first.add(summary(7)), second.add(summary(9)))
    assert {f.id for f in await first.list()} == {7, 9}
    assert {f.id for f in await second.list()} == {7, 9}
