import json
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, TypeAlias

import httpx
import pytest
import pytest_asyncio

from domain.catalog import RecipeCatalogClient
from domain.favourites import FavouritesRepository
from domain.preferences import PreferenceRepository
from domain.store import PersistentStore


DATA_DIR = Path(__file__).parent / "data"
BASE_URL = "https://catalog.test"


Handler: TypeAlias = Callable[[httpx.Request], Awaitable[httpx.Response]]


def load_json(name: str) -> Any:
    with open(DATA_DIR / name) as f:
        return json.load(f)


class CatalogStub:
    """Routes catalog requests to canned JSON and records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.search_results: dict[str, Any] = {
            "beef": load_json("complex_search_beef.json"),
        }
        self.details: dict[int, Any] = {42: load_json("information_42.json")}
        self.handler: Handler | None = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return await self.handler(request)
        return self.default(request)

    def default(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.strip("/").split("/")
        match parts:
            case ["recipes", "complexSearch"]:
                query = request.url.params.get("query", "")
                data = self.search_results.get(
                    query,
                    {"results": [], "offset": 0, "number": 0, "totalResults": 0},
                )
                return httpx.Response(200, json=data)
            case ["recipes", id, "information"] if int(id) in self.details:
                return httpx.Response(200, json=self.details[int(id)])
            case _:
                return httpx.Response(404, json={"status": "failure"})


@pytest.fixture
def catalog_stub() -> CatalogStub:
    return CatalogStub()


@pytest.fixture
def catalog(catalog_stub: CatalogStub) -> RecipeCatalogClient:
    return RecipeCatalogClient(
        api_key="test-key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(catalog_stub)),
        base_url=BASE_URL,
    )


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'recipe_finder.db'}"


@pytest_asyncio.fixture
async def store(db_url: str) -> AsyncIterator[PersistentStore]:
    store = PersistentStore.from_url(db_url)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def broken_store(tmp_path: Path) -> AsyncIterator[PersistentStore]:
    store = PersistentStore.from_url(
        f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'recipe_finder.db'}"
    )
    yield store
    await store.close()


@pytest.fixture
def favourites(store: PersistentStore) -> FavouritesRepository:
    return FavouritesRepository(store)


@pytest.fixture
def preferences(store: PersistentStore) -> PreferenceRepository:
    return PreferenceRepository(store)
