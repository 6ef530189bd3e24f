import logging
from typing import Any

import httpx

from domain.models import RecipeDetail, RecipeSearchResponse, RecipeSummary


logger = logging.getLogger(__name__)


BASE_URL = "https://api.spoonacular.com"
TIMEOUT = 20
PAGE_SIZE = 10


class EmptyQuery(ValueError):
    pass


class InvalidId(ValueError):
    pass


class CatalogUnavailable(Exception):
    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Recipe catalog unavailable: {cause!r}")
        self.cause = cause


def catalog_http_client(timeout: float = TIMEOUT) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"Accept": "application/json"},
        timeout=timeout,
    )


class RecipeCatalogClient:
    """Read-only access to the remote recipe catalog.

    One request per call, no retries. Anything that goes wrong between sending
    the request and holding validated models is a `CatalogUnavailable`.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = BASE_URL,
        page_size: int = PAGE_SIZE,
        add_recipe_information: bool = True,
        timeout: float = TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self._owns_client = http_client is None
        self.http_client = (
            catalog_http_client(timeout) if http_client is None else http_client
        )
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.add_recipe_information = add_recipe_information

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self.base_url}/{path}"
        logger.info("GET %s", url)
        try:
            resp = await self.http_client.get(
                url, params={**params, "apiKey": self.api_key}
            )
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Catalog request to %s failed: %r", url, e)
            raise CatalogUnavailable(e) from e

    async def search_response(self, query_text: str) -> RecipeSearchResponse:
        query = query_text.strip()
        if not query:
            raise EmptyQuery("Enter at least one ingredient.")

        params = {"query": query, "number": str(self.page_size)}
        if self.add_recipe_information:
            params["addRecipeInformation"] = "true"

        data = await self._get("recipes/complexSearch", params)
        try:
            return RecipeSearchResponse.model_validate(data)
        except ValueError as e:
            logger.warning("Unexpected search response: %r", e)
            raise CatalogUnavailable(e) from e

    async def search(self, query_text: str) -> list[RecipeSummary]:
        resp = await self.search_response(query_text)
        return list(resp.results)

    async def get_details(self, id: int) -> RecipeDetail:
        if isinstance(id, bool) or not isinstance(id, int) or id <= 0:
            raise InvalidId(f"Not a recipe id: {id!r}")

        data = await self._get(f"recipes/{id}/information", {})
        try:
            return RecipeDetail.model_validate(data)
        except ValueError as e:
            logger.warning("Unexpected detail response for %s: %r", id, e)
            raise CatalogUnavailable(e) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()
