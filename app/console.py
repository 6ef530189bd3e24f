import asyncio
import logging

from rich import print
from rich.logging import RichHandler

from app import config
from domain.catalog import RecipeCatalogClient
from domain.favourites import FavouritesRepository
from domain.models import RecipeSummary
from domain.preferences import PreferenceRepository
from domain.sessions import (
    DetailSession,
    FavouritesSession,
    SearchSession,
    SearchState,
    SettingsSession,
)
from domain.store import PersistentStore


HELP = """\
search <ingredients>   find recipes
details <n|id>         open the n-th result (or a recipe id)
fav                    add or remove the open recipe from favourites
favs                   list favourites
units [metric|us]      show or change the measurement unit
q                      quit"""


class Console:
    def __init__(
        self,
        *,
        catalog: RecipeCatalogClient,
        favourites: FavouritesRepository,
        preferences: PreferenceRepository,
    ) -> None:
        self.catalog = catalog
        self.favourites = favourites
        self.preferences = preferences
        self.search = SearchSession(catalog)
        self.saved = FavouritesSession(favourites)
        self.settings = SettingsSession(preferences)
        self.detail: DetailSession | None = None
        self._listed: tuple[RecipeSummary, ...] = ()

    async def do_search(self, query: str) -> None:
        state = await self.search.submit(query)
        match state:
            case SearchState.IDLE:
                print("Enter some ingredients to search for.")
            case SearchState.FAILED:
                print(f"[red]{self.search.error_message}[/red]")
            case _:
                print(self.search.found_message)
                self.list_summaries(self.search.results)

    def list_summaries(self, summaries: tuple[RecipeSummary, ...]) -> None:
        self._listed = summaries
        for n, recipe in enumerate(summaries, start=1):
            ready = (
                f" ({recipe.ready_in_minutes} min)"
                if recipe.ready_in_minutes is not None
                else ""
            )
            print(f"{n:>3}. {recipe.title}{ready} [dim]#{recipe.id}[/dim]")

    def pick(self, arg: str) -> RecipeSummary | None:
        if not arg.isdigit():
            return None
        n = int(arg)
        if 1 <= n <= len(self._listed):
            return self._listed[n - 1]
        return RecipeSummary(id=n, title=f"Recipe {n}")

    async def do_details(self, arg: str) -> None:
        summary = self.pick(arg)
        if summary is None:
            print("Usage: details <n|id>")
            return
        if self.detail is not None:
            self.detail.close()
        self.detail = DetailSession.from_summary(
            summary,
            catalog=self.catalog,
            favourites=self.favourites,
            preferences=self.preferences,
        )
        await self.detail.load()
        self.show_detail()

    def show_detail(self) -> None:
        session = self.detail
        if session is None:
            print("No recipe open.")
            return

        heart = "♥" if session.is_favourite else "♡"
        print(f"[bold]{session.title}[/bold] {heart}")
        if session.error_message:
            print(f"[red]{session.error_message}[/red]")
        if session.warning:
            print(f"[yellow]{session.warning}[/yellow]")
        detail = session.detail
        if detail is None:
            return

        print(f"Serves {detail.servings}, ready in {detail.ready_in_minutes} min")
        print("\n[bold]Ingredients[/bold]")
        for ingredient in detail.ingredients:
            print(f"  {session.format_measurement(ingredient)} {ingredient.name}")
        print("\n[bold]Instructions[/bold]")
        if not detail.has_structured_instructions:
            print(detail.plain_instructions())
        for group in detail.instruction_groups:
            if group.name:
                print(f"[italic]{group.name}[/italic]")
            for step in group.steps:
                print(f"  {step.number}. {step.text}")

    async def do_favourite(self) -> None:
        if self.detail is None:
            print("Open a recipe first.")
            return
        is_favourite = await self.detail.toggle_favourite()
        print("Added to favourites." if is_favourite else "Removed from favourites.")
        if self.detail.warning:
            print(f"[yellow]{self.detail.warning}[/yellow]")

    async def do_favourites(self) -> None:
        favourites = await self.saved.load()
        if self.saved.warning:
            print(f"[yellow]{self.saved.warning}[/yellow]")
        if not favourites:
            print("No favourites yet.")
        self.list_summaries(favourites)

    async def do_units(self, arg: str) -> None:
        if arg:
            unit = await self.settings.change(arg)
        else:
            unit = await self.settings.load()
        if self.settings.warning:
            print(f"[yellow]{self.settings.warning}[/yellow]")
        print(f"Measurements: {unit.value}")

    async def handle(self, line: str) -> bool:
        cmd, _, arg = line.strip().partition(" ")
        arg = arg.strip()
        match cmd.lower():
            case "q" | "quit" | "exit":
                return False
            case "search" | "s":
                await self.do_search(arg)
            case "details" | "d":
                await self.do_details(arg)
            case "fav":
                await self.do_favourite()
            case "favs":
                await self.do_favourites()
            case "units":
                await self.do_units(arg)
            case "":
                pass
            case _:
                print(HELP)
        return True


async def main(cfg: config.Config | None = None) -> None:
    cfg = config.Config() if cfg is None else cfg
    logging.basicConfig(
        level=cfg.effective_log_level,
        format="%(message)s",
        handlers=[RichHandler()],
    )

    store = PersistentStore.from_url(cfg.db_url)
    catalog = RecipeCatalogClient(
        api_key=cfg.spoonacular_api_key,
        base_url=cfg.catalog_base_url,
        page_size=cfg.search_page_size,
        add_recipe_information=cfg.add_recipe_information,
        timeout=cfg.catalog_timeout,
    )
    console = Console(
        catalog=catalog,
        favourites=FavouritesRepository(store),
        preferences=PreferenceRepository(store),
    )

    print(HELP)
    try:
        while True:
            line = await asyncio.to_thread(input, "> ")
            if not await console.handle(line):
                break
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await catalog.aclose()
        await store.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
