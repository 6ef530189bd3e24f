from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: Env = Env.local
    db_url: str = "sqlite+aiosqlite:///recipe_finder.db"
    spoonacular_api_key: str = ""
    catalog_base_url: str = "https://api.spoonacular.com"
    catalog_timeout: float = 20.0
    search_page_size: int = 10
    # Whether search results carry readyInMinutes without a detail fetch.
    add_recipe_information: bool = True
    log_level: str | None = None

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "DEBUG" if self.env == Env.local else "INFO"
