from enum import Enum
from typing import Any, Self

import bs4
from pydantic import BaseModel, ConfigDict, Field, field_validator


class MeasurementUnit(Enum):
    METRIC = "metric"
    US = "us"

    @classmethod
    def default(cls) -> Self:
        return cls.METRIC


class CatalogModel(BaseModel):
    """Immutable value decoded from the catalog's camelCase JSON."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RecipeSummary(CatalogModel):
    id: int
    title: str
    image_url: str = Field(default="", alias="image")
    image_format: str | None = Field(default=None, alias="imageType")
    ready_in_minutes: int | None = Field(default=None, ge=0, alias="readyInMinutes")

    @field_validator("image_url", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class RecipeSearchResponse(CatalogModel):
    results: tuple[RecipeSummary, ...] = ()
    offset: int = 0
    number: int = 0
    total_results: int = Field(default=0, alias="totalResults")


class Measure(CatalogModel):
    # int stays int so amounts render exactly as the catalog sent them.
    amount: int | float
    unit_short: str = Field(default="", alias="unitShort")
    unit_long: str = Field(default="", alias="unitLong")


class Measures(CatalogModel):
    us: Measure
    metric: Measure

    def for_unit(self, unit: MeasurementUnit) -> Measure:
        match unit:
            case MeasurementUnit.US:
                return self.us
            case MeasurementUnit.METRIC:
                return self.metric


class Consistency(Enum):
    SOLID = "SOLID"
    LIQUID = "LIQUID"


class Ingredient(CatalogModel):
    id: int
    aisle: str | None = None
    image_file: str | None = Field(default=None, alias="image")
    consistency: Consistency | None = None
    name: str
    clean_name: str | None = Field(default=None, alias="nameClean")
    original_text: str = Field(default="", alias="original")
    original_name: str = Field(default="", alias="originalName")
    amount: int | float = 0
    unit: str = ""
    measures: Measures

    @field_validator("consistency", mode="before")
    @classmethod
    def _known_consistency(cls, value: Any) -> Consistency | None:
        if not isinstance(value, str):
            return None
        try:
            return Consistency(value.upper())
        except ValueError:
            return None


class InstructionStep(CatalogModel):
    number: int = Field(ge=1)
    text: str = Field(alias="step")


class InstructionGroup(CatalogModel):
    name: str = ""
    steps: tuple[InstructionStep, ...] = ()


class RecipeDetail(CatalogModel):
    id: int
    title: str
    image_url: str = Field(default="", alias="image")
    servings: int = Field(default=0, ge=0)
    ready_in_minutes: int = Field(default=0, ge=0, alias="readyInMinutes")
    ingredients: tuple[Ingredient, ...] = Field(default=(), alias="extendedIngredients")
    instruction_groups: tuple[InstructionGroup, ...] = Field(
        default=(), alias="analyzedInstructions"
    )
    raw_instructions: str = Field(default="", alias="instructions")

    @field_validator("image_url", "raw_instructions", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def has_structured_instructions(self) -> bool:
        return bool(self.instruction_groups)

    def plain_instructions(self) -> str:
        """Text of the HTML instructions, for recipes without analysed steps."""
        soup = bs4.BeautifulSoup(self.raw_instructions, features="html.parser")
        return soup.get_text("\n", strip=True)
