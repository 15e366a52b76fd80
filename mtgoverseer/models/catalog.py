"""
Scryfall envelope objects: lists, errors, sets, rulings and catalogs.

Bulk card data: https://scryfall.com/docs/api
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from mtgoverseer.models.card import ScryfallCard

T = TypeVar("T")


class ScryfallList(BaseModel, Generic[T]):
    """One page of a paginated result."""

    model_config = ConfigDict(extra="ignore")

    data: list[T] = Field(default_factory=list)
    has_more: bool = False
    next_page: str | None = None
    total_cards: int | None = None
    warnings: list[str] | None = None


class ScryfallErrorObject(BaseModel):
    """Error body returned by the API with a non-2xx status."""

    model_config = ConfigDict(extra="ignore")

    code: str
    status: int
    details: str
    type: str | None = None
    warnings: list[str] | None = None


class ScryfallSet(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    code: str
    name: str
    set_type: str
    card_count: int = 0
    digital: bool = False
    released_at: str | None = None
    mtgo_code: str | None = None
    arena_code: str | None = None
    tcgplayer_id: int | None = None
    block_code: str | None = None
    block: str | None = None
    parent_set_code: str | None = None
    printed_size: int | None = None
    foil_only: bool = False
    nonfoil_only: bool = False
    scryfall_uri: str | None = None
    uri: str | None = None
    icon_svg_uri: str | None = None
    search_uri: str | None = None


class Ruling(BaseModel):
    model_config = ConfigDict(extra="ignore")

    oracle_id: str | None = None
    source: str
    published_at: str
    comment: str


class ScryfallCatalog(BaseModel):
    """A list of strings, e.g. autocomplete suggestions."""

    model_config = ConfigDict(extra="ignore")

    uri: str | None = None
    total_values: int = 0
    data: list[str] = Field(default_factory=list)


class CardIdentifier(BaseModel):
    """
    One entry of a collection lookup.

    Scryfall accepts: id, mtgo_id, multiverse_id, oracle_id, illustration_id,
    name, name+set, or set+collector_number.
    """

    id: str | None = None
    mtgo_id: int | None = None
    multiverse_id: int | None = None
    oracle_id: str | None = None
    illustration_id: str | None = None
    name: str | None = None
    set: str | None = None
    collector_number: str | None = None


class CollectionResponse(ScryfallList[ScryfallCard]):
    not_found: list[CardIdentifier] = Field(default_factory=list)
