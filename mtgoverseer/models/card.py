"""
Card models.

``ScryfallCard`` mirrors the card object returned by the Scryfall API.
``Card`` is the same record once it has been stored locally, with the two
timestamps this app owns.

Absent fields are ``None``. A list or mapping that the catalog sent empty
stays empty; one it did not send at all stays ``None``.
Keys the models do not declare are dropped on parse, nested objects included,
so a stored card reads back exactly as it was parsed.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Legality(str, Enum):
    """Format legality status values."""

    LEGAL = "legal"
    NOT_LEGAL = "not_legal"
    RESTRICTED = "restricted"
    BANNED = "banned"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    SPECIAL = "special"
    MYTHIC = "mythic"
    BONUS = "bonus"


class Component(str, Enum):
    """Role a related card plays in a relationship."""

    TOKEN = "token"
    MELD_PART = "meld_part"
    MELD_RESULT = "meld_result"
    COMBO_PIECE = "combo_piece"


class ImageUris(BaseModel):
    """Image URIs by version."""

    model_config = ConfigDict(extra="ignore")

    small: str | None = None
    normal: str | None = None
    large: str | None = None
    png: str | None = None
    art_crop: str | None = None
    border_crop: str | None = None


class Prices(BaseModel):
    """Prices as decimal strings, keyed by currency and finish."""

    model_config = ConfigDict(extra="ignore")

    usd: str | None = None
    usd_foil: str | None = None
    usd_etched: str | None = None
    eur: str | None = None
    eur_foil: str | None = None
    eur_etched: str | None = None
    tix: str | None = None


class RelatedUris(BaseModel):
    model_config = ConfigDict(extra="ignore")

    gatherer: str | None = None
    tcgplayer_infinite_articles: str | None = None
    tcgplayer_infinite_decks: str | None = None
    edhrec: str | None = None


class PurchaseUris(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tcgplayer: str | None = None
    cardmarket: str | None = None
    cardhoarder: str | None = None


class CardFace(BaseModel):
    """
    One printed side of a multi-sided card.

    Transform, modal double-faced, split, flip and adventure cards carry
    their per-side text here; the parent card's fields describe the whole.
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    mana_cost: str | None = None
    type_line: str | None = None
    oracle_text: str | None = None
    power: str | None = None
    toughness: str | None = None
    loyalty: str | None = None
    defense: str | None = None
    cmc: float | None = None
    colors: list[str] | None = None
    color_indicator: list[str] | None = None
    artist: str | None = None
    artist_id: str | None = None
    illustration_id: str | None = None
    flavor_text: str | None = None
    image_uris: ImageUris | None = None
    layout: str | None = None
    oracle_id: str | None = None
    printed_name: str | None = None
    printed_text: str | None = None
    printed_type_line: str | None = None
    watermark: str | None = None


class RelatedCard(BaseModel):
    """Stub for a token, meld piece or combo piece related to a card."""

    model_config = ConfigDict(extra="ignore")

    id: str
    component: Component
    name: str
    type_line: str | None = None
    uri: str | None = None


class ScryfallCard(BaseModel):
    """
    A card object as served by the Scryfall API.

    Unknown fields are dropped on parse. ``set`` is exposed as ``set_code``
    to avoid shadowing the builtin; serialize with ``by_alias=True`` to get
    the API's field names back.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    # Core
    id: str
    oracle_id: str | None = None
    multiverse_ids: list[int] | None = None
    mtgo_id: int | None = None
    mtgo_foil_id: int | None = None
    tcgplayer_id: int | None = None
    cardmarket_id: int | None = None
    arena_id: int | None = None
    lang: str | None = None
    layout: str | None = None
    uri: str | None = None
    scryfall_uri: str | None = None
    rulings_uri: str | None = None
    prints_search_uri: str | None = None

    # Gameplay
    name: str
    mana_cost: str | None = None
    cmc: float | None = None
    type_line: str | None = None
    oracle_text: str | None = None
    power: str | None = None
    toughness: str | None = None
    loyalty: str | None = None
    colors: list[str] | None = None
    color_identity: list[str] | None = None
    keywords: list[str] | None = None
    produced_mana: list[str] | None = None
    legalities: dict[str, Legality] | None = None
    reserved: bool | None = None
    edhrec_rank: int | None = None
    penny_rank: int | None = None
    card_faces: list[CardFace] | None = None
    all_parts: list[RelatedCard] | None = None

    # Print
    released_at: str | None = None
    set_id: str | None = None
    set_code: str | None = Field(default=None, alias="set")
    set_name: str | None = None
    set_type: str | None = None
    set_uri: str | None = None
    set_search_uri: str | None = None
    scryfall_set_uri: str | None = None
    collector_number: str | None = None
    rarity: Rarity | None = None
    artist: str | None = None
    artist_ids: list[str] | None = None
    illustration_id: str | None = None
    card_back_id: str | None = None
    flavor_text: str | None = None
    watermark: str | None = None
    border_color: str | None = None
    frame: str | None = None
    frame_effects: list[str] | None = None
    security_stamp: str | None = None
    promo_types: list[str] | None = None
    games: list[str] | None = None
    finishes: list[str] | None = None
    highres_image: bool | None = None
    image_status: str | None = None
    image_uris: ImageUris | None = None
    full_art: bool | None = None
    textless: bool | None = None
    booster: bool | None = None
    story_spotlight: bool | None = None
    oversized: bool | None = None
    promo: bool | None = None
    reprint: bool | None = None
    variation: bool | None = None
    digital: bool | None = None
    prices: Prices | None = None
    related_uris: RelatedUris | None = None
    purchase_uris: PurchaseUris | None = None

    @property
    def is_multi_faced(self) -> bool:
        return len(self.card_faces or []) > 1

    def image_uri(self, version: str = "normal", face: int = 0) -> str | None:
        """
        Image URI for display.

        Multi-faced cards keep their images on the faces; fall back to the
        card-level images when the face has none.
        """
        if self.card_faces and 0 <= face < len(self.card_faces):
            face_images = self.card_faces[face].image_uris
            uri = getattr(face_images, version, None) if face_images else None
            if uri:
                return uri
        return getattr(self.image_uris, version, None) if self.image_uris else None


class Card(ScryfallCard):
    """
    A card stored in the local collection.

    Attributes:
        created_at: Epoch milliseconds when first stored
        updated_at: Epoch milliseconds of the last write
    """

    created_at: int | None = None
    updated_at: int | None = None

    def to_scryfall(self) -> ScryfallCard:
        """Drop the local timestamps."""
        return ScryfallCard.model_validate(
            self.model_dump(by_alias=True, exclude={"created_at", "updated_at"})
        )
