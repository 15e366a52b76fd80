from mtgoverseer.models.card import (
    Card,
    CardFace,
    Component,
    ImageUris,
    Legality,
    Prices,
    PurchaseUris,
    Rarity,
    RelatedCard,
    RelatedUris,
    ScryfallCard,
)
from mtgoverseer.models.catalog import (
    CardIdentifier,
    CollectionResponse,
    Ruling,
    ScryfallCatalog,
    ScryfallErrorObject,
    ScryfallList,
    ScryfallSet,
)
from mtgoverseer.models.deck import Deck, DeckCard

__all__ = [
    "Card",
    "CardFace",
    "CardIdentifier",
    "CollectionResponse",
    "Component",
    "Deck",
    "DeckCard",
    "ImageUris",
    "Legality",
    "Prices",
    "PurchaseUris",
    "Rarity",
    "RelatedCard",
    "RelatedUris",
    "Ruling",
    "ScryfallCard",
    "ScryfallCatalog",
    "ScryfallErrorObject",
    "ScryfallList",
    "ScryfallSet",
]
