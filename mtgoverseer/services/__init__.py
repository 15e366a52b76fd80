from mtgoverseer.services.catalog import (
    CatalogRequestError,
    ScryfallAPIError,
    ScryfallClient,
)
from mtgoverseer.services.collection import (
    DeckEntry,
    add_card_to_deck,
    create_deck,
    get_collection,
    get_deck_list,
    list_decks,
    replace_deck_cards,
    save_card,
)

__all__ = [
    "CatalogRequestError",
    "DeckEntry",
    "ScryfallAPIError",
    "ScryfallClient",
    "add_card_to_deck",
    "create_deck",
    "get_collection",
    "get_deck_list",
    "list_decks",
    "replace_deck_cards",
    "save_card",
]
