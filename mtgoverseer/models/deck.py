from dataclasses import dataclass


@dataclass
class Deck:
    """
    A user-built deck. Decks exist only locally.

    Attributes:
        id: Caller-generated identifier
        name: Display name, required and non-blank
        description: Free-form notes
        format: Format label (e.g., "standard", "commander")
        created_at: Epoch milliseconds, assigned on insert when missing
        updated_at: Epoch milliseconds, assigned on every write
    """

    id: str
    name: str
    description: str | None = None
    format: str | None = None
    created_at: int | None = None
    updated_at: int | None = None


@dataclass
class DeckCard:
    """
    One card entry in a deck.

    Attributes:
        id: Caller-generated identifier for this entry
        deck_id: Owning deck; entries are deleted with it
        card_id: Stored card; entries are deleted with it
        quantity: Number of copies (at least 1)
        is_sideboard: True for sideboard entries
        created_at: Epoch milliseconds, assigned on insert when missing
        updated_at: Epoch milliseconds, assigned on every write
    """

    id: str
    deck_id: str
    card_id: str
    quantity: int = 1
    is_sideboard: bool = False
    created_at: int | None = None
    updated_at: int | None = None
