"""
Collection and deck flows.

The operations the scan, collection and deck screens trigger, composed from
the repositories so each user action is a single transaction.
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, replace

from mtgoverseer.db.repository import Repository
from mtgoverseer.models.card import Card, ScryfallCard
from mtgoverseer.models.deck import Deck, DeckCard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeckEntry:
    """One line of a deck list to rebuild from."""

    card_id: str
    quantity: int = 1
    is_sideboard: bool = False


def new_id() -> str:
    return str(uuid.uuid4())


async def save_card(repository: Repository, card: ScryfallCard) -> Card:
    """Add a scanned or searched card to the local collection (upsert)."""
    stored = await repository.cards.insert(card)
    logger.info("Saved card %s (%s)", stored.name, stored.id)
    return stored


async def get_collection(repository: Repository) -> list[Card]:
    """All stored cards, sorted by name then set."""
    cards = await repository.cards.get_all()
    return sorted(cards, key=lambda c: (c.name.casefold(), c.set_code or "", c.id))


async def create_deck(
    repository: Repository,
    name: str,
    description: str | None = None,
    format_name: str | None = None,
) -> Deck:
    """
    Create an empty deck with a fresh id.

    Raises:
        InvalidRecordError: If name is blank
    """
    deck = await repository.decks.insert(
        Deck(id=new_id(), name=name, description=description, format=format_name)
    )
    logger.info("Created deck %s (%s)", deck.name, deck.id)
    return deck


async def list_decks(repository: Repository) -> list[Deck]:
    """All decks, newest first."""
    decks = await repository.decks.get_all()
    return sorted(decks, key=lambda d: (-(d.created_at or 0), d.name))


async def add_card_to_deck(
    repository: Repository,
    deck_id: str,
    card: ScryfallCard,
    quantity: int = 1,
    sideboard: bool = False,
) -> DeckCard:
    """
    Store ``card`` and add ``quantity`` copies of it to a deck.

    A deck holds at most one entry per card and board: adding a card that is
    already on that board increases the existing entry's quantity instead
    of creating a second row.

    Returns:
        The deck entry after the change.

    Raises:
        InvalidRecordError: If quantity is below 1
        ConstraintViolationError: If the deck does not exist
    """
    entry = DeckCard(
        id=new_id(),
        deck_id=deck_id,
        card_id=card.id,
        quantity=quantity,
        is_sideboard=sideboard,
    )
    # Validate before touching storage
    entry = repository.deck_cards.prepare(entry)

    async with repository.transaction():
        await repository.cards.insert(card)
        existing = await repository.deck_cards.find_entry(deck_id, card.id, sideboard)
        if existing is None:
            return await repository.deck_cards.insert(entry)

        total = existing.quantity + quantity
        await repository.deck_cards.update_quantity(existing.id, total)
        updated = await repository.deck_cards.get_by_id(existing.id)

    if updated is None:
        raise RuntimeError(f"Deck entry {existing.id} not found after update")
    return updated


async def replace_deck_cards(
    repository: Repository, deck_id: str, entries: Sequence[DeckEntry]
) -> list[DeckCard]:
    """
    Rebuild a deck's card list from scratch.

    Deletes every existing entry and inserts ``entries`` in one exclusive
    batch; on any failure the previous list is left untouched. Every line is
    validated on its own, then lines for the same card and board are merged.

    Returns:
        The new deck entries.
    """
    lines = [
        repository.deck_cards.prepare(
            DeckCard(
                id=new_id(),
                deck_id=deck_id,
                card_id=line.card_id,
                quantity=line.quantity,
                is_sideboard=line.is_sideboard,
            )
        )
        for line in entries
    ]

    merged: dict[tuple[str, bool], DeckCard] = {}
    for line in lines:
        key = (line.card_id, line.is_sideboard)
        if key in merged:
            merged[key] = replace(merged[key], quantity=merged[key].quantity + line.quantity)
        else:
            merged[key] = line
    deck_cards = list(merged.values())

    statements = [
        repository.deck_cards.delete_by_deck_id_statement(deck_id),
        *(repository.deck_cards.insert_statement(dc) for dc in deck_cards),
    ]
    await repository.execute_batch(statements)
    logger.info("Rebuilt deck %s with %d entries", deck_id, len(deck_cards))
    return deck_cards


async def get_deck_list(repository: Repository, deck_id: str) -> list[tuple[DeckCard, Card]]:
    """Deck entries joined with their cards, maindeck first, then by card name."""
    entries = await repository.deck_cards.get_by_deck_id(deck_id)
    cards = await repository.cards.get_by_ids([entry.card_id for entry in entries])
    by_id = {card.id: card for card in cards}
    result = [(entry, by_id[entry.card_id]) for entry in entries if entry.card_id in by_id]
    return sorted(result, key=lambda pair: (pair[0].is_sideboard, pair[1].name.casefold()))
