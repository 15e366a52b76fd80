"""
Repositories for cards, decks and deck entries.

Each table object builds its statements through ``insert_statement`` so
that heterogeneous writes can be combined with ``Repository.execute_batch``
and committed as one exclusive transaction.

Cards are upserted: catalog data is re-fetched and re-scanned freely.
Decks and deck entries are strict inserts: they are explicit user actions,
and a conflicting id is a caller error.
"""

import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncConnection

from mtgoverseer.db.client import QueryResult, SQLiteClient, Statement
from mtgoverseer.db.errors import InvalidRecordError
from mtgoverseer.db.serialization import (
    CARD_COLUMNS,
    TIMESTAMP_COLUMNS,
    card_from_row,
    card_to_row,
    deck_card_from_row,
    deck_card_to_row,
    deck_from_row,
    deck_to_row,
)
from mtgoverseer.models.card import Card, ScryfallCard
from mtgoverseer.models.deck import Deck, DeckCard


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def _quote(column: str) -> str:
    return f'"{column}"'


def _build_card_upsert() -> str:
    columns = [*CARD_COLUMNS, *TIMESTAMP_COLUMNS]
    # Every stored field is overwritten from the new record; only created_at survives
    updates = [
        f"{_quote(column)} = excluded.{_quote(column)}"
        for column in columns
        if column not in ("id", "created_at")
    ]
    return (
        f"INSERT INTO cards ({', '.join(_quote(c) for c in columns)}) "
        f"VALUES ({', '.join(':' + c for c in columns)}) "
        f"ON CONFLICT (id) DO UPDATE SET {', '.join(updates)}"
    )


_CARD_UPSERT_SQL = _build_card_upsert()

# Older SQLite builds cap a statement at 999 bound parameters
_MAX_BOUND_PARAMS = 500

_DECK_INSERT_SQL = (
    "INSERT INTO decks (id, name, description, format, created_at, updated_at) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)

_DECK_CARD_INSERT_SQL = (
    "INSERT INTO deck_cards "
    "(id, deck_id, card_id, quantity, is_sideboard, created_at, updated_at) "
    "VALUES (?, ?, ?, ?, ?, ?, ?)"
)


def _require_text(entity: str, field_name: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise InvalidRecordError(entity, f"{field_name} must not be blank")
    return value


class CardsTable:
    """Local collection of catalog cards."""

    def __init__(self, client: SQLiteClient) -> None:
        self.client = client

    def insert_statement(self, card: ScryfallCard, timestamp: int | None = None) -> Statement:
        """
        Build the upsert for ``card``.

        Raises:
            InvalidRecordError: If id or name is blank
        """
        _require_text("card", "id", card.id)
        _require_text("card", "name", card.name)
        stamp = timestamp if timestamp is not None else now_ms()
        return Statement(_CARD_UPSERT_SQL, card_to_row(card, stamp, stamp))

    async def insert(self, card: ScryfallCard) -> Card:
        """
        Insert a card, replacing every field of an existing row with the same id.

        The replacement happens in place, so deck entries pointing at the card
        are kept and ``created_at`` keeps its first value.

        Returns:
            The card as stored.
        """
        statement = self.insert_statement(card)
        async with self.client.transaction():
            await self.client.execute(statement.sql, statement.params)
            stored = await self.get_by_id(card.id)
        if stored is None:
            raise RuntimeError(f"Card {card.id} not found after insert")
        return stored

    async def get_by_id(self, card_id: str) -> Card | None:
        row = await self.client.get_first("SELECT * FROM cards WHERE id = ?", [card_id])
        return card_from_row(row) if row else None

    async def get_by_ids(self, card_ids: Sequence[str]) -> list[Card]:
        """
        Stored cards among ``card_ids``, fetched with one query per chunk.

        Missing ids are skipped and duplicates collapse. Order is unspecified.
        """
        unique_ids = list(dict.fromkeys(card_ids))
        cards: list[Card] = []
        for start in range(0, len(unique_ids), _MAX_BOUND_PARAMS):
            chunk = unique_ids[start : start + _MAX_BOUND_PARAMS]
            placeholders = ", ".join("?" * len(chunk))
            rows = await self.client.query(
                f"SELECT * FROM cards WHERE id IN ({placeholders})", chunk
            )
            cards.extend(card_from_row(row) for row in rows)
        return cards

    async def get_all(self) -> list[Card]:
        """Every stored card. Order is unspecified; sort client-side."""
        rows = await self.client.query("SELECT * FROM cards")
        return [card_from_row(row) for row in rows]

    async def get_by_name(self, name: str) -> list[Card]:
        """All stored printings whose name matches exactly, ignoring case."""
        rows = await self.client.query(
            "SELECT * FROM cards WHERE name = ? COLLATE NOCASE", [name]
        )
        return [card_from_row(row) for row in rows]

    async def count(self) -> int:
        row = await self.client.get_first("SELECT COUNT(*) AS total FROM cards")
        return int(row["total"]) if row else 0

    async def delete(self, card_id: str) -> bool:
        """
        Delete a card and, by cascade, every deck entry using it.

        Returns True if deleted, False if not found.
        """
        return await self.client.execute("DELETE FROM cards WHERE id = ?", [card_id]) > 0


class DecksTable:
    """User decks."""

    def __init__(self, client: SQLiteClient) -> None:
        self.client = client

    @staticmethod
    def prepare(deck: Deck, timestamp: int | None = None) -> Deck:
        """
        Validate a deck and fill in its timestamps.

        The name is stored trimmed.

        Raises:
            InvalidRecordError: If id or name is blank
        """
        _require_text("deck", "id", deck.id)
        name = _require_text("deck", "name", deck.name).strip()
        stamp = timestamp if timestamp is not None else now_ms()
        return replace(
            deck,
            name=name,
            created_at=deck.created_at if deck.created_at is not None else stamp,
            updated_at=deck.updated_at if deck.updated_at is not None else stamp,
        )

    def insert_statement(self, deck: Deck) -> Statement:
        return Statement(_DECK_INSERT_SQL, deck_to_row(self.prepare(deck)))

    async def insert(self, deck: Deck) -> Deck:
        """
        Insert a new deck.

        Returns:
            The deck as stored.

        Raises:
            InvalidRecordError: If id or name is blank
            ConstraintViolationError: If a deck with this id already exists
        """
        prepared = self.prepare(deck)
        await self.client.execute(_DECK_INSERT_SQL, deck_to_row(prepared))
        return prepared

    async def get_by_id(self, deck_id: str) -> Deck | None:
        row = await self.client.get_first("SELECT * FROM decks WHERE id = ?", [deck_id])
        return deck_from_row(row) if row else None

    async def get_all(self) -> list[Deck]:
        """Every deck. Order is unspecified; sort client-side."""
        rows = await self.client.query("SELECT * FROM decks")
        return [deck_from_row(row) for row in rows]

    async def update(self, deck: Deck) -> bool:
        """
        Update name, description and format, and bump ``updated_at``.

        Returns True if updated, False if no deck has this id.
        """
        name = _require_text("deck", "name", deck.name).strip()
        changed = await self.client.execute(
            "UPDATE decks SET name = ?, description = ?, format = ?, updated_at = ? WHERE id = ?",
            [name, deck.description, deck.format, now_ms(), deck.id],
        )
        return changed > 0

    async def delete(self, deck_id: str) -> bool:
        """
        Delete a deck and, by cascade, all of its entries.

        Returns True if deleted, False if not found.
        """
        return await self.client.execute("DELETE FROM decks WHERE id = ?", [deck_id]) > 0


class DeckCardsTable:
    """Card entries of decks."""

    def __init__(self, client: SQLiteClient) -> None:
        self.client = client

    @staticmethod
    def prepare(deck_card: DeckCard, timestamp: int | None = None) -> DeckCard:
        """
        Validate an entry and fill in its timestamps.

        Raises:
            InvalidRecordError: If an id is blank or quantity is below 1
        """
        _require_text("deck card", "id", deck_card.id)
        _require_text("deck card", "deck_id", deck_card.deck_id)
        _require_text("deck card", "card_id", deck_card.card_id)
        quantity = deck_card.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidRecordError("deck card", f"quantity must be at least 1, got {quantity!r}")
        stamp = timestamp if timestamp is not None else now_ms()
        return replace(
            deck_card,
            created_at=deck_card.created_at if deck_card.created_at is not None else stamp,
            updated_at=deck_card.updated_at if deck_card.updated_at is not None else stamp,
        )

    def insert_statement(self, deck_card: DeckCard) -> Statement:
        return Statement(_DECK_CARD_INSERT_SQL, deck_card_to_row(self.prepare(deck_card)))

    async def insert(self, deck_card: DeckCard) -> DeckCard:
        """
        Insert a new deck entry.

        Raises:
            InvalidRecordError: If the entry fails validation
            ConstraintViolationError: If the id exists or the deck or card is missing
        """
        prepared = self.prepare(deck_card)
        await self.client.execute(_DECK_CARD_INSERT_SQL, deck_card_to_row(prepared))
        return prepared

    async def get_by_id(self, deck_card_id: str) -> DeckCard | None:
        row = await self.client.get_first("SELECT * FROM deck_cards WHERE id = ?", [deck_card_id])
        return deck_card_from_row(row) if row else None

    async def get_by_deck_id(self, deck_id: str) -> list[DeckCard]:
        rows = await self.client.query("SELECT * FROM deck_cards WHERE deck_id = ?", [deck_id])
        return [deck_card_from_row(row) for row in rows]

    async def find_entry(self, deck_id: str, card_id: str, is_sideboard: bool) -> DeckCard | None:
        """Oldest entry for a card on one board of a deck."""
        row = await self.client.get_first(
            "SELECT * FROM deck_cards WHERE deck_id = ? AND card_id = ? AND is_sideboard = ? "
            "ORDER BY created_at, id LIMIT 1",
            [deck_id, card_id, 1 if is_sideboard else 0],
        )
        return deck_card_from_row(row) if row else None

    async def update_quantity(self, deck_card_id: str, quantity: int) -> bool:
        """Returns True if updated, False if no entry has this id."""
        if quantity < 1:
            raise InvalidRecordError("deck card", f"quantity must be at least 1, got {quantity!r}")
        changed = await self.client.execute(
            "UPDATE deck_cards SET quantity = ?, updated_at = ? WHERE id = ?",
            [quantity, now_ms(), deck_card_id],
        )
        return changed > 0

    async def delete(self, deck_card_id: str) -> bool:
        return await self.client.execute("DELETE FROM deck_cards WHERE id = ?", [deck_card_id]) > 0

    def delete_by_deck_id_statement(self, deck_id: str) -> Statement:
        return Statement("DELETE FROM deck_cards WHERE deck_id = ?", (deck_id,))

    async def delete_by_deck_id(self, deck_id: str) -> int:
        """
        Remove every entry of a deck before rebuilding its list.

        Returns the number of deleted entries.
        """
        statement = self.delete_by_deck_id_statement(deck_id)
        return await self.client.execute(statement.sql, statement.params)


class Repository:
    """
    All table repositories over one connected client.

    Usage:
        repository = Repository(client)
        await repository.decks.insert(Deck(id="d1", name="Aggro"))
    """

    def __init__(self, client: SQLiteClient) -> None:
        self.client = client
        self.cards = CardsTable(client)
        self.decks = DecksTable(client)
        self.deck_cards = DeckCardsTable(client)

    @asynccontextmanager
    async def transaction(self, exclusive: bool = False) -> AsyncIterator[AsyncConnection]:
        async with self.client.transaction(exclusive=exclusive) as connection:
            yield connection

    async def execute_batch(self, statements: Sequence[Statement]) -> list[QueryResult]:
        """
        Run statements from any table in one exclusive transaction.

        Usage:
            await repository.execute_batch([
                repository.decks.insert_statement(deck),
                repository.deck_cards.insert_statement(entry),
            ])
        """
        return await self.client.execute_batch(statements)
