"""
Row mapping between entities and flat table rows.

Storage strategy: lists, mappings and nested objects are stored as
canonical JSON text (sorted keys, no whitespace). A field the entity does
not carry is stored as NULL, never as an empty collection, so reading a row
back distinguishes "not provided" from "provided but empty". Booleans are
stored as 0/1.

Each entity has exactly one ``*_to_row`` and one ``*_from_row`` function;
nothing outside this module interprets raw row values.
"""

import json
from enum import Enum
from typing import Any

from pydantic import ValidationError

from mtgoverseer.db.errors import SerializationError
from mtgoverseer.models.card import Card, ScryfallCard
from mtgoverseer.models.deck import Deck, DeckCard


class ColumnKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    REAL = "real"
    BOOLEAN = "boolean"
    JSON = "json"


# Column name == Scryfall field name for every card column
CARD_COLUMNS: dict[str, ColumnKind] = {
    "id": ColumnKind.TEXT,
    "oracle_id": ColumnKind.TEXT,
    "multiverse_ids": ColumnKind.JSON,
    "mtgo_id": ColumnKind.INTEGER,
    "mtgo_foil_id": ColumnKind.INTEGER,
    "tcgplayer_id": ColumnKind.INTEGER,
    "cardmarket_id": ColumnKind.INTEGER,
    "name": ColumnKind.TEXT,
    "lang": ColumnKind.TEXT,
    "released_at": ColumnKind.TEXT,
    "uri": ColumnKind.TEXT,
    "scryfall_uri": ColumnKind.TEXT,
    "layout": ColumnKind.TEXT,
    "highres_image": ColumnKind.BOOLEAN,
    "image_status": ColumnKind.TEXT,
    "image_uris": ColumnKind.JSON,
    "mana_cost": ColumnKind.TEXT,
    "cmc": ColumnKind.REAL,
    "type_line": ColumnKind.TEXT,
    "oracle_text": ColumnKind.TEXT,
    "power": ColumnKind.TEXT,
    "toughness": ColumnKind.TEXT,
    "colors": ColumnKind.JSON,
    "color_identity": ColumnKind.JSON,
    "keywords": ColumnKind.JSON,
    "legalities": ColumnKind.JSON,
    "games": ColumnKind.JSON,
    "reserved": ColumnKind.BOOLEAN,
    "finishes": ColumnKind.JSON,
    "oversized": ColumnKind.BOOLEAN,
    "promo": ColumnKind.BOOLEAN,
    "reprint": ColumnKind.BOOLEAN,
    "variation": ColumnKind.BOOLEAN,
    "set_id": ColumnKind.TEXT,
    "set": ColumnKind.TEXT,
    "set_name": ColumnKind.TEXT,
    "set_type": ColumnKind.TEXT,
    "set_uri": ColumnKind.TEXT,
    "set_search_uri": ColumnKind.TEXT,
    "scryfall_set_uri": ColumnKind.TEXT,
    "rulings_uri": ColumnKind.TEXT,
    "prints_search_uri": ColumnKind.TEXT,
    "collector_number": ColumnKind.TEXT,
    "digital": ColumnKind.BOOLEAN,
    "rarity": ColumnKind.TEXT,
    "card_back_id": ColumnKind.TEXT,
    "artist": ColumnKind.TEXT,
    "artist_ids": ColumnKind.JSON,
    "illustration_id": ColumnKind.TEXT,
    "border_color": ColumnKind.TEXT,
    "frame": ColumnKind.TEXT,
    "frame_effects": ColumnKind.JSON,
    "security_stamp": ColumnKind.TEXT,
    "full_art": ColumnKind.BOOLEAN,
    "textless": ColumnKind.BOOLEAN,
    "booster": ColumnKind.BOOLEAN,
    "story_spotlight": ColumnKind.BOOLEAN,
    "edhrec_rank": ColumnKind.INTEGER,
    "penny_rank": ColumnKind.INTEGER,
    "prices": ColumnKind.JSON,
    "related_uris": ColumnKind.JSON,
    "purchase_uris": ColumnKind.JSON,
    "card_faces": ColumnKind.JSON,
    "all_parts": ColumnKind.JSON,
    # Added by migration 1
    "arena_id": ColumnKind.INTEGER,
    "loyalty": ColumnKind.TEXT,
    "flavor_text": ColumnKind.TEXT,
    "watermark": ColumnKind.TEXT,
    "produced_mana": ColumnKind.JSON,
    "promo_types": ColumnKind.JSON,
}

TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def to_json(value: Any) -> str:
    """Canonical JSON text: sorted keys, compact separators, UTF-8 preserved."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def encode_value(value: Any, kind: ColumnKind) -> Any:
    """Convert one field value to its column representation."""
    if value is None:
        return None
    if kind is ColumnKind.JSON:
        return to_json(value)
    if kind is ColumnKind.BOOLEAN:
        return 1 if value else 0
    if kind is ColumnKind.REAL:
        return float(value)
    return value


def decode_value(value: Any, kind: ColumnKind, table: str, row_id: object, column: str) -> Any:
    """
    Convert one non-NULL column value back to its field representation.

    Raises:
        SerializationError: If a JSON column holds malformed text
    """
    if kind is ColumnKind.JSON:
        try:
            return json.loads(value)
        except (TypeError, ValueError) as e:
            raise SerializationError(table, row_id, column, str(e)) from e
    if kind is ColumnKind.BOOLEAN:
        return bool(value)
    return value


# --- Cards ---


def card_to_row(card: ScryfallCard, created_at: int, updated_at: int) -> dict[str, Any]:
    """Flatten a card into column values keyed by column name."""
    fields = card.model_dump(mode="json", by_alias=True, exclude_none=True)
    row = {column: encode_value(fields.get(column), kind) for column, kind in CARD_COLUMNS.items()}
    row["created_at"] = created_at
    row["updated_at"] = updated_at
    return row


def card_from_row(row: dict[str, Any]) -> Card:
    """
    Rebuild a card from a ``cards`` row.

    NULL columns are left out so the field stays absent.

    Raises:
        SerializationError: If a column or the row as a whole is malformed
    """
    row_id = row.get("id")
    fields: dict[str, Any] = {}
    for column, kind in CARD_COLUMNS.items():
        value = row.get(column)
        if value is not None:
            fields[column] = decode_value(value, kind, "cards", row_id, column)
    for column in TIMESTAMP_COLUMNS:
        fields[column] = row.get(column)

    try:
        return Card.model_validate(fields)
    except ValidationError as e:
        raise SerializationError("cards", row_id, None, str(e)) from e


# --- Decks ---


def deck_to_row(deck: Deck) -> tuple[Any, ...]:
    """Parameters in ``decks`` column order."""
    return (
        deck.id,
        deck.name,
        deck.description,
        deck.format,
        deck.created_at,
        deck.updated_at,
    )


def deck_from_row(row: dict[str, Any]) -> Deck:
    return Deck(
        id=row["id"],
        name=row["name"],
        description=row.get("description"),
        format=row.get("format"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


# --- Deck cards ---


def deck_card_to_row(deck_card: DeckCard) -> tuple[Any, ...]:
    """Parameters in ``deck_cards`` column order."""
    return (
        deck_card.id,
        deck_card.deck_id,
        deck_card.card_id,
        deck_card.quantity,
        encode_value(deck_card.is_sideboard, ColumnKind.BOOLEAN),
        deck_card.created_at,
        deck_card.updated_at,
    )


def deck_card_from_row(row: dict[str, Any]) -> DeckCard:
    return DeckCard(
        id=row["id"],
        deck_id=row["deck_id"],
        card_id=row["card_id"],
        quantity=int(row["quantity"]),
        is_sideboard=bool(row["is_sideboard"]),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )
