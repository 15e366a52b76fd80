"""
Schema migrations for the local store.

The stored schema version is the number of steps already applied, so steps
are identified only by their position in ``DB_MIGRATIONS``.

Only ever append to the end of MIGRATIONS. Inserting, reordering or
removing a step changes what every existing install believes it has run.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncConnection

from mtgoverseer.db.client import Migration

logger = logging.getLogger(__name__)


def split_statements(script: str) -> list[str]:
    """
    Split a script on ``;`` into trimmed, non-empty statements.

    Statements must not contain ``;`` themselves (no triggers or string
    literals with semicolons).
    """
    return [statement.strip() for statement in script.split(";") if statement.strip()]


def sql_migration(script: str) -> Migration:
    """Build a migration step that runs each statement of ``script`` in order."""
    statements = split_statements(script)

    async def apply(connection: AsyncConnection) -> None:
        for statement in statements:
            await connection.exec_driver_sql(statement)
        logger.debug("Applied %d statements", len(statements))

    return apply


SCHEMA = """
CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    oracle_id TEXT,
    multiverse_ids TEXT,
    mtgo_id INTEGER,
    mtgo_foil_id INTEGER,
    tcgplayer_id INTEGER,
    cardmarket_id INTEGER,
    name TEXT NOT NULL,
    lang TEXT,
    released_at TEXT,
    uri TEXT,
    scryfall_uri TEXT,
    layout TEXT,
    highres_image INTEGER,
    image_status TEXT,
    image_uris TEXT,
    mana_cost TEXT,
    cmc REAL,
    type_line TEXT,
    oracle_text TEXT,
    power TEXT,
    toughness TEXT,
    colors TEXT,
    color_identity TEXT,
    keywords TEXT,
    legalities TEXT,
    games TEXT,
    reserved INTEGER,
    finishes TEXT,
    oversized INTEGER,
    promo INTEGER,
    reprint INTEGER,
    variation INTEGER,
    set_id TEXT,
    "set" TEXT,
    set_name TEXT,
    set_type TEXT,
    set_uri TEXT,
    set_search_uri TEXT,
    scryfall_set_uri TEXT,
    rulings_uri TEXT,
    prints_search_uri TEXT,
    collector_number TEXT,
    digital INTEGER,
    rarity TEXT,
    card_back_id TEXT,
    artist TEXT,
    artist_ids TEXT,
    illustration_id TEXT,
    border_color TEXT,
    frame TEXT,
    frame_effects TEXT,
    security_stamp TEXT,
    full_art INTEGER,
    textless INTEGER,
    booster INTEGER,
    story_spotlight INTEGER,
    edhrec_rank INTEGER,
    penny_rank INTEGER,
    prices TEXT,
    related_uris TEXT,
    purchase_uris TEXT,
    card_faces TEXT,
    all_parts TEXT,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS decks (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    format TEXT,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS deck_cards (
    id TEXT PRIMARY KEY,
    deck_id TEXT NOT NULL,
    card_id TEXT NOT NULL,
    quantity INTEGER NOT NULL DEFAULT 1,
    is_sideboard INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    FOREIGN KEY (deck_id) REFERENCES decks (id) ON DELETE CASCADE,
    FOREIGN KEY (card_id) REFERENCES cards (id) ON DELETE CASCADE
);
"""

MIGRATIONS = [
    # 1: catalog fields the baseline dropped, lookup indexes
    """
    ALTER TABLE cards ADD COLUMN arena_id INTEGER;
    ALTER TABLE cards ADD COLUMN loyalty TEXT;
    ALTER TABLE cards ADD COLUMN flavor_text TEXT;
    ALTER TABLE cards ADD COLUMN watermark TEXT;
    ALTER TABLE cards ADD COLUMN produced_mana TEXT;
    ALTER TABLE cards ADD COLUMN promo_types TEXT;
    CREATE INDEX IF NOT EXISTS idx_cards_name ON cards (name);
    CREATE INDEX IF NOT EXISTS idx_deck_cards_deck_id ON deck_cards (deck_id);
    CREATE INDEX IF NOT EXISTS idx_deck_cards_card_id ON deck_cards (card_id);
    """,
]

DB_MIGRATIONS: list[Migration] = [
    sql_migration(SCHEMA),
    *(sql_migration(script) for script in MIGRATIONS),
]
