import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from mtgoverseer.db.client import SQLiteClient
from mtgoverseer.db.migrations import DB_MIGRATIONS
from mtgoverseer.db.repository import Repository
from mtgoverseer.models.card import ScryfallCard

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_cards_json() -> list[dict[str, Any]]:
    """Raw Scryfall card objects."""
    with open(FIXTURES_DIR / "scryfall_sample.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def sample_cards(sample_cards_json: list[dict[str, Any]]) -> dict[str, ScryfallCard]:
    """Parsed sample cards keyed by name."""
    cards = [ScryfallCard.model_validate(card) for card in sample_cards_json]
    return {card.name: card for card in cards}


@pytest.fixture
def bolt(sample_cards: dict[str, ScryfallCard]) -> ScryfallCard:
    return sample_cards["Lightning Bolt"]


@pytest.fixture
def delver(sample_cards: dict[str, ScryfallCard]) -> ScryfallCard:
    return sample_cards["Delver of Secrets // Insectile Aberration"]


@pytest.fixture
async def client(tmp_path: Path) -> AsyncIterator[SQLiteClient]:
    """Connected client on a fresh on-disk store, fully migrated."""
    client = SQLiteClient("test.db", DB_MIGRATIONS, directory=tmp_path)
    await client.connect()
    yield client
    await client.disconnect()


@pytest.fixture
def repository(client: SQLiteClient) -> Repository:
    return Repository(client)
