"""Tests for card and deck models."""

from typing import Any

import pytest
from pydantic import ValidationError

from mtgoverseer.models.card import Card, Legality, Rarity, ScryfallCard
from mtgoverseer.models.deck import Deck, DeckCard


class TestScryfallCard:
    def test_parses_api_object(self, bolt: ScryfallCard) -> None:
        assert bolt.set_code == "m10"
        assert bolt.rarity is Rarity.COMMON
        assert bolt.legalities is not None
        assert bolt.legalities["modern"] is Legality.LEGAL
        assert bolt.prices is not None
        assert bolt.prices.usd == "2.15"
        assert bolt.prices.usd_etched is None

    def test_unknown_fields_ignored(self, sample_cards_json: list[dict[str, Any]]) -> None:
        card = ScryfallCard.model_validate(sample_cards_json[0])

        assert "preview" not in card.model_dump()

    def test_dump_uses_api_names(self, bolt: ScryfallCard) -> None:
        data = bolt.model_dump(by_alias=True, exclude_none=True)

        assert data["set"] == "m10"
        assert "set_code" not in data

    def test_populate_by_field_name(self) -> None:
        card = ScryfallCard(id="c1", name="Test", set_code="abc")

        assert card.set_code == "abc"

    def test_requires_id_and_name(self) -> None:
        with pytest.raises(ValidationError):
            ScryfallCard.model_validate({"id": "c1"})

    def test_multi_faced(self, bolt: ScryfallCard, delver: ScryfallCard) -> None:
        assert not bolt.is_multi_faced
        assert delver.is_multi_faced

    def test_image_uri(self, bolt: ScryfallCard, delver: ScryfallCard) -> None:
        assert bolt.image_uri("small") == "https://cards.scryfall.io/small/front/e/3/e3285e6b.jpg"
        assert bolt.image_uri(face=1).endswith("/normal/front/e/3/e3285e6b.jpg")
        assert delver.image_uri(face=1) == (
            "https://cards.scryfall.io/normal/back/1/1/11bf83bb.jpg"
        )
        assert delver.image_uri("large") is None

    def test_related_parts(self, sample_cards: dict[str, ScryfallCard]) -> None:
        pyromancer = sample_cards["Young Pyromancer"]

        assert pyromancer.all_parts is not None
        assert [part.component.value for part in pyromancer.all_parts] == [
            "combo_piece",
            "token",
        ]


class TestCard:
    def test_to_scryfall_drops_timestamps(self, bolt: ScryfallCard) -> None:
        stored = Card.model_validate(
            {**bolt.model_dump(by_alias=True), "created_at": 1, "updated_at": 2}
        )

        plain = stored.to_scryfall()

        assert type(plain) is ScryfallCard
        assert plain == bolt


class TestDeckModels:
    def test_deck_defaults(self) -> None:
        deck = Deck(id="d1", name="Aggro")

        assert deck.description is None
        assert deck.created_at is None

    def test_deck_card_defaults(self) -> None:
        entry = DeckCard(id="dc1", deck_id="d1", card_id="c1")

        assert entry.quantity == 1
        assert entry.is_sideboard is False
