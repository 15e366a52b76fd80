"""Tests for the card, deck and deck entry repositories."""

from pathlib import Path

import pytest

from mtgoverseer.db.client import SQLiteClient
from mtgoverseer.db.errors import (
    ConstraintViolationError,
    InvalidRecordError,
    NotConnectedError,
    SerializationError,
)
from mtgoverseer.db.migrations import DB_MIGRATIONS
from mtgoverseer.db.repository import Repository
from mtgoverseer.models.card import ScryfallCard
from mtgoverseer.models.deck import Deck, DeckCard


@pytest.fixture
async def aggro(repository: Repository, bolt: ScryfallCard) -> Deck:
    """Deck d1 with four copies of the stored bolt."""
    await repository.cards.insert(bolt)
    deck = await repository.decks.insert(Deck(id="d1", name="Aggro"))
    await repository.deck_cards.insert(
        DeckCard(id="dc1", deck_id="d1", card_id=bolt.id, quantity=4)
    )
    return deck


class TestCardsTable:
    async def test_round_trip_every_sample(
        self, repository: Repository, sample_cards: dict[str, ScryfallCard]
    ) -> None:
        for card in sample_cards.values():
            await repository.cards.insert(card)

        for card in sample_cards.values():
            stored = await repository.cards.get_by_id(card.id)
            assert stored is not None
            assert stored.to_scryfall() == card

    async def test_insert_returns_stored_card(
        self, repository: Repository, bolt: ScryfallCard
    ) -> None:
        stored = await repository.cards.insert(bolt)

        assert stored.name == "Lightning Bolt"
        assert stored.created_at is not None
        assert stored.created_at == stored.updated_at

    async def test_absent_faces_stay_absent(
        self, repository: Repository, bolt: ScryfallCard
    ) -> None:
        await repository.cards.insert(bolt)

        stored = await repository.cards.get_by_id(bolt.id)

        assert stored is not None
        assert stored.card_faces is None
        assert stored.keywords == []

    async def test_get_by_id_missing(self, repository: Repository) -> None:
        assert await repository.cards.get_by_id("nope") is None

    async def test_upsert_replaces_every_field(
        self, repository: Repository, bolt: ScryfallCard
    ) -> None:
        await repository.cards.insert(bolt)
        reprint = ScryfallCard(id=bolt.id, name="Lightning Bolt", set_code="2xm")

        stored = await repository.cards.insert(reprint)

        assert await repository.cards.count() == 1
        assert stored.set_code == "2xm"
        assert stored.prices is None
        assert stored.oracle_text is None

    async def test_upsert_keeps_deck_entries_and_created_at(
        self, repository: Repository, aggro: Deck, bolt: ScryfallCard
    ) -> None:
        first = await repository.cards.get_by_id(bolt.id)
        assert first is not None

        updated = await repository.cards.insert(bolt.model_copy(update={"edhrec_rank": 1}))

        assert updated.edhrec_rank == 1
        assert updated.created_at == first.created_at
        entries = await repository.deck_cards.get_by_deck_id(aggro.id)
        assert [entry.id for entry in entries] == ["dc1"]

    async def test_get_all_and_count(
        self, repository: Repository, sample_cards: dict[str, ScryfallCard]
    ) -> None:
        assert await repository.cards.get_all() == []

        for card in sample_cards.values():
            await repository.cards.insert(card)

        stored = await repository.cards.get_all()
        assert {card.id for card in stored} == {card.id for card in sample_cards.values()}
        assert await repository.cards.count() == len(sample_cards)

    async def test_get_by_ids(
        self, repository: Repository, bolt: ScryfallCard, delver: ScryfallCard
    ) -> None:
        await repository.cards.insert(bolt)
        await repository.cards.insert(delver)

        cards = await repository.cards.get_by_ids([bolt.id, "missing", bolt.id, delver.id])

        assert sorted(card.id for card in cards) == sorted([bolt.id, delver.id])
        assert await repository.cards.get_by_ids([]) == []

    async def test_get_by_name_ignores_case(
        self, repository: Repository, bolt: ScryfallCard
    ) -> None:
        await repository.cards.insert(bolt)
        await repository.cards.insert(
            ScryfallCard(id="bolt-2xm", name="Lightning Bolt", set_code="2xm")
        )

        matches = await repository.cards.get_by_name("lightning bolt")

        assert {card.id for card in matches} == {bolt.id, "bolt-2xm"}
        assert await repository.cards.get_by_name("Lightning") == []

    async def test_delete_cascades_to_deck_entries(
        self, repository: Repository, aggro: Deck, bolt: ScryfallCard
    ) -> None:
        assert await repository.cards.delete(bolt.id) is True
        assert await repository.cards.delete(bolt.id) is False

        assert await repository.deck_cards.get_by_deck_id(aggro.id) == []
        assert await repository.decks.get_by_id(aggro.id) is not None

    async def test_blank_name_rejected(self, repository: Repository) -> None:
        with pytest.raises(InvalidRecordError):
            await repository.cards.insert(ScryfallCard(id="c1", name="  "))
        assert await repository.cards.count() == 0

    async def test_corrupt_row_raises(
        self, repository: Repository, client: SQLiteClient, bolt: ScryfallCard
    ) -> None:
        await repository.cards.insert(bolt)
        await client.execute("UPDATE cards SET colors = ? WHERE id = ?", ["{oops", bolt.id])

        with pytest.raises(SerializationError) as exc_info:
            await repository.cards.get_by_id(bolt.id)

        assert exc_info.value.column == "colors"


class TestDecksTable:
    async def test_deck_with_one_card(self, repository: Repository) -> None:
        card = ScryfallCard(id="c1", name="Goblin Guide")
        await repository.cards.insert(card)
        await repository.decks.insert(Deck(id="d1", name="Aggro"))
        await repository.deck_cards.insert(
            DeckCard(id="dc1", deck_id="d1", card_id="c1", quantity=4, is_sideboard=False)
        )

        entries = await repository.deck_cards.get_by_deck_id("d1")

        assert len(entries) == 1
        assert entries[0].card_id == "c1"
        assert entries[0].quantity == 4
        assert entries[0].is_sideboard is False

    async def test_entry_for_unknown_card_rejected(self, repository: Repository) -> None:
        await repository.decks.insert(Deck(id="d1", name="Aggro"))

        with pytest.raises(ConstraintViolationError):
            await repository.deck_cards.insert(DeckCard(id="dc1", deck_id="d1", card_id="c1"))

        assert await repository.deck_cards.get_by_deck_id("d1") == []

    async def test_insert_fills_timestamps(self, repository: Repository) -> None:
        deck = await repository.decks.insert(Deck(id="d1", name="  Aggro  "))

        assert deck.name == "Aggro"
        assert deck.created_at is not None
        assert deck.updated_at == deck.created_at
        assert await repository.decks.get_by_id("d1") == deck

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    async def test_blank_name_rejected(self, repository: Repository, name: str) -> None:
        with pytest.raises(InvalidRecordError):
            await repository.decks.insert(Deck(id="d1", name=name))

        assert await repository.decks.get_all() == []

    async def test_blank_name_rejected_before_connecting(self, tmp_path: Path) -> None:
        """Validation happens before any SQL, so no connection is needed."""
        idle = Repository(SQLiteClient("idle.db", DB_MIGRATIONS, directory=tmp_path))

        with pytest.raises(InvalidRecordError):
            await idle.decks.insert(Deck(id="d1", name=" "))

    async def test_duplicate_id_rejected(self, repository: Repository) -> None:
        await repository.decks.insert(Deck(id="d1", name="Aggro"))

        with pytest.raises(ConstraintViolationError):
            await repository.decks.insert(Deck(id="d1", name="Control"))

        stored = await repository.decks.get_by_id("d1")
        assert stored is not None
        assert stored.name == "Aggro"

    async def test_update(self, repository: Repository) -> None:
        deck = await repository.decks.insert(
            Deck(id="d1", name="Aggro", created_at=1, updated_at=1)
        )

        changed = await repository.decks.update(
            Deck(id=deck.id, name="Burn", description="Red", format="modern")
        )

        stored = await repository.decks.get_by_id("d1")
        assert changed is True
        assert stored is not None
        assert (stored.name, stored.description, stored.format) == ("Burn", "Red", "modern")
        assert stored.created_at == 1
        assert stored.updated_at is not None and stored.updated_at > 1

    async def test_update_missing_deck(self, repository: Repository) -> None:
        assert await repository.decks.update(Deck(id="nope", name="Burn")) is False

    async def test_delete_cascades(self, repository: Repository, aggro: Deck) -> None:
        assert await repository.decks.delete(aggro.id) is True

        assert await repository.decks.get_by_id(aggro.id) is None
        assert await repository.deck_cards.get_by_id("dc1") is None
        assert await repository.decks.delete(aggro.id) is False


class TestDeckCardsTable:
    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_quantity_must_be_positive(
        self, repository: Repository, aggro: Deck, bolt: ScryfallCard, quantity: int
    ) -> None:
        with pytest.raises(InvalidRecordError):
            await repository.deck_cards.insert(
                DeckCard(id="dc2", deck_id=aggro.id, card_id=bolt.id, quantity=quantity)
            )

    async def test_sideboard_flag_round_trips(
        self, repository: Repository, aggro: Deck, bolt: ScryfallCard
    ) -> None:
        await repository.deck_cards.insert(
            DeckCard(id="dc2", deck_id=aggro.id, card_id=bolt.id, quantity=2, is_sideboard=True)
        )

        stored = await repository.deck_cards.get_by_id("dc2")

        assert stored is not None
        assert stored.is_sideboard is True

    async def test_find_entry_by_board(
        self, repository: Repository, aggro: Deck, bolt: ScryfallCard
    ) -> None:
        main = await repository.deck_cards.find_entry(aggro.id, bolt.id, False)

        assert main is not None
        assert main.id == "dc1"
        assert await repository.deck_cards.find_entry(aggro.id, bolt.id, True) is None

    async def test_update_quantity(self, repository: Repository, aggro: Deck) -> None:
        assert await repository.deck_cards.update_quantity("dc1", 3) is True

        stored = await repository.deck_cards.get_by_id("dc1")
        assert stored is not None
        assert stored.quantity == 3
        assert await repository.deck_cards.update_quantity("nope", 3) is False

        with pytest.raises(InvalidRecordError):
            await repository.deck_cards.update_quantity("dc1", 0)

    async def test_delete_by_deck_id(
        self, repository: Repository, aggro: Deck, delver: ScryfallCard
    ) -> None:
        await repository.cards.insert(delver)
        await repository.deck_cards.insert(
            DeckCard(id="dc2", deck_id=aggro.id, card_id=delver.id, quantity=2)
        )

        deleted = await repository.deck_cards.delete_by_deck_id(aggro.id)

        assert deleted == 2
        assert await repository.deck_cards.get_by_deck_id(aggro.id) == []
        assert await repository.decks.get_by_id(aggro.id) is not None

    async def test_delete(self, repository: Repository, aggro: Deck) -> None:
        assert await repository.deck_cards.delete("dc1") is True
        assert await repository.deck_cards.delete("dc1") is False


class TestBatch:
    async def test_mixed_tables_commit_together(
        self, repository: Repository, bolt: ScryfallCard, delver: ScryfallCard
    ) -> None:
        deck = Deck(id="d2", name="Tempo")
        results = await repository.execute_batch(
            [
                repository.cards.insert_statement(bolt),
                repository.cards.insert_statement(delver),
                repository.decks.insert_statement(deck),
                repository.deck_cards.insert_statement(
                    DeckCard(id="e1", deck_id="d2", card_id=delver.id, quantity=4)
                ),
            ]
        )

        assert [result.rowcount for result in results] == [1, 1, 1, 1]
        assert len(await repository.deck_cards.get_by_deck_id("d2")) == 1

    async def test_failure_leaves_nothing_behind(
        self, repository: Repository, bolt: ScryfallCard
    ) -> None:
        await repository.cards.insert(bolt)

        with pytest.raises(ConstraintViolationError):
            await repository.execute_batch(
                [
                    repository.decks.insert_statement(Deck(id="d2", name="Burn")),
                    repository.deck_cards.insert_statement(
                        DeckCard(id="e1", deck_id="d2", card_id=bolt.id, quantity=4)
                    ),
                    repository.deck_cards.insert_statement(
                        DeckCard(id="e2", deck_id="d2", card_id=bolt.id, quantity=1)
                    ),
                    repository.deck_cards.insert_statement(
                        DeckCard(id="e3", deck_id="d2", card_id="missing", quantity=1)
                    ),
                ]
            )

        assert await repository.decks.get_by_id("d2") is None
        assert await repository.deck_cards.get_by_deck_id("d2") == []

    async def test_invalid_entity_fails_before_running(self, repository: Repository) -> None:
        with pytest.raises(InvalidRecordError):
            await repository.execute_batch(
                [
                    repository.decks.insert_statement(Deck(id="d2", name="Burn")),
                    repository.decks.insert_statement(Deck(id="d3", name="")),
                ]
            )

    async def test_transaction_spans_tables(
        self, repository: Repository, bolt: ScryfallCard
    ) -> None:
        with pytest.raises(RuntimeError):
            async with repository.transaction():
                await repository.cards.insert(bolt)
                await repository.decks.insert(Deck(id="d1", name="Aggro"))
                raise RuntimeError("cancelled")

        assert await repository.cards.count() == 0
        assert await repository.decks.get_all() == []


class TestNotConnected:
    async def test_operations_fail(self, tmp_path: Path, bolt: ScryfallCard) -> None:
        idle = Repository(SQLiteClient("idle.db", DB_MIGRATIONS, directory=tmp_path))

        with pytest.raises(NotConnectedError):
            await idle.cards.insert(bolt)
        with pytest.raises(NotConnectedError):
            await idle.cards.get_all()
        with pytest.raises(NotConnectedError):
            await idle.decks.get_by_id("d1")
        with pytest.raises(NotConnectedError):
            await idle.deck_cards.get_by_deck_id("d1")
