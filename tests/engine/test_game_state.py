import json

import pytest

from sandbox.engine.game_state import NO_CARDS_REMAINING, GameStateStore
from sandbox.game_pieces.constants import CardLocation, Provenance
from sandbox.imports.deck_validation import DeckImportError
from sandbox.schemas import DeckImport


def placed_ids(store: GameStateStore) -> set[str]:
    return {c.id for c in store.playfield_cards}


def assert_position_invariant(store: GameStateStore) -> None:
    assert set(store.positions) == placed_ids(store)
    assert all(p.z_index < store.next_z_index for p in store.positions.values())


class TestLoading:
    def test_first_load_initialises_and_saves_defaults(self, store, repository):
        assert not store.is_loading
        assert len(store.deck_cards) == 20
        assert store.deck_name == "Test Deck"
        assert store.deck_count_label == "20/20"
        assert store.hand_cards == ()
        assert store.playfield_cards == ()
        assert store.deck_metadata.original_card_count == 20
        assert len(repository.saves) == 1

    def test_restores_previous_snapshot(self, store, repository, scheduler):
        store.draw_card()
        card = store.hand_cards[0]
        store.move_card_to_playfield(card.id, (120, 80))
        store.rotate_card(card.id, 90)
        scheduler.run_all()

        restored = GameStateStore("session-1", repository, scheduler=scheduler)
        assert restored.load()

        assert [c.id for c in restored.deck_cards] == [c.id for c in store.deck_cards]
        assert restored.deck_count_label == "19/20"
        assert restored.playfield_cards[0] == card
        assert restored.position_of(card.id) == store.position_of(card.id)
        assert restored.rotation_of(card.id) == 90
        assert restored.next_z_index == store.next_z_index

    def test_restore_trusts_position_keys_over_stored_card_ids(self, store):
        card = store.draw_card()
        store.move_card_to_playfield(card.id, (10, 20))
        snapshot = store.snapshot()
        snapshot.playfield.positions[card.id].card_id = "someone-else"

        store.restore(snapshot)
        store.normalize_z_indexes()

        assert (store.position_of(card.id).x, store.position_of(card.id).y) == (10, 20)
        assert [c.id for c in store.playfield_in_stacking_order()] == [card.id]
        assert_position_invariant(store)

    def test_load_failure_records_error_and_uses_defaults(self, repository, scheduler):
        repository.fail_load = True
        store = GameStateStore("session-1", repository, scheduler=scheduler)

        assert not store.load()
        assert store.error == "database unavailable"
        assert len(store.deck_cards) == 20
        assert not store.is_loading


class TestDeckOperations:
    def test_draw_moves_top_card_to_hand(self, store):
        top = store.deck_cards[0]
        drawn = store.draw_card()

        assert drawn == top
        assert store.hand_cards == (top,)
        assert store.location_of(top.id) is CardLocation.HAND
        assert len(store.deck_cards) == 19

    def test_draw_on_empty_deck_signals(self, store, json_deck):
        store.import_deck(json_deck)
        for _ in range(3):
            store.draw_card()

        assert store.draw_card() is None
        assert store.error == NO_CARDS_REMAINING
        assert len(store.hand_cards) == 3

        store.reset_game()
        assert store.error is None

    def test_import_replaces_deck_and_clears_zones(self, store, json_deck):
        store.draw_card()
        store.move_card_to_playfield(store.hand_cards[0].id, (0, 0))
        store.draw_card()

        deck = store.import_deck(json_deck)

        assert len(deck) == 3
        assert [c.name for c in store.deck_cards] == ["Alpha", "Beta", "Gamma"]
        assert all(c.provenance is Provenance.JSON_IMPORT for c in store.deck_cards)
        assert store.hand_cards == ()
        assert store.playfield_cards == ()
        assert store.positions == {}
        assert store.deck_count_label == "3/3"
        assert store.deck_metadata.name == "Imported"

    def test_import_accepts_typed_model(self, store, json_deck):
        store.import_deck(DeckImport.model_validate(json_deck))
        assert len(store.deck_cards) == 3

    def test_rejected_import_leaves_state_unchanged(self, store):
        before = store.deck_cards
        store.draw_card()
        hand_before = store.hand_cards

        with pytest.raises(DeckImportError) as excinfo:
            store.import_deck(
                {"name": "Dupes", "cards": [{"id": "x", "name": "A"}, {"id": "x", "name": "B"}]}
            )

        assert "Duplicate card ID found: x" in excinfo.value.errors
        assert store.deck_cards == before[1:]
        assert store.hand_cards == hand_before

    def test_empty_import_is_rejected(self, store):
        with pytest.raises(DeckImportError) as excinfo:
            store.import_deck({"name": "Test", "cards": []})
        assert any("at least 1 card" in e for e in excinfo.value.errors)
        assert len(store.deck_cards) == 20

    def test_import_text_tts(self, store):
        result = store.import_text("OGN-253-1 OGN-254-1\nBAD", "tts")

        assert result.card_count == 2
        assert [c.name for c in store.deck_cards] == ["OGN-253", "OGN-254"]
        assert store.deck_name == "TTS Deck (OGN)"
        assert all(c.provenance is Provenance.TTS_IMPORT for c in store.deck_cards)

    def test_import_text_json_and_failures(self, store, json_deck):
        store.import_text(json.dumps(json_deck), "json")
        assert len(store.deck_cards) == 3

        with pytest.raises(DeckImportError) as excinfo:
            store.import_text("BAD WORSE", "tts")
        assert excinfo.value.errors == ["No valid TTS codes found. All lines failed validation."]
        assert len(store.deck_cards) == 3

        with pytest.raises(DeckImportError):
            store.import_text("", "json")

    def test_oversized_tts_import_is_rejected(self, store):
        codes = " ".join(f"OGN-{i}-1" for i in range(500))

        with pytest.raises(DeckImportError) as excinfo:
            store.import_text(codes, "tts")

        assert excinfo.value.errors == ["Deck cannot contain more than 200 cards"]
        assert len(store.deck_cards) == 20
        assert store.deck_name == "Test Deck"

    def test_reset_is_idempotent(self, store):
        store.draw_card()
        store.move_card_to_playfield(store.hand_cards[0].id, (10, 10))

        store.reset_game()
        first = (len(store.deck_cards), store.hand_cards, store.playfield_cards, store.positions)
        store.reset_game()
        second = (len(store.deck_cards), store.hand_cards, store.playfield_cards, store.positions)

        assert first == second == (20, (), (), {})
        assert store.next_z_index == 1
        assert [c.name for c in store.deck_cards][:2] == ["Card 1", "Card 2"]


class TestPlayfieldOperations:
    def test_round_trip_deck_to_playfield(self, store, json_deck):
        store.import_deck(json_deck)
        while store.draw_card() is not None:
            pass
        for i, card in enumerate(store.hand_cards):
            store.move_card_to_playfield(card.id, (i * 10, i * 10))

        assert store.deck_cards == ()
        assert store.hand_cards == ()
        assert len(store.playfield_cards) == 3
        assert len(store.positions) == 3
        assert_position_invariant(store)

    def test_drop_then_reposition_keeps_one_entry(self, store):
        card = store.draw_card()
        first = store.move_card_to_playfield(card.id, (120, 80))
        second = store.update_card_position(card.id, (200, 150))

        assert list(store.positions) == [card.id]
        position = store.position_of(card.id)
        assert (position.x, position.y) == (200, 150)
        assert position.z_index == second.z_index > first.z_index

    def test_last_touched_card_is_on_top(self, store):
        ids = [store.draw_card().id for _ in range(4)]
        for i, card_id in enumerate(ids):
            store.move_card_to_playfield(card_id, (i, i))
        store.update_card_position(ids[1], (50, 50))
        store.bring_to_front(ids[0])

        top = store.position_of(ids[0]).z_index
        assert all(top > store.position_of(i).z_index for i in ids[1:])
        assert store.playfield_in_stacking_order()[-1].id == ids[0]
        assert (store.position_of(ids[0]).x, store.position_of(ids[0]).y) == (0, 0)

    def test_move_back_to_hand(self, store):
        card = store.draw_card()
        store.move_card_to_playfield(card.id, (5, 5))
        store.rotate_card(card.id, 90)

        assert store.move_card_to_hand(card.id) == card
        assert store.hand_cards == (card,)
        assert store.positions == {}
        assert store.rotation_of(card.id) == 0
        assert_position_invariant(store)

    def test_discard_from_playfield_removes_everything(self, store):
        card = store.draw_card()
        store.draw_card()
        store.move_card_to_playfield(card.id, (5, 5))
        total = store.total_cards()

        assert store.discard_card(card.id) == card
        assert store.total_cards() == total - 1
        assert store.location_of(card.id) is None
        assert store.position_of(card.id) is None
        assert_position_invariant(store)

    def test_discard_from_hand(self, store):
        card = store.draw_card()
        assert store.discard_card(card.id) == card
        assert store.hand_cards == ()

    def test_unknown_targets_are_no_ops(self, store, scheduler):
        card = store.draw_card()
        scheduler.run_all()
        snapshot = (store.deck_cards, store.hand_cards, store.playfield_cards, store.positions)

        assert store.move_card_to_playfield("nope", (0, 0)) is None
        assert store.update_card_position(card.id, (1, 1)) is None
        assert store.bring_to_front(card.id) is None
        assert store.move_card_to_hand(card.id) is None
        assert store.discard_card("nope") is None
        assert store.rotate_card(card.id, 90) is None
        assert store.set_card_rotation("nope", 90) is None

        assert (store.deck_cards, store.hand_cards, store.playfield_cards, store.positions) == snapshot
        assert scheduler.pending == {}
        assert not store.dirty

    def test_rotation(self, store):
        card = store.draw_card()
        store.move_card_to_playfield(card.id, (0, 0))
        assert store.rotate_card(card.id, -90) == 270
        assert store.set_card_rotation(card.id, 450) == 90
        assert store.rotation_of(card.id) == 90

    def test_normalize_z_indexes(self, store):
        ids = [store.draw_card().id for _ in range(3)]
        for card_id in ids:
            store.move_card_to_playfield(card_id, (0, 0))
        store.bring_to_front(ids[0])
        store.normalize_z_indexes()

        assert [store.position_of(i).z_index for i in ids] == [3, 1, 2]
        assert store.next_z_index == 4


class TestPersistence:
    def test_mutations_are_debounced_into_one_save(self, store, repository, scheduler):
        saves_before = len(repository.saves)
        card = store.draw_card()
        store.move_card_to_playfield(card.id, (0, 0))
        for x in range(10):
            store.update_card_position(card.id, (x, x))

        assert len(scheduler.pending) == 1
        assert store.dirty
        scheduler.run_all()

        assert len(repository.saves) == saves_before + 1
        saved = repository.saves[-1][1]
        assert saved.playfield.positions[card.id].x == 9
        assert not store.dirty

    def test_snapshot_uses_camel_case_keys(self, store):
        card = store.draw_card()
        store.move_card_to_playfield(card.id, (3, 4))
        payload = store.snapshot().model_dump(mode="json", by_alias=True)

        assert payload["deck"]["originalCount"] == 20
        assert payload["playfield"]["nextZIndex"] == 2
        assert payload["playfield"]["positions"][card.id]["zIndex"] == 1
        assert payload["deckMetadata"]["originalCardCount"] == 20

    def test_save_failure_is_a_warning(self, store, repository, scheduler):
        warnings = []
        store.on_warning = warnings.append
        repository.fail_save = True

        store.draw_card()
        scheduler.run_all()

        assert store.persistence_warning == "Auto-save failed: write failed"
        assert warnings == ["Auto-save failed: write failed"]
        assert store.dirty
        assert len(store.hand_cards) == 1

        repository.fail_save = False
        store.draw_card()
        scheduler.run_all()
        assert store.persistence_warning is None
        assert len(repository.saves[-1][1].hand.cards) == 2

    def test_flush_writes_immediately(self, store, repository, scheduler):
        saves_before = len(repository.saves)
        store.draw_card()

        assert store.flush()
        assert scheduler.pending == {}
        assert len(repository.saves) == saves_before + 1

    def test_close_flushes_pending_changes(self, store, repository, scheduler):
        saves_before = len(repository.saves)
        store.close()
        assert len(repository.saves) == saves_before

        store.draw_card()
        store.close()
        assert len(repository.saves) == saves_before + 1


def test_subscribers_are_notified(store):
    seen = []
    unsubscribe = store.subscribe(lambda s: seen.append(len(s.hand_cards)))

    store.draw_card()
    store.draw_card()
    unsubscribe()
    store.draw_card()

    assert seen == [1, 2]
