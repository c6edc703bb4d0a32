"""Identifier allocation and the object store."""

import threading

import pytest

from mockpay.common.errors import ConcurrentUpdateError
from mockpay.engine.ids import IdAllocator
from mockpay.engine.models import Card
from mockpay.engine.store import ObjectStore


def _card(card_id):
    return Card(id=card_id, last4="4242", brand="Visa", exp_month=1, exp_year=2030)


def test_ids_carry_sandbox_prefix():
    ids = IdAllocator()

    assert ids.next_id("charge") == "test_ch_1"
    assert ids.next_id("charge") == "test_ch_2"
    assert ids.next_id("customer") == "test_cus_1"
    assert ids.next_id("balance_transaction") == "test_txn_1"


def test_id_shape_matching():
    ids = IdAllocator()

    assert ids.matches("token", "test_tok_12")
    assert not ids.matches("token", "tok_12")
    assert not ids.matches("token", "bogus_card_token")
    assert not ids.matches("card", "test_tok_1")


def test_concurrent_allocation_is_unique():
    ids = IdAllocator()
    allocated = []
    lock = threading.Lock()

    def worker():
        local = [ids.next_id("charge") for _ in range(200)]
        with lock:
            allocated.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(allocated) == 1600
    assert len(set(allocated)) == 1600


def test_reset_restarts_counters():
    ids = IdAllocator("sandbox_")
    ids.next_id("token")
    ids.reset()

    assert ids.next_id("token") == "sandbox_tok_1"


def test_store_keeps_insertion_order_and_sequence():
    store = ObjectStore()
    first = store.insert("card", _card("test_card_2"))
    second = store.insert("card", _card("test_card_1"))

    assert second.sequence > first.sequence
    assert [card.id for card in store.snapshot("card")] == ["test_card_2", "test_card_1"]
    assert store.get("card", "test_card_9") is None


def test_store_rejects_duplicate_ids():
    store = ObjectStore()
    store.insert("card", _card("test_card_1"))

    with pytest.raises(ValueError):
        store.insert("card", _card("test_card_1"))


def test_compare_and_set_rejects_stale_version():
    store = ObjectStore()
    record = store.insert("card", _card("test_card_1"))
    store.compare_and_set("card", record.id, 0, {"customer": "test_cus_1"})

    with pytest.raises(ConcurrentUpdateError):
        store.compare_and_set("card", record.id, 0, {"customer": "test_cus_2"})
    assert store.get("card", record.id).customer == "test_cus_1"
    assert record.version == 1


def test_reset_empties_collections():
    store = ObjectStore()
    store.insert("card", _card("test_card_1"))
    store.reset()

    assert store.snapshot("card") == []


def test_reset_while_new_collections_register():
    """Resetting stays safe while other threads create collections."""

    store = ObjectStore()
    store.insert("card", _card("test_card_1"))
    errors = []

    def register():
        for index in range(500):
            store.lock(f"type_{index}")

    def reset():
        try:
            for _ in range(50):
                store.reset()
        except RuntimeError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=register), threading.Thread(target=reset)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert store.snapshot("card") == []
