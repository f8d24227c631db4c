# -*- coding: utf-8 -*-
"""
Tests del almacén de tablas: semántica de cada operación, atomicidad de
increment/next_id bajo hilos y timeout del lock.
"""
import json
import threading

import pytest

from shipdash.errors import InvalidArgumentError, NotFoundError, StoreUnavailableError
from shipdash.repositories import InMemoryTableStore, JSONTableStore


def test_next_id_starts_at_one_per_table(store):
    assert store.next_id('customers') == 1
    assert store.next_id('customers') == 2
    assert store.next_id('shipments') == 1


def test_get_returns_copy(store):
    store.put('customers', {'id': 1, 'name': 'Ada', 'tags': ['a']})
    row = store.get('customers', 1)
    row['tags'].append('b')
    row['name'] = 'Otro'
    assert store.get('customers', '1') == {'id': 1, 'name': 'Ada', 'tags': ['a']}


def test_put_requires_id(store):
    with pytest.raises(InvalidArgumentError):
        store.put('customers', {'name': 'Ada'})


def test_update_merges_only_given_fields(store):
    store.put('customers', {'id': 1, 'name': 'Ada', 'phone': '1', 'note_id': 4})
    row = store.update('customers', 1, {'phone': '2', 'note_id': None, 'id': 99})
    assert row == {'id': 1, 'name': 'Ada', 'phone': '2'}
    assert 'note_id' not in store.get('customers', 1)


def test_update_missing_key_raises(store):
    with pytest.raises(NotFoundError):
        store.update('customers', 5, {'name': 'x'})


def test_increment_adds_and_treats_missing_as_zero(store):
    store.put('shipments', {'id': 1, 'total_weight': 2.5})
    row = store.increment('shipments', 1, {'total_weight': 1.5, 'total_volume': 3})
    assert row['total_weight'] == 4.0
    assert row['total_volume'] == 3


def test_increment_missing_key_never_creates(store):
    with pytest.raises(NotFoundError):
        store.increment('customers', 3, {'balance': 10})
    assert store.get('customers', 3) is None


def test_increment_non_numeric_leaves_record_untouched(store):
    store.put('customers', {'id': 1, 'balance': 5, 'name': 'Ada'})
    with pytest.raises(InvalidArgumentError):
        store.increment('customers', 1, {'balance': 1, 'name': 1})
    with pytest.raises(InvalidArgumentError):
        store.increment('customers', 1, {'balance': '1'})
    with pytest.raises(InvalidArgumentError):
        store.increment('customers', 1, {'balance': True})
    assert store.get('customers', 1)['balance'] == 5


def test_delete_is_noop_when_absent(store):
    store.delete('customers', 42)
    store.put('customers', {'id': 1})
    store.delete('customers', 1)
    assert store.scan('customers') == []


def test_next_id_never_repeats_under_threads(store):
    ids = []
    ids_lock = threading.Lock()

    def worker():
        for _ in range(25):
            new_id = store.next_id('partial_shipments')
            with ids_lock:
                ids.append(new_id)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(ids) == list(range(1, 201))


def test_increment_has_no_lost_updates(store):
    store.put('customers', {'id': 1, 'balance': 0})

    def worker():
        for _ in range(50):
            store.increment('customers', 1, {'balance': 1})

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get('customers', 1)['balance'] == 500


def test_lock_timeout_raises_store_unavailable():
    store = InMemoryTableStore(timeout=0.05)
    store.put('customers', {'id': 1})
    errors = []

    def worker():
        try:
            store.get('customers', 1)
        except StoreUnavailableError as e:
            errors.append(e)

    lock = store._lock_for('customers')
    lock.acquire()
    try:
        t = threading.Thread(target=worker)
        t.start()
        t.join()
    finally:
        lock.release()

    assert len(errors) == 1
    assert errors[0].kind == 'StoreUnavailable'


# ═══════════════════════════════════════════════════════════════════════════
# JSONTableStore
# ═══════════════════════════════════════════════════════════════════════════

def test_json_store_persists_between_instances(tmp_path):
    first = JSONTableStore(str(tmp_path))
    new_id = first.next_id('customers')
    first.put('customers', {'id': new_id, 'name': 'Ada', 'balance': 0})
    first.increment('customers', new_id, {'balance': 7.5})

    second = JSONTableStore(str(tmp_path))
    assert second.get('customers', new_id) == {'id': 1, 'name': 'Ada', 'balance': 7.5}
    assert second.next_id('customers') == 2

    with open(tmp_path / 'customers.json', encoding='utf-8') as f:
        assert json.load(f)['1']['name'] == 'Ada'
    assert not (tmp_path / 'customers.json.tmp').exists()


def test_json_store_missing_table_is_empty(tmp_path):
    assert JSONTableStore(str(tmp_path)).scan('notes') == []


def test_json_store_corrupt_file_raises(tmp_path):
    (tmp_path / 'shipments.json').write_text('{not json', encoding='utf-8')
    store = JSONTableStore(str(tmp_path))
    with pytest.raises(StoreUnavailableError):
        store.get('shipments', 1)


def test_json_store_non_object_file_raises(tmp_path):
    (tmp_path / 'shipments.json').write_text('[1, 2]', encoding='utf-8')
    with pytest.raises(StoreUnavailableError):
        JSONTableStore(str(tmp_path)).scan('shipments')
