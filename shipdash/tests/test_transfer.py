# -*- coding: utf-8 -*-
"""
Tests de transferencia de envíos parciales entre lotes: movimiento de
totales y cada rechazo sin modificar nada.
"""
import pytest

from shipdash.errors import ConflictError, InvalidArgumentError, NotFoundError
from shipdash.tests.helpers import new_partial, snapshot

BOX = {'length': 2, 'width': 1, 'height': 1, 'weight': 4, 'units': 3}


@pytest.fixture
def setup(container, customer, shipment):
    target = container.shipment_service.create_shipment('Abuja')
    partial = new_partial(container, shipment.id, customer.id, packages=[BOX])
    return shipment, target, partial


def _totals(container, shipment_id):
    s = container.shipment_repo.get_by_id(shipment_id)
    return s.total_weight, s.total_volume


def test_transfer_moves_totals(container, setup):
    source, target, partial = setup
    moved = container.partial_shipment_service.transfer_partial_shipment(
        source.id, partial.id, target.id
    )
    assert moved.shipment_id == target.id
    assert moved.updated_by_user_id == 1
    assert _totals(container, source.id) == (0.0, 0.0)
    assert _totals(container, target.id) == (12.0, 6.0)

    [log] = [l for l in container.audit_service.get_logs() if l.action == 'transfer']
    assert log.details == {'from': source.id, 'to': target.id, 'weight': 12.0, 'volume': 6.0}


def test_transfer_accepts_string_ids(container, setup):
    source, target, partial = setup
    container.partial_shipment_service.transfer_partial_shipment(
        str(source.id), str(partial.id), str(target.id)
    )
    assert container.partial_repo.get_by_id(partial.id).shipment_id == target.id


def test_transfer_without_packages_skips_totals(container, customer, shipment):
    target = container.shipment_service.create_shipment('Abuja')
    empty = new_partial(container, shipment.id, customer.id)
    container.partial_shipment_service.transfer_partial_shipment(shipment.id, empty.id, target.id)
    assert container.partial_repo.get_by_id(empty.id).shipment_id == target.id
    assert _totals(container, shipment.id) == (0.0, 0.0)
    assert _totals(container, target.id) == (0.0, 0.0)


def test_transfer_to_same_shipment(container, store, setup):
    source, _, partial = setup
    before = snapshot(store)
    with pytest.raises(InvalidArgumentError):
        container.partial_shipment_service.transfer_partial_shipment(source.id, partial.id, source.id)
    assert snapshot(store) == before


def test_transfer_partial_not_in_source(container, store, setup):
    source, target, partial = setup
    before = snapshot(store)
    with pytest.raises(NotFoundError):
        container.partial_shipment_service.transfer_partial_shipment(target.id, partial.id, source.id)
    with pytest.raises(NotFoundError):
        container.partial_shipment_service.transfer_partial_shipment(source.id, 777, target.id)
    assert snapshot(store) == before


def test_transfer_missing_source_or_target(container, store, setup):
    source, target, partial = setup
    before = snapshot(store)
    with pytest.raises(NotFoundError):
        container.partial_shipment_service.transfer_partial_shipment(source.id, partial.id, 555)
    assert snapshot(store) == before

    # Lote origen borrado por debajo del repositorio
    store.delete('shipments', source.id)
    before = snapshot(store)
    with pytest.raises(NotFoundError):
        container.partial_shipment_service.transfer_partial_shipment(source.id, partial.id, target.id)
    assert snapshot(store) == before


@pytest.mark.parametrize('closed', ['source', 'target'])
def test_transfer_with_closed_shipment(container, store, setup, closed):
    source, target, partial = setup
    container.shipment_service.close_shipment(source.id if closed == 'source' else target.id)
    before = snapshot(store)
    with pytest.raises(ConflictError):
        container.partial_shipment_service.transfer_partial_shipment(source.id, partial.id, target.id)
    assert snapshot(store) == before


def test_transfer_invalid_ids(container, setup):
    source, target, _ = setup
    with pytest.raises(InvalidArgumentError):
        container.partial_shipment_service.transfer_partial_shipment(source.id, 'abc', target.id)
