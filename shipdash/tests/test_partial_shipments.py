# -*- coding: utf-8 -*-
"""
Tests de envíos parciales: alta, pago, edición y baja mantienen los
totales del lote y el saldo del cliente.
"""
import pytest

from shipdash.errors import ConflictError, InvalidArgumentError, NotFoundError
from shipdash.tests.helpers import new_partial, snapshot

BOX = {'length': 2, 'width': 1, 'height': 1, 'weight': 5, 'units': 3, 'type_of_package': 'Caja'}


def _balance(container, customer_id):
    return container.customer_repo.get_by_id(customer_id).balance


def _totals(container, shipment_id):
    s = container.shipment_repo.get_by_id(shipment_id)
    return s.total_weight, s.total_volume


# ═══════════════════════════════════════════════════════════════════════════
# ALTA
# ═══════════════════════════════════════════════════════════════════════════

def test_create_updates_totals_and_balance(container, store, customer, shipment):
    partial = new_partial(
        container, shipment.id, customer.id, packages=[BOX],
        cost=100, amount_paid=30, extra_cost_amount=10,
        items=[{'description': 'Telas', 'quantity': 4, 'overall_price': 80}],
    )
    assert _totals(container, shipment.id) == (15.0, 6.0)
    assert _balance(container, customer.id) == 80.0
    assert partial.volume == 6.0

    record = store.get('partial_shipments', partial.id)
    assert record['created_by_user_id'] == 1
    assert record['payment_status'] == 'unpaid'
    assert 'note_id' not in record

    [item] = container.item_repo.list_by_partial_shipment(partial.id)
    assert item.value == 80.0


def test_create_paid_does_not_touch_balance(container, customer, shipment):
    new_partial(container, shipment.id, customer.id, cost=100, payment_status='paid')
    assert _balance(container, customer.id) == 0.0


def test_created_paid_marked_paid_again_keeps_balance(container, customer, shipment):
    partial = new_partial(container, shipment.id, customer.id, cost=100, payment_status='paid')
    service = container.partial_shipment_service

    paid = service.update_payment(shipment.id, partial.id, payment_status='paid')
    assert paid.amount_paid == 100.0
    assert paid.payment_completed is True
    assert _balance(container, customer.id) == 0.0


def test_create_rejections_write_nothing(container, store, customer, shipment):
    before = snapshot(store)
    with pytest.raises(InvalidArgumentError):
        new_partial(container, shipment.id, customer.id, receiver_phone='')
    with pytest.raises(InvalidArgumentError):
        new_partial(container, shipment.id, customer.id, packages=[{'length': 'largo'}])
    with pytest.raises(NotFoundError):
        new_partial(container, shipment.id, 999)
    with pytest.raises(NotFoundError):
        new_partial(container, 999, customer.id)
    assert snapshot(store) == before

    container.shipment_service.close_shipment(shipment.id)
    before = snapshot(store)
    with pytest.raises(ConflictError):
        new_partial(container, shipment.id, customer.id, packages=[BOX])
    assert snapshot(store) == before


def test_missing_units_count_as_one(container, customer, shipment):
    new_partial(container, shipment.id, customer.id,
                packages=[{'length': 2, 'width': 2, 'height': 2, 'weight': 3, 'units': 0}])
    assert _totals(container, shipment.id) == (3.0, 8.0)


# ═══════════════════════════════════════════════════════════════════════════
# PAGO
# ═══════════════════════════════════════════════════════════════════════════

def test_mark_paid_settles_outstanding_once(container, customer, shipment):
    partial = new_partial(container, shipment.id, customer.id, cost=100, amount_paid=30)
    assert _balance(container, customer.id) == 70.0

    service = container.partial_shipment_service
    paid = service.update_payment(shipment.id, partial.id, payment_status='paid')
    assert paid.amount_paid == 100.0
    assert paid.payment_completed is True
    assert _balance(container, customer.id) == 0.0

    service.update_payment(shipment.id, partial.id, payment_status='paid')
    assert _balance(container, customer.id) == 0.0


def test_discount_change_moves_balance(container, customer, shipment):
    partial = new_partial(container, shipment.id, customer.id, cost=100)
    service = container.partial_shipment_service

    service.update_payment(shipment.id, partial.id, discount_amount=15)
    assert _balance(container, customer.id) == 85.0
    service.update_payment(shipment.id, partial.id, discount_amount='10')
    assert _balance(container, customer.id) == 90.0

    updated = container.partial_repo.get_by_id(partial.id)
    assert updated.discount_amount == 10.0
    assert updated.outstanding == 90.0


def test_paid_with_discount_in_one_call_settles_to_zero(container, customer, shipment):
    partial = new_partial(container, shipment.id, customer.id, cost=100)
    assert _balance(container, customer.id) == 100.0

    paid = container.partial_shipment_service.update_payment(
        shipment.id, partial.id, payment_status='paid', discount_amount=10
    )
    assert paid.amount_paid == 90.0
    assert paid.discount_amount == 10.0
    assert _balance(container, customer.id) == 0.0


def test_discount_on_paid_shipment_keeps_balance(container, customer, shipment):
    partial = new_partial(container, shipment.id, customer.id, cost=100, payment_status='paid')
    container.partial_shipment_service.update_payment(shipment.id, partial.id, discount_amount=20)
    assert _balance(container, customer.id) == 0.0


def test_payment_on_wrong_shipment(container, customer, shipment):
    partial = new_partial(container, shipment.id, customer.id)
    other = container.shipment_service.create_shipment('Abuja')
    with pytest.raises(NotFoundError):
        container.partial_shipment_service.update_payment(other.id, partial.id, payment_status='paid')


# ═══════════════════════════════════════════════════════════════════════════
# EDICIÓN
# ═══════════════════════════════════════════════════════════════════════════

def test_edit_replaces_children_and_shifts_deltas(container, customer, shipment):
    partial = new_partial(
        container, shipment.id, customer.id, cost=100,
        packages=[BOX, {'length': 1, 'width': 1, 'height': 1, 'weight': 1}],
        items=[{'description': 'Telas', 'quantity': 1}],
    )
    assert _totals(container, shipment.id) == (16.0, 7.0)
    assert _balance(container, customer.id) == 100.0
    [box, small] = container.package_repo.list_by_partial_shipment(partial.id)

    edited = container.partial_shipment_service.edit_partial_shipment(
        shipment.id, partial.id,
        receiver_name='Ngozi', receiver_phone='0803', receiver_address='1 Broad St',
        cost=120, amount_paid=20,
        packages=[
            dict(BOX, id=box.id, units=1),
            {'length': 3, 'width': 1, 'height': 1, 'weight': 2},
        ],
        items=[],
    )

    assert edited.receiver_name == 'Ngozi'
    assert edited.volume == 5.0
    packages = container.package_repo.list_by_partial_shipment(partial.id)
    assert small.id not in [p.id for p in packages]
    assert sorted(p.volume for p in packages) == [2.0, 3.0]
    assert container.item_repo.list_by_partial_shipment(partial.id) == []

    assert _totals(container, shipment.id) == (7.0, 5.0)
    assert _balance(container, customer.id) == 100.0


def test_edit_rejects_foreign_package_ids(container, store, customer, shipment):
    partial = new_partial(container, shipment.id, customer.id, packages=[BOX])
    other = new_partial(container, shipment.id, customer.id, packages=[BOX])
    [foreign] = container.package_repo.list_by_partial_shipment(other.id)

    before = snapshot(store)
    with pytest.raises(InvalidArgumentError):
        container.partial_shipment_service.edit_partial_shipment(
            shipment.id, partial.id, cost=1, packages=[dict(BOX, id=foreign.id)]
        )
    assert snapshot(store) == before


# ═══════════════════════════════════════════════════════════════════════════
# BAJA
# ═══════════════════════════════════════════════════════════════════════════

def test_delete_reverts_totals_and_balance(container, store, customer, shipment):
    keep = new_partial(container, shipment.id, customer.id, cost=10, packages=[BOX])
    gone = new_partial(
        container, shipment.id, customer.id, cost=50, amount_paid=20, packages=[BOX],
        items=[{'description': 'Zapatos'}], note_content='urgente',
    )
    assert _balance(container, customer.id) == 40.0

    container.partial_shipment_service.delete_partial_shipment(shipment.id, gone.id)

    assert _totals(container, shipment.id) == (15.0, 6.0)
    assert _balance(container, customer.id) == 10.0
    assert container.partial_repo.get_by_id(gone.id) is None
    assert container.package_repo.list_by_partial_shipment(gone.id) == []
    assert container.item_repo.list_by_partial_shipment(gone.id) == []
    assert container.note_repo.get_by_id(gone.note_id) is None
    assert container.partial_repo.get_by_id(keep.id) is not None
