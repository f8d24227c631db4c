# -*- coding: utf-8 -*-
"""Tests de los repositorios: ids, registros sin nulos e integridad referencial."""
import pytest

from shipdash.errors import ConflictError, InvalidArgumentError, NotFoundError
from shipdash.models import Customer, Package, PartialShipment, Shipment
from shipdash.repositories import (
    CustomerRepository,
    IChildRepository,
    IEntityRepository,
    IPartialShipmentRepository,
    ITableStore,
    IUserRepository,
    JSONTableStore,
    PackageRepository,
    PartialShipmentRepository,
    ShipmentRepository,
    UserRepository,
)


@pytest.fixture
def repos(store):
    return {
        'customers': CustomerRepository(store),
        'shipments': ShipmentRepository(store),
        'partials': PartialShipmentRepository(store),
        'packages': PackageRepository(store),
    }


def test_create_allocates_ids_and_omits_unset_optionals(repos, store):
    first = repos['customers'].create(Customer(name='Ada'))
    second = repos['customers'].create(Customer(name='Bola'))
    assert (first.id, second.id) == (1, 2)

    record = store.get('customers', 1)
    assert 'note_id' not in record
    assert 'created_by_user_id' not in record
    assert record['balance'] == 0.0


def test_get_by_id_accepts_numeric_strings(repos):
    repos['customers'].create(Customer(name='Ada'))
    assert repos['customers'].get_by_id('1').name == 'Ada'
    assert repos['customers'].get_by_id(7) is None


@pytest.mark.parametrize('bad_id', ['abc', '', 0, -3, None, True])
def test_invalid_ids_are_rejected(repos, bad_id):
    with pytest.raises(InvalidArgumentError):
        repos['customers'].get_by_id(bad_id)


def test_require_raises_not_found(repos):
    with pytest.raises(NotFoundError):
        repos['shipments'].require(3)


def test_customer_delete_conflicts_while_referenced(repos, store):
    customer = repos['customers'].create(Customer(name='Ada'))
    shipment = repos['shipments'].create(Shipment(destination='Lagos'))
    repos['partials'].create(PartialShipment(shipment_id=shipment.id, customer_id=customer.id))

    with pytest.raises(ConflictError):
        repos['customers'].delete(customer.id)
    with pytest.raises(ConflictError):
        repos['shipments'].delete(shipment.id)

    assert store.get('customers', customer.id) is not None
    assert store.get('shipments', shipment.id) is not None


def test_delete_without_references(repos):
    customer = repos['customers'].create(Customer(name='Ada'))
    shipment = repos['shipments'].create(Shipment(destination='Lagos'))
    repos['customers'].delete(customer.id)
    repos['shipments'].delete(shipment.id)
    assert repos['customers'].list() == []
    assert repos['shipments'].list() == []


def test_foreign_key_listings(repos):
    lagos = repos['shipments'].create(Shipment(destination='Lagos'))
    abuja = repos['shipments'].create(Shipment(destination='Abuja', is_open=False))
    p1 = repos['partials'].create(PartialShipment(shipment_id=lagos.id, customer_id=1))
    repos['partials'].create(PartialShipment(shipment_id=abuja.id, customer_id=1))
    repos['packages'].create(Package(partial_shipment_id=p1.id, length=1, width=1, height=1))

    assert [p.id for p in repos['partials'].list_by_shipment(lagos.id)] == [p1.id]
    assert len(repos['partials'].list_by_customer(1)) == 2
    assert len(repos['packages'].list_by_partial_shipment(p1.id)) == 1
    assert [s.destination for s in repos['shipments'].list_open()] == ['Lagos']


def test_implementations_satisfy_protocols(repos, store, tmp_path):
    assert isinstance(store, ITableStore)
    assert isinstance(JSONTableStore(str(tmp_path)), ITableStore)
    assert isinstance(repos['customers'], IEntityRepository)
    assert isinstance(repos['partials'], IPartialShipmentRepository)
    assert isinstance(repos['packages'], IChildRepository)
    assert isinstance(UserRepository(store), IUserRepository)
    assert not isinstance(repos['customers'], IChildRepository)


def test_package_missing_units_count_as_one(repos, store):
    store.put('packages', {'id': 1, 'partial_shipment_id': 1, 'length': 2, 'width': 1, 'height': 1})
    pkg = repos['packages'].get_by_id(1)
    assert pkg.units == 1
    assert pkg.volume == 2


def test_package_stored_zero_units_contribute_nothing(repos, store):
    store.put('packages', {'id': 1, 'partial_shipment_id': 1, 'length': 2, 'width': 1,
                           'height': 1, 'weight': 4, 'units': 0})
    pkg = repos['packages'].get_by_id(1)
    assert pkg.units == 0
    assert (pkg.volume, pkg.total_weight) == (0, 0)
