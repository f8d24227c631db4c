# -*- coding: utf-8 -*-
"""
Fixtures compartidas: contenedor sobre almacén en memoria, usuario fijo
y archivos subidos en un directorio temporal.
"""
import pytest

from shipdash.app_container import AppContainer
from shipdash.auth import fixed_user
from shipdash.repositories import InMemoryTableStore
from shipdash.upload import LocalUploadStorage

TEST_USER_ID = 1


@pytest.fixture
def store():
    return InMemoryTableStore(timeout=1.0)


@pytest.fixture
def container(store, tmp_path):
    AppContainer.reset_instance()
    c = AppContainer(
        store=store,
        current_user=fixed_user(TEST_USER_ID),
        upload_storage=LocalUploadStorage(upload_dir=str(tmp_path / 'uploads')),
    )
    yield c
    AppContainer.reset_instance()


@pytest.fixture
def customer(container):
    return container.customer_service.create_customer(
        'Ada Obi', phone='0801', address='12 Marina', origin='Lagos'
    )


@pytest.fixture
def shipment(container):
    return container.shipment_service.create_shipment('Lagos')

