# -*- coding: utf-8 -*-
"""Tests de notas adjuntas: creación condicional, reemplazo y subida de imágenes."""
import io

import pytest
from werkzeug.datastructures import FileStorage

from shipdash.errors import InvalidArgumentError, NotFoundError
from shipdash.tests.helpers import new_partial


def test_customer_without_note_content_has_no_note(container, store):
    customer = container.customer_service.create_customer('Ada', note_content='', note_images=[])
    assert customer.note_id is None
    assert 'note_id' not in store.get('customers', customer.id)
    assert store.scan('notes') == []


def test_create_note_needs_content_or_images(container, store):
    notes = container.note_service
    assert notes.create_note(None, None) is None
    assert notes.create_note('', []) is None
    assert store.scan('notes') == []

    only_image = notes.create_note(None, ['/uploads/notes/x.png'])
    assert only_image.content == ''
    assert only_image.user_id == 1
    assert not only_image.is_empty


def test_create_with_note_stores_note_first(container):
    shipment = container.shipment_service.create_shipment(
        'Lagos', note_content='Llamar al chofer', note_images=['/uploads/notes/x.png']
    )
    note = container.note_repo.get_by_id(shipment.note_id)
    assert note.content == 'Llamar al chofer'
    assert note.images == ['/uploads/notes/x.png']
    assert note.user_id == 1
    assert note.created_by_user_id == 1


def test_update_note_creates_then_overwrites_in_place(container, customer):
    notes = container.note_service
    first = notes.update_customer_note(customer.id, 'primera', ['/uploads/notes/a.png'])
    assert container.customer_repo.get_by_id(customer.id).note_id == first.id

    second = notes.update_customer_note(customer.id, 'segunda')
    assert second.id == first.id
    assert second.content == 'segunda'
    assert second.images == ['/uploads/notes/a.png']

    third = notes.update_customer_note(customer.id, 'tercera', [])
    assert third.images == []
    assert len(container.note_repo.list()) == 1


def test_empty_update_without_note_is_noop(container, customer, store):
    assert container.note_service.update_customer_note(customer.id, '', None) is None
    assert store.scan('notes') == []


def test_note_for_missing_owner(container):
    with pytest.raises(NotFoundError):
        container.note_service.update_shipment_note(40, 'x')


def test_non_text_images_are_rejected(container, customer):
    with pytest.raises(InvalidArgumentError):
        container.note_service.update_customer_note(customer.id, 'x', [object()])


def test_partial_shipment_note_must_belong_to_shipment(container, customer, shipment):
    other = container.shipment_service.create_shipment('Abuja')
    partial = new_partial(container, shipment.id, customer.id)

    with pytest.raises(NotFoundError):
        container.note_service.update_partial_shipment_note(other.id, partial.id, 'x')

    note = container.note_service.update_partial_shipment_note(shipment.id, partial.id, 'entregar de tarde')
    assert container.partial_repo.get_by_id(partial.id).note_id == note.id


def test_save_images_returns_references_in_order(container, customer, tmp_path):
    uploads = [
        FileStorage(stream=io.BytesIO(b'one'), filename='caja 1.png'),
        FileStorage(stream=io.BytesIO(b'two'), filename='factura.pdf'),
    ]
    refs = container.note_service.save_images(uploads)
    assert refs[0].startswith('/uploads/notes/') and refs[0].endswith('-caja_1.png')
    assert refs[1].endswith('-factura.pdf')

    note = container.note_service.update_customer_note(customer.id, 'con fotos', refs)
    assert note.images == refs
    assert (tmp_path / 'uploads' / 'notes' / refs[0].rsplit('/', 1)[1]).read_bytes() == b'one'


def test_deleting_owner_deletes_its_note(container):
    customer = container.customer_service.create_customer('Ada', note_content='vip')
    container.customer_service.delete_customer(customer.id)
    assert container.note_repo.get_by_id(customer.note_id) is None
