# -*- coding: utf-8 -*-
"""Utilidades de los tests de servicios."""
from shipdash import config

ALL_TABLES = (
    config.TABLE_CUSTOMERS,
    config.TABLE_SHIPMENTS,
    config.TABLE_PARTIAL_SHIPMENTS,
    config.TABLE_PACKAGES,
    config.TABLE_PARTIAL_SHIPMENT_ITEMS,
    config.TABLE_NOTES,
    config.TABLE_COUNTERS,
)


def new_partial(container, shipment_id, customer_id, packages=(), **kwargs):
    """Crea un envío parcial con datos de receptor válidos."""
    data = {
        'receiver_name': 'Chidi',
        'receiver_phone': '0802',
        'receiver_address': '4 Allen Ave',
    }
    data.update(kwargs)
    return container.partial_shipment_service.create_partial_shipment(
        shipment_id, customer_id, packages=packages, **data
    )


def snapshot(store, tables=ALL_TABLES):
    """Estado completo de las tablas (para verificar que nada cambió)."""
    return {table: store.scan(table) for table in tables}
