# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Cada entidad sabe convertirse a/desde el registro plano que guarda el
# almacén de tablas (to_dict / from_dict).
# ==============================================================================

from .entities import (
    # Usuarios y notas
    User,
    Note,

    # Clientes
    Customer,

    # Lotes
    Shipment,
    ShipmentStatus,

    # Envíos parciales
    PartialShipment,
    Package,
    PartialShipmentItem,
    PaymentStatus,

    # Auditoría
    AuditLog,
    AuditType,

    utc_now_iso,
)

__all__ = [
    # Usuarios y notas
    'User',
    'Note',

    # Clientes
    'Customer',

    # Lotes
    'Shipment',
    'ShipmentStatus',

    # Envíos parciales
    'PartialShipment',
    'Package',
    'PartialShipmentItem',
    'PaymentStatus',

    # Auditoría
    'AuditLog',
    'AuditType',

    'utc_now_iso',
]
