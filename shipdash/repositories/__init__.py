# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso al almacén de tablas.
#
# ESTRUCTURA:
# ├── interfaces.py                  → Protocolos (contratos)
# ├── table_store.py                 → TableStore, JSONTableStore, InMemoryTableStore
# ├── base.py                        → EntityRepository genérico
# ├── customer_repository.py         → customers
# ├── shipment_repository.py         → shipments
# ├── partial_shipment_repository.py → partial_shipments, packages, partial_shipment_items
# └── note_repository.py             → notes, users, audit_logs
# ==============================================================================

from .interfaces import (
    ITableStore,
    IEntityRepository,
    IPartialShipmentRepository,
    IChildRepository,
    IUserRepository,
)

from .table_store import TableStore, JSONTableStore, InMemoryTableStore
from .base import EntityRepository
from .customer_repository import CustomerRepository
from .shipment_repository import ShipmentRepository
from .partial_shipment_repository import (
    PartialShipmentRepository,
    PackageRepository,
    PartialShipmentItemRepository,
)
from .note_repository import NoteRepository, UserRepository, AuditRepository

__all__ = [
    # Interfaces
    'ITableStore',
    'IEntityRepository',
    'IPartialShipmentRepository',
    'IChildRepository',
    'IUserRepository',

    # Almacén
    'TableStore',
    'JSONTableStore',
    'InMemoryTableStore',

    # Repositorios
    'EntityRepository',
    'CustomerRepository',
    'ShipmentRepository',
    'PartialShipmentRepository',
    'PackageRepository',
    'PartialShipmentItemRepository',
    'NoteRepository',
    'UserRepository',
    'AuditRepository',
]
