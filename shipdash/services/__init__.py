# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio del núcleo.
#
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Validan todas las precondiciones antes de la primera escritura
# 3. Los colaboradores externos (rutas) solo llaman a servicios
# 4. Los servicios NO conocen el tipo de almacenamiento (JSON/memoria)
#
# ESTRUCTURA:
# ├── hydration_service.py        → Relaciones entre entidades
# ├── stats_service.py            → Resúmenes del tablero (funciones puras)
# ├── customer_service.py         → Clientes y saldo
# ├── shipment_service.py         → Lotes y totales
# ├── partial_shipment_service.py → Envíos parciales, pagos, transferencias
# ├── note_service.py             → Notas adjuntas
# ├── user_service.py             → Registro y autenticación
# └── audit_service.py            → Logs de actividad
# ==============================================================================

from shipdash.services.audit_service import AuditService
from shipdash.services.hydration_service import HydrationService, IncludeOptions
from shipdash.services.stats_service import (
    StatsService,
    build_dashboard_summary,
    build_financial_summary,
    build_customer_summary,
    build_user_activity,
    build_partial_shipment_summary,
)
from shipdash.services.note_service import NoteService
from shipdash.services.customer_service import CustomerService
from shipdash.services.shipment_service import ShipmentService, compute_totals
from shipdash.services.partial_shipment_service import PartialShipmentService
from shipdash.services.user_service import UserService

__all__ = [
    'AuditService',
    'HydrationService',
    'IncludeOptions',
    'StatsService',
    'build_dashboard_summary',
    'build_financial_summary',
    'build_customer_summary',
    'build_user_activity',
    'build_partial_shipment_summary',
    'NoteService',
    'CustomerService',
    'ShipmentService',
    'compute_totals',
    'PartialShipmentService',
    'UserService',
]
