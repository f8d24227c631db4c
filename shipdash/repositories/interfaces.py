# ==============================================================================
# INTERFACES DE REPOSITORIOS Y DEL ALMACÉN
# ==============================================================================
#
# Este archivo define los protocolos de los que dependen los servicios.
# Esto permite:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Los servicios dependen de interfaces, NO de implementaciones concretas
#    - Cambiar JSON → otro almacén solo requiere un nuevo TableStore
#
# 2. TESTING
#    - Fácil crear dobles que implementen estas interfaces
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


# ==============================================================================
# ALMACÉN DE TABLAS
# ==============================================================================

@runtime_checkable
class ITableStore(Protocol):
    """Contrato mínimo del almacén clave-valor."""

    def get(self, table: str, key: Any) -> Optional[Dict[str, Any]]:
        """Obtiene un registro o None."""
        ...

    def put(self, table: str, record: Dict[str, Any]) -> None:
        """Inserta o sobrescribe un registro."""
        ...

    def update(self, table: str, key: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Mezcla campos en un registro existente."""
        ...

    def increment(self, table: str, key: Any, deltas: Dict[str, float]) -> Dict[str, Any]:
        """Suma atómica de deltas numéricos."""
        ...

    def delete(self, table: str, key: Any) -> None:
        """Elimina un registro."""
        ...

    def next_id(self, table: str) -> int:
        """Siguiente id de la tabla."""
        ...

    def scan(self, table: str) -> List[Dict[str, Any]]:
        """Todos los registros de la tabla."""
        ...


# ==============================================================================
# REPOSITORIOS
# ==============================================================================

@runtime_checkable
class IEntityRepository(Protocol):
    """Operaciones comunes a todos los repositorios de entidades."""

    def create(self, entity: Any) -> Any:
        ...

    def get_by_id(self, entity_id: Any) -> Optional[Any]:
        ...

    def list(self) -> List[Any]:
        ...

    def update(self, entity_id: Any, fields: Dict[str, Any]) -> Any:
        ...

    def increment(self, entity_id: Any, deltas: Dict[str, float]) -> Any:
        ...

    def delete(self, entity_id: Any) -> None:
        ...

    def find_all_by(self, field: str, value: Any) -> List[Any]:
        ...


@runtime_checkable
class IPartialShipmentRepository(IEntityRepository, Protocol):
    """Envíos parciales con búsquedas por lote y por cliente."""

    def list_by_shipment(self, shipment_id: Any) -> List[Any]:
        ...

    def list_by_customer(self, customer_id: Any) -> List[Any]:
        ...


@runtime_checkable
class IChildRepository(IEntityRepository, Protocol):
    """Paquetes e ítems: hijos de un envío parcial."""

    def list_by_partial_shipment(self, partial_shipment_id: Any) -> List[Any]:
        ...


@runtime_checkable
class IUserRepository(IEntityRepository, Protocol):
    """Usuarios con búsqueda por nombre."""

    def get_by_username(self, username: str) -> Optional[Any]:
        ...
