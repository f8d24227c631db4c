# ==============================================================================
# REPOSITORIO DE LOTES
# ==============================================================================
# Tabla: shipments
# Un lote no se puede eliminar mientras contenga envíos parciales.
# ==============================================================================

from typing import Any, List

from shipdash import config
from shipdash.errors import ConflictError, parse_id
from shipdash.models import Shipment
from shipdash.repositories.base import EntityRepository


class ShipmentRepository(EntityRepository[Shipment]):
    """Repositorio de lotes (shipments)."""

    table = config.TABLE_SHIPMENTS
    entity_class = Shipment

    def list_open(self) -> List[Shipment]:
        return [s for s in self.list() if s.is_open]

    def delete(self, entity_id: Any) -> None:
        """
        Elimina un lote si no contiene envíos parciales.

        Raises:
            ConflictError: Si tiene envíos parciales (no se modifica nada)
        """
        shipment_id = parse_id(entity_id, 'shipment_id')
        referencing = [
            r for r in self.store.scan(config.TABLE_PARTIAL_SHIPMENTS)
            if r.get('shipment_id') == shipment_id
        ]
        if referencing:
            raise ConflictError(
                f'El lote {shipment_id} contiene {len(referencing)} envíos parciales'
            )
        super().delete(shipment_id)
