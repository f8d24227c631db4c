# ==============================================================================
# REPOSITORIO DE CLIENTES
# ==============================================================================
# Tabla: customers
# Un cliente no se puede eliminar mientras un envío parcial lo referencie.
# ==============================================================================

from typing import Any

from shipdash import config
from shipdash.errors import ConflictError, parse_id
from shipdash.models import Customer
from shipdash.repositories.base import EntityRepository


class CustomerRepository(EntityRepository[Customer]):
    """Repositorio de clientes."""

    table = config.TABLE_CUSTOMERS
    entity_class = Customer

    def delete(self, entity_id: Any) -> None:
        """
        Elimina un cliente si ningún envío parcial lo referencia.

        Raises:
            ConflictError: Si tiene envíos parciales (no se modifica nada)
        """
        customer_id = parse_id(entity_id, 'customer_id')
        referencing = [
            r for r in self.store.scan(config.TABLE_PARTIAL_SHIPMENTS)
            if r.get('customer_id') == customer_id
        ]
        if referencing:
            raise ConflictError(
                f'El cliente {customer_id} tiene {len(referencing)} envíos parciales'
            )
        super().delete(customer_id)
