# ==============================================================================
# REPOSITORIO DE ENVÍOS PARCIALES, PAQUETES E ÍTEMS
# ==============================================================================
# Tablas: partial_shipments, packages, partial_shipment_items
# Las búsquedas por clave foránea son escaneos completos filtrados en memoria.
# ==============================================================================

from typing import Any, List

from shipdash import config
from shipdash.errors import parse_id
from shipdash.models import PartialShipment, Package, PartialShipmentItem
from shipdash.repositories.base import EntityRepository


class PartialShipmentRepository(EntityRepository[PartialShipment]):
    """Repositorio de envíos parciales."""

    table = config.TABLE_PARTIAL_SHIPMENTS
    entity_class = PartialShipment

    def list_by_shipment(self, shipment_id: Any) -> List[PartialShipment]:
        return self.find_all_by('shipment_id', parse_id(shipment_id, 'shipment_id'))

    def list_by_customer(self, customer_id: Any) -> List[PartialShipment]:
        return self.find_all_by('customer_id', parse_id(customer_id, 'customer_id'))


class PackageRepository(EntityRepository[Package]):
    """Repositorio de paquetes."""

    table = config.TABLE_PACKAGES
    entity_class = Package

    def list_by_partial_shipment(self, partial_shipment_id: Any) -> List[Package]:
        return self.find_all_by(
            'partial_shipment_id', parse_id(partial_shipment_id, 'partial_shipment_id')
        )


class PartialShipmentItemRepository(EntityRepository[PartialShipmentItem]):
    """Repositorio de ítems declarados de un envío parcial."""

    table = config.TABLE_PARTIAL_SHIPMENT_ITEMS
    entity_class = PartialShipmentItem

    def list_by_partial_shipment(self, partial_shipment_id: Any) -> List[PartialShipmentItem]:
        return self.find_all_by(
            'partial_shipment_id', parse_id(partial_shipment_id, 'partial_shipment_id')
        )
