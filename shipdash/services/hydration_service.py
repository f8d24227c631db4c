# ==============================================================================
# SERVICIO DE HIDRATACIÓN - Resolución de relaciones entre entidades
# ==============================================================================
# Dada una entidad y un conjunto de relaciones pedidas, devuelve su registro
# con una clave extra por relación:
#
#   customer  → Customer por customer_id            (uno a uno)
#   shipment  → Shipment por shipment_id            (uno a uno)
#   note      → Note por note_id                    (uno a uno)
#   packages  → Packages con partial_shipment_id    (uno a muchos)
#   items     → Items con partial_shipment_id       (uno a muchos)
#
# Una relación uno a uno que no resuelve queda en None; una uno a muchos
# vacía queda en []. Las relaciones no pedidas nunca se consultan.
# ==============================================================================

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from shipdash.models import Customer, Shipment, PartialShipment
from shipdash.performance_logger import profile_function
from shipdash.repositories import (
    CustomerRepository,
    ShipmentRepository,
    PartialShipmentRepository,
    PackageRepository,
    PartialShipmentItemRepository,
    NoteRepository,
)


@dataclass(frozen=True)
class IncludeOptions:
    """Relaciones a resolver. Todas desactivadas por defecto."""
    include_customer: bool = False
    include_shipment: bool = False
    include_packages: bool = False
    include_items: bool = False
    include_note: bool = False

    @classmethod
    def all(cls) -> 'IncludeOptions':
        return cls(True, True, True, True, True)


class HydrationService:
    """
    Motor de hidratación.

    Relaciones por tipo de entidad:
        PartialShipment: customer, shipment, packages, items, note
        Customer, Shipment: note
    Las relaciones que no aplican a un tipo se ignoran.
    """

    def __init__(
        self,
        customer_repo: CustomerRepository,
        shipment_repo: ShipmentRepository,
        partial_repo: PartialShipmentRepository,
        package_repo: PackageRepository,
        item_repo: PartialShipmentItemRepository,
        note_repo: NoteRepository
    ):
        self.customer_repo = customer_repo
        self.shipment_repo = shipment_repo
        self.partial_repo = partial_repo
        self.package_repo = package_repo
        self.item_repo = item_repo
        self.note_repo = note_repo

    # =========================================================================
    # HIDRATACIÓN GENÉRICA
    # =========================================================================

    def _note_dict(self, note_id: Optional[int]) -> Optional[Dict[str, Any]]:
        if note_id is None:
            return None
        note = self.note_repo.get_by_id(note_id)
        return note.to_dict() if note else None

    def hydrate(self, entity: Any, options: IncludeOptions = IncludeOptions()) -> Dict[str, Any]:
        """
        Devuelve el registro de la entidad con las relaciones pedidas.

        Args:
            entity: Customer, Shipment o PartialShipment (otros tipos se
                    devuelven sin relaciones)
            options: Relaciones a incluir

        Returns:
            Diccionario con los campos de la entidad más una clave por relación
        """
        result = entity.to_dict()

        if isinstance(entity, PartialShipment):
            if options.include_customer:
                customer = self.customer_repo.get_by_id(entity.customer_id)
                result['customer'] = customer.to_dict() if customer else None
            if options.include_shipment:
                shipment = self.shipment_repo.get_by_id(entity.shipment_id)
                result['shipment'] = shipment.to_dict() if shipment else None
            if options.include_packages:
                result['packages'] = [
                    p.to_dict() for p in self.package_repo.list_by_partial_shipment(entity.id)
                ]
            if options.include_items:
                result['items'] = [
                    i.to_dict() for i in self.item_repo.list_by_partial_shipment(entity.id)
                ]

        if options.include_note and isinstance(entity, (PartialShipment, Customer, Shipment)):
            result['note'] = self._note_dict(entity.note_id)

        return result

    def hydrate_many(
        self,
        entities: Iterable[Any],
        options: IncludeOptions = IncludeOptions()
    ) -> List[Dict[str, Any]]:
        return [self.hydrate(e, options) for e in entities]

    # =========================================================================
    # LECTURAS COMPUESTAS
    # =========================================================================

    @profile_function
    def get_partial_shipment_with_details(
        self,
        partial_id: Any,
        options: IncludeOptions = None
    ) -> Optional[Dict[str, Any]]:
        """
        Obtiene un envío parcial hidratado.

        Args:
            partial_id: Id del envío parcial
            options: Relaciones a incluir (por defecto todas)

        Returns:
            Registro hidratado o None si no existe
        """
        partial = self.partial_repo.get_by_id(partial_id)
        if partial is None:
            return None
        return self.hydrate(partial, options or IncludeOptions.all())

    @profile_function
    def get_shipment_with_details(self, shipment_id: Any) -> Optional[Dict[str, Any]]:
        """
        Lote con su nota y sus envíos parciales, cada uno con cliente,
        paquetes, ítems y nota.
        """
        shipment = self.shipment_repo.get_by_id(shipment_id)
        if shipment is None:
            return None
        result = self.hydrate(shipment, IncludeOptions(include_note=True))
        result['status'] = shipment.status
        partial_options = IncludeOptions(
            include_customer=True,
            include_packages=True,
            include_items=True,
            include_note=True,
        )
        result['partial_shipments'] = self.hydrate_many(
            self.partial_repo.list_by_shipment(shipment.id), partial_options
        )
        return result

    @profile_function
    def get_customer_with_details(self, customer_id: Any) -> Optional[Dict[str, Any]]:
        """Cliente con su nota y sus envíos parciales (cada uno con lote y nota)."""
        customer = self.customer_repo.get_by_id(customer_id)
        if customer is None:
            return None
        result = self.hydrate(customer, IncludeOptions(include_note=True))
        partial_options = IncludeOptions(include_shipment=True, include_note=True)
        result['partial_shipments'] = self.hydrate_many(
            self.partial_repo.list_by_customer(customer.id), partial_options
        )
        return result


__all__ = ['IncludeOptions', 'HydrationService']
