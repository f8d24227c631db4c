# ==============================================================================
# SERVICIO DE LOTES (SHIPMENTS)
# ==============================================================================
# Alta, edición, cierre/reapertura y baja de lotes, y recálculo de totales.
#
# TOTALES DEL LOTE:
# total_weight y total_volume son sumas en curso de los paquetes de sus
# envíos parciales. Se mueven SOLO con incrementos atómicos. Como las
# operaciones de varios pasos no son transaccionales, un fallo a mitad de
# camino puede dejarlos desfasados: recompute_totals() los reconstruye.
# ==============================================================================

from typing import Any, Dict, Iterable, List, Optional, Tuple

from shipdash import config
from shipdash.auth import CurrentUserResolver, anonymous_user, stamp_user
from shipdash.errors import InvalidArgumentError, parse_id
from shipdash.logging_setup import get_logger, log_errors
from shipdash.models import Package, Shipment, utc_now_iso
from shipdash.performance_logger import profile_function
from shipdash.repositories import (
    ShipmentRepository,
    PartialShipmentRepository,
    PackageRepository,
)
from shipdash.services.audit_service import AuditService
from shipdash.services.note_service import NoteService

LOG = get_logger('shipdash.shipments')


def compute_totals(packages: Iterable[Package]) -> Tuple[float, float]:
    """
    Peso y volumen totales de un conjunto de paquetes.

    Returns:
        (peso, volumen) con peso = Σ peso×unidades y
        volumen = Σ largo×ancho×alto×unidades
    """
    weight = 0.0
    volume = 0.0
    for pkg in packages:
        weight += pkg.total_weight
        volume += pkg.volume
    return weight, volume


def totals_deltas(weight: float, volume: float, sign: int = 1) -> Dict[str, float]:
    return {'total_weight': sign * weight, 'total_volume': sign * volume}


class ShipmentService:
    """
    Servicio de lotes.

    Responsabilidades:
    - Crear lotes abiertos con nota opcional
    - Editar chofer/vehículo/destino, cerrar y reabrir
    - Eliminar lotes vacíos
    - Reconstruir totales a partir de los paquetes
    """

    def __init__(
        self,
        shipment_repo: ShipmentRepository,
        partial_repo: PartialShipmentRepository,
        package_repo: PackageRepository,
        note_service: NoteService,
        audit_service: AuditService = None,
        current_user: CurrentUserResolver = anonymous_user
    ):
        self.shipment_repo = shipment_repo
        self.partial_repo = partial_repo
        self.package_repo = package_repo
        self.note_service = note_service
        self.audit_service = audit_service
        self.current_user = current_user

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_shipment(self, shipment_id: Any) -> Optional[Shipment]:
        return self.shipment_repo.get_by_id(shipment_id)

    def list_shipments(self, is_open: Optional[bool] = None) -> List[Shipment]:
        """
        Lotes más recientes primero.

        Args:
            is_open: True solo abiertos, False solo cerrados, None todos
        """
        shipments = self.shipment_repo.list()
        if is_open is not None:
            shipments = [s for s in shipments if s.is_open == is_open]
        return sorted(shipments, key=lambda s: s.date_created, reverse=True)

    # =========================================================================
    # ALTA
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def create_shipment(
        self,
        destination: str,
        note_content: Optional[str] = None,
        note_images: Optional[Iterable[str]] = None,
        driver_name: Optional[str] = None,
        driver_vehicle: Optional[str] = None
    ) -> Shipment:
        """
        Crea un lote abierto con totales en 0 y fecha de creación actual.

        Raises:
            InvalidArgumentError: Si falta el destino
        """
        destination = (destination or '').strip()
        if not destination:
            raise InvalidArgumentError('El destino del lote es requerido')

        user_id = self.current_user()
        note = self.note_service.create_note(note_content, note_images)

        shipment = Shipment(
            destination=destination,
            date_created=utc_now_iso(),
            is_open=True,
            total_weight=0.0,
            total_volume=0.0,
            driver_name=driver_name or None,
            driver_vehicle=driver_vehicle or None,
            note_id=note.id if note else None,
            **stamp_user(user_id, creating=True)
        )
        self.shipment_repo.create(shipment)

        LOG.info("Lote %s creado con destino %s", shipment.id, destination)
        if self.audit_service:
            self.audit_service.log_shipment_created(user_id, shipment.id, destination)
        return shipment

    # =========================================================================
    # EDICIÓN
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def update_shipment(
        self,
        shipment_id: Any,
        destination: Optional[str] = None,
        driver_name: Optional[str] = None,
        driver_vehicle: Optional[str] = None,
        is_open: Optional[bool] = None,
        note_content: Optional[str] = None,
        note_images: Optional[Iterable[str]] = None
    ) -> Shipment:
        """
        Edición parcial de un lote.

        Cerrar un lote abierto sella date_closed; reabrirlo la elimina.

        Raises:
            NotFoundError: Si el lote no existe
        """
        shipment_id = parse_id(shipment_id, 'shipment_id')
        if is_open is not None and not isinstance(is_open, bool):
            raise InvalidArgumentError('is_open debe ser booleano')
        images = self.note_service.validate_input(note_content, note_images)
        current = self.shipment_repo.require(shipment_id)
        user_id = self.current_user()

        updates: Dict[str, Any] = {}
        if destination:
            updates['destination'] = destination
        if driver_name is not None:
            updates['driver_name'] = driver_name or None
        if driver_vehicle is not None:
            updates['driver_vehicle'] = driver_vehicle or None

        status_changed = is_open is not None and is_open != current.is_open
        if status_changed:
            updates['is_open'] = is_open
            updates['date_closed'] = None if is_open else utc_now_iso()

        if updates:
            updates.update(stamp_user(user_id))
            self.shipment_repo.update(shipment_id, updates)

        if note_content or images:
            self.note_service.update_owner_note(
                config.TABLE_SHIPMENTS, shipment_id, note_content or '', images
            )

        if status_changed:
            LOG.info("Lote %s %s", shipment_id, 'reabierto' if is_open else 'cerrado')
            if self.audit_service:
                self.audit_service.log_shipment_status_change(user_id, shipment_id, is_open)

        return self.shipment_repo.require(shipment_id)

    def close_shipment(self, shipment_id: Any) -> Shipment:
        return self.update_shipment(shipment_id, is_open=False)

    def reopen_shipment(self, shipment_id: Any) -> Shipment:
        return self.update_shipment(shipment_id, is_open=True)

    # =========================================================================
    # BAJA
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def delete_shipment(self, shipment_id: Any) -> None:
        """
        Elimina un lote vacío y su nota.

        Raises:
            NotFoundError: Si el lote no existe
            ConflictError: Si contiene envíos parciales (no se elimina nada)
        """
        shipment = self.shipment_repo.require(shipment_id)
        self.shipment_repo.delete(shipment.id)
        self.note_service.delete_note(shipment.note_id)

        LOG.info("Lote %s eliminado", shipment.id)
        if self.audit_service:
            self.audit_service.log_shipment_deleted(self.current_user(), shipment.id)

    # =========================================================================
    # TOTALES
    # =========================================================================

    def package_totals(self, shipment_id: int) -> Tuple[float, float]:
        """(peso, volumen) reales según los paquetes actuales del lote."""
        packages = []
        for partial in self.partial_repo.list_by_shipment(shipment_id):
            packages.extend(self.package_repo.list_by_partial_shipment(partial.id))
        return compute_totals(packages)

    @log_errors(LOG)
    @profile_function
    def recompute_totals(self, shipment_id: Any) -> Shipment:
        """
        Reconstruye los totales del lote desde sus paquetes.

        La diferencia se escribe con un incremento atómico, de modo que un
        incremento concurrente no se pierde.

        Returns:
            Lote con los totales corregidos
        """
        shipment_id = parse_id(shipment_id, 'shipment_id')
        shipment = self.shipment_repo.require(shipment_id)
        weight, volume = self.package_totals(shipment_id)

        weight_delta = weight - shipment.total_weight
        volume_delta = volume - shipment.total_volume
        if weight_delta == 0 and volume_delta == 0:
            return shipment

        LOG.warning(
            "Totales del lote %s desfasados: peso %+.2f, volumen %+.4f",
            shipment_id, weight_delta, volume_delta
        )
        shipment = self.shipment_repo.increment(
            shipment_id, {'total_weight': weight_delta, 'total_volume': volume_delta}
        )
        if self.audit_service:
            self.audit_service.log_totals_recomputed(
                self.current_user(), shipment_id, weight_delta, volume_delta
            )
        return shipment


__all__ = ['ShipmentService', 'compute_totals', 'totals_deltas']
