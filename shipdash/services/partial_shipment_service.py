# ==============================================================================
# SERVICIO DE ENVÍOS PARCIALES
# ==============================================================================
# Operaciones de varios pasos sobre envíos parciales que deben mantener:
#   - Totales del lote = suma de peso/volumen de sus paquetes
#   - Saldo del cliente = suma de lo pendiente de cobro
#
# REGLAS:
# 1. Se validan TODAS las precondiciones antes de la primera escritura.
# 2. Totales y saldos se mueven SOLO con incrementos atómicos.
# 3. No hay transacciones: cada paso es una escritura atómica independiente.
#    Si el proceso cae entre "reasignar lote" y "ajustar totales", los
#    totales quedan desfasados hasta ShipmentService.recompute_totals().
# ==============================================================================

from typing import Any, Dict, Iterable, List, Optional, Tuple

from shipdash import config
from shipdash.auth import CurrentUserResolver, anonymous_user, stamp_user
from shipdash.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    parse_id,
    parse_number,
)
from shipdash.logging_setup import get_logger, log_errors
from shipdash.models import (
    Package,
    PartialShipment,
    PartialShipmentItem,
    PaymentStatus,
    utc_now_iso,
)
from shipdash.performance_logger import profile_function
from shipdash.repositories import (
    CustomerRepository,
    ShipmentRepository,
    PartialShipmentRepository,
    PackageRepository,
    PartialShipmentItemRepository,
)
from shipdash.services.audit_service import AuditService
from shipdash.services.note_service import NoteService
from shipdash.services.shipment_service import compute_totals, totals_deltas

LOG = get_logger('shipdash.partial_shipments')

PAID = PaymentStatus.PAID.value


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return '' if value is None else str(value)


def build_package(data: Dict[str, Any], partial_id: int) -> Package:
    """
    Construye un paquete desde datos de entrada (formulario/JSON).

    Unidades ausentes o en 0 cuentan como 1.

    Raises:
        InvalidArgumentError: Si una medida no es numérica
    """
    units = int(parse_number(data.get('units'), 'units', 1)) or 1
    return Package(
        partial_shipment_id=partial_id,
        length=parse_number(data.get('length'), 'length'),
        width=parse_number(data.get('width'), 'width'),
        height=parse_number(data.get('height'), 'height'),
        weight=parse_number(data.get('weight'), 'weight'),
        units=units,
        type_of_package=_text(data, 'type_of_package'),
        description=_text(data, 'description'),
        cost_type=_text(data, 'cost_type') or 'CPM',
        total_cost=parse_number(data.get('total_cost'), 'total_cost'),
    )


def build_item(data: Dict[str, Any], partial_id: int) -> PartialShipmentItem:
    """
    Construye un ítem declarado desde datos de entrada.

    El valor total se acepta como 'value' u 'overall_price'.
    """
    value = data.get('value')
    if value is None:
        value = data.get('overall_price')
    return PartialShipmentItem(
        partial_shipment_id=partial_id,
        description=_text(data, 'description'),
        quantity=parse_number(data.get('quantity'), 'quantity'),
        weight=parse_number(data.get('weight'), 'weight'),
        origin=_text(data, 'origin'),
        hscode=_text(data, 'hscode'),
        value=parse_number(value, 'value'),
        price_by_unit=parse_number(data.get('price_by_unit'), 'price_by_unit'),
        unit=_text(data, 'unit'),
    )


def outstanding_amount(
    cost: float,
    extra_cost_amount: float,
    discount_amount: float,
    amount_paid: float,
    payment_status: str
) -> float:
    """Pendiente de cobro: 0 si está pagado, si no costo + extra - descuento - pagado."""
    if payment_status == PAID:
        return 0.0
    return cost + extra_cost_amount - discount_amount - amount_paid


class PartialShipmentService:
    """
    Servicio de envíos parciales.

    Responsabilidades:
    - Alta con paquetes, ítems y nota
    - Actualización de pago, descuento y costo extra
    - Edición completa (receptor, montos, paquetes e ítems)
    - Baja con ajuste de totales y saldo
    - Transferencia entre lotes abiertos
    """

    def __init__(
        self,
        partial_repo: PartialShipmentRepository,
        shipment_repo: ShipmentRepository,
        customer_repo: CustomerRepository,
        package_repo: PackageRepository,
        item_repo: PartialShipmentItemRepository,
        note_service: NoteService,
        audit_service: AuditService = None,
        current_user: CurrentUserResolver = anonymous_user
    ):
        self.partial_repo = partial_repo
        self.shipment_repo = shipment_repo
        self.customer_repo = customer_repo
        self.package_repo = package_repo
        self.item_repo = item_repo
        self.note_service = note_service
        self.audit_service = audit_service
        self.current_user = current_user

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _require_in_shipment(self, shipment_id: int, partial_id: int) -> PartialShipment:
        partial = self.partial_repo.get_by_id(partial_id)
        if partial is None or partial.shipment_id != shipment_id:
            raise NotFoundError(
                f'Envío parcial {partial_id} no encontrado en el lote {shipment_id}'
            )
        return partial

    def _adjust_balance(self, user_id: Optional[int], customer_id: int, delta: float, reason: str) -> None:
        if delta == 0:
            return
        customer = self.customer_repo.increment(customer_id, {'balance': delta})
        if self.audit_service:
            self.audit_service.log_balance_change(
                user_id, customer_id, delta, customer.balance, reason
            )

    def _adjust_totals(self, shipment_id: int, weight: float, volume: float) -> None:
        if weight == 0 and volume == 0:
            return
        self.shipment_repo.increment(shipment_id, totals_deltas(weight, volume))

    # =========================================================================
    # ALTA
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def create_partial_shipment(
        self,
        shipment_id: Any,
        customer_id: Any,
        receiver_name: str,
        receiver_phone: str,
        receiver_address: str,
        cost: Any = 0,
        amount_paid: Any = 0,
        payment_status: str = PaymentStatus.UNPAID.value,
        payment_responsibility: str = '',
        extra_cost_amount: Any = 0,
        extra_cost_reason: str = '',
        packages: Iterable[Dict[str, Any]] = (),
        items: Iterable[Dict[str, Any]] = (),
        note_content: Optional[str] = None,
        note_images: Optional[Iterable[str]] = None
    ) -> PartialShipment:
        """
        Crea un envío parcial en un lote abierto.

        Efectos:
        - Crea nota (si hay contenido o imágenes), envío, paquetes e ítems
        - Suma el peso/volumen de los paquetes a los totales del lote
        - Si no está pagado y queda saldo pendiente, lo suma al cliente

        Raises:
            InvalidArgumentError: Datos del receptor faltantes o montos inválidos
            NotFoundError: Lote o cliente inexistente
            ConflictError: Si el lote está cerrado
        """
        shipment_id = parse_id(shipment_id, 'shipment_id')
        customer_id = parse_id(customer_id, 'customer_id')
        if not receiver_name or not receiver_phone or not receiver_address:
            raise InvalidArgumentError('Nombre, teléfono y dirección del receptor son requeridos')
        cost = parse_number(cost, 'cost')
        amount_paid = parse_number(amount_paid, 'amount_paid')
        extra_cost_amount = parse_number(extra_cost_amount, 'extra_cost_amount')
        payment_status = payment_status or PaymentStatus.UNPAID.value
        images = self.note_service.validate_input(note_content, note_images)

        # Validar paquetes e ítems antes de escribir (partial_id provisorio)
        new_packages = [build_package(p, 0) for p in packages]
        new_items = [build_item(i, 0) for i in items]
        weight, volume = compute_totals(new_packages)

        shipment = self.shipment_repo.require(shipment_id)
        if not shipment.is_open:
            raise ConflictError(f'El lote {shipment_id} está cerrado')
        self.customer_repo.require(customer_id)

        user_id = self.current_user()
        stamps = stamp_user(user_id, creating=True)
        note = self.note_service.create_note((note_content or '').strip() or None, images)

        partial = PartialShipment(
            shipment_id=shipment_id,
            customer_id=customer_id,
            receiver_name=receiver_name,
            receiver_phone=receiver_phone,
            receiver_address=receiver_address,
            volume=volume,
            cost=cost,
            amount_paid=amount_paid,
            payment_status=payment_status,
            payment_responsibility=payment_responsibility or '',
            payment_completed=False,
            note_id=note.id if note else None,
            extra_cost_reason=extra_cost_reason or '',
            extra_cost_amount=extra_cost_amount,
            discount_amount=0.0,
            date_created=utc_now_iso(),
            **stamps
        )
        self.partial_repo.create(partial)

        for pkg in new_packages:
            pkg.partial_shipment_id = partial.id
            pkg.created_by_user_id = stamps.get('created_by_user_id')
            pkg.updated_by_user_id = stamps.get('updated_by_user_id')
            self.package_repo.create(pkg)
        for item in new_items:
            item.partial_shipment_id = partial.id
            item.created_by_user_id = stamps.get('created_by_user_id')
            item.updated_by_user_id = stamps.get('updated_by_user_id')
            self.item_repo.create(item)

        self._adjust_totals(shipment_id, weight, volume)

        outstanding = outstanding_amount(cost, extra_cost_amount, 0.0, amount_paid, payment_status)
        if outstanding > 0:
            self._adjust_balance(user_id, customer_id, outstanding, f'envío #{partial.id}')

        LOG.info("Envío %s creado en el lote %s (%d paquetes)", partial.id, shipment_id, len(new_packages))
        if self.audit_service:
            self.audit_service.log_partial_shipment_created(
                user_id, partial.id, shipment_id, customer_id, cost
            )
        return partial

    # =========================================================================
    # PAGO
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def update_payment(
        self,
        shipment_id: Any,
        partial_id: Any,
        payment_status: Optional[str] = None,
        payment_completed: Optional[bool] = None,
        discount_amount: Any = None,
        extra_cost_amount: Any = None,
        extra_cost_reason: Optional[str] = None
    ) -> PartialShipment:
        """
        Actualiza estado de pago, descuento y costo extra.

        - Marcar 'paid' fija amount_paid = costo + extra - descuento y, si el
          pago no estaba completado, descuenta del saldo del cliente lo que
          estaba pendiente. El envío queda con payment_completed = True.
        - Un cambio de descuento descuenta la diferencia del saldo mientras
          el envío no quede pagado.

        Raises:
            NotFoundError: Si el envío no existe o es de otro lote
            InvalidArgumentError: Montos no numéricos
        """
        shipment_id = parse_id(shipment_id, 'shipment_id')
        partial_id = parse_id(partial_id, 'partial_shipment_id')
        new_discount = (
            parse_number(discount_amount, 'discount_amount')
            if discount_amount is not None else None
        )
        new_extra = (
            parse_number(extra_cost_amount, 'extra_cost_amount')
            if extra_cost_amount is not None else None
        )
        existing = self._require_in_shipment(shipment_id, partial_id)
        user_id = self.current_user()

        updates: Dict[str, Any] = {}
        if payment_status is not None:
            updates['payment_status'] = payment_status
        if payment_completed is not None:
            updates['payment_completed'] = bool(payment_completed)

        marking_paid = payment_status == PAID
        if marking_paid:
            extra = new_extra if new_extra is not None else existing.extra_cost_amount
            discount = new_discount if new_discount is not None else existing.discount_amount
            updates['amount_paid'] = existing.cost + extra - discount
            if payment_completed is None:
                updates['payment_completed'] = True

        if new_extra is not None:
            updates['extra_cost_amount'] = new_extra
            if extra_cost_reason is not None:
                updates['extra_cost_reason'] = extra_cost_reason
        if new_discount is not None:
            updates['discount_amount'] = new_discount

        updates.update(stamp_user(user_id))
        updated = self.partial_repo.update(partial_id, updates)

        # Un envío que ya estaba en 'paid' nunca sumó al saldo: outstanding es 0
        if marking_paid and not existing.payment_completed:
            previous_outstanding = existing.outstanding
            if previous_outstanding > 0:
                self._adjust_balance(
                    user_id, existing.customer_id, -previous_outstanding, f'pago envío #{partial_id}'
                )

        # Si el envío termina pagado, el saldo ya refleja el descuento nuevo
        ends_paid = (payment_status or existing.payment_status) == PAID
        if new_discount is not None and not ends_paid:
            delta_discount = new_discount - existing.discount_amount
            if delta_discount != 0:
                self._adjust_balance(
                    user_id, existing.customer_id, -delta_discount, f'descuento envío #{partial_id}'
                )

        if self.audit_service:
            self.audit_service.log_partial_shipment_updated(
                user_id, partial_id, 'payment',
                {k: v for k, v in updates.items() if not k.endswith('_user_id')}
            )
        return updated

    # =========================================================================
    # EDICIÓN COMPLETA
    # =========================================================================

    def _plan_children(
        self,
        incoming: List[Dict[str, Any]],
        existing_ids: List[int],
        kind: str
    ) -> Tuple[List[int], List[int]]:
        """
        Ids entrantes a actualizar e ids existentes a eliminar.

        Raises:
            InvalidArgumentError: Si un id entrante no pertenece al envío
        """
        incoming_ids = []
        for data in incoming:
            if data.get('id') not in (None, '', 0):
                child_id = parse_id(data['id'], f'{kind}.id')
                if child_id not in existing_ids:
                    raise InvalidArgumentError(f'{kind} {child_id} no pertenece al envío')
                incoming_ids.append(child_id)
        to_delete = [cid for cid in existing_ids if cid not in incoming_ids]
        return incoming_ids, to_delete

    @log_errors(LOG)
    @profile_function
    def edit_partial_shipment(
        self,
        shipment_id: Any,
        partial_id: Any,
        receiver_name: str = '',
        receiver_phone: str = '',
        receiver_address: str = '',
        cost: Any = 0,
        amount_paid: Any = 0,
        payment_status: str = PaymentStatus.UNPAID.value,
        payment_responsibility: str = '',
        extra_cost_reason: str = '',
        extra_cost_amount: Any = 0,
        discount_amount: Any = 0,
        packages: Iterable[Dict[str, Any]] = (),
        items: Iterable[Dict[str, Any]] = ()
    ) -> PartialShipment:
        """
        Reemplaza receptor, montos, paquetes e ítems de un envío parcial.

        Paquetes/ítems con id existente se actualizan, sin id se crean y los
        que ya no vienen se eliminan. Los totales del lote y el saldo del
        cliente se corrigen por la diferencia (incrementos atómicos).

        Raises:
            NotFoundError: Si el envío no existe o es de otro lote
            InvalidArgumentError: Montos inválidos o ids ajenos al envío
        """
        shipment_id = parse_id(shipment_id, 'shipment_id')
        partial_id = parse_id(partial_id, 'partial_shipment_id')
        cost = parse_number(cost, 'cost')
        amount_paid = parse_number(amount_paid, 'amount_paid')
        extra_cost_amount = parse_number(extra_cost_amount, 'extra_cost_amount')
        discount_amount = parse_number(discount_amount, 'discount_amount')
        payment_status = payment_status or PaymentStatus.UNPAID.value
        packages = list(packages)
        items = list(items)

        existing = self._require_in_shipment(shipment_id, partial_id)
        existing_packages = self.package_repo.list_by_partial_shipment(partial_id)
        existing_items = self.item_repo.list_by_partial_shipment(partial_id)

        new_packages = [(p, build_package(p, partial_id)) for p in packages]
        new_items = [(i, build_item(i, partial_id)) for i in items]
        _, delete_package_ids = self._plan_children(
            packages, [p.id for p in existing_packages], 'package'
        )
        _, delete_item_ids = self._plan_children(
            items, [i.id for i in existing_items], 'item'
        )

        old_weight, old_volume = compute_totals(existing_packages)
        new_weight, new_volume = compute_totals(pkg for _, pkg in new_packages)
        old_outstanding = existing.outstanding
        new_outstanding = outstanding_amount(
            cost, extra_cost_amount, discount_amount, amount_paid, payment_status
        )

        user_id = self.current_user()
        created_stamps = stamp_user(user_id, creating=True)
        updated_stamps = stamp_user(user_id)

        for package_id in delete_package_ids:
            self.package_repo.delete(package_id)
        for item_id in delete_item_ids:
            self.item_repo.delete(item_id)

        for repo, rows in ((self.package_repo, new_packages), (self.item_repo, new_items)):
            for data, child in rows:
                if data.get('id') not in (None, '', 0):
                    fields = child.to_dict()
                    fields.update(updated_stamps)
                    repo.update(parse_id(data['id']), fields)
                else:
                    child.created_by_user_id = created_stamps.get('created_by_user_id')
                    child.updated_by_user_id = created_stamps.get('updated_by_user_id')
                    repo.create(child)

        updates = {
            'receiver_name': receiver_name or '',
            'receiver_phone': receiver_phone or '',
            'receiver_address': receiver_address or '',
            'cost': cost,
            'amount_paid': amount_paid,
            'payment_status': payment_status,
            'payment_responsibility': payment_responsibility or '',
            'extra_cost_reason': extra_cost_reason or '',
            'extra_cost_amount': extra_cost_amount,
            'discount_amount': discount_amount,
            'volume': new_volume,
        }
        updates.update(updated_stamps)
        updated = self.partial_repo.update(partial_id, updates)

        self._adjust_totals(shipment_id, new_weight - old_weight, new_volume - old_volume)
        self._adjust_balance(
            user_id, existing.customer_id, new_outstanding - old_outstanding,
            f'edición envío #{partial_id}'
        )

        LOG.info("Envío %s editado", partial_id)
        if self.audit_service:
            self.audit_service.log_partial_shipment_updated(
                user_id, partial_id, 'edit',
                {
                    'weight_delta': new_weight - old_weight,
                    'volume_delta': new_volume - old_volume,
                    'balance_delta': new_outstanding - old_outstanding,
                }
            )
        return updated

    # =========================================================================
    # BAJA
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def delete_partial_shipment(self, shipment_id: Any, partial_id: Any) -> None:
        """
        Elimina un envío parcial con sus paquetes, ítems y nota.

        Resta sus totales del lote y lo pendiente del saldo del cliente.

        Raises:
            NotFoundError: Si el envío no existe o es de otro lote
        """
        shipment_id = parse_id(shipment_id, 'shipment_id')
        partial_id = parse_id(partial_id, 'partial_shipment_id')
        partial = self._require_in_shipment(shipment_id, partial_id)
        packages = self.package_repo.list_by_partial_shipment(partial_id)
        items = self.item_repo.list_by_partial_shipment(partial_id)
        weight, volume = compute_totals(packages)
        outstanding = partial.outstanding
        user_id = self.current_user()

        for pkg in packages:
            self.package_repo.delete(pkg.id)
        for item in items:
            self.item_repo.delete(item.id)
        self.note_service.delete_note(partial.note_id)
        self.partial_repo.delete(partial_id)

        self._adjust_totals(shipment_id, -weight, -volume)
        if outstanding > 0:
            self._adjust_balance(
                user_id, partial.customer_id, -outstanding, f'baja envío #{partial_id}'
            )

        LOG.info("Envío %s eliminado del lote %s", partial_id, shipment_id)
        if self.audit_service:
            self.audit_service.log_partial_shipment_deleted(user_id, partial_id, shipment_id)

    # =========================================================================
    # TRANSFERENCIA
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def transfer_partial_shipment(
        self,
        source_shipment_id: Any,
        partial_id: Any,
        target_shipment_id: Any
    ) -> PartialShipment:
        """
        Mueve un envío parcial de un lote abierto a otro lote abierto.

        Precondiciones (se validan todas antes de escribir):
            1. Lote destino distinto del origen
            2. El envío existe y pertenece al lote origen
            3. Lote origen existe y está abierto
            4. Lote destino existe y está abierto

        Efectos:
            - Recalcula peso/volumen desde los paquetes actuales
            - Reasigna shipment_id al destino
            - Resta los totales del origen y los suma al destino
              (se omite si ambos son cero)

        Raises:
            InvalidArgumentError: Ids inválidos o destino igual al origen
            NotFoundError: Envío ajeno al origen, o lote inexistente
            ConflictError: Lote origen o destino cerrado
        """
        source_id = parse_id(source_shipment_id, 'shipment_id')
        partial_id = parse_id(partial_id, 'partial_shipment_id')
        target_id = parse_id(target_shipment_id, 'target_shipment_id')
        if target_id == source_id:
            raise InvalidArgumentError('El lote destino debe ser distinto del lote actual')

        self._require_in_shipment(source_id, partial_id)

        source = self.shipment_repo.get_by_id(source_id)
        if source is None:
            raise NotFoundError(f'Lote origen {source_id} no encontrado')
        target = self.shipment_repo.get_by_id(target_id)
        if target is None:
            raise NotFoundError(f'Lote destino {target_id} no encontrado')
        if not source.is_open:
            raise ConflictError('No se puede transferir desde un lote cerrado')
        if not target.is_open:
            raise ConflictError('No se puede transferir a un lote cerrado')

        weight, volume = compute_totals(self.package_repo.list_by_partial_shipment(partial_id))
        user_id = self.current_user()

        fields = {'shipment_id': target_id}
        fields.update(stamp_user(user_id))
        updated = self.partial_repo.update(partial_id, fields)

        if weight != 0 or volume != 0:
            self.shipment_repo.increment(source_id, totals_deltas(weight, volume, sign=-1))
            self.shipment_repo.increment(target_id, totals_deltas(weight, volume))

        LOG.info(
            "Envío %s transferido: lote %s → %s (peso %.2f, volumen %.4f)",
            partial_id, source_id, target_id, weight, volume
        )
        if self.audit_service:
            self.audit_service.log_transfer(user_id, partial_id, source_id, target_id, weight, volume)
        return updated


__all__ = [
    'PartialShipmentService',
    'build_package',
    'build_item',
    'outstanding_amount',
]
