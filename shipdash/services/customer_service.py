# ==============================================================================
# SERVICIO DE CLIENTES
# ==============================================================================
# Alta, edición, saldo y baja de clientes.
#
# REGLA DEL SALDO:
# El saldo se modifica SOLO con incrementos atómicos del almacén. Nunca se
# lee el saldo para reescribirlo: dos operaciones concurrentes siempre
# suman ambas.
# ==============================================================================

from typing import Any, Iterable, List, Optional

from shipdash import config
from shipdash.auth import CurrentUserResolver, anonymous_user, stamp_user
from shipdash.errors import InvalidArgumentError, parse_id, parse_number
from shipdash.logging_setup import get_logger, log_errors
from shipdash.models import Customer
from shipdash.performance_logger import profile_function
from shipdash.repositories import CustomerRepository
from shipdash.services.audit_service import AuditService
from shipdash.services.note_service import NoteService

LOG = get_logger('shipdash.customers')


class CustomerService:
    """
    Servicio de clientes.

    Responsabilidades:
    - Crear clientes con nota opcional
    - Editar datos de contacto y nota
    - Incrementar el saldo (atómico)
    - Eliminar clientes sin envíos parciales
    """

    def __init__(
        self,
        customer_repo: CustomerRepository,
        note_service: NoteService,
        audit_service: AuditService = None,
        current_user: CurrentUserResolver = anonymous_user
    ):
        self.customer_repo = customer_repo
        self.note_service = note_service
        self.audit_service = audit_service
        self.current_user = current_user

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_customer(self, customer_id: Any) -> Optional[Customer]:
        return self.customer_repo.get_by_id(customer_id)

    def list_customers(self) -> List[Customer]:
        """Clientes ordenados por id."""
        return sorted(self.customer_repo.list(), key=lambda c: c.id)

    # =========================================================================
    # ALTA
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def create_customer(
        self,
        name: str,
        phone: str = '',
        address: str = '',
        origin: str = '',
        note_content: Optional[str] = None,
        note_images: Optional[Iterable[str]] = None
    ) -> Customer:
        """
        Crea un cliente con saldo 0 y, si hay contenido o imágenes, una nota.

        Raises:
            InvalidArgumentError: Si falta el nombre
        """
        name = (name or '').strip()
        if not name:
            raise InvalidArgumentError('El nombre del cliente es requerido')

        user_id = self.current_user()
        note = self.note_service.create_note(note_content, note_images)

        customer = Customer(
            name=name,
            phone=phone or '',
            address=address or '',
            origin=origin or '',
            balance=0.0,
            note_id=note.id if note else None,
            **stamp_user(user_id, creating=True)
        )
        self.customer_repo.create(customer)

        LOG.info("Cliente %s creado: %s", customer.id, name)
        if self.audit_service:
            self.audit_service.log_customer_created(user_id, customer.id, name)
        return customer

    # =========================================================================
    # SALDO
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def increment_balance(self, customer_id: Any, amount: Any, reason: str = 'manual') -> Customer:
        """
        Suma `amount` al saldo del cliente de forma atómica.

        Un monto cero no escribe nada.

        Args:
            customer_id: Id del cliente
            amount: Monto con signo (acepta texto numérico)
            reason: Origen del cambio, para auditoría

        Returns:
            Cliente con el saldo resultante

        Raises:
            InvalidArgumentError: Si el monto no es numérico
            NotFoundError: Si el cliente no existe
        """
        customer_id = parse_id(customer_id, 'customer_id')
        delta = parse_number(amount, 'balance_increment')
        if delta == 0:
            return self.customer_repo.require(customer_id)

        customer = self.customer_repo.increment(customer_id, {'balance': delta})
        if self.audit_service:
            self.audit_service.log_balance_change(
                self.current_user(), customer_id, delta, customer.balance, reason
            )
        return customer

    # =========================================================================
    # EDICIÓN
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def update_customer(
        self,
        customer_id: Any,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        origin: Optional[str] = None,
        balance_increment: Any = None,
        note_content: Optional[str] = None,
        note_images: Optional[Iterable[str]] = None
    ) -> Customer:
        """
        Edición parcial de un cliente en una sola llamada.

        Solo se escriben los campos enviados (no vacíos). El incremento de
        saldo y la nota se aplican con sus propias reglas.

        Raises:
            NotFoundError: Si el cliente no existe
            InvalidArgumentError: Si el incremento no es numérico
        """
        customer_id = parse_id(customer_id, 'customer_id')
        delta = parse_number(balance_increment, 'balance_increment')
        images = self.note_service.validate_input(note_content, note_images)
        self.customer_repo.require(customer_id)

        if delta != 0:
            self.increment_balance(customer_id, delta)

        updates = {}
        for field_name, value in (('name', name), ('phone', phone),
                                  ('address', address), ('origin', origin)):
            if value:
                updates[field_name] = value
        if updates:
            updates.update(stamp_user(self.current_user()))
            self.customer_repo.update(customer_id, updates)

        if note_content or images:
            self.note_service.update_owner_note(
                config.TABLE_CUSTOMERS, customer_id, note_content or '', images
            )

        return self.customer_repo.require(customer_id)

    # =========================================================================
    # BAJA
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def delete_customer(self, customer_id: Any) -> None:
        """
        Elimina un cliente y su nota.

        Raises:
            NotFoundError: Si el cliente no existe
            ConflictError: Si tiene envíos parciales (no se elimina nada)
        """
        customer = self.customer_repo.require(customer_id)
        self.customer_repo.delete(customer.id)
        self.note_service.delete_note(customer.note_id)

        LOG.info("Cliente %s eliminado", customer.id)
        if self.audit_service:
            self.audit_service.log_customer_deleted(self.current_user(), customer.id)


__all__ = ['CustomerService']
