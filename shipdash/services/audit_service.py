# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza toda la lógica de registro de auditoría.
# Formatea mensajes humanizados y categoriza eventos.
#
# Las escrituras de auditoría son parte de la operación: si fallan, el
# error se propaga al llamador igual que cualquier otra escritura.
# ==============================================================================

from typing import Any, Dict, List, Optional

from shipdash import config
from shipdash.models import AuditLog, AuditType
from shipdash.repositories.note_repository import AuditRepository


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Centraliza:
    - Registro de eventos con mensajes humanizados
    - Categorización de eventos (CLIENTE, LOTE, ENVIO, NOTA, USUARIO)
    - Consulta de logs por registro afectado
    """

    TYPE_CLIENTE = AuditType.CLIENTE.value
    TYPE_LOTE = AuditType.LOTE.value
    TYPE_ENVIO = AuditType.ENVIO.value
    TYPE_NOTA = AuditType.NOTA.value
    TYPE_USUARIO = AuditType.USUARIO.value

    def __init__(self, audit_repo: AuditRepository):
        """
        Args:
            audit_repo: Repositorio de auditoría
        """
        self.audit_repo = audit_repo

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: str,
        action: str,
        message: str,
        related_table: str = '',
        related_id: Optional[int] = None,
        user_id: Optional[int] = None,
        details: Dict[str, Any] = None
    ) -> AuditLog:
        """
        Registra un evento de auditoría genérico.

        Args:
            log_type: Tipo de evento (CLIENTE, LOTE, ENVIO, ...)
            action: Acción concreta (create, update, transfer, ...)
            message: Mensaje descriptivo humanizado
            related_table: Tabla del registro afectado
            related_id: Id del registro afectado
            user_id: Usuario que realizó la acción (None si anónimo)
            details: Detalles adicionales
        """
        entry = AuditLog(
            type=log_type,
            action=action,
            message=message,
            related_table=related_table,
            related_id=related_id,
            user_id=user_id,
            details=details or {},
        )
        return self.audit_repo.log(entry)

    def log_customer_created(self, user_id: Optional[int], customer_id: int, name: str) -> None:
        message = f"Cliente {name} (#{customer_id}) creado"
        self.log(self.TYPE_CLIENTE, 'create', message,
                 config.TABLE_CUSTOMERS, customer_id, user_id, {'name': name})

    def log_customer_deleted(self, user_id: Optional[int], customer_id: int) -> None:
        self.log(self.TYPE_CLIENTE, 'delete', f"Cliente #{customer_id} eliminado",
                 config.TABLE_CUSTOMERS, customer_id, user_id)

    def log_balance_change(
        self,
        user_id: Optional[int],
        customer_id: int,
        delta: float,
        new_balance: float,
        reason: str = 'manual'
    ) -> None:
        """
        Registra un cambio del saldo de un cliente.

        Args:
            user_id: Usuario que originó el cambio
            customer_id: Cliente afectado
            delta: Monto sumado (con signo)
            new_balance: Saldo resultante devuelto por el almacén
            reason: Origen del cambio (manual, envío, pago, ...)
        """
        sign = '+' if delta >= 0 else '-'
        message = (
            f"Saldo del cliente #{customer_id}: {sign}{abs(delta):.2f} "
            f"({reason}) - Nuevo saldo: {new_balance:.2f}"
        )
        self.log(self.TYPE_CLIENTE, 'balance', message,
                 config.TABLE_CUSTOMERS, customer_id, user_id,
                 {'delta': delta, 'balance': new_balance, 'reason': reason})

    def log_shipment_created(self, user_id: Optional[int], shipment_id: int, destination: str) -> None:
        message = f"Lote #{shipment_id} con destino {destination} creado"
        self.log(self.TYPE_LOTE, 'create', message,
                 config.TABLE_SHIPMENTS, shipment_id, user_id, {'destination': destination})

    def log_shipment_status_change(self, user_id: Optional[int], shipment_id: int, is_open: bool) -> None:
        state = 'reabierto' if is_open else 'cerrado'
        self.log(self.TYPE_LOTE, 'reopen' if is_open else 'close',
                 f"Lote #{shipment_id} {state}",
                 config.TABLE_SHIPMENTS, shipment_id, user_id, {'is_open': is_open})

    def log_shipment_deleted(self, user_id: Optional[int], shipment_id: int) -> None:
        self.log(self.TYPE_LOTE, 'delete', f"Lote #{shipment_id} eliminado",
                 config.TABLE_SHIPMENTS, shipment_id, user_id)

    def log_totals_recomputed(
        self,
        user_id: Optional[int],
        shipment_id: int,
        weight_delta: float,
        volume_delta: float
    ) -> None:
        message = (
            f"Totales del lote #{shipment_id} recalculados "
            f"(peso {weight_delta:+.2f}, volumen {volume_delta:+.4f})"
        )
        self.log(self.TYPE_LOTE, 'recompute', message,
                 config.TABLE_SHIPMENTS, shipment_id, user_id,
                 {'weight_delta': weight_delta, 'volume_delta': volume_delta})

    def log_partial_shipment_created(
        self,
        user_id: Optional[int],
        partial_id: int,
        shipment_id: int,
        customer_id: int,
        cost: float
    ) -> None:
        message = (
            f"Envío #{partial_id} creado en el lote #{shipment_id} "
            f"para el cliente #{customer_id} - Costo: {cost:.2f}"
        )
        self.log(self.TYPE_ENVIO, 'create', message,
                 config.TABLE_PARTIAL_SHIPMENTS, partial_id, user_id,
                 {'shipment_id': shipment_id, 'customer_id': customer_id, 'cost': cost})

    def log_partial_shipment_updated(
        self,
        user_id: Optional[int],
        partial_id: int,
        action: str,
        details: Dict[str, Any]
    ) -> None:
        message = f"Envío #{partial_id} actualizado ({action})"
        self.log(self.TYPE_ENVIO, action, message,
                 config.TABLE_PARTIAL_SHIPMENTS, partial_id, user_id, details)

    def log_transfer(
        self,
        user_id: Optional[int],
        partial_id: int,
        source_id: int,
        target_id: int,
        weight: float,
        volume: float
    ) -> None:
        """Registra la transferencia de un envío parcial entre lotes."""
        message = f"Envío #{partial_id} transferido del lote #{source_id} al lote #{target_id}"
        self.log(self.TYPE_ENVIO, 'transfer', message,
                 config.TABLE_PARTIAL_SHIPMENTS, partial_id, user_id,
                 {'from': source_id, 'to': target_id, 'weight': weight, 'volume': volume})

    def log_partial_shipment_deleted(self, user_id: Optional[int], partial_id: int, shipment_id: int) -> None:
        self.log(self.TYPE_ENVIO, 'delete',
                 f"Envío #{partial_id} eliminado del lote #{shipment_id}",
                 config.TABLE_PARTIAL_SHIPMENTS, partial_id, user_id,
                 {'shipment_id': shipment_id})

    def log_note_saved(self, user_id: Optional[int], note_id: int, owner_table: str, owner_id: int) -> None:
        self.log(self.TYPE_NOTA, 'save', f"Nota #{note_id} guardada en {owner_table} #{owner_id}",
                 config.TABLE_NOTES, note_id, user_id,
                 {'owner_table': owner_table, 'owner_id': owner_id})

    def log_user_registered(self, user_id: int, username: str) -> None:
        self.log(self.TYPE_USUARIO, 'create', f"Usuario {username} registrado",
                 config.TABLE_USERS, user_id, user_id)

    def log_user_login(self, user_id: int, username: str) -> None:
        self.log(self.TYPE_USUARIO, 'login', f"Usuario {username} inició sesión",
                 config.TABLE_USERS, user_id, user_id)

    # =========================================================================
    # CONSULTA
    # =========================================================================

    def get_logs(self, limit: Optional[int] = None, log_type: str = None) -> List[AuditLog]:
        """
        Obtiene logs (más recientes primero), opcionalmente filtrados por tipo.
        """
        logs = self.audit_repo.load()
        if log_type:
            logs = [log for log in logs if log.type == log_type]
        return logs[:limit] if limit else logs

    def get_logs_for(self, related_table: str, related_id: int) -> List[AuditLog]:
        return self.audit_repo.find_by_related(related_table, related_id)
