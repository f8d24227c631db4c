# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio de envíos.
# Diseñadas para ser independientes del mecanismo de persistencia.
#
# REGLA DE PERSISTENCIA:
# Los atributos opcionales sin valor NO se guardan (ni null ni 0).
# to_dict() omite los None; from_dict() tolera campos ausentes.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime, timezone


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class PaymentStatus(str, Enum):
    """Estados de pago conocidos de un envío parcial."""
    PAID = "paid"
    UNPAID = "unpaid"
    PARTIAL = "partial"


class ShipmentStatus(str, Enum):
    """Estado derivado de un lote a partir de is_open."""
    OPEN = "open"
    CLOSED = "closed"


class AuditType(str, Enum):
    """Tipos de eventos de auditoría."""
    CLIENTE = "CLIENTE"
    LOTE = "LOTE"
    ENVIO = "ENVIO"
    NOTA = "NOTA"
    USUARIO = "USUARIO"


def utc_now_iso() -> str:
    """Timestamp ISO-8601 en UTC (formato usado en date_created)."""
    return datetime.now(timezone.utc).isoformat()


def _num(value: Any, default: float = 0.0) -> float:
    """Convierte a float tolerando None, '' y valores corruptos."""
    try:
        return float(value if value not in (None, '') else default)
    except (TypeError, ValueError):
        return default


def _put_optional(d: Dict[str, Any], key: str, value: Any) -> None:
    """Agrega la clave solo si el valor no es None."""
    if value is not None:
        d[key] = value


def _put_audit(d: Dict[str, Any], created_by: Optional[int], updated_by: Optional[int]) -> None:
    _put_optional(d, 'created_by_user_id', created_by)
    _put_optional(d, 'updated_by_user_id', updated_by)


# ==============================================================================
# ENTIDADES DE USUARIO Y NOTAS
# ==============================================================================

@dataclass
class User:
    """
    Usuario del sistema (autor de notas, firma de auditoría).

    Attributes:
        id: Identificador numérico asignado por el contador de la tabla
        username: Nombre de usuario único
        password_hash: Hash Werkzeug de la contraseña (nunca texto plano)
    """
    username: str
    password_hash: str
    id: Optional[int] = None
    created_at: str = ''
    updated_at: str = ''

    def __post_init__(self):
        if not self.created_at:
            self.created_at = utc_now_iso()
        if not self.updated_at:
            self.updated_at = self.created_at

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        d = {
            'username': self.username,
            'password_hash': self.password_hash,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
        _put_optional(d, 'id', self.id)
        return d

    def to_public_dict(self) -> Dict[str, Any]:
        """Vista sin hash de contraseña (feed de actividad, respuestas)."""
        return {'id': self.id, 'username': self.username}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id'),
            username=data.get('username', ''),
            password_hash=data.get('password_hash', ''),
            created_at=data.get('created_at', ''),
            updated_at=data.get('updated_at', ''),
        )


@dataclass
class Note:
    """
    Nota adjunta a un cliente, lote o envío parcial (0/1 por dueño).

    Attributes:
        content: Texto libre (puede ser vacío)
        images: Referencias opacas devueltas por el almacenamiento de archivos
        user_id: Autor de la nota
    """
    content: Optional[str] = None
    images: List[str] = field(default_factory=list)
    id: Optional[int] = None
    user_id: Optional[int] = None
    created_by_user_id: Optional[int] = None
    updated_by_user_id: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not self.content and not self.images

    def to_dict(self) -> Dict[str, Any]:
        d = {'images': list(self.images)}
        _put_optional(d, 'id', self.id)
        _put_optional(d, 'content', self.content)
        _put_optional(d, 'user_id', self.user_id)
        _put_audit(d, self.created_by_user_id, self.updated_by_user_id)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Note':
        return cls(
            id=data.get('id'),
            content=data.get('content'),
            images=list(data.get('images') or []),
            user_id=data.get('user_id'),
            created_by_user_id=data.get('created_by_user_id'),
            updated_by_user_id=data.get('updated_by_user_id'),
        )


# ==============================================================================
# ENTIDADES DE CLIENTES
# ==============================================================================

@dataclass
class Customer:
    """
    Cliente que envía mercadería.

    Attributes:
        balance: Saldo acumulado con signo. Solo se modifica con incrementos
                 atómicos del almacén, nunca leyendo y reescribiendo.
        origin: Procedencia del cliente (agrupa el resumen de clientes)
        note_id: Nota adjunta (opcional)
    """
    name: str
    phone: str = ''
    address: str = ''
    origin: str = ''
    balance: float = 0.0
    id: Optional[int] = None
    note_id: Optional[int] = None
    created_by_user_id: Optional[int] = None
    updated_by_user_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'name': self.name,
            'phone': self.phone,
            'address': self.address,
            'origin': self.origin,
            'balance': self.balance,
        }
        _put_optional(d, 'id', self.id)
        _put_optional(d, 'note_id', self.note_id)
        _put_audit(d, self.created_by_user_id, self.updated_by_user_id)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            phone=data.get('phone', ''),
            address=data.get('address', ''),
            origin=data.get('origin', ''),
            balance=_num(data.get('balance')),
            note_id=data.get('note_id'),
            created_by_user_id=data.get('created_by_user_id'),
            updated_by_user_id=data.get('updated_by_user_id'),
        )


# ==============================================================================
# ENTIDADES DE LOTES (SHIPMENTS)
# ==============================================================================

@dataclass
class Shipment:
    """
    Lote de envíos parciales con un mismo destino.

    Attributes:
        is_open: Lote abierto (acepta envíos y transferencias) o cerrado
        total_weight: Suma en curso de peso×unidades de sus paquetes
        total_volume: Suma en curso de largo×ancho×alto×unidades
        date_closed: Se sella al cerrar el lote
    """
    destination: str
    date_created: str = ''
    is_open: bool = True
    total_weight: float = 0.0
    total_volume: float = 0.0
    id: Optional[int] = None
    date_closed: Optional[str] = None
    driver_name: Optional[str] = None
    driver_vehicle: Optional[str] = None
    note_id: Optional[int] = None
    created_by_user_id: Optional[int] = None
    updated_by_user_id: Optional[int] = None

    def __post_init__(self):
        if not self.date_created:
            self.date_created = utc_now_iso()

    @property
    def status(self) -> str:
        """Estado derivado: 'open' | 'closed'."""
        return ShipmentStatus.OPEN.value if self.is_open else ShipmentStatus.CLOSED.value

    def to_dict(self) -> Dict[str, Any]:
        """Registro para el almacén; los opcionales ausentes no se escriben."""
        d = {
            'destination': self.destination,
            'date_created': self.date_created,
            'is_open': self.is_open,
            'total_weight': self.total_weight,
            'total_volume': self.total_volume,
        }
        _put_optional(d, 'id', self.id)
        _put_optional(d, 'date_closed', self.date_closed)
        _put_optional(d, 'driver_name', self.driver_name)
        _put_optional(d, 'driver_vehicle', self.driver_vehicle)
        _put_optional(d, 'note_id', self.note_id)
        _put_audit(d, self.created_by_user_id, self.updated_by_user_id)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Shipment':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id'),
            destination=data.get('destination', ''),
            date_created=data.get('date_created', ''),
            is_open=bool(data.get('is_open', False)),
            total_weight=_num(data.get('total_weight')),
            total_volume=_num(data.get('total_volume')),
            date_closed=data.get('date_closed'),
            driver_name=data.get('driver_name'),
            driver_vehicle=data.get('driver_vehicle'),
            note_id=data.get('note_id'),
            created_by_user_id=data.get('created_by_user_id'),
            updated_by_user_id=data.get('updated_by_user_id'),
        )


# ==============================================================================
# ENTIDADES DE ENVÍOS PARCIALES
# ==============================================================================

@dataclass
class PartialShipment:
    """
    Consignación de un cliente dentro de un lote.

    Attributes:
        shipment_id: Lote al que pertenece
        customer_id: Cliente dueño de la carga
        cost: Costo base del envío
        discount_amount: Descuento aplicado
        extra_cost_amount: Costo extra (con extra_cost_reason)
        amount_paid: Monto pagado
        payment_status: 'paid' | 'unpaid' | 'partial' | otro
        payment_completed: El saldo del cliente ya se ajustó por el pago total
        volume: Volumen total de sus paquetes (copia de conveniencia)
    """
    shipment_id: int
    customer_id: int
    cost: float = 0.0
    discount_amount: float = 0.0
    extra_cost_amount: float = 0.0
    amount_paid: float = 0.0
    payment_status: str = PaymentStatus.UNPAID.value
    payment_completed: bool = False
    volume: float = 0.0
    date_created: str = ''
    id: Optional[int] = None
    extra_cost_reason: Optional[str] = None
    payment_responsibility: Optional[str] = None
    receiver_name: Optional[str] = None
    receiver_phone: Optional[str] = None
    receiver_address: Optional[str] = None
    note_id: Optional[int] = None
    created_by_user_id: Optional[int] = None
    updated_by_user_id: Optional[int] = None

    def __post_init__(self):
        if not self.date_created:
            self.date_created = utc_now_iso()

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    @property
    def revenue(self) -> float:
        """Ingreso del envío: costo + extra - descuento."""
        return self.cost + self.extra_cost_amount - self.discount_amount

    @property
    def outstanding(self) -> float:
        """Pendiente de cobro; 0 si el envío está marcado como pagado."""
        if self.is_paid:
            return 0.0
        return self.revenue - self.amount_paid

    def to_dict(self) -> Dict[str, Any]:
        """Registro para el almacén. Fechas y nota solo si existen."""
        d = {
            'shipment_id': self.shipment_id,
            'customer_id': self.customer_id,
            'cost': self.cost,
            'discount_amount': self.discount_amount,
            'extra_cost_amount': self.extra_cost_amount,
            'amount_paid': self.amount_paid,
            'payment_status': self.payment_status,
            'payment_completed': self.payment_completed,
            'volume': self.volume,
            'date_created': self.date_created,
        }
        _put_optional(d, 'id', self.id)
        _put_optional(d, 'extra_cost_reason', self.extra_cost_reason)
        _put_optional(d, 'payment_responsibility', self.payment_responsibility)
        _put_optional(d, 'receiver_name', self.receiver_name)
        _put_optional(d, 'receiver_phone', self.receiver_phone)
        _put_optional(d, 'receiver_address', self.receiver_address)
        _put_optional(d, 'note_id', self.note_id)
        _put_audit(d, self.created_by_user_id, self.updated_by_user_id)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PartialShipment':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id'),
            shipment_id=data.get('shipment_id', 0),
            customer_id=data.get('customer_id', 0),
            cost=_num(data.get('cost')),
            discount_amount=_num(data.get('discount_amount')),
            extra_cost_amount=_num(data.get('extra_cost_amount')),
            amount_paid=_num(data.get('amount_paid')),
            payment_status=data.get('payment_status') or 'unknown',
            payment_completed=bool(data.get('payment_completed', False)),
            volume=_num(data.get('volume')),
            date_created=data.get('date_created', ''),
            extra_cost_reason=data.get('extra_cost_reason'),
            payment_responsibility=data.get('payment_responsibility'),
            receiver_name=data.get('receiver_name'),
            receiver_phone=data.get('receiver_phone'),
            receiver_address=data.get('receiver_address'),
            note_id=data.get('note_id'),
            created_by_user_id=data.get('created_by_user_id'),
            updated_by_user_id=data.get('updated_by_user_id'),
        )


@dataclass
class Package:
    """
    Paquete físico de un envío parcial.

    Contribución al lote:
        volumen = largo × ancho × alto × unidades
        peso    = peso × unidades
    """
    partial_shipment_id: int
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    weight: float = 0.0
    units: int = 1
    cost_type: str = 'CPM'
    total_cost: float = 0.0
    id: Optional[int] = None
    type_of_package: Optional[str] = None
    description: Optional[str] = None
    created_by_user_id: Optional[int] = None
    updated_by_user_id: Optional[int] = None

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height * self.units

    @property
    def total_weight(self) -> float:
        return self.weight * self.units

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        d = {
            'partial_shipment_id': self.partial_shipment_id,
            'length': self.length,
            'width': self.width,
            'height': self.height,
            'weight': self.weight,
            'units': self.units,
            'cost_type': self.cost_type,
            'total_cost': self.total_cost,
        }
        _put_optional(d, 'id', self.id)
        _put_optional(d, 'type_of_package', self.type_of_package)
        _put_optional(d, 'description', self.description)
        _put_audit(d, self.created_by_user_id, self.updated_by_user_id)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Package':
        """Unidades ausentes o ilegibles cuentan como 1; un 0 guardado se respeta."""
        return cls(
            id=data.get('id'),
            partial_shipment_id=data.get('partial_shipment_id', 0),
            length=_num(data.get('length')),
            width=_num(data.get('width')),
            height=_num(data.get('height')),
            weight=_num(data.get('weight')),
            units=int(_num(data.get('units'), 1)),
            cost_type=data.get('cost_type') or 'CPM',
            total_cost=_num(data.get('total_cost')),
            type_of_package=data.get('type_of_package'),
            description=data.get('description'),
            created_by_user_id=data.get('created_by_user_id'),
            updated_by_user_id=data.get('updated_by_user_id'),
        )


@dataclass
class PartialShipmentItem:
    """
    Ítem declarado dentro de un envío parcial (para aduana/factura).

    Attributes:
        description: Descripción de la mercadería
        quantity: Cantidad declarada
        hscode: Código arancelario
        value: Valor total declarado
    """
    partial_shipment_id: int
    description: str = ''
    quantity: float = 0.0
    weight: float = 0.0
    origin: str = ''
    hscode: str = ''
    value: float = 0.0
    price_by_unit: float = 0.0
    unit: str = ''
    id: Optional[int] = None
    created_by_user_id: Optional[int] = None
    updated_by_user_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'partial_shipment_id': self.partial_shipment_id,
            'description': self.description,
            'quantity': self.quantity,
            'weight': self.weight,
            'origin': self.origin,
            'hscode': self.hscode,
            'value': self.value,
            'price_by_unit': self.price_by_unit,
            'unit': self.unit,
        }
        _put_optional(d, 'id', self.id)
        _put_audit(d, self.created_by_user_id, self.updated_by_user_id)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PartialShipmentItem':
        return cls(
            id=data.get('id'),
            partial_shipment_id=data.get('partial_shipment_id', 0),
            description=data.get('description', ''),
            quantity=_num(data.get('quantity')),
            weight=_num(data.get('weight')),
            origin=data.get('origin', ''),
            hscode=data.get('hscode', ''),
            value=_num(data.get('value')),
            price_by_unit=_num(data.get('price_by_unit')),
            unit=data.get('unit', ''),
            created_by_user_id=data.get('created_by_user_id'),
            updated_by_user_id=data.get('updated_by_user_id'),
        )


# ==============================================================================
# ENTIDADES DE AUDITORÍA
# ==============================================================================

@dataclass
class AuditLog:
    """
    Registro de auditoría de una operación de dominio.

    Attributes:
        type: Tipo de evento (CLIENTE, LOTE, ENVIO, NOTA, USUARIO)
        action: Acción concreta (create, transfer, delete, balance, ...)
        message: Mensaje descriptivo humanizado
        related_table: Tabla del registro afectado
        related_id: Id del registro afectado
        user_id: Usuario que realizó la acción (si se conoce)
        details: Detalles adicionales
    """
    type: str
    action: str
    message: str
    related_table: str = ''
    related_id: Optional[int] = None
    user_id: Optional[int] = None
    timestamp: str = ''
    details: Dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = utc_now_iso()

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        d = {
            'type': self.type,
            'action': self.action,
            'message': self.message,
            'related_table': self.related_table,
            'timestamp': self.timestamp,
            'details': self.details,
        }
        _put_optional(d, 'id', self.id)
        _put_optional(d, 'related_id', self.related_id)
        _put_optional(d, 'user_id', self.user_id)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditLog':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id'),
            type=data.get('type', ''),
            action=data.get('action', ''),
            message=data.get('message', ''),
            related_table=data.get('related_table', ''),
            related_id=data.get('related_id'),
            user_id=data.get('user_id'),
            timestamp=data.get('timestamp', ''),
            details=data.get('details') or {},
        )
