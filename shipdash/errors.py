# ==============================================================================
# ERRORES DEL DOMINIO
# ==============================================================================
# Todas las operaciones del núcleo fallan con una subclase de ShipDashError.
# Cada error lleva un `kind` estable para que las rutas lo traduzcan a HTTP:
#   NotFound         → 404
#   Conflict         → 409
#   InvalidArgument  → 400
#   StoreUnavailable → 503
# Ningún error se reintenta dentro del núcleo.
# ==============================================================================

from typing import Any


class ShipDashError(Exception):
    """Error base del núcleo de datos."""

    kind = 'Error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'kind': self.kind, 'error': self.message}


class NotFoundError(ShipDashError):
    """El id referenciado no existe."""
    kind = 'NotFound'


class ConflictError(ShipDashError):
    """Violación de integridad referencial o del invariante abierto/cerrado."""
    kind = 'Conflict'


class InvalidArgumentError(ShipDashError):
    """Entrada mal formada: id no numérico, campo requerido ausente, etc."""
    kind = 'InvalidArgument'


class StoreUnavailableError(ShipDashError):
    """Falló la llamada al almacén de tablas (I/O, timeout de lock, JSON corrupto)."""
    kind = 'StoreUnavailable'


def parse_id(value: Any, field: str = 'id') -> int:
    """
    Convierte un id recibido (int o str) a entero positivo.

    Args:
        value: Valor recibido desde el colaborador
        field: Nombre del campo para el mensaje de error

    Returns:
        Id entero

    Raises:
        InvalidArgumentError: Si no es numérico o no es positivo
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f'{field} inválido: {value!r}')
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidArgumentError(f'{field} inválido: {value!r}')
    if number <= 0:
        raise InvalidArgumentError(f'{field} debe ser positivo: {value!r}')
    return number


def parse_number(value: Any, field: str, default: float = 0.0) -> float:
    """Convierte montos/medidas a float; None o '' usan el valor por defecto."""
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise InvalidArgumentError(f'{field} debe ser numérico')
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f'{field} debe ser numérico: {value!r}')
