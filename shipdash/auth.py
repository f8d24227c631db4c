# ==============================================================================
# USUARIO ACTUAL - Resolución de identidad para los campos de auditoría
# ==============================================================================
# Los servicios reciben un "resolver": una función sin argumentos que
# devuelve el id del usuario actual o None. La emisión de sesiones (login)
# es responsabilidad de la capa web; aquí solo se lee.
# ==============================================================================

from typing import Callable, Dict, Optional

from flask import has_request_context, session

from shipdash import config
from shipdash.errors import InvalidArgumentError, parse_id
from shipdash.logging_setup import get_logger

LOG = get_logger('shipdash.auth')

CurrentUserResolver = Callable[[], Optional[int]]


def get_user_id_from_session() -> Optional[int]:
    """
    Lee el id de usuario de la sesión Flask.

    Returns:
        Id del usuario, o None fuera de un request o sin sesión válida
    """
    if not has_request_context():
        return None
    raw = session.get(config.SESSION_USER_ID_KEY)
    if raw is None:
        return None
    try:
        return parse_id(raw, 'user_id')
    except InvalidArgumentError:
        LOG.warning("Sesión con user_id inválido: %r", raw)
        return None


def anonymous_user() -> Optional[int]:
    """Resolver que nunca identifica a nadie (scripts, importaciones)."""
    return None


def fixed_user(user_id: Optional[int]) -> CurrentUserResolver:
    """Resolver que siempre devuelve el mismo usuario (tareas por lotes, tests)."""
    def resolver() -> Optional[int]:
        return user_id
    return resolver


def stamp_user(user_id: Optional[int], creating: bool = False) -> Dict[str, int]:
    """
    Campos de auditoría a escribir en un registro.

    Args:
        user_id: Usuario actual (None si no se pudo resolver)
        creating: True al crear (se firman creador y último editor)

    Returns:
        {} sin usuario; si no, updated_by_user_id (y created_by_user_id al crear)
    """
    if user_id is None:
        return {}
    if creating:
        return {'created_by_user_id': user_id, 'updated_by_user_id': user_id}
    return {'updated_by_user_id': user_id}


__all__ = [
    'CurrentUserResolver',
    'get_user_id_from_session',
    'anonymous_user',
    'fixed_user',
    'stamp_user',
]
