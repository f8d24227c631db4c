# ==============================================================================
# LOGGING DE LA APLICACIÓN
# ==============================================================================
# Un logger por módulo con formato consistente y nivel desde config.
# ==============================================================================

import logging
import threading
from functools import wraps

from shipdash import config
from shipdash.errors import ShipDashError

_LOCK = threading.Lock()
_FORMAT = '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
_DATEFMT = '%Y-%m-%d %H:%M:%S'


def get_logger(name: str = 'shipdash') -> logging.Logger:
    """
    Obtiene un logger configurado (un solo StreamHandler por nombre).

    Args:
        name: Nombre del logger, normalmente 'shipdash.<módulo>'

    Returns:
        Logger listo para usar
    """
    logger = logging.getLogger(name)
    if getattr(logger, '_shipdash_configured', False):
        return logger
    with _LOCK:
        if getattr(logger, '_shipdash_configured', False):
            return logger
        level = getattr(logging, config.LOG_LEVEL, logging.INFO)
        logger.setLevel(level)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        logger.addHandler(handler)
        logger.propagate = False
        logger._shipdash_configured = True
    return logger


def log_errors(logger: logging.Logger):
    """
    Decorador para operaciones de servicio: registra el error de dominio
    y lo relanza sin modificarlo.

    Uso:
        @log_errors(LOG)
        def transfer_partial_shipment(...):
            ...
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except ShipDashError as e:
                logger.warning("%s falló [%s]: %s", fn.__name__, e.kind, e.message)
                raise
        return wrapper
    return decorator


__all__ = ['get_logger', 'log_errors']
