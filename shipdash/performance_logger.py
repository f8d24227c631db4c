# ==============================================================================
# PROFILING DE OPERACIONES
# ==============================================================================
# Cada operación decorada con @profile_function acumula en memoria:
#   llamadas, llamadas que terminaron en excepción, tiempo total y máximo (ms)
#
# Las llamadas por encima de config.SLOW_WARNING_MS se anotan en
# LOGS_DIR/slow_operations.log y en el logger 'shipdash.performance'.
# Con SHIPDASH_PROFILING=0 el decorador devuelve la función sin envolver.
# ==============================================================================

import os
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from functools import wraps
from typing import Callable, Dict, Optional

from shipdash import config
from shipdash.logging_setup import get_logger

ENABLE_PROFILING = config.ENABLE_PROFILING
SLOW_OPERATIONS_LOG = os.path.join(config.LOGS_DIR, 'slow_operations.log')

LOG = get_logger('shipdash.performance')


@dataclass
class OperationStats:
    """Acumulado de tiempos de una operación."""
    calls: int = 0
    failures: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.calls if self.calls else 0.0

    def record(self, elapsed_ms: float, failed: bool) -> None:
        self.calls += 1
        self.total_ms += elapsed_ms
        self.max_ms = max(self.max_ms, elapsed_ms)
        if failed:
            self.failures += 1

    def to_dict(self) -> Dict:
        return {
            'calls': self.calls,
            'failures': self.failures,
            'avg_time': round(self.avg_ms, 2),
            'max_time': round(self.max_ms, 2),
        }


_stats: Dict[str, OperationStats] = {}
_stats_lock = threading.Lock()
_file_lock = threading.Lock()


def _severity(elapsed_ms: float) -> Optional[str]:
    if elapsed_ms >= config.SLOW_CRITICAL_MS:
        return 'CRÍTICO'
    if elapsed_ms >= config.SLOW_WARNING_MS:
        return 'LENTO'
    return None


def _append(path: str, text: str) -> None:
    # Un fallo de disco en el log no debe tumbar la operación medida
    try:
        with _file_lock:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'a', encoding='utf-8') as fh:
                fh.write(text)
    except OSError as e:
        LOG.warning("No se pudo escribir %s: %s", path, e)


# ═══════════════════════════════════════════════════════════════════════════
# DECORADOR
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func: Optional[Callable] = None, name: Optional[str] = None):
    """
    Mide cada llamada de una operación del almacén o del dominio.

    Admite las dos formas:
        @profile_function
        @profile_function(name='Transferir envío parcial')

    Args:
        func: función a envolver cuando se usa sin paréntesis.
        name: nombre con que aparece en las estadísticas; por defecto
            el ``__qualname__`` de la función.
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn
        op_name = name or fn.__qualname__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            failed = True
            started = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
                failed = False
                return result
            finally:
                elapsed_ms = (time.perf_counter() - started) * 1000
                with _stats_lock:
                    _stats.setdefault(op_name, OperationStats()).record(elapsed_ms, failed)
                severity = _severity(elapsed_ms)
                if severity:
                    _log_slow_function_call(op_name, elapsed_ms, severity)

        return wrapper

    return decorator(func) if func is not None else decorator


def _log_slow_function_call(op_name: str, elapsed_ms: float, severity: str) -> None:
    LOG.warning("[%s] %s tardó %.0f ms", severity, op_name, elapsed_ms)
    stamp = datetime.now().isoformat(timespec='seconds')
    _append(SLOW_OPERATIONS_LOG, f"{stamp}\t{severity}\t{elapsed_ms:.0f} ms\t{op_name}\n")


# ═══════════════════════════════════════════════════════════════════════════
# CONSULTA Y REPORTE
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats() -> Dict[str, Dict]:
    """
    Copia de las estadísticas acumuladas.

    Returns:
        {operación: {calls, failures, avg_time, max_time}} con tiempos en ms.
    """
    with _stats_lock:
        return {op: stats.to_dict() for op, stats in _stats.items()}


def write_function_stats_report() -> Optional[str]:
    """
    Añade a slow_operations.log una tabla con todas las operaciones medidas,
    de mayor a menor tiempo total acumulado.

    Returns:
        El texto escrito, o None si no hay nada que reportar.
    """
    if not ENABLE_PROFILING:
        return None
    with _stats_lock:
        rows = sorted(_stats.items(), key=lambda kv: kv[1].total_ms, reverse=True)
        rows = [(op, OperationStats(**vars(s))) for op, s in rows]
    if not rows:
        return None

    width = max(len(op) for op, _ in rows)
    lines = [
        f"# Resumen de operaciones ({datetime.now().isoformat(timespec='seconds')})",
        f"{'operación':<{width}}  {'llamadas':>8}  {'fallos':>6}  {'prom ms':>8}  {'máx ms':>8}",
    ]
    for op, s in rows:
        lines.append(
            f"{op:<{width}}  {s.calls:>8}  {s.failures:>6}  {s.avg_ms:>8.1f}  {s.max_ms:>8.1f}"
        )
    text = '\n'.join(lines) + '\n\n'
    _append(SLOW_OPERATIONS_LOG, text)
    return text


def reset_stats() -> None:
    with _stats_lock:
        _stats.clear()


__all__ = [
    'ENABLE_PROFILING',
    'OperationStats',
    'profile_function',
    'get_function_stats',
    'write_function_stats_report',
    'reset_stats',
]
