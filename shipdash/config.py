# ==============================================================================
# CONFIGURACIÓN - Variables de entorno y valores por defecto
# ==============================================================================
# Todos los valores se leen una sola vez al importar el módulo.
# Para producción definir las variables de entorno antes de arrancar:
#   export SHIPDASH_DATA_DIR=/srv/shipdash/data
#   export SHIPDASH_UPLOAD_DIR=/srv/shipdash/uploads
# ==============================================================================

import os

BASE = os.path.dirname(os.path.abspath(__file__))


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"[ADVERTENCIA] {name}={raw!r} no es numérico, se usa {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


# ═══════════════════════════════════════════════════════════════════════════
# ALMACENAMIENTO
# ═══════════════════════════════════════════════════════════════════════════

# Directorio donde viven los archivos JSON de cada tabla
DATA_DIR = os.environ.get('SHIPDASH_DATA_DIR') or os.path.join(BASE, 'data')

# Segundos máximos de espera por el lock de una tabla
STORE_TIMEOUT = _env_float('SHIPDASH_STORE_TIMEOUT', 5.0)

# Nombres de tablas
TABLE_CUSTOMERS = 'customers'
TABLE_SHIPMENTS = 'shipments'
TABLE_PARTIAL_SHIPMENTS = 'partial_shipments'
TABLE_PACKAGES = 'packages'
TABLE_PARTIAL_SHIPMENT_ITEMS = 'partial_shipment_items'
TABLE_NOTES = 'notes'
TABLE_USERS = 'users'
TABLE_AUDIT_LOGS = 'audit_logs'
TABLE_COUNTERS = 'counters'

# ═══════════════════════════════════════════════════════════════════════════
# ARCHIVOS SUBIDOS (imágenes de notas)
# ═══════════════════════════════════════════════════════════════════════════

UPLOAD_DIR = os.environ.get('SHIPDASH_UPLOAD_DIR') or os.path.join(BASE, 'static', 'uploads')
UPLOAD_URL_PREFIX = '/uploads'
ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'pdf'}

# ═══════════════════════════════════════════════════════════════════════════
# LOGGING Y PROFILING
# ═══════════════════════════════════════════════════════════════════════════

LOG_LEVEL = (os.environ.get('SHIPDASH_LOG_LEVEL') or 'INFO').upper()
ENABLE_PROFILING = _env_bool('SHIPDASH_PROFILING', True)
LOGS_DIR = os.environ.get('SHIPDASH_LOGS_DIR') or os.path.join(BASE, 'logs')

# Milisegundos a partir de los cuales una operación se anota como lenta / crítica
SLOW_WARNING_MS = _env_float('SHIPDASH_SLOW_WARNING_MS', 300.0)
SLOW_CRITICAL_MS = _env_float('SHIPDASH_SLOW_CRITICAL_MS', 700.0)

# Clave de sesión donde el colaborador de autenticación guarda el id de usuario
SESSION_USER_ID_KEY = 'user_id'
