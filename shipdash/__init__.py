# ==============================================================================
# SHIPDASH - Núcleo de datos del tablero de envíos
# ==============================================================================
# Capas:
# ├── repositories/  → almacén de tablas y repositorios por entidad
# ├── services/      → operaciones de dominio, hidratación y estadísticas
# ├── models/        → entidades (dataclasses)
# └── app_container  → cableado de dependencias
# ==============================================================================

__version__ = '1.0.0'
