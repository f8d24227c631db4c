# ==============================================================================
# ALMACÉN DE TABLAS - Persistencia clave-valor sin esquema
# ==============================================================================
# Una tabla es un conjunto de registros (dict) indexados por su `id`.
# Operaciones: get, put, update, increment, delete, next_id, scan.
#
# CONCURRENCIA:
# Cada tabla tiene su propio lock con timeout (STORE_TIMEOUT). Toda
# operación lo toma, de modo que increment y next_id son atómicos
# (leer-modificar-escribir bajo el lock de la tabla). Si el lock no se
# obtiene a tiempo se lanza StoreUnavailableError; nunca se reintenta.
#
# IMPLEMENTACIONES:
# ├── JSONTableStore     → un archivo <tabla>.json por tabla (escritura atómica)
# └── InMemoryTableStore → diccionarios en memoria (tests, embebido)
# ==============================================================================

import copy
import json
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from numbers import Number
from typing import Any, Dict, List, Optional

from shipdash import config
from shipdash.errors import NotFoundError, InvalidArgumentError, StoreUnavailableError
from shipdash.logging_setup import get_logger
from shipdash.performance_logger import profile_function

LOG = get_logger('shipdash.store')

Record = Dict[str, Any]


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


class TableStore(ABC):
    """
    Clase base abstracta del almacén de tablas.

    Las subclases solo implementan cómo se carga y se guarda una tabla
    completa (_load_table / _save_table). La semántica de cada operación
    y el manejo de locks viven aquí.

    Los registros devueltos son copias: modificarlos no altera el almacén.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Segundos máximos de espera por el lock de una tabla.
                     None usa config.STORE_TIMEOUT.
        """
        self.timeout = config.STORE_TIMEOUT if timeout is None else timeout
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # ─── Persistencia (a implementar) ─────────────────────────────────────

    @abstractmethod
    def _load_table(self, table: str) -> Dict[str, Record]:
        """
        Carga una tabla completa como {str(id): registro}.
        Una tabla que nunca se escribió se devuelve vacía.
        """
        pass

    @abstractmethod
    def _save_table(self, table: str, rows: Dict[str, Record]) -> None:
        """Guarda una tabla completa (reemplazo total)."""
        pass

    # ─── Locks ────────────────────────────────────────────────────────────

    def _lock_for(self, table: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(table)
            if lock is None:
                lock = threading.RLock()
                self._locks[table] = lock
            return lock

    @contextmanager
    def _locked(self, table: str):
        """Toma el lock de la tabla con timeout; lanza StoreUnavailableError si vence."""
        lock = self._lock_for(table)
        if not lock.acquire(timeout=self.timeout):
            LOG.error("Timeout esperando el lock de la tabla %s (%.1fs)", table, self.timeout)
            raise StoreUnavailableError(f'Tabla {table} ocupada: timeout de {self.timeout}s')
        try:
            yield
        finally:
            lock.release()

    # ─── Operaciones ──────────────────────────────────────────────────────

    @profile_function
    def get(self, table: str, key: Any) -> Optional[Record]:
        """
        Obtiene un registro por su clave.

        Returns:
            Copia del registro o None si no existe
        """
        with self._locked(table):
            row = self._load_table(table).get(str(key))
            return copy.deepcopy(row) if row is not None else None

    @profile_function
    def put(self, table: str, record: Record) -> None:
        """
        Inserta o sobrescribe un registro completo (sin condiciones).

        Raises:
            InvalidArgumentError: Si el registro no trae `id`
        """
        if record.get('id') is None:
            raise InvalidArgumentError(f'El registro para {table} no tiene id')
        with self._locked(table):
            rows = self._load_table(table)
            rows[str(record['id'])] = copy.deepcopy(record)
            self._save_table(table, rows)

    @profile_function
    def update(self, table: str, key: Any, fields: Dict[str, Any]) -> Record:
        """
        Mezcla solo los campos indicados en el registro existente.

        Un campo con valor None se elimina del registro, así los atributos
        opcionales quedan ausentes y no guardados como null.

        Returns:
            Copia del registro actualizado

        Raises:
            NotFoundError: Si la clave no existe
        """
        with self._locked(table):
            rows = self._load_table(table)
            row = rows.get(str(key))
            if row is None:
                raise NotFoundError(f'{table} {key} no existe')
            for name, value in fields.items():
                if name == 'id':
                    continue
                if value is None:
                    row.pop(name, None)
                else:
                    row[name] = copy.deepcopy(value)
            self._save_table(table, rows)
            return copy.deepcopy(row)

    @profile_function
    def increment(self, table: str, key: Any, deltas: Dict[str, float]) -> Record:
        """
        Suma atómicamente cada delta al valor actual del campo.

        Un campo ausente cuenta como 0. Los deltas en cero se omiten y si
        todos son cero no se escribe nada.

        Returns:
            Copia del registro después del incremento

        Raises:
            NotFoundError: Si la clave no existe (nunca crea registros)
            InvalidArgumentError: Si un delta o el valor actual no es numérico
        """
        for name, delta in deltas.items():
            if not _is_number(delta):
                raise InvalidArgumentError(f'Delta no numérico para {name}: {delta!r}')

        with self._locked(table):
            rows = self._load_table(table)
            row = rows.get(str(key))
            if row is None:
                raise NotFoundError(f'{table} {key} no existe')

            new_values = {}
            for name, delta in deltas.items():
                if delta == 0:
                    continue
                current = row.get(name, 0)
                if not _is_number(current):
                    raise InvalidArgumentError(
                        f'{table}.{name} no es numérico: {current!r}'
                    )
                new_values[name] = current + delta

            if new_values:
                row.update(new_values)
                self._save_table(table, rows)
            return copy.deepcopy(row)

    @profile_function
    def delete(self, table: str, key: Any) -> None:
        """Elimina un registro; no hace nada si no existe."""
        with self._locked(table):
            rows = self._load_table(table)
            if rows.pop(str(key), None) is not None:
                self._save_table(table, rows)

    @profile_function
    def next_id(self, table: str) -> int:
        """
        Reserva el siguiente id de una tabla (1, 2, 3, ...).

        El contador vive en la tabla de contadores y se incrementa bajo su
        lock, así dos llamadas concurrentes nunca obtienen el mismo id.
        """
        counters = config.TABLE_COUNTERS
        with self._locked(counters):
            rows = self._load_table(counters)
            row = rows.get(table) or {'id': table, 'value': 0}
            row['value'] = int(row.get('value', 0)) + 1
            rows[table] = row
            self._save_table(counters, rows)
            return row['value']

    @profile_function
    def scan(self, table: str) -> List[Record]:
        """Devuelve todos los registros de la tabla (orden de inserción)."""
        with self._locked(table):
            return [copy.deepcopy(row) for row in self._load_table(table).values()]


class InMemoryTableStore(TableStore):
    """Almacén en memoria. Útil para tests y uso embebido."""

    def __init__(self, timeout: Optional[float] = None):
        super().__init__(timeout)
        self._tables: Dict[str, Dict[str, Record]] = {}

    def _load_table(self, table: str) -> Dict[str, Record]:
        return self._tables.setdefault(table, {})

    def _save_table(self, table: str, rows: Dict[str, Record]) -> None:
        self._tables[table] = rows


class JSONTableStore(TableStore):
    """
    Almacén respaldado por archivos JSON: <data_dir>/<tabla>.json

    Formato de cada archivo:
    {
        "1": {"id": 1, "name": "Ada", ...},
        "2": {"id": 2, ...}
    }

    No hay caché: cada operación relee el archivo, de modo que varias
    instancias sobre el mismo directorio ven los mismos datos.
    """

    def __init__(self, data_dir: Optional[str] = None, timeout: Optional[float] = None):
        """
        Args:
            data_dir: Directorio de los archivos. None usa config.DATA_DIR.
            timeout: Ver TableStore
        """
        super().__init__(timeout)
        self.data_dir = data_dir or config.DATA_DIR
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(f'No se pudo crear {self.data_dir}: {e}')

    def _path(self, table: str) -> str:
        return os.path.join(self.data_dir, f'{table}.json')

    def _load_table(self, table: str) -> Dict[str, Record]:
        path = self._path(table)
        if not os.path.exists(path):
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            LOG.error("No se pudo leer la tabla %s: %s", table, e)
            raise StoreUnavailableError(f'No se pudo leer la tabla {table}: {e}')
        if not isinstance(data, dict):
            raise StoreUnavailableError(f'Formato inválido en la tabla {table}')
        return data

    def _save_table(self, table: str, rows: Dict[str, Record]) -> None:
        path = self._path(table)
        # Escribir a archivo temporal primero para atomicidad
        temp_path = path + '.tmp'
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            LOG.error("No se pudo escribir la tabla %s: %s", table, e)
            raise StoreUnavailableError(f'No se pudo escribir la tabla {table}: {e}')


__all__ = ['TableStore', 'InMemoryTableStore', 'JSONTableStore']
