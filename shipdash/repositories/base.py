# ==============================================================================
# REPOSITORIO BASE - Acceso tipado a una tabla del almacén
# ==============================================================================

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from shipdash.errors import NotFoundError, parse_id
from shipdash.repositories.interfaces import ITableStore

T = TypeVar('T')


class EntityRepository(Generic[T]):
    """
    Repositorio genérico para una entidad guardada en una tabla.

    Cada subclase define:
        table: Nombre de la tabla en el almacén
        entity_class: Dataclass con to_dict() / from_dict()

    Las escrituras parciales (update) reciben el conjunto explícito de
    campos a cambiar; los valores numéricos acumulados se modifican solo
    con increment(), nunca leyendo y reescribiendo.
    """

    table: str = ''
    entity_class: Type[T] = None

    def __init__(self, store: ITableStore):
        """
        Args:
            store: Almacén de tablas compartido
        """
        self.store = store

    def _to_entity(self, record: Optional[Dict[str, Any]]) -> Optional[T]:
        if record is None:
            return None
        return self.entity_class.from_dict(record)

    def create(self, entity: T) -> T:
        """
        Persiste una entidad nueva. Si no trae id se reserva uno con next_id.

        Returns:
            La misma entidad, ya con su id
        """
        if getattr(entity, 'id', None) is None:
            entity.id = self.store.next_id(self.table)
        self.store.put(self.table, entity.to_dict())
        return entity

    def get_by_id(self, entity_id: Any) -> Optional[T]:
        """
        Obtiene una entidad por id.

        Args:
            entity_id: Id (int o str numérico)

        Returns:
            Entidad o None si no existe

        Raises:
            InvalidArgumentError: Si el id no es numérico
        """
        return self._to_entity(self.store.get(self.table, parse_id(entity_id)))

    def require(self, entity_id: Any) -> T:
        """Como get_by_id pero lanza NotFoundError si no existe."""
        entity = self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f'{self.table} {entity_id} no existe')
        return entity

    def list(self) -> List[T]:
        """Lista todas las entidades. El orden no está garantizado."""
        return [self.entity_class.from_dict(r) for r in self.store.scan(self.table)]

    def update(self, entity_id: Any, fields: Dict[str, Any]) -> T:
        """
        Actualiza solo los campos indicados (None elimina el campo).

        Raises:
            NotFoundError: Si la entidad no existe
        """
        record = self.store.update(self.table, parse_id(entity_id), fields)
        return self.entity_class.from_dict(record)

    def increment(self, entity_id: Any, deltas: Dict[str, float]) -> T:
        """Suma atómicamente los deltas a los campos numéricos."""
        record = self.store.increment(self.table, parse_id(entity_id), deltas)
        return self.entity_class.from_dict(record)

    def delete(self, entity_id: Any) -> None:
        """Elimina la entidad; no hace nada si no existe."""
        self.store.delete(self.table, parse_id(entity_id))

    def find_all_by(self, field: str, value: Any) -> List[T]:
        """
        Busca todas las entidades con field == value (escaneo completo).

        Args:
            field: Nombre del campo en el registro persistido
            value: Valor a buscar
        """
        return [
            self.entity_class.from_dict(r)
            for r in self.store.scan(self.table)
            if r.get(field) == value
        ]


__all__ = ['EntityRepository']
