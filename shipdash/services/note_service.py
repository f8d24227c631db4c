# ==============================================================================
# SERVICIO DE NOTAS
# ==============================================================================
# Una nota pertenece a un único dueño (cliente, lote o envío parcial) a
# través de su note_id. Reglas:
#   - Sin contenido ni imágenes no se crea nota.
#   - Si el dueño ya tiene nota, el contenido se sobrescribe en el lugar;
#     las imágenes, si se envían, reemplazan la lista.
# ==============================================================================

from typing import Any, Iterable, List, Optional

from werkzeug.datastructures import FileStorage

from shipdash import config
from shipdash.auth import CurrentUserResolver, anonymous_user, stamp_user
from shipdash.errors import InvalidArgumentError, parse_id, NotFoundError
from shipdash.logging_setup import get_logger
from shipdash.models import Note
from shipdash.performance_logger import profile_function
from shipdash.repositories import (
    NoteRepository,
    CustomerRepository,
    ShipmentRepository,
    PartialShipmentRepository,
)
from shipdash.services.audit_service import AuditService

LOG = get_logger('shipdash.notes')


class NoteService:
    """
    Servicio de notas.

    Args:
        note_repo: Repositorio de notas
        customer_repo, shipment_repo, partial_repo: Dueños posibles de una nota
        audit_service: Auditoría (opcional)
        current_user: Resolver del usuario actual
        upload_storage: Colaborador que guarda imágenes: (upload, carpeta) -> referencia
    """

    def __init__(
        self,
        note_repo: NoteRepository,
        customer_repo: CustomerRepository,
        shipment_repo: ShipmentRepository,
        partial_repo: PartialShipmentRepository,
        audit_service: AuditService = None,
        current_user: CurrentUserResolver = anonymous_user,
        upload_storage=None
    ):
        self.note_repo = note_repo
        self.audit_service = audit_service
        self.current_user = current_user
        self.upload_storage = upload_storage
        self._owners = {
            config.TABLE_CUSTOMERS: customer_repo,
            config.TABLE_SHIPMENTS: shipment_repo,
            config.TABLE_PARTIAL_SHIPMENTS: partial_repo,
        }

    @staticmethod
    def validate_input(content: Any, images: Optional[Iterable[str]]) -> Optional[List[str]]:
        if content is not None and not isinstance(content, str):
            raise InvalidArgumentError('El contenido de la nota debe ser texto')
        if images is None:
            return None
        images = list(images)
        if not all(isinstance(ref, str) for ref in images):
            raise InvalidArgumentError('Las imágenes deben ser referencias de texto')
        return images

    # =========================================================================
    # CREACIÓN
    # =========================================================================

    def create_note(
        self,
        content: Optional[str] = None,
        images: Optional[Iterable[str]] = None
    ) -> Optional[Note]:
        """
        Crea una nota solo si hay contenido o imágenes.

        Returns:
            La nota creada, o None si no había nada que guardar
        """
        images = self.validate_input(content, images)
        note = Note(content=content or '', images=images or [])
        if note.is_empty:
            return None
        user_id = self.current_user()
        note.user_id = user_id
        stamps = stamp_user(user_id, creating=True)
        note.created_by_user_id = stamps.get('created_by_user_id')
        note.updated_by_user_id = stamps.get('updated_by_user_id')
        return self.note_repo.create(note)

    def save_images(self, uploads: Iterable[FileStorage], folder: str = 'notes') -> List[str]:
        """
        Guarda imágenes subidas con el colaborador de archivos.

        Returns:
            Referencias en el mismo orden que los archivos

        Raises:
            InvalidArgumentError: Si no hay colaborador configurado
        """
        if self.upload_storage is None:
            raise InvalidArgumentError('No hay almacenamiento de archivos configurado')
        return [self.upload_storage(upload, folder) for upload in uploads]

    # =========================================================================
    # NOTA DE UN DUEÑO
    # =========================================================================

    @profile_function
    def update_owner_note(
        self,
        owner_table: str,
        owner_id: Any,
        content: Optional[str] = None,
        images: Optional[Iterable[str]] = None
    ) -> Optional[Note]:
        """
        Sobrescribe o crea la nota de un dueño.

        Args:
            owner_table: customers, shipments o partial_shipments
            owner_id: Id del dueño
            content: Nuevo contenido
            images: Nueva lista de imágenes (None conserva la actual)

        Returns:
            Nota resultante, o None si no había nota ni nada que guardar

        Raises:
            InvalidArgumentError: Tabla de dueño desconocida o datos inválidos
            NotFoundError: Si el dueño no existe
        """
        repo = self._owners.get(owner_table)
        if repo is None:
            raise InvalidArgumentError(f'Las notas no aplican a {owner_table}')
        owner_id = parse_id(owner_id, 'owner_id')
        images = self.validate_input(content, images)
        owner = repo.require(owner_id)
        user_id = self.current_user()

        if owner.note_id is not None and self.note_repo.get_by_id(owner.note_id) is not None:
            fields = {'content': content or ''}
            if images is not None:
                fields['images'] = images
            fields.update(stamp_user(user_id))
            note = self.note_repo.update(owner.note_id, fields)
        else:
            note = self.create_note(content, images)
            if note is None:
                return None
            owner_fields = {'note_id': note.id}
            owner_fields.update(stamp_user(user_id))
            repo.update(owner_id, owner_fields)

        LOG.info("Nota %s guardada en %s %s", note.id, owner_table, owner_id)
        if self.audit_service:
            self.audit_service.log_note_saved(user_id, note.id, owner_table, owner_id)
        return note

    def update_customer_note(self, customer_id: Any, content: Optional[str], images=None) -> Optional[Note]:
        return self.update_owner_note(config.TABLE_CUSTOMERS, customer_id, content, images)

    def update_shipment_note(self, shipment_id: Any, content: Optional[str], images=None) -> Optional[Note]:
        return self.update_owner_note(config.TABLE_SHIPMENTS, shipment_id, content, images)

    def update_partial_shipment_note(
        self,
        shipment_id: Any,
        partial_id: Any,
        content: Optional[str],
        images=None
    ) -> Optional[Note]:
        """
        Nota de un envío parcial, verificando que pertenezca al lote.

        Raises:
            NotFoundError: Si el envío no existe o es de otro lote
        """
        shipment_id = parse_id(shipment_id, 'shipment_id')
        partial = self._owners[config.TABLE_PARTIAL_SHIPMENTS].get_by_id(partial_id)
        if partial is None or partial.shipment_id != shipment_id:
            raise NotFoundError(f'Envío parcial {partial_id} no encontrado en el lote {shipment_id}')
        return self.update_owner_note(config.TABLE_PARTIAL_SHIPMENTS, partial.id, content, images)

    def delete_note(self, note_id: Optional[int]) -> None:
        """Elimina una nota; None no hace nada."""
        if note_id is not None:
            self.note_repo.delete(note_id)


__all__ = ['NoteService']
