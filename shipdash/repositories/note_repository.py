# ==============================================================================
# REPOSITORIOS DE NOTAS, USUARIOS Y AUDITORÍA
# ==============================================================================
# Tablas: notes, users, audit_logs
# ==============================================================================

from typing import List, Optional

from shipdash import config
from shipdash.models import Note, User, AuditLog
from shipdash.repositories.base import EntityRepository


class NoteRepository(EntityRepository[Note]):
    """Repositorio de notas (una nota pertenece a un único dueño)."""

    table = config.TABLE_NOTES
    entity_class = Note


class UserRepository(EntityRepository[User]):
    """
    Repositorio de usuarios.

    Formato de cada registro en users:
    {"id": 1, "username": "ada", "password_hash": "scrypt:...", "created_at": ...}
    """

    table = config.TABLE_USERS
    entity_class = User

    def get_by_username(self, username: str) -> Optional[User]:
        """
        Obtiene un usuario por su nombre.

        Returns:
            Usuario o None
        """
        matches = self.find_all_by('username', username)
        return matches[0] if matches else None

    def user_exists(self, username: str) -> bool:
        return self.get_by_username(username) is not None


class AuditRepository(EntityRepository[AuditLog]):
    """Repositorio del log de auditoría (solo se agrega, nunca se edita)."""

    table = config.TABLE_AUDIT_LOGS
    entity_class = AuditLog

    def log(self, entry: AuditLog) -> AuditLog:
        """Registra un evento de auditoría."""
        return self.create(entry)

    def load(self, limit: Optional[int] = None) -> List[AuditLog]:
        """
        Carga los logs ordenados por timestamp (más recientes primero).

        Args:
            limit: Cantidad máxima de registros
        """
        logs = sorted(self.list(), key=lambda x: x.timestamp, reverse=True)
        return logs[:limit] if limit else logs

    def find_by_related(self, related_table: str, related_id: int) -> List[AuditLog]:
        return [
            log for log in self.load()
            if log.related_table == related_table and log.related_id == related_id
        ]
