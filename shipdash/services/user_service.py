# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Registro y autenticación de usuarios.
#
# Las contraseñas se guardan SOLO como hash Werkzeug. La emisión de la
# sesión (cookie) corresponde a la capa web; aquí solo se verifica.
# ==============================================================================

import threading
from typing import Any, Dict, List, Optional

from werkzeug.security import generate_password_hash, check_password_hash

from shipdash.errors import ConflictError, InvalidArgumentError
from shipdash.logging_setup import get_logger, log_errors
from shipdash.models import User, utc_now_iso
from shipdash.performance_logger import profile_function
from shipdash.repositories import UserRepository
from shipdash.services.audit_service import AuditService

LOG = get_logger('shipdash.users')


class UserService:
    """
    Servicio para gestión de usuarios.

    Responsabilidades:
    - Registro con nombre único y contraseña hasheada
    - Autenticación (verificación de contraseña)
    - Consultas sin exponer el hash
    """

    # Serializa el chequeo de unicidad + alta dentro del proceso
    _register_lock = threading.Lock()

    def __init__(self, user_repo: UserRepository, audit_service: AuditService = None):
        """
        Args:
            user_repo: Repositorio de usuarios
            audit_service: Servicio de auditoría (opcional)
        """
        self.user_repo = user_repo
        self.audit_service = audit_service

    # =========================================================================
    # REGISTRO
    # =========================================================================

    @log_errors(LOG)
    @profile_function
    def register(self, username: str, password: str) -> User:
        """
        Registra un nuevo usuario.

        Args:
            username: Nombre de usuario (se eliminan espacios extremos)
            password: Contraseña en texto plano

        Returns:
            Usuario creado

        Raises:
            InvalidArgumentError: Nombre o contraseña vacíos
            ConflictError: Si el nombre ya existe
        """
        username = (username or '').strip()
        if not username:
            raise InvalidArgumentError('Nombre de usuario requerido')
        if not password:
            raise InvalidArgumentError('Contraseña requerida')

        with self._register_lock:
            if self.user_repo.user_exists(username):
                raise ConflictError(f'El usuario {username} ya existe')
            now = utc_now_iso()
            user = User(
                username=username,
                password_hash=generate_password_hash(password),
                created_at=now,
                updated_at=now,
            )
            self.user_repo.create(user)

        LOG.info("Usuario %s registrado (id %s)", username, user.id)
        if self.audit_service:
            self.audit_service.log_user_registered(user.id, username)
        return user

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    @profile_function
    def authenticate(self, username: str, password: str) -> Optional[User]:
        """
        Autentica un usuario.

        Returns:
            Usuario si las credenciales son válidas, None si no
        """
        user = self.user_repo.get_by_username((username or '').strip())
        if user is None or not user.password_hash:
            return None
        if not check_password_hash(user.password_hash, password or ''):
            LOG.info("Intento de inicio de sesión fallido para %s", username)
            return None

        if self.audit_service:
            self.audit_service.log_user_login(user.id, user.username)
        return user

    def change_password(self, user_id: Any, new_password: str) -> User:
        """
        Cambia la contraseña de un usuario.

        Raises:
            InvalidArgumentError: Contraseña vacía
            NotFoundError: Si el usuario no existe
        """
        if not new_password:
            raise InvalidArgumentError('Contraseña requerida')
        self.user_repo.require(user_id)
        return self.user_repo.update(user_id, {
            'password_hash': generate_password_hash(new_password),
            'updated_at': utc_now_iso(),
        })

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_user(self, user_id: Any) -> Optional[Dict[str, Any]]:
        """Datos públicos del usuario (sin hash) o None."""
        user = self.user_repo.get_by_id(user_id)
        return user.to_public_dict() if user else None

    def get_all_users(self) -> List[Dict[str, Any]]:
        return [u.to_public_dict() for u in sorted(self.user_repo.list(), key=lambda u: u.id)]


__all__ = ['UserService']
