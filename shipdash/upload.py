# ==============================================================================
# ALMACENAMIENTO DE ARCHIVOS SUBIDOS (imágenes de notas)
# ==============================================================================
# Guarda el archivo en disco y devuelve una referencia opaca (URL relativa)
# que el núcleo guarda tal cual en la lista de imágenes de la nota.
#
# Ruta en disco:   <UPLOAD_DIR>/<carpeta>/<uuid>-<nombre seguro>
# Referencia:      /uploads/<carpeta>/<uuid>-<nombre seguro>
# ==============================================================================

import os
import uuid
from typing import Iterable, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from shipdash import config
from shipdash.errors import InvalidArgumentError, StoreUnavailableError
from shipdash.logging_setup import get_logger

LOG = get_logger('shipdash.upload')


class LocalUploadStorage:
    """
    Colaborador de persistencia de archivos en disco local.

    Se usa como función: storage(upload, folder) -> referencia
    """

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        url_prefix: str = config.UPLOAD_URL_PREFIX,
        allowed_extensions: Optional[Iterable[str]] = None
    ):
        self.upload_dir = upload_dir or config.UPLOAD_DIR
        self.url_prefix = url_prefix.rstrip('/')
        self.allowed_extensions = {
            ext.lower() for ext in (allowed_extensions or config.ALLOWED_EXTENSIONS)
        }

    def allowed_file(self, filename: str) -> bool:
        return '.' in filename and filename.rsplit('.', 1)[1].lower() in self.allowed_extensions

    def save(self, upload: FileStorage, folder: str) -> str:
        """
        Guarda un archivo subido.

        Args:
            upload: Archivo recibido (werkzeug FileStorage)
            folder: Subcarpeta lógica (p. ej. 'notes')

        Returns:
            Referencia '/uploads/<carpeta>/<archivo>'

        Raises:
            InvalidArgumentError: Nombre vacío, carpeta inválida o extensión no permitida
            StoreUnavailableError: Si no se pudo escribir en disco
        """
        safe_folder = secure_filename(folder or '')
        if not safe_folder:
            raise InvalidArgumentError(f'Carpeta inválida: {folder!r}')

        filename = secure_filename(upload.filename or '')
        if not filename:
            raise InvalidArgumentError('El archivo no tiene nombre')
        if not self.allowed_file(filename):
            raise InvalidArgumentError(f'Extensión no permitida: {filename}')

        stored_name = f'{uuid.uuid4().hex}-{filename}'
        target_dir = os.path.join(self.upload_dir, safe_folder)
        try:
            os.makedirs(target_dir, exist_ok=True)
            upload.save(os.path.join(target_dir, stored_name))
        except OSError as e:
            LOG.error("No se pudo guardar %s: %s", stored_name, e)
            raise StoreUnavailableError(f'No se pudo guardar el archivo {filename}: {e}')

        LOG.info("Archivo guardado: %s/%s", safe_folder, stored_name)
        return f'{self.url_prefix}/{safe_folder}/{stored_name}'

    __call__ = save


__all__ = ['LocalUploadStorage']
