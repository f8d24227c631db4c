# ==============================================================================
# CONTENEDOR - almacén, repositorios y servicios de shipdash
# ==============================================================================
# Un único punto donde se arma el grafo de objetos. Los servicios se crean la
# primera vez que se piden y comparten el mismo TableStore.
#
# En tests se inyectan las piezas externas:
#
#   container = AppContainer(store=InMemoryTableStore(), current_user=fixed_user(1))
# ==============================================================================

import threading
from typing import Optional

from shipdash.auth import CurrentUserResolver, get_user_id_from_session
from shipdash.upload import LocalUploadStorage
from shipdash.repositories import (
    TableStore,
    JSONTableStore,
    CustomerRepository,
    ShipmentRepository,
    PartialShipmentRepository,
    PackageRepository,
    PartialShipmentItemRepository,
    NoteRepository,
    UserRepository,
    AuditRepository,
)
from shipdash.services import (
    AuditService,
    HydrationService,
    StatsService,
    NoteService,
    CustomerService,
    ShipmentService,
    PartialShipmentService,
    UserService,
)


class AppContainer:
    """
    Punto de acceso a los servicios del tablero de envíos.

    Hay un solo contenedor por proceso; cada repositorio o servicio se
    construye una vez y se reutiliza hasta ``reset()``.

    Uso:
        container = AppContainer(data_dir='/srv/shipdash/data')
        container.partial_shipment_service.transfer_partial_shipment(1, 7, 2)
    """

    _instance: Optional['AppContainer'] = None
    _instance_lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
        return cls._instance

    def __init__(
        self,
        data_dir: str = None,
        store: Optional[TableStore] = None,
        current_user: Optional[CurrentUserResolver] = None,
        upload_storage=None
    ):
        """
        Las llamadas posteriores a la primera ignoran sus argumentos.

        Args:
            data_dir: Directorio de los JSON (None usa config.DATA_DIR)
            store: Almacén ya construido (tiene prioridad sobre data_dir)
            current_user: Resolver del usuario actual (por defecto la sesión Flask)
            upload_storage: Colaborador de archivos (por defecto disco local)
        """
        if self._initialized:
            return

        self._data_dir = data_dir
        self._store = store
        self._current_user = current_user or get_user_id_from_session
        self._upload_storage = upload_storage
        self._cache = {}
        self._initialized = True

    def _lazy(self, name, factory):
        if name not in self._cache:
            self._cache[name] = factory()
        return self._cache[name]

    # =========================================================================
    # ALMACÉN Y COLABORADORES
    # =========================================================================

    @property
    def store(self) -> TableStore:
        """JSONTableStore sobre data_dir salvo que se haya inyectado otro."""
        if self._store is None:
            self._store = JSONTableStore(self._data_dir)
        return self._store

    @property
    def current_user(self) -> CurrentUserResolver:
        return self._current_user

    @property
    def upload_storage(self):
        if self._upload_storage is None:
            self._upload_storage = LocalUploadStorage()
        return self._upload_storage

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def customer_repo(self) -> CustomerRepository:
        return self._lazy('customer_repo', lambda: CustomerRepository(self.store))

    @property
    def shipment_repo(self) -> ShipmentRepository:
        return self._lazy('shipment_repo', lambda: ShipmentRepository(self.store))

    @property
    def partial_repo(self) -> PartialShipmentRepository:
        return self._lazy('partial_repo', lambda: PartialShipmentRepository(self.store))

    @property
    def package_repo(self) -> PackageRepository:
        return self._lazy('package_repo', lambda: PackageRepository(self.store))

    @property
    def item_repo(self) -> PartialShipmentItemRepository:
        return self._lazy('item_repo', lambda: PartialShipmentItemRepository(self.store))

    @property
    def note_repo(self) -> NoteRepository:
        return self._lazy('note_repo', lambda: NoteRepository(self.store))

    @property
    def user_repo(self) -> UserRepository:
        return self._lazy('user_repo', lambda: UserRepository(self.store))

    @property
    def audit_repo(self) -> AuditRepository:
        return self._lazy('audit_repo', lambda: AuditRepository(self.store))

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        """Compartido por todos los servicios que escriben."""
        return self._lazy('audit_service', lambda: AuditService(self.audit_repo))

    @property
    def hydration_service(self) -> HydrationService:
        return self._lazy('hydration_service', lambda: HydrationService(
            self.customer_repo,
            self.shipment_repo,
            self.partial_repo,
            self.package_repo,
            self.item_repo,
            self.note_repo,
        ))

    @property
    def stats_service(self) -> StatsService:
        return self._lazy('stats_service', lambda: StatsService(
            self.customer_repo,
            self.shipment_repo,
            self.partial_repo,
            self.package_repo,
            self.item_repo,
            self.user_repo,
        ))

    @property
    def note_service(self) -> NoteService:
        return self._lazy('note_service', lambda: NoteService(
            self.note_repo,
            self.customer_repo,
            self.shipment_repo,
            self.partial_repo,
            audit_service=self.audit_service,
            current_user=self.current_user,
            upload_storage=self.upload_storage,
        ))

    @property
    def customer_service(self) -> CustomerService:
        return self._lazy('customer_service', lambda: CustomerService(
            self.customer_repo,
            self.note_service,
            audit_service=self.audit_service,
            current_user=self.current_user,
        ))

    @property
    def shipment_service(self) -> ShipmentService:
        return self._lazy('shipment_service', lambda: ShipmentService(
            self.shipment_repo,
            self.partial_repo,
            self.package_repo,
            self.note_service,
            audit_service=self.audit_service,
            current_user=self.current_user,
        ))

    @property
    def partial_shipment_service(self) -> PartialShipmentService:
        return self._lazy('partial_shipment_service', lambda: PartialShipmentService(
            self.partial_repo,
            self.shipment_repo,
            self.customer_repo,
            self.package_repo,
            self.item_repo,
            self.note_service,
            audit_service=self.audit_service,
            current_user=self.current_user,
        ))

    @property
    def user_service(self) -> UserService:
        return self._lazy('user_service', lambda: UserService(self.user_repo, self.audit_service))

    # =========================================================================
    # CICLO DE VIDA
    # =========================================================================

    def reset(self) -> None:
        """Descarta repositorios y servicios construidos; el almacén sigue igual."""
        self._cache.clear()

    @classmethod
    def get_instance(cls, **kwargs) -> 'AppContainer':
        """Devuelve el contenedor del proceso, creándolo con ``kwargs`` si no existe."""
        current = cls._instance
        return current if current is not None else cls(**kwargs)

    @classmethod
    def reset_instance(cls) -> None:
        """Olvida el contenedor del proceso; el siguiente se arma de cero."""
        with cls._instance_lock:
            if cls._instance is not None:
                cls._instance.reset()
                cls._instance = None


def get_container(**kwargs) -> AppContainer:
    return AppContainer.get_instance(**kwargs)
