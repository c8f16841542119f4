# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Path-addressed filesystem facade over object storage.

:class:`ObjectStoreFS` is what a host I/O runtime talks to. Paths are
``swift://<container>/<object name>`` URLs. Files are opened as
:class:`~objectstore_sdk.fs.session.StreamSession` objects; directories are
emulated from name prefixes.

Usage:
    fs = ObjectStoreFS(Session.from_profile())
    with fs.open('swift://docs/notes/today.txt', 'w') as f:
        f.write(b'hello')
    fs.listdir('swift://docs/notes')        # ['today.txt']
    fs.rename('swift://docs/notes/today.txt', 'swift://archive/today.txt')

Conventions follow the os module: :meth:`stat` raises when nothing exists at
a path, while :meth:`exists`, :meth:`isdir`, :meth:`unlink`, :meth:`mkdir`
and :meth:`rmdir` answer with booleans.
"""
import threading
import time
from typing import List, Optional

from ..client.container import Container
from ..client.exceptions import ConfigurationError, NotFoundError
from ..client.identity import IdentityService, ServiceCatalogCache, service_catalog_cache
from ..client.object_storage import ObjectStorage
from ..client.session import Session
from ..client.transport import HttpTransport
from .directory import DirectoryEmulator, DirectoryHandle
from .paths import ObjectPath
from .session import StreamSession
from .stat import DEFAULT_FAKE_STAT_MODE, FileStat, StatSynthesizer
from .utils import logger, time_function, trace_op


class ObjectStoreFS:
    """
    Filesystem operations on ``swift://`` URLs.

    Args:
        session (Session): Endpoint and credential settings
        transport (HttpTransport, optional): Transport; built from the
            session's timeout and retry settings when omitted
        catalog_cache (ServiceCatalogCache, optional): Token to catalog
            cache. Defaults to the process-wide cache.
        fake_isdir (bool): Report every missing path as a directory.
            Defaults to False.
        fake_stat_mode (int): Permission bits of synthesized directories
    """

    def __init__(self, session: Optional[Session] = None, transport: Optional[HttpTransport] = None,
                 catalog_cache: Optional[ServiceCatalogCache] = None, fake_isdir: bool = False,
                 fake_stat_mode: int = DEFAULT_FAKE_STAT_MODE):
        self.session = session or Session()
        self.transport = transport or HttpTransport(timeout=self.session.timeout,
                                                    max_retries=self.session.max_retries)
        self.catalog_cache = catalog_cache if catalog_cache is not None else service_catalog_cache
        self.fake_isdir = fake_isdir
        self.stat_synthesizer = StatSynthesizer(fake_stat_mode)
        self._store: Optional[ObjectStorage] = None
        self._store_lock = threading.Lock()

    def object_storage(self) -> ObjectStorage:
        """
        Resolve the object storage endpoint, authenticating if needed.

        In order of preference: a token with an explicit endpoint; a token
        whose catalog is cached; password authentication, which refreshes the
        catalog cache.

        Raises:
            ConfigurationError: If the settings allow none of these
            AuthenticationError: If authentication fails
        """
        with self._store_lock:
            if self._store is None:
                self._store = self._initialize_object_storage()
            return self._store

    def _initialize_object_storage(self) -> ObjectStorage:
        s = self.session
        if s.token and s.swift_endpoint:
            return ObjectStorage(s.token, s.swift_endpoint, self.transport)

        catalog = self.catalog_cache.get(s.token)
        if catalog is not None:
            logger.debug("Using cached service catalog")
            return ObjectStorage.new_from_service_catalog(catalog, s.token, s.region, self.transport)

        if not s.tenant_id and not s.tenant_name:
            raise ConfigurationError("Either a tenant id (tenant_id) or a tenant name (tenant_name) is required.")
        if not s.auth_url:
            raise ConfigurationError("An identity service endpoint (auth_url) is required.")
        if not s.username or not s.password:
            raise ConfigurationError("A username and password are required to authenticate.")

        start_time = time.time()
        identity = IdentityService(s.auth_url, self.transport).authenticate_as_user(
            s.username, s.password, s.tenant_id, s.tenant_name
        )
        self.catalog_cache.put(identity.token, identity.service_catalog)
        s.token = identity.token
        time_function("authenticate", start_time)
        return ObjectStorage.new_from_identity(identity, s.region, self.transport)

    def reauthenticate(self) -> ObjectStorage:
        """Drop the current token and endpoint and authenticate again."""
        with self._store_lock:
            self.session.token = None
            self._store = None
        return self.object_storage()

    def _container(self, path: ObjectPath) -> Container:
        if not path.container:
            raise ConfigurationError(f"No container name in {path}.")
        return self.object_storage().container(path.container)

    def open(self, url: str, mode: str = 'r') -> StreamSession:
        """
        Open an object as a stream session.

        Args:
            url (str): ``swift://container/name``
            mode (str): Open mode, see :mod:`objectstore_sdk.fs.modes`

        Returns:
            StreamSession: The open session
        """
        path = ObjectPath.parse(url)
        return StreamSession.open(
            self.object_storage(), path.container, path.name, mode,
            never_write_remote=self.session.never_write_remote,
            content_type=self.session.content_type,
            stat_synthesizer=self.stat_synthesizer,
        )

    def stat(self, url: str) -> FileStat:
        """
        Status of an object, container or synthesized directory.

        Raises:
            NotFoundError: If nothing exists at the path
        """
        trace_op("stat", url)
        path = ObjectPath.parse(url)
        container = self._container(path)
        if path.is_container:
            return self.stat_synthesizer.for_container(container)

        try:
            obj = container.proxy_object(path.name)
            return self.stat_synthesizer.for_object(obj, container)
        except NotFoundError:
            if self.fake_isdir or DirectoryEmulator(container).exists(path.name):
                return self.stat_synthesizer.for_directory()
            raise

    def exists(self, url: str) -> bool:
        try:
            self.stat(url)
        except NotFoundError:
            return False
        return True

    def isdir(self, url: str) -> bool:
        try:
            return self.stat(url).is_dir
        except NotFoundError:
            return False

    def isfile(self, url: str) -> bool:
        try:
            return self.stat(url).is_file
        except NotFoundError:
            return False

    def opendir(self, url: str) -> DirectoryHandle:
        """Open a directory for reading entry names one at a time."""
        trace_op("opendir", url)
        path = ObjectPath.parse(url)
        return DirectoryEmulator(self._container(path)).open(path.name)

    def listdir(self, url: str) -> List[str]:
        """
        Names directly inside a directory, without trailing separators.
        """
        trace_op("listdir", url)
        path = ObjectPath.parse(url)
        listing = DirectoryEmulator(self._container(path)).list(path.name)
        return [name.rstrip('/') for name in listing.names()]

    def rename(self, src: str, dst: str):
        """
        Move an object, across containers if needed.

        Copies server side, then deletes the source.

        Raises:
            NotFoundError: If the source does not exist
        """
        trace_op("rename", src, dst=dst)
        start_time = time.time()
        source = ObjectPath.parse(src)
        target = ObjectPath.parse(dst)
        if not source.name or not target.container or not target.name:
            raise ConfigurationError("Rename needs a container and an object name on both sides.")

        container = self._container(source)
        obj = container.proxy_object(source.name)
        container.copy(obj, target.name, target.container)
        container.delete(source.name)
        logger.info(f"Renamed {source} to {target}")
        time_function("rename", start_time)

    def unlink(self, url: str) -> bool:
        """
        Delete an object.

        Returns:
            bool: False if the object did not exist
        """
        trace_op("unlink", url)
        path = ObjectPath.parse(url)
        return self._container(path).delete(path.name)

    def mkdir(self, url: str) -> bool:
        """
        Emulated mkdir.

        Nothing is stored. Returns True when no object lives under the
        path yet, or always when ``fake_isdir`` is set.
        """
        trace_op("mkdir", url)
        if self.fake_isdir:
            return True
        path = ObjectPath.parse(url)
        if not path.container:
            return False
        try:
            container = self._container(path)
        except NotFoundError:
            return False
        return DirectoryEmulator(container).mkdir(path.name)

    def rmdir(self, url: str) -> bool:
        """
        Emulated rmdir.

        Nothing is deleted. Returns True when no object lives under the
        path.
        """
        trace_op("rmdir", url)
        path = ObjectPath.parse(url)
        if not path.container:
            return False
        try:
            container = self._container(path)
        except NotFoundError:
            return False
        return DirectoryEmulator(container).rmdir(path.name)

    def close(self):
        self.transport.close()
