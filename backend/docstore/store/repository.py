"""Repository facade over one document collection with lazy provisioning.

The client, database and collection are resolved on first use and reused
for the lifetime of the repository:

    client -> database (created if missing) -> collection (created if missing)

Reads are synchronous and materialize eagerly. Writes are coroutines that
run the blocking driver call in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.cursor import Cursor
from pymongo.database import Database
from pymongo.errors import CollectionInvalid

from docstore.config import StoreSettings, get_settings
from docstore.exceptions import (
    DocumentNotFoundError,
    PreconditionFailedError,
    ScanNotAllowedError,
)

from .config import DEFAULT_INDEXING_POLICY, DEFAULT_QUERY_OPTIONS, IndexingPolicy, QueryOptions
from .models import ETAG_FIELD, from_document, to_document
from .query import DOCUMENT_ID_FIELD, Filter, field_path, parse_raw_query

logger = logging.getLogger(__name__)

T = TypeVar("T")
EntityLike = BaseModel | Mapping[str, Any]
ClientFactory = Callable[..., MongoClient]

WILDCARD_KEY = "$**"

# Raw queries take caller options as-is; the scan check only applies to predicates
_NO_OPTIONS = QueryOptions()


class DocumentRepository:
    """Generic repository for the entities stored in one collection.

    One instance per collection, shared across requests. Configuration is
    read on first use, so a missing ``endpoint`` or ``database`` surfaces
    from the first operation rather than from the constructor.
    """

    def __init__(
        self,
        collection_name: str,
        settings: StoreSettings | None = None,
        client_factory: ClientFactory | None = None,
        indexing_policy: IndexingPolicy = DEFAULT_INDEXING_POLICY,
    ):
        if not collection_name:
            raise ValueError("collection_name cannot be empty")

        self.collection_id = collection_name
        self.indexing_policy = indexing_policy
        self._settings = settings
        self._client_factory = client_factory or MongoClient

        # Guards first-time provisioning of the memoized handles below
        self._lock = threading.RLock()
        self._database_id: str | None = None
        self._client: MongoClient | None = None
        self._database: Database | None = None
        self._collection: Collection | None = None

        logger.info(f"Initialized DocumentRepository (collection={collection_name})")

    def __enter__(self) -> DocumentRepository:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    @property
    def settings(self) -> StoreSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def database_id(self) -> str:
        """Database name from configuration, read once."""
        if self._database_id is None:
            self._database_id = self.settings.require("database")
        return self._database_id

    @property
    def client(self) -> MongoClient:
        """Client handle, created on first access and reused afterwards."""
        if self._client is not None:
            return self._client
        with self._lock:
            if self._client is None:
                self._client = self._create_client()
            return self._client

    @property
    def database(self) -> Database:
        return self.get_or_create_database()

    @property
    def collection(self) -> Collection:
        return self.get_or_create_collection()

    def _create_client(self) -> MongoClient:
        settings = self.settings
        endpoint = settings.require("endpoint")

        kwargs: dict[str, Any] = {
            "appname": settings.app_name,
            "serverSelectionTimeoutMS": settings.server_selection_timeout_ms,
        }
        if settings.auth_key:
            kwargs["username"] = settings.require("username")
            kwargs["password"] = settings.auth_key

        logger.info(f"Connecting to document store at {_sanitize_endpoint(endpoint)}")
        return self._client_factory(endpoint, **kwargs)

    def get_or_create_database(self) -> Database:
        """Use the configured database if it exists, otherwise create it.

        MongoDB creates a database together with its first collection. For a
        database that does not exist yet, the returned handle is usable at once
        but is only stored on the server after :meth:`get_or_create_collection`
        (or the first write) creates a collection in it.
        """
        if self._database is not None:
            return self._database
        with self._lock:
            if self._database is None:
                self._database = self._read_or_create_database()
            return self._database

    def _read_or_create_database(self) -> Database:
        name = self.database_id
        client = self.client

        if name in client.list_database_names():
            logger.debug(f"Using existing database '{name}'")
            return client.get_database(name)

        # MongoDB materializes the database with its first collection
        logger.info(f"Creating database '{name}'")
        return client.get_database(name)

    def get_or_create_collection(self) -> Collection:
        """Use the collection if it exists, otherwise create it with the indexing policy."""
        if self._collection is not None:
            return self._collection
        with self._lock:
            if self._collection is None:
                self._collection = self._read_or_create_collection(self.get_or_create_database())
            return self._collection

    def _read_or_create_collection(self, database: Database) -> Collection:
        name = self.collection_id

        if name in database.list_collection_names():
            logger.debug(f"Using existing collection '{database.name}.{name}'")
            return database.get_collection(name)

        logger.info(f"Creating collection '{database.name}.{name}'")
        try:
            collection = database.create_collection(name)
        except CollectionInvalid:
            # Another process created it between the lookup and the create
            logger.info(f"Collection '{database.name}.{name}' already created, reusing it")
            return database.get_collection(name)

        self._apply_indexing_policy(collection)
        return collection

    def _apply_indexing_policy(self, collection: Collection) -> None:
        for included in self.indexing_policy.included_paths:
            collection.create_index([(included.index_key, ASCENDING)], name=included.index_name)
            logger.info(f"Created index {included.index_name} on '{collection.name}'")

    def close(self) -> None:
        """Close the client handle and forget the provisioned chain."""
        with self._lock:
            if self._client is not None:
                self._client.close()
                logger.info(f"Closed DocumentRepository (collection={self.collection_id})")
            self._client = None
            self._database = None
            self._collection = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_items(
        self,
        model: type[T],
        query: Filter | str,
        options: QueryOptions | None = None,
    ) -> list[T]:
        """Return every entity matching a predicate or a raw query string.

        Predicates without ``options`` may scan non-indexed fields. Raw query
        strings are sent as written, with no scan check.
        """
        cursor = self._find(query, options)
        return [from_document(model, document) for document in cursor]

    def get_item(
        self,
        model: type[T],
        query: Filter | str,
        options: QueryOptions | None = None,
    ) -> T | None:
        """Return the first entity matching a predicate or raw query, or None."""
        cursor = self._find(query, options, limit=1)
        document = next(iter(cursor), None)
        return None if document is None else from_document(model, document)

    def get_item_by_id(self, model: type[T], id: str) -> T | None:
        """Point lookup by entity id."""
        document = self.collection.find_one({DOCUMENT_ID_FIELD: id})
        return None if document is None else from_document(model, document)

    def _find(self, query: Filter | str, options: QueryOptions | None, limit: int | None = None) -> Cursor:
        collection = self.collection

        if isinstance(query, Filter):
            options = options or DEFAULT_QUERY_OPTIONS
            if not options.enable_scan:
                self._check_indexed(collection, query)
            document_filter = query.to_mongo()
        elif isinstance(query, str):
            options = options or _NO_OPTIONS
            document_filter = parse_raw_query(query)
        else:
            raise TypeError(f"Expected a Filter or raw query string, got {type(query).__name__}")

        logger.debug(f"Querying '{self.collection_id}' with {document_filter}")
        cursor = collection.find(document_filter)

        if options.sort:
            cursor = cursor.sort([(field_path(name), direction) for name, direction in options.sort])
        limit = limit or options.limit
        if limit:
            cursor = cursor.limit(limit)
        if options.batch_size:
            cursor = cursor.batch_size(options.batch_size)
        if options.max_time_ms:
            cursor = cursor.max_time_ms(options.max_time_ms)
        return cursor

    def _check_indexed(self, collection: Collection, predicate: Filter) -> None:
        index_keys = {
            key
            for index in collection.index_information().values()
            for key, _direction in index["key"]
        }
        missing = [path for path in predicate.fields() if not _is_covered(path, index_keys)]
        if missing:
            raise ScanNotAllowedError(self.collection_id, missing)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_item(self, item: EntityLike) -> None:
        """Insert ``item`` as a new document.

        A duplicate id raises ``pymongo.errors.DuplicateKeyError``.
        """
        document = to_document(item)
        document[ETAG_FIELD] = _new_etag()
        await asyncio.to_thread(self._insert, document)

    def _insert(self, document: dict[str, Any]) -> None:
        self.collection.insert_one(document)
        logger.debug(f"Created document '{document[DOCUMENT_ID_FIELD]}' in '{self.collection_id}'")

    async def update_item(self, id: str, item: EntityLike, etag: str | None = None) -> None:
        """Replace the full content of the document with id ``id``.

        Raises DocumentNotFoundError if no such document exists. With
        ``etag``, the replace only applies while the stored etag still
        matches, otherwise PreconditionFailedError is raised.
        """
        document = to_document(item, document_id=id)
        document[ETAG_FIELD] = _new_etag()
        await asyncio.to_thread(self._replace, id, document, etag)

    def _replace(self, id: str, document: dict[str, Any], etag: str | None) -> None:
        collection = self.collection

        document_filter: dict[str, Any] = {DOCUMENT_ID_FIELD: id}
        if etag is not None:
            document_filter[ETAG_FIELD] = etag

        result = collection.replace_one(document_filter, document)
        if result.matched_count:
            logger.debug(f"Replaced document '{id}' in '{self.collection_id}'")
            return

        if etag is not None and collection.find_one({DOCUMENT_ID_FIELD: id}, {DOCUMENT_ID_FIELD: 1}):
            raise PreconditionFailedError(self.collection_id, id)
        raise DocumentNotFoundError(self.collection_id, id)


def _new_etag() -> str:
    return uuid.uuid4().hex


def _is_covered(path: str, index_keys: set[str]) -> bool:
    if path == DOCUMENT_ID_FIELD or path in index_keys or WILDCARD_KEY in index_keys:
        return True
    for key in index_keys:
        if key.endswith("." + WILDCARD_KEY):
            prefix = key[: -len(WILDCARD_KEY) - 1]
            if path == prefix or path.startswith(prefix + "."):
                return True
    return False


def _sanitize_endpoint(url: str) -> str:
    """
    Hide password in a connection URL for safe logging.
    """
    if "://" not in url:
        return url

    protocol, rest = url.split("://", 1)
    # Credentials can only appear in the authority, before the first "/"
    authority, slash, tail = rest.partition("/")
    if "@" not in authority:
        return url

    credentials, host = authority.rsplit("@", 1)
    if ":" not in credentials:
        return url
    username = credentials.split(":", 1)[0]
    return f"{protocol}://{username}:***@{host}{slash}{tail}"
