"""
MongoDB Data Access Facade
Exposes validated CRUD operations over a single shared database handle
"""

import asyncio
from typing import Optional, Dict, Any, List, Callable, Mapping

import motor.motor_asyncio
from pymongo.errors import InvalidName, PyMongoError

from config import (
    UNSET_VALUE, MONGODB_URL, MONGODB_DATABASE, MONGODB_POOL_SIZE,
    MONGODB_MIN_POOL_SIZE, MONGODB_CONNECT_TIMEOUT, MONGODB_SERVER_SELECTION_TIMEOUT
)
from plugins.core.constants import (
    ConnectionState, LOG_TAG, EVENT_DATABASE_CONNECT,
    MSG_NOT_CONNECTED, MSG_INVALID_PARAMS, MSG_INVALID_DOCUMENTS
)
from plugins.core.models import OperationResult
from plugins.core.utils import get_logger, is_params, safe_object_argument, export_documents
from plugins.services.events import EventBus

logger = get_logger(__name__)

# Errors raised while delegating that are reported back to the caller
DRIVER_ERRORS = (PyMongoError, TypeError, ValueError)


def ordered_ids(inserted_ids: Any, expected: int) -> List[Optional[str]]:
    """
    Rebuild a dense list of string ids aligned with the input documents.
    Accepts either a sequence or a mapping keyed by input index.
    """
    ids: List[Optional[str]] = [None] * expected
    if isinstance(inserted_ids, Mapping):
        items = inserted_ids.items()
    else:
        items = enumerate(inserted_ids or [])
    for key, value in items:
        index = int(key)
        if index >= len(ids):
            ids.extend([None] * (index + 1 - len(ids)))
        ids[index] = str(value)
    return ids


class MongoDB:
    """MongoDB Data Access Facade"""

    def __init__(self, url: str = MONGODB_URL, db_name: str = MONGODB_DATABASE,
                 events: Optional[EventBus] = None,
                 client_factory: Optional[Callable[..., Any]] = None,
                 client_options: Optional[Dict[str, Any]] = None):
        self.url = url
        self.db_name = db_name
        self.events = events or EventBus()
        self.client_factory = client_factory or motor.motor_asyncio.AsyncIOMotorClient
        self.client_options = client_options if client_options is not None else {
            "maxPoolSize": MONGODB_POOL_SIZE,
            "minPoolSize": MONGODB_MIN_POOL_SIZE,
            "connectTimeoutMS": MONGODB_CONNECT_TIMEOUT,
            "serverSelectionTimeoutMS": MONGODB_SERVER_SELECTION_TIMEOUT,
        }

        self.client = None
        self.db = None
        self.state = ConnectionState.DISCONNECTED
        self.last_error: Optional[str] = None
        self._connect_task: Optional[asyncio.Task] = None

    # ============== CONNECTION ==============

    def missing_settings(self) -> List[str]:
        """Names of the settings still holding the unset value"""
        missing = []
        if not self.url or self.url == UNSET_VALUE:
            missing.append("MONGODB_URL")
        if not self.db_name or self.db_name == UNSET_VALUE:
            missing.append("MONGODB_DATABASE")
        return missing

    def start(self) -> asyncio.Task:
        """Schedule the connection in the background and return its task"""
        if self._connect_task is None:
            self._connect_task = asyncio.create_task(self.connect())
            self._connect_task.add_done_callback(self._on_connect_done)
        return self._connect_task

    def _on_connect_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"{LOG_TAG} Connection task crashed: {error!r}", exc_info=error)
            self.last_error = str(error)
            self.state = ConnectionState.FAILED

    async def connect(self) -> bool:
        """Establish connection to MongoDB"""
        if self.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return self.state == ConnectionState.CONNECTED

        missing = self.missing_settings()
        if missing:
            for name in missing:
                logger.error(f"{LOG_TAG} Setting {name} not set (see README)")
            self.last_error = f"Missing settings: {', '.join(missing)}"
            self.state = ConnectionState.FAILED
            return False

        self.state = ConnectionState.CONNECTING
        self.last_error = None
        client = None
        try:
            client = self.client_factory(self.url, **self.client_options)

            # Test connection
            await client.admin.command('ping')

            self.client = client
            self.db = client[self.db_name]
        except DRIVER_ERRORS as e:
            logger.error(f"{LOG_TAG} Failed to connect: {e}")
            self.last_error = str(e)
            self.state = ConnectionState.FAILED
            if client is not None:
                client.close()
            return False

        self.state = ConnectionState.CONNECTED
        logger.info(f"{LOG_TAG} Connected to database \"{self.db_name}\".")
        await self.events.emit(EVENT_DATABASE_CONNECT, self.db_name)
        return True

    async def disconnect(self) -> None:
        """Close database connection"""
        if self._connect_task is not None and not self._connect_task.done():
            await asyncio.wait([self._connect_task])
        if self.client:
            self.client.close()
            logger.info(f"{LOG_TAG} Disconnected from database \"{self.db_name}\".")
        self.client = None
        self.db = None
        self.state = ConnectionState.DISCONNECTED
        self._connect_task = None

    def is_connected(self) -> bool:
        return self.db is not None

    def status(self) -> Dict[str, Any]:
        """Current connection status"""
        return {
            "state": self.state.value,
            "database": self.db_name,
            "last_error": self.last_error,
        }

    # ============== VALIDATION ==============

    def _reject(self, operation: str, message: str) -> OperationResult:
        logger.error(f"{LOG_TAG} exports.{operation}: {message}")
        return OperationResult.reject(message)

    def _failure(self, operation: str, error: Exception) -> OperationResult:
        logger.error(f"{LOG_TAG} exports.{operation}: Error \"{error}\".")
        return OperationResult.failure(str(error))

    def _check_ready(self, operation: str, params: Any = None,
                     needs_params: bool = True) -> Optional[OperationResult]:
        """Return a rejection when the call cannot reach the database"""
        if not self.is_connected():
            return self._reject(operation, MSG_NOT_CONNECTED)
        if needs_params and not is_params(params):
            return self._reject(operation, MSG_INVALID_PARAMS)
        return None

    def _get_collection(self, params: Mapping[str, Any]):
        name = params.get("collection")
        if not name or not isinstance(name, str):
            return None
        try:
            return self.db[name]
        except InvalidName:
            return None

    def _resolve(self, operation: str, params: Any):
        """Run the readiness checks and resolve the target collection"""
        rejection = self._check_ready(operation, params)
        if rejection is not None:
            return None, rejection
        collection = self._get_collection(params)
        if collection is None:
            return None, self._reject(operation, f"Invalid collection \"{params.get('collection')}\"")
        return collection, None

    # ============== OPERATIONS ==============

    async def collection_exists(self, name: Any) -> OperationResult:
        """Check whether a collection with this name exists"""
        rejection = self._check_ready("collectionExists", needs_params=False)
        if rejection is not None:
            return rejection
        if not name or not isinstance(name, str):
            return self._reject("collectionExists", f"Invalid collection name \"{name}\"")

        try:
            names = await self.db.list_collection_names(filter={"name": name})
        except DRIVER_ERRORS as e:
            return self._failure("collectionExists", e)
        return OperationResult.ok(len(names) > 0)

    async def insert(self, params: Any) -> OperationResult:
        """
        Insert documents.

        params.collection - target collection name
        params.documents - list of documents to insert
        params.options - keyword options passed to insert_many
        """
        collection, rejection = self._resolve("insert", params)
        if rejection is not None:
            return rejection

        documents = params.get("documents")
        if not isinstance(documents, (list, tuple)):
            return self._reject("insert", MSG_INVALID_DOCUMENTS)

        options = safe_object_argument(params.get("options"))
        try:
            result = await collection.insert_many(list(documents), **options)
        except DRIVER_ERRORS as e:
            return self._failure("insert", e)

        inserted_ids = ordered_ids(result.inserted_ids, len(documents))
        return OperationResult.ok(len(result.inserted_ids), inserted_ids)

    async def insert_one(self, params: Any) -> OperationResult:
        """Insert params.document through insert"""
        if is_params(params):
            params = dict(params)
            params["documents"] = [params.pop("document", None)]
        return await self.insert(params)

    async def find(self, params: Any) -> OperationResult:
        """
        Find documents.

        params.query - filter document
        params.options - keyword options passed to find
        params.limit - maximum number of documents, falsy for no limit
        """
        collection, rejection = self._resolve("find", params)
        if rejection is not None:
            return rejection

        query = safe_object_argument(params.get("query"))
        options = safe_object_argument(params.get("options"))
        limit = params.get("limit")
        try:
            cursor = collection.find(query, **options)
            if limit:
                cursor = cursor.limit(int(limit))
            documents = await cursor.to_list(length=None)
        except DRIVER_ERRORS as e:
            return self._failure("find", e)
        return OperationResult.ok(export_documents(documents))

    async def find_one(self, params: Any) -> OperationResult:
        """Find with the limit forced to one document"""
        if is_params(params):
            params = dict(params)
            params["limit"] = 1
        return await self.find(params)

    async def update(self, params: Any, is_update_one: bool = False) -> OperationResult:
        """Update one or all documents matching params.query with params.update"""
        collection, rejection = self._resolve("update", params)
        if rejection is not None:
            return rejection

        query = safe_object_argument(params.get("query"))
        update = safe_object_argument(params.get("update"))
        options = safe_object_argument(params.get("options"))
        try:
            if is_update_one:
                result = await collection.update_one(query, update, **options)
            else:
                result = await collection.update_many(query, update, **options)
        except DRIVER_ERRORS as e:
            return self._failure("update", e)
        return OperationResult.ok(result.modified_count)

    async def update_one(self, params: Any) -> OperationResult:
        return await self.update(params, is_update_one=True)

    async def count(self, params: Any) -> OperationResult:
        """Count documents matching params.query"""
        collection, rejection = self._resolve("count", params)
        if rejection is not None:
            return rejection

        query = safe_object_argument(params.get("query"))
        options = safe_object_argument(params.get("options"))
        try:
            total = await collection.count_documents(query, **options)
        except DRIVER_ERRORS as e:
            return self._failure("count", e)
        return OperationResult.ok(total)

    async def delete(self, params: Any, is_delete_one: bool = False) -> OperationResult:
        """Delete one or all documents matching params.query"""
        collection, rejection = self._resolve("delete", params)
        if rejection is not None:
            return rejection

        query = safe_object_argument(params.get("query"))
        options = safe_object_argument(params.get("options"))
        try:
            if is_delete_one:
                result = await collection.delete_one(query, **options)
            else:
                result = await collection.delete_many(query, **options)
        except DRIVER_ERRORS as e:
            return self._failure("delete", e)
        return OperationResult.ok(result.deleted_count)

    async def delete_one(self, params: Any) -> OperationResult:
        return await self.delete(params, is_delete_one=True)

