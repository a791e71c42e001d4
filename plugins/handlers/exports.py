"""
Export Handlers - expose facade operations to the host runtime by name
"""

import inspect
from typing import Any, Callable, Dict, List, Optional

from config import NOTIFY_REJECTED_CALLS
from database.mongodb import MongoDB
from plugins.core.constants import EXPORT_NAMES
from plugins.core.models import OperationResult
from plugins.core.utils import get_logger, safe_callback

logger = get_logger(__name__)


class ExportRegistry:
    """Named entry points callable by the host runtime"""

    def __init__(self):
        self._exports: Dict[str, Callable[..., Any]] = {}

    def register(self, name: str, handler: Callable[..., Any]) -> None:
        if name in self._exports:
            logger.warning(f"Export {name} is already registered, replacing it")
        self._exports[name] = handler

    def get(self, name: str) -> Callable[..., Any]:
        try:
            return self._exports[name]
        except KeyError:
            raise KeyError(f"Unknown export: {name}") from None

    def names(self) -> List[str]:
        return sorted(self._exports)

    async def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke an export, awaiting it when it is async"""
        result = self.get(name)(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


async def deliver(result: OperationResult, callback: Optional[Callable[..., Any]] = None,
                  notify_rejected: bool = False) -> Any:
    """
    Hand a result to the caller: spread into the callback when one is given,
    otherwise return the ``(success, *payload)`` tuple. Rejected calls produce
    nothing unless ``notify_rejected`` is set.
    """
    if result.rejected and not notify_rejected:
        logger.debug(f"Dropping rejected call: {result.error}")
        return None
    if callback:
        return await safe_callback(callback, *result.as_tuple())
    return result.as_tuple()


def register_database_exports(registry: ExportRegistry, database: MongoDB,
                              notify_rejected: bool = NOTIFY_REJECTED_CALLS) -> None:
    """Register every facade operation on the registry"""

    def export(operation: Callable[..., Any]) -> Callable[..., Any]:
        async def handler(params: Any = None, callback: Optional[Callable[..., Any]] = None):
            return await deliver(await operation(params), callback, notify_rejected)
        return handler

    async def collection_exists(name: Any = None, callback: Optional[Callable[..., Any]] = None):
        return await deliver(await database.collection_exists(name), callback, notify_rejected)

    async def update(params: Any = None, callback: Optional[Callable[..., Any]] = None,
                     is_update_one: bool = False):
        return await deliver(await database.update(params, is_update_one), callback, notify_rejected)

    async def delete(params: Any = None, callback: Optional[Callable[..., Any]] = None,
                     is_delete_one: bool = False):
        return await deliver(await database.delete(params, is_delete_one), callback, notify_rejected)

    handlers = {
        "isConnected": database.is_connected,
        "status": database.status,
        "collectionExists": collection_exists,
        "insert": export(database.insert),
        "insertOne": export(database.insert_one),
        "find": export(database.find),
        "findOne": export(database.find_one),
        "update": update,
        "updateOne": export(database.update_one),
        "count": export(database.count),
        "delete": delete,
        "deleteOne": export(database.delete_one),
    }
    for name in EXPORT_NAMES:
        registry.register(name, handlers[name])

    logger.info(f"Registered {len(registry.names())} database exports")
