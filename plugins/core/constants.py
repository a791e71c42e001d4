"""
Constants and enums used throughout the bridge
"""

from enum import Enum
from typing import List


class ConnectionState(Enum):
    """Connection lifecycle state"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


# Tag prefixed to every facade log line
LOG_TAG = "[MongoDB]"

# Event emitted once the database handle is ready
EVENT_DATABASE_CONNECT = "onDatabaseConnect"

# Operation names exposed to the host runtime
EXPORT_NAMES: List[str] = [
    "isConnected",
    "status",
    "collectionExists",
    "insert",
    "insertOne",
    "find",
    "findOne",
    "update",
    "updateOne",
    "count",
    "delete",
    "deleteOne",
]

# Messages
MSG_NOT_CONNECTED = "Database is not connected."
MSG_INVALID_PARAMS = "Invalid params object."
MSG_INVALID_DOCUMENTS = "Invalid 'params.documents' value. Expected object or array of objects."
