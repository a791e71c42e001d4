"""
Configuration Management - MongoDB Bridge
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Value meaning "not configured"
UNSET_VALUE = "changeme"


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable"""
    val = os.getenv(key, str(default)).lower()
    return val in ('true', '1', 't', 'y', 'yes')


def get_int_env(key: str, default: int = 0) -> int:
    """Get integer from environment variable"""
    try:
        return int(os.getenv(key, default))
    except (ValueError, TypeError):
        return default


# ============== MONGODB CONFIGURATION ==============
MONGODB_URL = os.getenv("MONGODB_URL", UNSET_VALUE)
MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", UNSET_VALUE)
MONGODB_POOL_SIZE = get_int_env("MONGODB_POOL_SIZE", 50)
MONGODB_MIN_POOL_SIZE = get_int_env("MONGODB_MIN_POOL_SIZE", 0)
MONGODB_CONNECT_TIMEOUT = get_int_env("MONGODB_CONNECT_TIMEOUT", 5000)  # ms
MONGODB_SERVER_SELECTION_TIMEOUT = get_int_env("MONGODB_SERVER_SELECTION_TIMEOUT", 5000)  # ms

# ============== EXPORT BEHAVIOUR ==============
# When False, calls rejected before reaching the database return nothing and
# never invoke the caller's callback.
NOTIFY_REJECTED_CALLS = get_bool_env("NOTIFY_REJECTED_CALLS", False)

# ============== LOGGING ==============
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")
