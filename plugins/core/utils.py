"""
Utility functions for the bridge
"""

import os
import sys
import inspect
import logging
from datetime import datetime
from typing import Optional, Dict, Any, Callable, Mapping

from bson import ObjectId


# ============== LOGGING SETUP ==============

def setup_logging(level: str = "INFO", log_dir: Optional[str] = "logs") -> None:
    """Setup logging configuration"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # File handler
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(
            os.path.join(log_dir, f"mongodb_{datetime.now().strftime('%Y%m%d')}.log"),
            encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(log_format, date_format))
        root_logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))
    root_logger.addHandler(console_handler)

    # Set specific log levels for noisy libraries
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("motor").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


logger = get_logger(__name__)


# ============== CALLBACKS ==============

async def safe_callback(callback: Optional[Callable[..., Any]], *args: Any) -> Any:
    """
    Invoke a caller-supplied callback, awaiting it when it is a coroutine.
    Errors raised by the callback are logged and never reach the facade.
    """
    if callback is None:
        return None
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as e:
        logger.error(f"Error in callback {getattr(callback, '__name__', callback)!r}: {e}", exc_info=True)
        return None


# ============== ARGUMENTS ==============

def is_params(value: Any) -> bool:
    """Check that value is a usable params mapping"""
    return isinstance(value, Mapping)


def safe_object_argument(value: Any) -> Dict[str, Any]:
    """Coerce value into a plain dict, falling back to an empty one"""
    if isinstance(value, Mapping):
        return dict(value)
    return {}


# ============== DOCUMENT EXPORT ==============

def stringify_ids(value: Any) -> Any:
    """Recursively replace ObjectId values with their hex string"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Mapping):
        return {key: stringify_ids(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [stringify_ids(item) for item in value]
    return value


def export_documents(documents: Any) -> Any:
    """Translate driver documents (one or many) for the host runtime"""
    return stringify_ids(documents)
