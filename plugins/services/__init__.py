from .events import EventBus

__all__ = ["EventBus"]
