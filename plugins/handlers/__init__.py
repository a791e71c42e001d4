"""
Handlers Package - host runtime entry points
"""

from .exports import ExportRegistry, deliver, register_database_exports

__all__ = ["ExportRegistry", "deliver", "register_database_exports"]
