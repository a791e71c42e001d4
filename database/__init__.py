"""
Database Package - MongoDB Data Access Facade
"""

from .mongodb import MongoDB, ordered_ids

__all__ = ["MongoDB", "ordered_ids"]
