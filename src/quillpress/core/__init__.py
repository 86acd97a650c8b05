"""
QuillPress Core Package

Runtime selection, database access, password hashing and domain models.
"""

from . import database
from . import models

__all__ = ["database", "models"]
