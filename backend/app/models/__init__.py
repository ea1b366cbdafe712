"""
Modelos SQLAlchemy
"""

from app.models.base import Base
from app.models.armazenamento import ItemArmazenamento

__all__ = [
    "Base",
    "ItemArmazenamento",
]
