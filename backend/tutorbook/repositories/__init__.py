"""
Repository layer.

Repositories encapsulate all data access; services own transactions.
"""

from .base_repository import BaseRepository, IRepository
from .factory import RepositoryFactory

__all__ = ["BaseRepository", "IRepository", "RepositoryFactory"]
