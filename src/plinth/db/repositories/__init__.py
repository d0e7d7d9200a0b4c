"""
Repository layer for database operations.

Provides a clean API for CRUD operations on database models.
"""

from plinth.db.repositories.base import BaseRepository
from plinth.db.repositories.installed_module import InstalledModuleRepository
from plinth.db.repositories.member import WorkspaceMemberRepository
from plinth.db.repositories.user import UserRepository
from plinth.db.repositories.workspace import WorkspaceRepository

__all__ = [
    "BaseRepository",
    "InstalledModuleRepository",
    "UserRepository",
    "WorkspaceMemberRepository",
    "WorkspaceRepository",
]
