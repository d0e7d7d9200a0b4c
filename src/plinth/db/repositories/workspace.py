"""
Workspace repository.
"""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from plinth.db.repositories.base import BaseRepository
from plinth.models.db import Workspace, WorkspaceMember


class WorkspaceRepository(BaseRepository[Workspace]):
    """Repository for Workspace model."""

    def __init__(self, session: Session):
        super().__init__(Workspace, session)

    def get_by_slug(self, slug: str) -> Optional[Workspace]:
        """
        Get workspace by slug.

        Args:
            slug: Workspace slug (URL-friendly identifier)

        Returns:
            Workspace instance or None
        """
        return self.session.query(Workspace).filter(Workspace.slug == slug).first()

    def slug_exists(self, slug: str) -> bool:
        return self.get_by_slug(slug) is not None

    def get_by_user(
        self, user_id: uuid.UUID, limit: Optional[int] = None, offset: int = 0
    ) -> List[Workspace]:
        """
        Get all workspaces a user is a member of.

        Args:
            user_id: User UUID
            limit: Maximum number of records to return
            offset: Number of records to skip

        Returns:
            List of workspaces, oldest membership first
        """
        query = (
            self.session.query(Workspace)
            .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
            .filter(WorkspaceMember.user_id == user_id)
            .order_by(WorkspaceMember.joined_at, Workspace.name)
            .offset(offset)
        )
        if limit:
            query = query.limit(limit)
        return query.all()
