"""
Workspace member repository.
"""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from plinth.db.repositories.base import BaseRepository
from plinth.models.db import MemberRole, WorkspaceMember


class WorkspaceMemberRepository(BaseRepository[WorkspaceMember]):
    """Repository for WorkspaceMember model."""

    def __init__(self, session: Session):
        super().__init__(WorkspaceMember, session)

    def get_membership(
        self, workspace_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[WorkspaceMember]:
        """
        Get the membership of a user in a workspace.

        Args:
            workspace_id: Workspace UUID
            user_id: User UUID

        Returns:
            WorkspaceMember instance or None
        """
        return (
            self.session.query(WorkspaceMember)
            .filter(
                WorkspaceMember.workspace_id == workspace_id,
                WorkspaceMember.user_id == user_id,
            )
            .first()
        )

    def get_by_workspace(self, workspace_id: uuid.UUID) -> List[WorkspaceMember]:
        return (
            self.session.query(WorkspaceMember)
            .filter(WorkspaceMember.workspace_id == workspace_id)
            .order_by(WorkspaceMember.joined_at)
            .all()
        )

    def count_owners(self, workspace_id: uuid.UUID) -> int:
        return (
            self.session.query(WorkspaceMember)
            .filter(
                WorkspaceMember.workspace_id == workspace_id,
                WorkspaceMember.role == MemberRole.OWNER,
            )
            .count()
        )
