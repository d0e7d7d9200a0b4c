"""
Workspace service.

Workspaces are the tenants of the platform. Every workspace has at least one
owner; owners and admins manage settings and membership.
"""

import logging
import re
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from plinth.db.repositories.member import WorkspaceMemberRepository
from plinth.db.repositories.user import UserRepository
from plinth.db.repositories.workspace import WorkspaceRepository
from plinth.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from plinth.models.db import MemberRole, User, Workspace, WorkspaceMember
from plinth.services.names import generate_workspace_name_and_slug

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
DEFAULT_WORKSPACE_ATTEMPTS = 10

MANAGER_ROLES = (MemberRole.OWNER, MemberRole.ADMIN)


class WorkspaceService:
    """Workspace and membership operations, scoped to the acting user."""

    def __init__(self, session: Session):
        self.session = session
        self.workspaces = WorkspaceRepository(session)
        self.members = WorkspaceMemberRepository(session)
        self.users = UserRepository(session)

    # ===== Workspaces =====

    def create_workspace(
        self,
        user: User,
        name: str,
        slug: str,
        description: Optional[str] = None,
    ) -> Workspace:
        """
        Create a workspace owned by ``user``.

        Raises:
            ValueError: If the slug is not lowercase letters, digits and hyphens
            ConflictError: If the slug is taken
        """
        if not SLUG_PATTERN.match(slug):
            raise ValueError(
                "Slug must contain only lowercase letters, numbers, and hyphens"
            )
        if self.workspaces.slug_exists(slug):
            raise ConflictError(f"Workspace slug '{slug}' is already taken")

        workspace = self.workspaces.create(
            name=name, slug=slug, description=description, is_active=True
        )
        self.members.create(
            workspace_id=workspace.id, user_id=user.id, role=MemberRole.OWNER
        )
        logger.info(f"Created workspace {workspace.slug} for {user.email}")
        return workspace

    def create_default_workspace(self, user: User) -> Workspace:
        """
        Create a workspace with a generated name for a new user.

        Raises:
            RuntimeError: If no free slug was found within the retry budget
        """
        for attempt in range(1, DEFAULT_WORKSPACE_ATTEMPTS + 1):
            name, slug = generate_workspace_name_and_slug(include_digits=True)
            if self.workspaces.slug_exists(slug):
                logger.debug(f"Generated slug {slug} is taken (attempt {attempt})")
                continue

            try:
                return self.create_workspace(
                    user,
                    name=name,
                    slug=slug,
                    description=f"Your default workspace - {name}",
                )
            except ConflictError as e:
                logger.debug(f"Default workspace attempt {attempt} failed: {e}")

        raise RuntimeError("Failed to create default workspace after multiple attempts")

    def list_workspaces(self, user: User) -> List[Workspace]:
        return self.workspaces.get_by_user(user.id)

    def get_workspace(self, workspace_id: uuid.UUID, user: User) -> Workspace:
        """
        Raises:
            NotFoundError: If the workspace does not exist or the user is not
                a member
        """
        workspace = self.workspaces.get(workspace_id)
        if workspace is None or self.members.get_membership(workspace_id, user.id) is None:
            raise NotFoundError("Workspace not found or access denied")
        return workspace

    def get_workspace_by_slug(self, slug: str, user: User) -> Workspace:
        workspace = self.workspaces.get_by_slug(slug)
        if workspace is None or self.members.get_membership(workspace.id, user.id) is None:
            raise NotFoundError("Workspace not found or access denied")
        return workspace

    def update_workspace(
        self,
        workspace_id: uuid.UUID,
        user: User,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Workspace:
        """
        Update workspace fields that are not None.

        Raises:
            NotFoundError: If the user cannot see the workspace
            PermissionDeniedError: If the user is not an owner or admin
        """
        workspace = self.get_workspace(workspace_id, user)
        self._require_role(workspace_id, user, MANAGER_ROLES, "Insufficient permissions")

        if name is not None:
            workspace.name = name
        if description is not None:
            workspace.description = description
        if is_active is not None:
            workspace.is_active = is_active
        self.session.flush()
        return workspace

    def delete_workspace(self, workspace_id: uuid.UUID, user: User) -> None:
        """
        Raises:
            PermissionDeniedError: If the user is not an owner
        """
        self.get_workspace(workspace_id, user)
        self._require_role(
            workspace_id,
            user,
            (MemberRole.OWNER,),
            "Only workspace owner can delete workspace",
        )
        self.workspaces.delete(workspace_id)
        logger.info(f"Deleted workspace {workspace_id}")

    # ===== Members =====

    def get_members(self, workspace_id: uuid.UUID, user: User) -> List[WorkspaceMember]:
        self.get_workspace(workspace_id, user)
        return self.members.get_by_workspace(workspace_id)

    def add_member(
        self,
        workspace_id: uuid.UUID,
        user: User,
        email: str,
        role: MemberRole = MemberRole.MEMBER,
    ) -> WorkspaceMember:
        """
        Add an existing user to a workspace by email.

        Raises:
            PermissionDeniedError: If the acting user is not an owner or admin
            NotFoundError: If no user has that email
            ConflictError: If the user is already a member
        """
        self.get_workspace(workspace_id, user)
        self._require_role(
            workspace_id, user, MANAGER_ROLES, "Insufficient permissions to add members"
        )

        new_user = self.users.get_by_email(email)
        if new_user is None:
            raise NotFoundError("User not found")
        if self.members.get_membership(workspace_id, new_user.id) is not None:
            raise ConflictError("User is already a member of this workspace")

        member = self.members.create(
            workspace_id=workspace_id, user_id=new_user.id, role=role
        )
        logger.info(f"Added {new_user.email} to workspace {workspace_id} as {role.value}")
        return member

    def update_member_role(
        self,
        workspace_id: uuid.UUID,
        member_id: uuid.UUID,
        user: User,
        role: MemberRole,
    ) -> WorkspaceMember:
        """
        Change a member's role. The last owner cannot be demoted.

        Raises:
            PermissionDeniedError: If the acting user is not an owner or admin,
                or the change would leave the workspace without an owner
            NotFoundError: If the member is not part of the workspace
        """
        self.get_workspace(workspace_id, user)
        self._require_role(workspace_id, user, MANAGER_ROLES, "Insufficient permissions")
        member = self._get_member(workspace_id, member_id)

        if (
            member.role == MemberRole.OWNER
            and role != MemberRole.OWNER
            and self.members.count_owners(workspace_id) <= 1
        ):
            raise PermissionDeniedError("Cannot demote the last workspace owner")

        member.role = role
        self.session.flush()
        return member

    def remove_member(
        self, workspace_id: uuid.UUID, member_id: uuid.UUID, user: User
    ) -> None:
        """
        Remove a member. The last owner cannot be removed.

        Raises:
            PermissionDeniedError: If the acting user is not an owner or admin,
                or the member is the last owner
            NotFoundError: If the member is not part of the workspace
        """
        self.get_workspace(workspace_id, user)
        self._require_role(
            workspace_id,
            user,
            MANAGER_ROLES,
            "Insufficient permissions to remove members",
        )
        member = self._get_member(workspace_id, member_id)

        if member.role == MemberRole.OWNER and self.members.count_owners(workspace_id) <= 1:
            raise PermissionDeniedError("Cannot remove the last workspace owner")

        self.members.delete(member.id)

    # ===== Helpers =====

    def _get_member(
        self, workspace_id: uuid.UUID, member_id: uuid.UUID
    ) -> WorkspaceMember:
        member = self.members.get(member_id)
        if member is None or member.workspace_id != workspace_id:
            raise NotFoundError("Member not found")
        return member

    def _require_role(
        self,
        workspace_id: uuid.UUID,
        user: User,
        roles: tuple[MemberRole, ...],
        message: str,
    ) -> WorkspaceMember:
        membership = self.members.get_membership(workspace_id, user.id)
        if membership is None or membership.role not in roles:
            raise PermissionDeniedError(message)
        return membership
