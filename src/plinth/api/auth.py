"""
Authentication and authorization context for API endpoints.

``get_current_user`` resolves the bearer access token to a user.
``get_workspace_context`` additionally scopes a request to the workspace named
in the X-Workspace-Id header and checks the user's membership.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from plinth.db.connection import get_db
from plinth.db.repositories.member import WorkspaceMemberRepository
from plinth.db.repositories.workspace import WorkspaceRepository
from plinth.exceptions import AuthenticationError
from plinth.models.db import MemberRole, User
from plinth.services.auth import AuthService


@dataclass
class AuthContext:
    """
    Workspace context for the current request.

    Attributes:
        workspace_id: UUID of the current workspace
        user: Authenticated user
        role: The user's role in the workspace

    Example:
        >>> @router.get("/sales/orders")
        >>> def list_orders(auth: AuthContext = Depends(get_workspace_context)):
        ...     return service.list_orders(auth.workspace_id)
    """

    workspace_id: UUID
    user: User
    role: MemberRole


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    session: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency returning the user of the bearer access token.

    Raises:
        HTTPException(401): If the header is missing, malformed, or the token
            is invalid
    """
    if not authorization:
        raise _unauthorized("Not authenticated")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Invalid authorization header")

    try:
        return AuthService(session).get_user_from_token(token.strip())
    except AuthenticationError as e:
        raise _unauthorized(str(e))


def get_workspace_context(
    x_workspace_id: Optional[str] = Header(
        None,
        description="Workspace UUID for multi-tenant isolation (required)",
        alias="X-Workspace-Id",
    ),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> AuthContext:
    """
    FastAPI dependency to extract and validate workspace context from request.

    Raises:
        HTTPException(400): If the header is missing or not a UUID
        HTTPException(404): If the workspace does not exist
        HTTPException(403): If the user is not a member, or the workspace is
            inactive
    """
    if not x_workspace_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Workspace-Id header is required",
        )

    try:
        workspace_uuid = UUID(x_workspace_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid workspace ID format",
        )

    workspace = WorkspaceRepository(session).get(workspace_uuid)
    if not workspace:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Workspace not found",
        )

    membership = WorkspaceMemberRepository(session).get_membership(
        workspace.id, user.id
    )
    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this workspace",
        )

    if not workspace.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Workspace is inactive",
        )

    return AuthContext(workspace_id=workspace.id, user=user, role=membership.role)
