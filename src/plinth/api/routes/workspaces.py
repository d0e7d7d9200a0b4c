"""
Workspace API endpoints.

Workspace CRUD and membership management for the authenticated user.
"""

import re
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from plinth.api.auth import get_current_user
from plinth.api.schemas import (
    MemberAdd,
    MemberResponse,
    MemberRoleUpdate,
    WorkspaceCreate,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from plinth.db.connection import get_db
from plinth.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from plinth.models.db import User
from plinth.services.workspaces import WorkspaceService

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


def _generate_slug(name: str) -> str:
    """
    Generate a URL-friendly slug from a name.

    Examples:
        "ACME Sales" -> "acme-sales"
        "My  Team!!!" -> "my-team"
    """
    slug = name.lower()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or "workspace"


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


WORKSPACE_ERRORS = (NotFoundError, PermissionDeniedError, ConflictError, ValueError)


@router.post("", response_model=WorkspaceResponse, status_code=201)
async def create_workspace(
    data: WorkspaceCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> WorkspaceResponse:
    """
    Create a workspace owned by the current user.

    If slug is not provided, it will be auto-generated from the name.
    """
    slug = data.slug or _generate_slug(data.name)
    try:
        workspace = WorkspaceService(session).create_workspace(
            user, name=data.name, slug=slug, description=data.description
        )
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)
    return WorkspaceResponse.model_validate(workspace)


@router.get("", response_model=list[WorkspaceResponse])
async def list_workspaces(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[WorkspaceResponse]:
    """List the workspaces the current user is a member of."""
    workspaces = WorkspaceService(session).list_workspaces(user)
    return [WorkspaceResponse.model_validate(w) for w in workspaces]


@router.get("/slug/{slug}", response_model=WorkspaceResponse)
async def get_workspace_by_slug(
    slug: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> WorkspaceResponse:
    try:
        workspace = WorkspaceService(session).get_workspace_by_slug(slug, user)
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)
    return WorkspaceResponse.model_validate(workspace)


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
async def get_workspace(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> WorkspaceResponse:
    try:
        workspace = WorkspaceService(session).get_workspace(workspace_id, user)
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)
    return WorkspaceResponse.model_validate(workspace)


@router.patch("/{workspace_id}", response_model=WorkspaceResponse)
async def update_workspace(
    workspace_id: UUID,
    data: WorkspaceUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> WorkspaceResponse:
    """Update a workspace. Requires the owner or admin role."""
    try:
        workspace = WorkspaceService(session).update_workspace(
            workspace_id,
            user,
            name=data.name,
            description=data.description,
            is_active=data.is_active,
        )
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)
    return WorkspaceResponse.model_validate(workspace)


@router.delete("/{workspace_id}", status_code=204)
async def delete_workspace(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> None:
    """Delete a workspace. Requires the owner role."""
    try:
        WorkspaceService(session).delete_workspace(workspace_id, user)
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)


# ===== Members =====


@router.get("/{workspace_id}/members", response_model=list[MemberResponse])
async def list_members(
    workspace_id: UUID,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[MemberResponse]:
    try:
        members = WorkspaceService(session).get_members(workspace_id, user)
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)
    return [MemberResponse.model_validate(m) for m in members]


@router.post(
    "/{workspace_id}/members", response_model=MemberResponse, status_code=201
)
async def add_member(
    workspace_id: UUID,
    data: MemberAdd,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> MemberResponse:
    """Add an existing user by email. Requires the owner or admin role."""
    try:
        member = WorkspaceService(session).add_member(
            workspace_id, user, email=data.email, role=data.role
        )
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)
    return MemberResponse.model_validate(member)


@router.patch("/{workspace_id}/members/{member_id}", response_model=MemberResponse)
async def update_member_role(
    workspace_id: UUID,
    member_id: UUID,
    data: MemberRoleUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> MemberResponse:
    try:
        member = WorkspaceService(session).update_member_role(
            workspace_id, member_id, user, role=data.role
        )
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)
    return MemberResponse.model_validate(member)


@router.delete("/{workspace_id}/members/{member_id}", status_code=204)
async def remove_member(
    workspace_id: UUID,
    member_id: UUID,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> None:
    """Remove a member. The last owner of a workspace cannot be removed."""
    try:
        WorkspaceService(session).remove_member(workspace_id, member_id, user)
    except WORKSPACE_ERRORS as e:
        raise _to_http(e)
