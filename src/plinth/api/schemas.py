"""
API schemas for Plinth.

Pydantic models for request/response validation.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from plinth.models.db import MemberRole
from plinth.modules.types import ModuleMetadata

# ===== Auth Schemas =====


class RegisterRequest(BaseModel):
    """Request schema for local account registration."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=128)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class OAuthProfile(BaseModel):
    """Profile returned by an OAuth provider after a successful sign-in."""

    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    provider: str = Field(..., min_length=1, max_length=50)
    provider_id: str = Field(..., min_length=1, max_length=255)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None


class UserResponse(BaseModel):
    """Public user profile."""

    id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Access/refresh token pair with the user they belong to."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


# ===== Workspace Schemas =====


class WorkspaceCreate(BaseModel):
    """Request schema for creating a workspace."""

    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(
        None,
        min_length=1,
        max_length=50,
        pattern=r"^[a-z0-9-]+$",
        description="URL-friendly identifier; generated from the name if omitted",
    )
    description: Optional[str] = None


class WorkspaceUpdate(BaseModel):
    """Request schema for updating a workspace. Omitted fields are unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class WorkspaceResponse(BaseModel):
    """Response schema for Workspace."""

    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MemberAdd(BaseModel):
    """Request schema for adding a member by email."""

    email: str
    role: MemberRole = MemberRole.MEMBER


class MemberRoleUpdate(BaseModel):
    role: MemberRole


class MemberResponse(BaseModel):
    """Response schema for a workspace member."""

    id: UUID
    workspace_id: UUID
    user_id: UUID
    role: MemberRole
    joined_at: datetime
    user: UserResponse

    class Config:
        from_attributes = True


# ===== Module Schemas =====


class ModuleBackendResponse(BaseModel):
    controllers: List[str] = []
    services: List[str] = []
    models: List[str] = []


class ModuleFrontendResponse(BaseModel):
    plugins: List[str] = []
    components: List[str] = []


class ModuleResponse(BaseModel):
    """A discovered module merged with its persisted status."""

    id: str
    name: str
    version: str
    category: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    depends: List[str] = []
    path: str
    enabled: bool
    installed: bool
    installed_at: Optional[datetime] = None
    backend: Optional[ModuleBackendResponse] = None
    frontend: Optional[ModuleFrontendResponse] = None

    @classmethod
    def from_metadata(cls, module: ModuleMetadata) -> "ModuleResponse":
        manifest = module.manifest
        return cls(
            id=module.id,
            name=manifest.name,
            version=manifest.version,
            category=manifest.category,
            author=manifest.author,
            description=manifest.description,
            depends=list(manifest.depends),
            path=str(module.path),
            enabled=module.enabled,
            installed=module.installed,
            installed_at=module.installed_at,
            backend=(
                ModuleBackendResponse(**manifest.backend.model_dump())
                if manifest.backend is not None
                else None
            ),
            frontend=(
                ModuleFrontendResponse(**manifest.frontend.model_dump())
                if manifest.frontend is not None
                else None
            ),
        )


class MessageResponse(BaseModel):
    message: str


class LoadOrderResponse(BaseModel):
    load_order: List[str]
