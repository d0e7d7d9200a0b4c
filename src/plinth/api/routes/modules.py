"""
Module management API endpoints.

Lists discovered feature modules and enables/disables them at runtime.
Enable/disable are written through to the installed_modules table so the
enabled set survives a restart.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from plinth.api.auth import get_current_user
from plinth.api.schemas import LoadOrderResponse, MessageResponse, ModuleResponse
from plinth.db.connection import get_db
from plinth.exceptions import (
    CircularDependencyError,
    MissingDependencyError,
    UnknownModuleError,
)
from plinth.modules.integration import ModuleIntegration
from plinth.modules.service import ModulesService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/modules",
    tags=["modules"],
    dependencies=[Depends(get_current_user)],
)


def get_modules_service(request: Request) -> ModulesService:
    """FastAPI dependency returning the process-wide module service."""
    service = getattr(request.app.state, "modules_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Module system is not initialized",
        )
    return service


@router.get("", response_model=list[ModuleResponse])
async def list_modules(
    service: ModulesService = Depends(get_modules_service),
    session: Session = Depends(get_db),
) -> list[ModuleResponse]:
    """List every discovered module with its enabled/installed status."""
    return [ModuleResponse.from_metadata(m) for m in service.find_all(session)]


@router.get("/enabled", response_model=list[ModuleResponse])
async def list_enabled_modules(
    service: ModulesService = Depends(get_modules_service),
    session: Session = Depends(get_db),
) -> list[ModuleResponse]:
    """List enabled modules, in the order they were enabled."""
    return [ModuleResponse.from_metadata(m) for m in service.find_enabled(session)]


@router.get("/load-order", response_model=LoadOrderResponse)
async def get_load_order(
    service: ModulesService = Depends(get_modules_service),
) -> LoadOrderResponse:
    """Dependency-respecting load order over all discovered modules."""
    try:
        return LoadOrderResponse(load_order=service.get_load_order())
    except CircularDependencyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/{module_id}", response_model=ModuleResponse)
async def get_module(
    module_id: str,
    service: ModulesService = Depends(get_modules_service),
    session: Session = Depends(get_db),
) -> ModuleResponse:
    module = service.find_one(session, module_id)
    if module is None:
        raise HTTPException(status_code=404, detail=f"Module {module_id} not found")
    return ModuleResponse.from_metadata(module)


@router.post("/{module_id}/enable", response_model=MessageResponse)
async def enable_module(
    module_id: str,
    request: Request,
    service: ModulesService = Depends(get_modules_service),
    session: Session = Depends(get_db),
) -> MessageResponse:
    """
    Enable a module, load its code and mount its routes.

    Returns 404 for an unknown module and 409 when a direct dependency is
    not available.
    """
    try:
        result = service.enable(session, module_id)
    except UnknownModuleError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MissingDependencyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    integration = getattr(request.app.state, "module_integration", None)
    if isinstance(integration, ModuleIntegration):
        integration.mount(request.app)

    return MessageResponse(**result)


@router.post("/{module_id}/disable", response_model=MessageResponse)
async def disable_module(
    module_id: str,
    service: ModulesService = Depends(get_modules_service),
    session: Session = Depends(get_db),
) -> MessageResponse:
    """
    Disable a module.

    Routes already mounted stay registered until the process restarts.
    """
    return MessageResponse(**service.disable(session, module_id))
