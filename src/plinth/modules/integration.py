"""
Integration of loaded modules with the FastAPI application.

Loaded controllers that are (or expose) an ``APIRouter`` are mounted on the
app; loaded services are published as providers on ``app.state``.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI

from plinth.modules.manager import ModuleManager
from plinth.modules.types import LoadedModule

logger = logging.getLogger(__name__)


def as_router(controller: Any) -> Optional[APIRouter]:
    """Return the router a controller symbol contributes, if any."""
    if isinstance(controller, APIRouter):
        return controller
    router = getattr(controller, "router", None)
    if isinstance(router, APIRouter):
        return router
    return None


def create_router(loaded: LoadedModule) -> APIRouter:
    """Bundle all routers of one loaded module into a single router."""
    bundle = APIRouter()
    seen: list[APIRouter] = []
    for controller in loaded.backend_controllers:
        router = as_router(controller)
        if router is None or any(router is r for r in seen):
            continue
        seen.append(router)
        bundle.include_router(router)
    return bundle


class ModuleIntegration:
    """Wires loaded module symbols into the host application."""

    def __init__(self, manager: ModuleManager) -> None:
        self.manager = manager
        self._mounted: Dict[str, APIRouter] = {}

    def get_loaded_modules(self) -> List[LoadedModule]:
        return self.manager.get_loaded_modules()

    def get_module_controllers(self) -> List[Any]:
        controllers: List[Any] = []
        for loaded in self.get_loaded_modules():
            controllers.extend(c for c in loaded.backend_controllers if c is not None)
        return controllers

    def get_module_providers(self) -> List[Any]:
        providers: List[Any] = []
        for loaded in self.get_loaded_modules():
            providers.extend(s for s in loaded.backend_services if s is not None)
        return providers

    def mount(self, app: FastAPI) -> int:
        """
        Mount routers and publish providers for every loaded module.

        Routers are included at most once per module id, so calling this
        again after enabling more modules only adds the new ones.

        Returns:
            Number of modules whose routes were mounted by this call
        """
        mounted = 0
        for loaded in self.get_loaded_modules():
            if loaded.id in self._mounted:
                continue

            router = create_router(loaded)
            if not router.routes:
                logger.debug(f"Module {loaded.id} contributes no routes")
                continue

            app.include_router(router)
            self._mounted[loaded.id] = router
            mounted += 1
            logger.info(f"Mounted {len(router.routes)} route(s) for module {loaded.id}")

        providers = getattr(app.state, "module_providers", None)
        if providers is None:
            providers = {}
            app.state.module_providers = providers
        for provider in self.get_module_providers():
            name = getattr(provider, "__name__", None)
            if name:
                providers[name] = provider

        return mounted

    def is_mounted(self, module_id: str) -> bool:
        return module_id in self._mounted
