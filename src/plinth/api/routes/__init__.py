"""
API routes for Plinth.
"""

from plinth.api.routes import auth, modules, workspaces

__all__ = [
    "auth",
    "modules",
    "workspaces",
]
