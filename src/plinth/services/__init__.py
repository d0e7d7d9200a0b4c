"""Platform services: authentication and workspaces."""
