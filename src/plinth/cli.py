"""
Plinth CLI - Command-line interface for Plinth.

Server management and administrative module commands. Module commands use
the same database-backed service as the API, so changes made here are picked
up by the server on its next start.
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from plinth.logging_config import setup_logging

app = typer.Typer(
    name="plinth",
    help="Plinth - multi-tenant SaaS backend with pluggable modules",
    no_args_is_help=True,
)
modules_app = typer.Typer(help="Discover, enable and disable feature modules")
app.add_typer(modules_app, name="modules")

console = Console()


def _init_logging() -> None:
    # Fall back to console logging if file logging is not permitted
    try:
        setup_logging(context="cli")
    except PermissionError:
        import logging

        logging.basicConfig(level=logging.INFO)


def _build_service(roots: Optional[List[Path]] = None):
    """Module service over the configured (or given) roots, not yet initialized."""
    from plinth.config import settings
    from plinth.modules.manager import ModuleManager
    from plinth.modules.scanner import ModuleScanner
    from plinth.modules.service import ModulesService

    scanner = ModuleScanner(
        roots or settings.module_roots, manifest_name=settings.module_manifest_name
    )
    # Reflect the persisted state; auto-enable is a server boot concern
    return ModulesService(ModuleManager(scanner=scanner), auto_enable=False)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind to"),
    port: Optional[int] = typer.Option(None, help="Port to bind to"),
    reload: Optional[bool] = typer.Option(None, help="Enable auto-reload"),
) -> None:
    """
    Start the FastAPI server.

    Defaults come from the API_HOST, API_PORT and API_RELOAD settings.
    """
    import uvicorn

    from plinth.config import settings

    host = host or settings.api_host
    port = port or settings.api_port
    reload = settings.api_reload if reload is None else reload

    console.print("[bold green]Starting Plinth API server...[/bold green]")
    console.print(f"  Host: {host}")
    console.print(f"  Port: {port}")
    console.print(f"  Reload: {reload}")
    console.print(f"  Module roots: {', '.join(str(r) for r in settings.module_roots)}")
    console.print(f"\n  API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "plinth.api.app:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command("init-db")
def init_db_command() -> None:
    """Create all database tables that do not exist yet."""
    from plinth.db.connection import init_db

    _init_logging()
    init_db()
    console.print("[green]✓ Database initialized[/green]")


@modules_app.command("list")
def list_modules(
    root: Optional[List[Path]] = typer.Option(
        None, "--root", help="Module root to scan (repeatable); overrides settings"
    ),
) -> None:
    """List discovered modules and their status."""
    from plinth.db.connection import db_session, init_db

    _init_logging()
    init_db()
    service = _build_service(root)

    with db_session() as session:
        service.initialize(session)
        modules = service.find_all(session)

    if not modules:
        console.print("[yellow]No installable modules found[/yellow]")
        return

    table = Table(title="Modules")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Depends")
    table.add_column("Enabled")
    table.add_column("Installed")

    for module in modules:
        table.add_row(
            module.id,
            module.manifest.name,
            module.manifest.version,
            ", ".join(module.depends) or "-",
            "[green]yes[/green]" if module.enabled else "no",
            module.installed_at.strftime("%Y-%m-%d %H:%M") if module.installed_at else "-",
        )

    console.print(table)


@modules_app.command("order")
def load_order(
    root: Optional[List[Path]] = typer.Option(
        None, "--root", help="Module root to scan (repeatable); overrides settings"
    ),
) -> None:
    """Print the dependency-respecting load order of all discovered modules."""
    from plinth.exceptions import CircularDependencyError
    from plinth.modules.registry import ModuleRegistry

    _init_logging()
    service = _build_service(root)
    registry: ModuleRegistry = service.manager.registry
    for module in service.manager.scanner.discover():
        registry.register_discovered(module)

    try:
        order = service.get_load_order()
    except CircularDependencyError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    for position, module_id in enumerate(order, start=1):
        console.print(f"{position:>3}. {module_id}")


@modules_app.command("enable")
def enable_module(
    module_id: str = typer.Argument(..., help="Module id (directory name)"),
    root: Optional[List[Path]] = typer.Option(
        None, "--root", help="Module root to scan (repeatable); overrides settings"
    ),
) -> None:
    """Enable a module and persist it as enabled."""
    from plinth.db.connection import db_session, init_db
    from plinth.exceptions import MissingDependencyError, UnknownModuleError

    _init_logging()
    init_db()
    service = _build_service(root)

    try:
        with db_session() as session:
            service.initialize(session)
            result = service.enable(session, module_id)
    except (UnknownModuleError, MissingDependencyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓ {result['message']}[/green]")


@modules_app.command("disable")
def disable_module(
    module_id: str = typer.Argument(..., help="Module id (directory name)"),
    root: Optional[List[Path]] = typer.Option(
        None, "--root", help="Module root to scan (repeatable); overrides settings"
    ),
) -> None:
    """Disable a module and persist it as disabled."""
    from plinth.db.connection import db_session, init_db

    _init_logging()
    init_db()
    service = _build_service(root)

    with db_session() as session:
        service.initialize(session)
        result = service.disable(session, module_id)

    console.print(f"[green]✓ {result['message']}[/green]")


if __name__ == "__main__":
    app()
