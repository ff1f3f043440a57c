"""Main entry point for the Feast Finder application.

Sets up the Typer CLI application, obtains the wired dependencies from the
composition root, defines CLI commands, and delegates execution to the
CommandHandler or, for `serve`, to the Starlette app under uvicorn.
"""

import asyncio
import logging
from typing import Annotated, Any, Coroutine, Optional

import typer
import uvicorn

from feastfinder import __version__
from feastfinder.dependencies import Dependencies, create_dependencies
from feastfinder.infrastructure.config.settings import get_config
from feastfinder.infrastructure.web.app import create_app

logger = logging.getLogger(__name__)

_dependencies: Optional[Dependencies] = None


def get_dependencies() -> Dependencies:
    """Builds the dependency container on first use."""
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


app = typer.Typer(
    name="feastfinder",
    help=f"Feast Finder v{__version__}: Christmas dishes, carols and recipes from around the world.",
    add_completion=False,
)

ModeOption = Annotated[
    Optional[str],
    typer.Option("--mode", "-m", help="Search mode: 'fast' or 'detailed'."),
]


def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs a handler coroutine, closes outbound clients, and sets the exit code."""
    deps = get_dependencies()

    async def _run() -> bool:
        try:
            return await coro
        finally:
            await deps.aclose()

    if not asyncio.run(_run()):
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[Optional[int], typer.Option(help="Port; defaults to the configured PORT.")] = None,
    reload: Annotated[bool, typer.Option(help="Auto-reload on code changes.")] = False,
):
    """Runs the HTTP API."""
    deps = get_dependencies()
    bind_port = port or deps.config.server_port
    logger.info(f"Serving Feast Finder API on {host}:{bind_port} ({deps.config.environment})")
    if reload:
        uvicorn.run("feastfinder.main:create_web_app", host=host, port=bind_port, reload=True, factory=True)
    else:
        uvicorn.run(create_web_app(), host=host, port=bind_port, log_level=str(get_config("logging.level", "info")).lower())


@app.command()
def countries():
    """Lists the countries Feast Finder recognizes."""
    run_async(get_dependencies().command_handler.handle_countries())


@app.command()
def feast(
    country: Annotated[str, typer.Argument(help="Country to look up, e.g. 'Poland'.")],
    mode: ModeOption = None,
):
    """Shows Christmas dishes and a carol for a country."""
    run_async(get_dependencies().command_handler.handle_feast(country, mode))


@app.command()
def recipe(
    dish: Annotated[str, typer.Argument(help="Dish name.")],
    country: Annotated[str, typer.Option("--country", "-c", help="Country the dish comes from.")],
    mode: ModeOption = None,
):
    """Shows a step-by-step recipe for a dish."""
    run_async(get_dependencies().command_handler.handle_recipe(dish, country, mode))


def create_web_app():
    """App factory for uvicorn."""
    deps = get_dependencies()
    return create_app(deps, debug=deps.config.environment == "development")


def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
