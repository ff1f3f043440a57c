"""Starlette application factory."""

import contextlib
import logging
from typing import Any, AsyncIterator

from starlette.applications import Starlette

from feastfinder.infrastructure.web.routes import routes

logger = logging.getLogger(__name__)


def create_app(deps: Any, debug: bool = False) -> Starlette:
    """Builds the API app around an already wired dependency container.

    `deps` must expose the application services used by the routes and an
    async `aclose()` that releases outbound HTTP clients on shutdown.
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("Feast Finder API starting")
        try:
            yield
        finally:
            await deps.aclose()
            logger.info("Feast Finder API stopped")

    app = Starlette(debug=debug, routes=routes, lifespan=lifespan)
    app.state.deps = deps
    return app
