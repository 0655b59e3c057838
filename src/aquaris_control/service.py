"""FastAPI service exposing the Aquaris controller.

The controller is created from the ``AQUARIS_*`` environment when the
application starts, unless one is passed to ``create_app`` (as the tests do).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.routes_commands import router as commands_router
from .api.routes_devices import router as devices_router
from .config import Settings, configure_logging
from .controller import AquarisController
from .preferences import PreferenceStore
from .transport import build_transport

logger = logging.getLogger(__name__)


def build_controller(settings: Settings | None = None) -> AquarisController:
    """Create a controller from the given (or environment) settings.

    Raises:
        ConfigurationError: If the transport configuration is invalid.
    """
    settings = settings or Settings.from_env()
    transport = build_transport(settings)
    logger.info(
        "Using %s transport; preferences in %s",
        settings.transport,
        settings.config_dir,
    )
    return AquarisController(
        transport,
        PreferenceStore(settings.config_dir),
        poll_interval=settings.poll_interval,
        repeat_interval=settings.repeat_interval,
        discover_on_start=settings.discover_on_start,
    )


def create_app(controller: AquarisController | None = None) -> FastAPI:
    """Build the FastAPI application around a controller."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the controller with the app and stop it on shutdown."""
        active = controller or build_controller()
        app.state.controller = active
        await active.start()
        try:
            yield
        finally:
            await active.stop()

    app = FastAPI(title="Aquaris Control Service", lifespan=lifespan)
    app.include_router(devices_router)
    app.include_router(commands_router)
    return app


app = create_app()


def main() -> None:  # pragma: no cover - thin CLI wrapper
    """Run the FastAPI service under Uvicorn."""
    import uvicorn

    configure_logging()
    settings = Settings.from_env()
    uvicorn.run(
        "aquaris_control.service:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":  # pragma: no cover
    main()
