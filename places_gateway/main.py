"""
FastAPI application entry point for the places gateway.

This is the main application file that configures logging, builds the
orchestrator from configuration and registers routes. The request logic
itself lives in the orchestrator, client and transformer modules.
"""
import argparse
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from .cache import ResponseCache
from .config_loader import Config, config
from .errors import register_error_handlers
from .orchestrator import PlacesOrchestrator
from .places_client import PlacesClient
from .routes import router

# Configure logging for the application
logging.basicConfig(
    level=config.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_orchestrator(settings: Config) -> PlacesOrchestrator:
    """Wire client, cache and timeouts from configuration."""
    cache = ResponseCache(max_entries=settings.cache_size) if settings.cache_enabled else None
    return PlacesOrchestrator(
        PlacesClient(base_url=settings.target_addr),
        request_timeout=settings.request_timeout,
        upstream_timeout=settings.upstream_timeout,
        cache=cache,
        single_flight=settings.single_flight,
    )


def create_app(
    orchestrator: PlacesOrchestrator | None = None,
    settings: Config | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator, mainly for tests. Built from
            ``settings`` when omitted.
        settings: Configuration to use instead of the global config.
    """
    settings = settings or config
    orchestrator = orchestrator or build_orchestrator(settings)

    @asynccontextmanager
    async def app_lifespan(app: FastAPI):
        """
        FastAPI lifespan handler.

        Logs the effective configuration on start and cancels fetches that
        are still running in the background on shutdown.
        """
        _ = app
        logger.info("Starting places gateway")
        logger.info(f"Upstream: {settings.target_addr}")
        logger.info(f"Server: {settings.listen_host}:{settings.listen_port}")
        logger.info(
            f"Request timeout: {orchestrator.request_timeout}s, "
            f"cache: {orchestrator.cache.max_entries if orchestrator.cache else 'disabled'}"
        )
        try:
            yield
        finally:
            await orchestrator.aclose()
            logger.info("Shutting down places gateway")

    app = FastAPI(
        title="Places Gateway",
        version="1.0.0",
        description="Caching gateway that reshapes upstream place search results",
        lifespan=app_lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.orchestrator = orchestrator
    app.state.settings = settings

    register_error_handlers(app)
    app.include_router(router)

    if settings.debug:

        @app.middleware("http")
        async def log_processing_time(
            request: Request,
            call_next: Callable[[Request], Awaitable[Response]],
        ) -> Response:
            """Log the wall-clock time spent on every request."""
            start = time.perf_counter()
            try:
                return await call_next(request)
            finally:
                logger.debug(
                    "request url=%s processing time=%.3fms",
                    request.url,
                    (time.perf_counter() - start) * 1000,
                )

    return app


# Initialize FastAPI application
app = create_app()


def run(argv: list[str] | None = None) -> None:
    """Command line entry point: serve the gateway with uvicorn."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Places gateway")
    parser.add_argument("--config", help="Configuration file (YAML or JSON)")
    args = parser.parse_args(argv)

    settings = Config(args.config) if args.config else config
    logging.getLogger().setLevel(settings.log_level.upper())

    uvicorn.run(
        create_app(settings=settings),
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=logging.getLevelName(settings.log_level.upper()),
    )


if __name__ == "__main__":
    run()
