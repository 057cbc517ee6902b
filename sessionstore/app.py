"""FastAPI application factory wiring the session store together."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from sessionstore import __version__
from sessionstore.config import SessionConfig, get_config
from sessionstore.logger import setup_logger
from sessionstore.manager import Manager
from sessionstore.middleware import SessionMiddleware
from sessionstore.registry import Registry, build_registry

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[SessionConfig] = None,
    registry: Optional[Registry] = None,
) -> FastAPI:
    """Create a FastAPI application with session support installed.

    Args:
        config: Session store configuration (defaults to get_config())
        registry: Provider registry (defaults to build_registry(config))

    Returns:
        FastAPI application with SessionMiddleware and a /health endpoint

    Raises:
        ConfigurationError: If configuration is invalid
        UnknownProviderError: If the configured provider is not registered
    """
    config = config or get_config()
    setup_logger("sessionstore", config.log_level)

    registry = registry or build_registry(config)
    manager = Manager.from_registry(registry, config.provider, config.options())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        removed = await run_in_threadpool(manager.provider.cleanup)
        logger.info(
            "Session store ready",
            extra={"provider": config.provider, "expired_removed": removed},
        )

        yield

        # Shutdown
        manager.close()

    app = FastAPI(
        title="Session Store",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session_manager = manager
    app.add_middleware(SessionMiddleware, manager=manager)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__, "provider": config.provider}

    return app
