from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from typing import Optional
import logging

from api.admin import AdminLoginEndpoint
from api.customers import (
    CreateCustomerEndpoint,
    CustomerCardEndpoint,
    DeleteCustomerEndpoint,
    ExportCustomersEndpoint,
    GetCustomerEndpoint,
)
from api.downloads import DownloadFileEndpoint, HealthEndpoint
from api.endpoint import map_endpoints
from config.app_config import AppConfig
from constants import ServerConfig
from dependencies import install_services
from services.endpoint_registry import EndpointRegistry
from utils.error_handlers import register_exception_handlers
from utils.logging_utils import configure_logging, log_requests

logger = logging.getLogger(__name__)

ENDPOINTS = [
    AdminLoginEndpoint,
    ExportCustomersEndpoint,
    GetCustomerEndpoint,
    CreateCustomerEndpoint,
    DeleteCustomerEndpoint,
    CustomerCardEndpoint,
    DownloadFileEndpoint,
    HealthEndpoint,
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown"""
    config = app.state.config
    logger.info(f"Starting Typed Endpoints API ({config.environment}) with {len(app.state.endpoint_registry)} endpoints")
    if not config.files_root.exists():
        logger.warning(f"FILES_ROOT does not exist: {config.files_root}")
    yield
    logger.info("Application shutdown complete")


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings to use; read from the environment when omitted

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config = config or AppConfig.from_env()
    config.validate()
    configure_logging(config)

    app = FastAPI(
        title="Typed Endpoints API",
        description="Typed endpoint base classes over FastAPI's response pipeline",
        version="1.0.0",
        debug=config.is_development,
        lifespan=lifespan,
    )

    registry = EndpointRegistry()
    install_services(app.state, config, registry)
    map_endpoints(app, registry, ENDPOINTS)
    register_exception_handlers(app)

    @app.middleware("http")
    async def _log_requests(request: Request, call_next):
        return await log_requests(request, call_next)

    return app


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    logger.info(f"🚀 Starting Typed Endpoints API on {ServerConfig.url()}...")
    uvicorn.run(app, host=ServerConfig.HOST, port=ServerConfig.PORT)
