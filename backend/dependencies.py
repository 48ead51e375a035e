"""
Dependency providers.

Services are created once at startup and stored on app.state; endpoints look
them up by name through Endpoint.resolve(). The factory functions below are the
only place that knows how each service is constructed, so tests can swap any of
them by assigning a different object to app.state.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, sessionmaker
from starlette.datastructures import State

from config.app_config import AppConfig
from database import create_db_engine, create_session_factory, init_database
from repositories.customer_repository import CustomerRepository
from services.endpoint_registry import EndpointRegistry
from services.interfaces import ISerializer
from services.serializer import JsonSerializer

CONFIG = "config"
SERIALIZER = "serializer"
ENDPOINT_REGISTRY = "endpoint_registry"
SESSION_FACTORY = "session_factory"


def get_serializer() -> ISerializer:
    """
    Factory function for the response serializer.

    Returns:
        ISerializer: JSON serializer implementation
    """
    return JsonSerializer()


def get_session_factory(config: AppConfig) -> sessionmaker:
    """
    Factory function for database sessions.

    Creates the engine for config.database_url and makes sure tables exist.
    """
    engine = create_db_engine(config.database_url)
    init_database(engine)
    return create_session_factory(engine)


def install_services(state: State, config: AppConfig, registry: EndpointRegistry) -> None:
    """Populate app.state with every service endpoints may resolve."""
    setattr(state, CONFIG, config)
    setattr(state, SERIALIZER, get_serializer())
    setattr(state, ENDPOINT_REGISTRY, registry)
    setattr(state, SESSION_FACTORY, get_session_factory(config))


@contextmanager
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    """Scoped database session, always closed."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def get_customer_repository(db: Session) -> CustomerRepository:
    """
    Factory function for creating CustomerRepository instances.

    Args:
        db: Database session

    Returns:
        CustomerRepository instance
    """
    return CustomerRepository(db)
