"""Application factory for creating FastAPI instances."""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

from .config import AppConfig, get_config, validate_config
from .core.execution_engine import ExecutionEngine
from .core.handler_registry import create_default_registry
from .core.logging import setup_logging, get_logger
from .core.middleware import ErrorHandlingMiddleware
from .storage.database import build_engine, create_tables
from .storage.migrations import run_migrations
from .storage.store import SqlAlchemyGraphStore
from .api.endpoints import router, init_dependencies


class ApplicationState:
    """Container for application state and components."""

    def __init__(self):
        self.config: Optional[AppConfig] = None
        self.database_engine: Optional[Engine] = None
        self.store: Optional[SqlAlchemyGraphStore] = None
        self.execution_engine: Optional[ExecutionEngine] = None


# Global application state
app_state = ApplicationState()


def initialize_database(config: AppConfig, logger) -> Engine:
    """Create the database engine, its tables and indexes."""
    database_engine = build_engine(config.database_url, echo=config.database_echo)
    create_tables(database_engine)
    logger.info("Database tables created")

    try:
        run_migrations(database_engine)
    except Exception as e:
        # Indexes only speed up queries; the service works without them
        logger.warning(f"Database migrations failed: {str(e)}")

    return database_engine


def create_lifespan_handler(config: AppConfig):
    """Create the application lifespan handler for ``config``."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(
            level=config.log_level.value,
            log_file=config.log_file,
            log_format=config.log_format,
            structured=config.log_structured,
            max_size=config.log_max_size,
            backup_count=config.log_backup_count
        )
        logger = get_logger(__name__)
        logger.info(f"Starting {config.app_name} v{config.app_version}")

        database_engine = initialize_database(config, logger)
        session_factory = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
        store = SqlAlchemyGraphStore(session_factory)
        execution_engine = ExecutionEngine(store, create_default_registry())

        app_state.config = config
        app_state.database_engine = database_engine
        app_state.store = store
        app_state.execution_engine = execution_engine

        init_dependencies(store, execution_engine)
        logger.info("Application startup completed successfully")

        yield

        logger.info(f"Shutting down {config.app_name}")
        database_engine.dispose()

    return lifespan


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Create and configure FastAPI application instance."""
    if config is None:
        config = get_config()

    validate_config(config)

    app = FastAPI(
        title=config.app_name,
        description="Runs node graph workflows from their trigger and records every execution",
        version=config.app_version,
        debug=config.debug,
        lifespan=create_lifespan_handler(config)
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=config.cors_methods,
            allow_headers=["*"],
        )

    app.add_middleware(ErrorHandlingMiddleware, log_requests=config.enable_request_logging)

    app.include_router(router)
    add_health_endpoints(app, config)

    return app


def add_health_endpoints(app: FastAPI, config: AppConfig) -> None:
    """Add health check endpoints to the application."""

    @app.get("/")
    async def root():
        return {"message": f"{config.app_name} is running", "version": config.app_version}

    @app.get("/api/health")
    async def health_check():
        """Liveness check."""
        return {
            "status": "healthy",
            "service": config.app_name.lower().replace(" ", "-"),
            "version": config.app_version
        }
