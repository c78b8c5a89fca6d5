"""Application startup script and CLI interface."""

import sys
import json
import asyncio
import argparse

from .config import (
    AppConfig,
    LogLevel,
    load_config,
    get_development_config,
    get_production_config,
    get_testing_config,
    validate_config
)
from .core.logging import get_logger, setup_logging


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="flowengine",
        description="Flow Execution Engine - runs node graph workflows and records their executions"
    )

    # Server configuration
    parser.add_argument("--host", help="Host to bind the server to")
    parser.add_argument("--port", type=int, help="Port to bind the server to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")

    # Environment configuration
    parser.add_argument(
        "--env",
        choices=["development", "production", "testing"],
        help="Environment configuration preset"
    )
    parser.add_argument("--config", help="Path to a .env configuration file")

    parser.add_argument("--database-url", help="Database connection URL")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level"
    )
    parser.add_argument("--log-file", help="Path to log file")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the HTTP server")
    run_parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes (default: 1)"
    )

    db_parser = subparsers.add_parser("db", help="Database management commands")
    db_subparsers = db_parser.add_subparsers(dest="db_command", help="Database commands")
    db_subparsers.add_parser("init", help="Create database tables and indexes")
    db_subparsers.add_parser("migrate", help="Run database migrations")
    db_subparsers.add_parser("reset", help="Drop and recreate all tables")

    execute_parser = subparsers.add_parser("execute", help="Run one workflow and print the outcome")
    execute_parser.add_argument("workflow_id", help="ID of the workflow to run")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="config_command", help="Config commands")
    config_subparsers.add_parser("show", help="Show current configuration")
    config_subparsers.add_parser("validate", help="Validate configuration")

    return parser


def load_configuration(args: argparse.Namespace) -> AppConfig:
    """Load configuration based on command line arguments."""
    if args.env == "development":
        config = get_development_config()
    elif args.env == "production":
        config = get_production_config()
    elif args.env == "testing":
        config = get_testing_config()
    else:
        config = load_config(args.config)

    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.reload:
        config.reload = args.reload
    if args.database_url:
        config.database_url = args.database_url
    if args.log_level:
        config.log_level = LogLevel(args.log_level)
    if args.log_file:
        config.log_file = args.log_file
    if args.debug:
        config.debug = args.debug

    return config


def run_server(config: AppConfig, workers: int = 1):
    """Run the HTTP server."""
    import uvicorn
    from .factory import create_app

    logger = get_logger(__name__)
    logger.info(f"Starting server with {workers} worker(s)")

    uvicorn_config = config.get_uvicorn_config()

    if workers > 1:
        uvicorn.run(
            "flowengine.main:app",
            workers=workers,
            **uvicorn_config
        )
    else:
        uvicorn.run(create_app(config), **uvicorn_config)


def run_database_command(command: str, config: AppConfig):
    """Run database management commands."""
    from .storage.database import create_tables, drop_tables, get_database_engine
    from .storage.migrations import run_migrations

    logger = get_logger(__name__)
    engine = get_database_engine(config.database_url, echo=config.database_echo)

    if command == "init":
        logger.info("Initializing database tables...")
        create_tables(engine)
        run_migrations(engine)
        logger.info("Database initialized successfully")

    elif command == "migrate":
        logger.info("Running database migrations...")
        run_migrations(engine)

    elif command == "reset":
        logger.info("Resetting database...")
        drop_tables(engine)
        create_tables(engine)
        run_migrations(engine)
        logger.info("Database reset completed successfully")


def execute_workflow_command(workflow_id: str, config: AppConfig) -> bool:
    """Run a workflow once against the configured database and print the outcome."""
    from .core.execution_engine import ExecutionEngine
    from .storage.database import create_tables, get_database_engine
    from .storage.store import SqlAlchemyGraphStore

    create_tables(get_database_engine(config.database_url, echo=config.database_echo))
    engine = ExecutionEngine(SqlAlchemyGraphStore())
    outcome = asyncio.run(engine.run(workflow_id))

    print(json.dumps(outcome.model_dump(mode="json"), indent=2))
    return outcome.success


def show_configuration(config: AppConfig):
    """Show current configuration."""
    print("Current Configuration:")
    print(f"  App Name: {config.app_name}")
    print(f"  Version: {config.app_version}")
    print(f"  Debug: {config.debug}")
    print(f"  Host: {config.host}")
    print(f"  Port: {config.port}")
    print(f"  Database URL: {config.database_url}")
    print(f"  Log Level: {config.log_level.value}")
    print(f"  Log File: {config.log_file or '-'}")
    print(f"  CORS Origins: {', '.join(config.cors_origins)}")


def validate_configuration_command(config: AppConfig):
    """Validate configuration and show results."""
    try:
        validate_config(config)
        print("Configuration validation: PASSED")
    except ValueError as e:
        print("Configuration validation: FAILED")
        print(f"Error: {e}")
        sys.exit(1)


def main(argv=None):
    """Main entry point for the application."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        config = load_configuration(args)
        validate_config(config)

        if args.command == "run" or args.command is None:
            run_server(config, getattr(args, "workers", 1))
            return

        setup_logging(level=config.log_level.value, log_file=config.log_file)

        if args.command == "db":
            if not args.db_command:
                print("Database command required. Use --help for options.")
                sys.exit(1)
            run_database_command(args.db_command, config)

        elif args.command == "execute":
            if not execute_workflow_command(args.workflow_id, config):
                sys.exit(1)

        elif args.command == "config":
            if args.config_command == "show":
                show_configuration(config)
            elif args.config_command == "validate":
                validate_configuration_command(config)
            else:
                print("Configuration command required. Use --help for options.")
                sys.exit(1)

    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
