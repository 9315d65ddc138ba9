"""
Server entry point.

Parses the command line, loads ``.env``, configures logging and runs the
FastAPI application under uvicorn.
"""

import argparse
import sys

import uvicorn
from dotenv import load_dotenv

from .app import create_app
from .config.settings import AppSettings
from .exceptions import ConfigurationError
from .utils.logging import configure_logging, get_logger


def main() -> None:
    """Main entry point for the ElasticScope server."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="ElasticScope Server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default=None, help="Host to bind to (defaults to HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to (defaults to PORT)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    args = parser.parse_args()

    settings = AppSettings()
    configure_logging(
        log_level=None if args.verbose else settings.log_level,
        log_file=settings.log_file,
        enable_json_logging=settings.log_json,
        verbose=args.verbose,
    )
    logger = get_logger(__name__)

    host = args.host or settings.host
    port = args.port or settings.port

    try:
        # Fail before binding if the database variables are incomplete
        settings.resolve_database_url()
        app = create_app(settings)
        logger.info(f"Starting ElasticScope Server on http://{host}:{port}")
        uvicorn.run(app, host=host, port=port, log_config=None)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}", extra={"error_info": e.to_dict()})
        sys.exit(1)


if __name__ == "__main__":
    main()
