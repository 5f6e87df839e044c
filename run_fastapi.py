"""
Main entry point for the FastAPI application.
Run this file to start the FastAPI server.

Usage:
    python run_fastapi.py

Or with uvicorn directly:
    uvicorn unilink.app:create_fastapi_app --factory --host 0.0.0.0 --port 5001
"""

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

import logging

import uvicorn

from unilink.config.logging_config import setup_logging
from unilink.config.settings import Config

logger = logging.getLogger("unilink.run")

if __name__ == "__main__":
    debug = Config.APP_ENV == "development"

    setup_logging(Config.LOG_LEVEL, Config.LOG_PATH)
    logger.info(f"Starting UniLink API in {Config.APP_ENV} mode...")
    logger.info(f"Server running on http://{Config.HOST}:{Config.PORT}")
    logger.info(f"API docs available at http://{Config.HOST}:{Config.PORT}/docs")

    uvicorn.run(
        "unilink.app:create_fastapi_app",
        factory=True,
        host=Config.HOST,
        port=Config.PORT,
        reload=debug,
        log_level="info" if debug else "warning",
        # Keep-alive for /ws: protocol-level ping, dead peers are dropped
        ws_ping_interval=Config.WS_PING_INTERVAL,
        ws_ping_timeout=Config.WS_PING_TIMEOUT,
    )
