"""
Start the VADIY chat backend.

Usage:
    python run_fastapi.py

Or with uvicorn directly:
    uvicorn src.fastapi_app:app --host 0.0.0.0 --port 3001
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from src.config.logging_config import setup_logging
from src.config.settings import Config

logger = logging.getLogger("run_fastapi")

if __name__ == "__main__":
    setup_logging(Config.LOG_LEVEL, Config.LOG_PATH)
    port = int(os.getenv("PORT", "3001"))
    host = os.getenv("HOST", "0.0.0.0")
    reload = Config.APP_ENV == "development"

    logger.info("Starting VADIY chat backend (%s) on %s:%s", Config.APP_ENV, host, port)

    uvicorn.run(
        "src.fastapi_app:app",
        host=host,
        port=port,
        reload=reload,
        log_level="warning" if Config.is_production() else "info",
    )
