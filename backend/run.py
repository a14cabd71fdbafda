#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Creates the tables on the configured database (SQLite file by default)
and serves the API with auto-reload. Use alembic for real databases.
"""
import logging
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn

from app.core.config import settings
from app.database import init_db

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    init_db()
    logger.info("Tables ready on %s", settings.get_database_url())
    print("Access at: http://localhost:8000")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
