#!/usr/bin/env python3
"""
Pill Reminder Database Setup Script
===================================

Creates the pill regimen and scheduled job tables before starting the API
or the Celery worker.

Usage:
    python scripts/setup_database.py [--check-only]
"""

import sys
import logging
import argparse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from pillreminder.core.config import settings
from pillreminder.db.session import engine
from pillreminder.db.base import Base

# Import all models to ensure they are registered with Base.metadata
from pillreminder import models  # noqa: F401

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def test_connection():
    """Test database connection"""
    logger.info("Testing database connection...")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False


def missing_tables():
    """Names of model tables not yet present in the database"""
    existing_tables = inspect(engine).get_table_names()
    required_tables = [table.name for table in Base.metadata.tables.values()]
    logger.info(f"Found {len(existing_tables)} existing tables, {len(required_tables)} required")
    return [table for table in required_tables if table not in existing_tables]


def create_tables():
    """Create all required tables"""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info(f"Created tables: {', '.join(inspect(engine).get_table_names())}")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Failed to create tables: {e}")
        return False


def main():
    """Main setup function"""
    parser = argparse.ArgumentParser(description='Pill Reminder Database Setup')
    parser.add_argument('--check-only', action='store_true',
                        help='Only check if tables exist, do not create')
    args = parser.parse_args()

    logger.info(f"Pill Reminder Database Setup ({settings.ENVIRONMENT.value})")

    if not test_connection():
        logger.error("Cannot proceed without database connection")
        sys.exit(1)

    missing = missing_tables()
    if args.check_only:
        if missing:
            logger.error(f"Database check failed - missing tables: {missing}")
            sys.exit(1)
        logger.info("Database check passed - all tables exist")
        sys.exit(0)

    if missing and not create_tables():
        sys.exit(1)

    if missing_tables():
        logger.error("Setup verification failed")
        sys.exit(1)
    logger.info("Database setup completed. Start the API with:")
    logger.info("  uvicorn pillreminder.main:app --host 0.0.0.0 --port 8000")
    logger.info("and the worker with:")
    logger.info("  celery -A pillreminder.reminders.celery_app:celery_app worker --beat -Q pillreminder.input")


if __name__ == "__main__":
    main()
