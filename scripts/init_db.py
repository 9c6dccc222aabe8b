#!/usr/bin/env python3
"""
Database initialization script
Creates the config / experiment tables and optionally seeds the neutral tuning config
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Load .env file
from dotenv import load_dotenv
load_dotenv()

from adaptive_edge.models import Base, engine, SessionLocal
from adaptive_edge.services.config_manager import PipelineConfigManager
from adaptive_edge.services.config_store import SqlConfigStore
import logging
from sqlalchemy import text, inspect

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init_database(drop_existing: bool = False) -> bool:
    """
    Create all tables.

    Args:
        drop_existing: If True, drops all tables first (DANGER: loses the
            current tuning config and every A-B assignment!)
    """
    logger.info("🔧 Initializing adaptive-edge database...")

    if drop_existing:
        logger.warning("⚠️  Dropping all existing tables!")
        response = input("Are you sure? This will delete all data. Type 'yes' to confirm: ")
        if response.lower() != 'yes':
            logger.info("Aborted.")
            return False

        Base.metadata.drop_all(bind=engine)
        logger.info("✅ Existing tables dropped")

    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables created successfully")

    tables = inspect(engine).get_table_names()
    logger.info("📋 Tables: %s", ", ".join(tables))
    return True


def seed_default_config() -> None:
    """Store the neutral tuning config unless one is already saved"""
    db = SessionLocal()
    try:
        manager = PipelineConfigManager(SqlConfigStore(db))
        version = manager.get_config_version()
        if version:
            logger.info("Tuning config v%d already stored; leaving it alone", version)
            return
        config = manager.reset_config()
        logger.info("🌱 Seeded neutral tuning config v%d", config.version)
    finally:
        db.close()


def check_connection() -> bool:
    """Test database connection"""
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        logger.info("✅ Database connection successful")
        return True
    except Exception as e:
        logger.error("❌ Database connection failed: %s", e)
        return False


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Initialize adaptive-edge database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DANGER!)")
    parser.add_argument("--seed", action="store_true", help="Store the neutral tuning config")
    parser.add_argument("--check", action="store_true", help="Only check connection")

    args = parser.parse_args()

    if args.check:
        sys.exit(0 if check_connection() else 1)

    if not check_connection():
        logger.error("Cannot initialize database - connection failed")
        sys.exit(1)

    if init_database(drop_existing=args.drop) and args.seed:
        seed_default_config()
    logger.info("🎉 Database initialization complete!")
