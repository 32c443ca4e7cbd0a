#!/usr/bin/env python3
"""Development runner script for sheet-jira-sync."""

import sys
from pathlib import Path

from sheetjira.models.config import AppSettings
from sheetjira.utils.config_store import ConfigStore
from sheetjira.utils.logger import setup_logging, get_logger


def main():
    """Main development runner."""
    print("🚀 Starting sheet-jira-sync in development mode...")

    env_file = Path(".env")
    if not env_file.exists():
        print("⚠️  .env file not found, using defaults")
        print("📝 To customize: cp config/.env.example .env")

    settings = AppSettings()

    setup_logging(log_level=settings.log_level)
    logger = get_logger(__name__)

    logger.info("🔧 Development mode configuration:")
    logger.info(f"   Environment: {settings.environment}")
    logger.info(f"   Log Level: {settings.log_level}")
    logger.info(f"   Host: {settings.host}:{settings.port}")
    logger.info(f"   Config store: {settings.config_path}")
    logger.info(f"   Workbook: {settings.workbook_path}")

    if not Path(settings.workbook_path).exists():
        print(f"⚠️  Workbook {settings.workbook_path} not found; sheet endpoints will return 404")

    config = ConfigStore(settings.config_path).load()
    if not config.is_configured:
        print(f"\n⚠️  Jira connection not configured (missing: {', '.join(config.missing_connection_fields())})")
        print(f"   PUT http://{settings.host}:{settings.port}/config/settings to set it up")

    print("\n🔗 Available endpoints:")
    print(f"   Health Check: http://{settings.host}:{settings.port}/health")
    print(f"   API Docs: http://{settings.host}:{settings.port}/docs")

    print(f"\n🤖 Starting server on {settings.host}:{settings.port}...")
    print("   Press Ctrl+C to stop")

    import uvicorn
    uvicorn.run(
        "sheetjira.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n👋 Shutting down...")
    except Exception as e:
        print(f"❌ Unexpected error: {e}")
        sys.exit(1)
