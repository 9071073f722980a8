#!/usr/bin/env python3
"""
NewsDesk Refresh Scheduler Runner
=================================

Main entry point for running the feed refresh scheduler.
Handles initialization, startup, and graceful shutdown.
"""

import sys
import asyncio
import argparse
import json
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from newsdesk.config.settings import get_settings
from newsdesk.scheduler.refresh_scheduler import RefreshScheduler
from newsdesk.services.reader_service import ReaderService
from newsdesk.utils.logging import configure_logging_from_settings, get_logger_for_component


async def main():
    """Main entry point for the scheduler service."""
    parser = argparse.ArgumentParser(description='NewsDesk Refresh Scheduler')
    parser.add_argument('--service', action='store_true',
                        help='Run as continuous service (for Docker/systemd)')
    parser.add_argument('--interval', type=int,
                        help='Override refresh interval in minutes')
    parser.add_argument('--no-startup-run', action='store_true',
                        help='Wait one interval before the first refresh')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    # Load settings
    settings = get_settings()

    configure_logging_from_settings(settings, debug=args.debug)
    logger = get_logger_for_component("scheduler_runner")

    logger.info("Starting NewsDesk Refresh Scheduler...")

    service = ReaderService(settings)
    service.init_storage()

    scheduler = RefreshScheduler(
        service.pipeline,
        settings=settings,
        interval_minutes=args.interval,
        run_on_startup=False if args.no_startup_run else None,
    )

    try:
        if args.service:
            # Service mode - run continuously
            logger.info("Starting service mode...")
            print("🕐 NewsDesk Refresh Scheduler starting...")
            print(f"📅 Refreshing every {scheduler.interval_seconds / 60:g} minutes")
            print("Press Ctrl+C to stop.")

            await scheduler.start()

        else:
            # One-time refresh mode
            logger.info("Running one-time refresh...")
            print("🔄 Refreshing all feeds...")

            result = await scheduler.trigger_now()

            print(f"Feeds: {result.feeds_succeeded}/{result.feeds_total} successful")
            print(f"Articles: {result.articles_fetched} fetched, {result.merge_stats.added} new, "
                  f"{result.merge_stats.total} archived")
            print(json.dumps(scheduler.get_status(), indent=2))

            sys.exit(0 if result.feeds_failed == 0 else 1)

    except KeyboardInterrupt:
        print("\n👋 Scheduler stopped by user")
        logger.info("Scheduler stopped by user")
        scheduler.stop()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"❌ Scheduler failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
