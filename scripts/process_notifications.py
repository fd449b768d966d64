#!/usr/bin/env python3
"""
Hand pending scheduled notifications to the dispatcher.
Run: python scripts/process_notifications.py [--loop SECONDS]
"""
import argparse
import logging
import os
import sys
import time

# ensure project root on path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config import get_settings
from services.notification_service import LoggingDispatcher, NotificationService
from storage import create_storage


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def process_once(service: NotificationService) -> int:
    results = service.process_scheduled_notifications()
    failed = [r for r in results if r.error]
    for result in failed:
        logger.error(f"Notification {result.notification_id} failed on {result.channel}: {result.error}")
    logger.info(f"Processed {len(results)} notifications ({len(failed)} failed)")
    return len(results)


def main():
    parser = argparse.ArgumentParser(description="Process scheduled notifications")
    parser.add_argument(
        "--loop",
        type=int,
        default=0,
        help="Repeat every N seconds instead of running once"
    )
    args = parser.parse_args()

    service = NotificationService(create_storage(get_settings()), dispatcher=LoggingDispatcher())

    if not args.loop:
        process_once(service)
        return

    logger.info(f"Processing scheduled notifications every {args.loop}s (Ctrl+C to stop)")
    try:
        while True:
            process_once(service)
            time.sleep(args.loop)
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
