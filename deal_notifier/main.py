"""
Main entry point for the Deal Notifier system.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .orchestrator import NotificationOrchestrator
from .services.config_manager import ConfigurationManager
from .utils.logging import get_logger, setup_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="deal-notifier",
        description="Watch deal search pages and post new matches to webhooks",
    )
    parser.add_argument(
        "config_path",
        nargs="?",
        default=None,
        help="Path to configuration file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run the pipeline once and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    return parser.parse_args(argv)


async def async_main(
    config_path: Optional[str] = None,
    once: bool = False,
    log_level: Optional[str] = None,
) -> int:
    """Async main application entry point."""
    config_manager = ConfigurationManager(config_path)
    settings = config_manager.load_settings()

    setup_logging(settings.log_dir, log_level or settings.log_level)
    logger = get_logger("main")
    logger.info(
        "Starting Deal Notifier system",
        extra={"config_path": config_manager.config_path, "once": once},
    )

    orchestrator = NotificationOrchestrator.from_settings(
        settings, config_manager.config_path
    )

    if once:
        try:
            report = await orchestrator.run_once()
        finally:
            await orchestrator.shutdown()
        return 1 if report.timed_out or report.failed_channels else 0

    await orchestrator.run_forever()
    return 0


def main():
    """Main application entry point."""
    args = parse_args()

    try:
        exit_code = asyncio.run(
            async_main(args.config_path, once=args.once, log_level=args.log_level)
        )
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        exit_code = 0
    except Exception as e:
        print(f"Fatal error: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
