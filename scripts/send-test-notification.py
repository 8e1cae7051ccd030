#!/usr/bin/env python3
"""
Deal Notifier - Webhook Test Notification Script

Sends the fixed test notification to a webhook URL, or to every channel in
a configuration file, and reports whether delivery succeeded.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from deal_notifier.components.message_dispatcher import WebhookDispatcher  # noqa: E402
from deal_notifier.services.config_store import YamlConfigurationStore  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Send a test webhook notification")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--webhook-url", help="Webhook URL to send to")
    target.add_argument(
        "--config", help="Configuration file; sends to every configured channel"
    )
    args = parser.parse_args()

    if args.webhook_url:
        targets = [("webhook", args.webhook_url)]
    else:
        store = YamlConfigurationStore(args.config)
        targets = [(channel.name, channel.webhook_url) for channel in store.list_channels()]

    if not targets:
        print("❌ No channels configured")
        return 1

    dispatcher = WebhookDispatcher()
    failures = 0

    try:
        for name, webhook_url in targets:
            result = dispatcher.send_test_notification(webhook_url)
            if result.success:
                print(f"✅ {name}: test notification sent")
            else:
                print(f"❌ {name}: {result.error_message}")
                failures += 1
    finally:
        dispatcher.close()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
