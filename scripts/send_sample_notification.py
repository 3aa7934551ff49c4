#!/usr/bin/env python3
"""Sample notification harness for end-to-end validation.

This script provides a manual way to validate the email processor without
running pytest. It can operate in two modes:

1. Dry-run mode (default): Recipients come from a YAML directory fixture and
   the transport's send is mocked, so no mail leaves the machine
2. Real send mode: Queries the configured catalog and sends through the
   configured transport (requires network access and valid credentials)

Usage:
    # Dry run against the directory fixture
    python scripts/send_sample_notification.py --config config.yaml --entity-ref user:default/mock

    # Broadcast dry run
    python scripts/send_sample_notification.py --config config.yaml --broadcast

    # Real send
    SAMPLE_REAL_SEND=1 python scripts/send_sample_notification.py --config config.yaml \\
        --entity-ref user:default/jdoe --title "Test notification"
"""

import argparse
import os
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from notifications_email.catalog import CatalogClient
from notifications_email.config import ConfigurationError, load_config
from notifications_email.logging.config import configure_logging
from notifications_email.notifications import NotificationEmailDispatcher
from notifications_email.transports import SendResult
from tests.helpers import FakeDirectory, load_fixture_entities


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_report(report, sent_messages):
    """Print the dispatch report and any captured messages."""
    print_header("Dispatch Summary")

    print(f"Notification: {report.notification_id}")
    print(f"Status: {report.status}")
    if report.reason:
        print(f"Reason: {report.reason}")
    print(f"Recipients: {len(report.recipients)}")
    print(f"Sent: {report.sent_count}")
    print(f"Failed: {report.failed_count}")

    for result in report.results:
        marker = "✓" if result.is_success() else "✗"
        detail = result.message_id if result.is_success() else result.error
        print(f"  {marker} {result.recipient}: {detail}")

    if sent_messages:
        print("\n" + "-" * 80)
        print(" Captured Messages (not sent)")
        print("-" * 80 + "\n")
        for message in sent_messages:
            print(f"From: {message.sender}")
            print(f"To: {message.to}")
            if message.reply_to:
                print(f"Reply-To: {message.reply_to}")
            print(f"Subject: {message.subject}")
            print(f"Text: {message.text!r}")
            print(f"HTML: {message.html!r}")
            print()


def main():
    """Main entry point for the sample notification harness."""
    parser = argparse.ArgumentParser(
        description="Send a sample notification through the email processor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--entity-ref",
        action="append",
        default=[],
        help="Entity reference to notify (repeatable)",
    )
    target.add_argument(
        "--broadcast",
        action="store_true",
        help="Send a broadcast notification",
    )
    parser.add_argument("--title", default="Sample notification", help="Notification title")
    parser.add_argument("--description", default=None, help="Notification description")
    parser.add_argument("--link", default=None, help="Notification link")
    parser.add_argument(
        "--severity",
        default="normal",
        choices=["low", "normal", "high", "critical"],
        help="Notification severity (default: normal)",
    )
    parser.add_argument(
        "--fixtures",
        type=Path,
        default=Path("tests/fixtures/directory.yaml"),
        help="Directory fixture used in dry-run mode (default: tests/fixtures/directory.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    load_dotenv()

    real_send = os.environ.get("SAMPLE_REAL_SEND", "0") == "1"

    print_header("Notifications Email Processor - Sample Notification")

    print(f"Configuration file: {args.config}")
    print(f"Log level: {args.log_level}")

    if real_send:
        print("\n⚠️  REAL SEND MODE ENABLED")
        print("   Recipients are resolved against the catalog and emails will be delivered.")
        response = input("\nContinue? [y/N]: ")
        if response.lower() != "y":
            print("Aborted.")
            return 1
    else:
        print(f"Dry-run mode: {args.fixtures}")
        print("\nUsing fixture directory (no email will be sent)")

    if not args.config.exists():
        print(f"\n❌ Error: Configuration file not found: {args.config}")
        return 1

    if not real_send and not args.fixtures.exists():
        print(f"\n❌ Error: Fixture file not found: {args.fixtures}")
        print("   Run with SAMPLE_REAL_SEND=1 to use the real catalog instead.")
        return 1

    try:
        print("\n📋 Loading configuration...")
        app_config, env_config = load_config(args.config)

        configure_logging(
            level=env_config.log_level or args.log_level,
            format_type=app_config.logging.format.value,
            environment=env_config.environment,
        )

        if real_send:
            if not app_config.catalog.base_url:
                print("\n❌ Error: catalog.base_url (or CATALOG_BASE_URL) is required for real sends")
                return 1
            directory = CatalogClient(
                base_url=app_config.catalog.base_url,
                timeout=app_config.catalog.request_timeout,
                user_agent=app_config.catalog.user_agent,
            )
        else:
            directory = FakeDirectory(load_fixture_entities(args.fixtures))

        dispatcher = NotificationEmailDispatcher.from_config(
            app_config.email,
            directory,
            token_provider=lambda: env_config.catalog_token,
        )
        print(f"✓ Transport: {dispatcher.transport.name}")

        if args.broadcast:
            recipients = {"type": "broadcast"}
        elif args.entity_ref:
            recipients = {"type": "entity_refs", "entityRefs": args.entity_ref}
        else:
            recipients = {"type": "entity", "entityRef": "user:default/mock"}

        payload = {
            "title": args.title,
            "description": args.description,
            "link": args.link,
            "severity": args.severity,
        }
        event = {
            "origin": "sample-harness",
            "id": str(uuid.uuid4()),
            "user": None if args.broadcast else recipients.get("entityRef"),
            "created": datetime.now(timezone.utc),
            "payload": payload,
        }

        print("\n🚀 Dispatching notification...")
        sent_messages = []
        if real_send:
            report = dispatcher.post_process(event, {"recipients": recipients, "payload": payload})
        else:
            def capture(message):
                sent_messages.append(message)
                return SendResult(message_id="<dry-run>", accepted=[message.to])

            with patch.object(dispatcher.transport, "send", side_effect=capture):
                report = dispatcher.post_process(event, {"recipients": recipients, "payload": payload})

        print_report(report, sent_messages)

        return 0 if report.status in ("sent", "no_recipients", "skipped") else 1

    except ConfigurationError as e:
        print(f"\n❌ Configuration error:\n{e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
