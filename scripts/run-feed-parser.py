#!/usr/bin/env python3
"""
Deal Notifier - Search Page Parser Debug Script

Fetches the search page for one or more search terms and prints the parsed
deals, without touching the dedup store or sending notifications.
"""

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from deal_notifier.components.deal_parser import (  # noqa: E402
    DEFAULT_BASE_URL,
    DealParser,
)
from deal_notifier.exceptions import FetchError  # noqa: E402


def print_deals(search_term: str, deals, as_json: bool) -> None:
    if as_json:
        payload = []
        for deal in deals:
            data = asdict(deal)
            data["temperature"] = deal.temperature.value if deal.temperature else None
            payload.append(data)
        print(json.dumps({"search_term": search_term, "deals": payload}, indent=2))
        return

    print(f"🔎 {search_term}: {len(deals)} deals")
    print("=" * 60)
    for deal in deals:
        print(f"[{deal.deal_id}] {deal.title}")
        print(f"    {deal.link}")
        details = [
            value
            for value in (
                deal.price,
                f"was {deal.original_price}" if deal.original_price else None,
                f"save {deal.savings} ({deal.savings_percentage}%)"
                if deal.savings
                else None,
                deal.merchant,
                deal.temperature.value if deal.temperature else None,
            )
            if value
        ]
        if details:
            print(f"    {' | '.join(details)}")
    print()


def main() -> int:
    parser = argparse.ArgumentParser(description="Fetch and print parsed deals")
    parser.add_argument("search_terms", nargs="+", help="Search terms to fetch")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Source origin")
    parser.add_argument("--timeout", type=float, default=10.0, help="Request timeout")
    parser.add_argument("--json", action="store_true", help="Print JSON output")
    args = parser.parse_args()

    deal_parser = DealParser(base_url=args.base_url, timeout=args.timeout)
    failures = 0

    try:
        for search_term in args.search_terms:
            try:
                deals = deal_parser.fetch_deals(search_term)
            except FetchError as e:
                print(f"❌ {e}", file=sys.stderr)
                failures += 1
                continue
            print_deals(search_term, deals, args.json)
    finally:
        deal_parser.close()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
