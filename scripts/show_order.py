#!/usr/bin/env python3
"""
Print the order stored in the brain.

Run with:
  python scripts/show_order.py
  python scripts/show_order.py --brain sqlite:///storage/lunches.db --users
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from lunches.brain import BrainKeyError, open_brain  # noqa: E402
from lunches.config import load_settings  # noqa: E402
from lunches.errors import OrderSerializationError  # noqa: E402
from lunches.order import Order  # noqa: E402


def main(argv=None) -> int:
    settings = load_settings()
    ap = argparse.ArgumentParser(description="Show the stored lunch order.")
    ap.add_argument("--brain", default=settings.brain_url, help="brain URL (default from env)")
    ap.add_argument("--key", default=settings.order_key)
    ap.add_argument("--users", action="store_true", help="include usernames")
    args = ap.parse_args(argv)

    order = Order(tz=settings.tz)
    with open_brain(args.brain) as brain:
        try:
            order.load(brain, key=args.key)
        except BrainKeyError:
            print(f"[=] no order stored under {args.key!r}")
            return 1
        except OrderSerializationError as e:
            print(f"[!] stored order is corrupt: {e}", file=sys.stderr)
            return 2

    print(f"Order of {order.timestamp:%d/%m/%Y %H:%M}")
    print(order.format(include_usernames=args.users) or "(empty)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
