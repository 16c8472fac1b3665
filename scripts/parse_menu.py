#!/usr/bin/env python3
"""
Parse a weekly lunch workbook and print the menu.

Run with:
  python scripts/parse_menu.py menu.xlsx
  python scripts/parse_menu.py menu.xlsx --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from lunches.config import load_settings  # noqa: E402
from lunches.errors import MenuParseError  # noqa: E402
from lunches.menu_parser import parse_menu_file  # noqa: E402


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Parse a weekly lunch menu workbook.")
    ap.add_argument("path", help="XLSX file")
    ap.add_argument("--json", action="store_true", help="print the menu as JSON")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        menu = parse_menu_file(args.path, settings=load_settings())
    except (MenuParseError, FileNotFoundError) as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(menu.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"Menu del {menu.date:%d/%m/%Y}")
    for row_type, rows in menu.sections():
        print(f"\n{row_type.name.capitalize()}")
        for r in rows:
            star = "*" if r.is_daily_proposal else " "
            print(f" {star} {r.content:<50} € {r.price}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
