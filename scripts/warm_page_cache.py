#!/usr/bin/env python3
"""Pre-render the listing page and every listed detail page into the cache.

Usage:
  python scripts/warm_page_cache.py [--limit N] [--output summary.json]

Uses the same configuration as the web app (APP_DB_PATH, REDIS_URL, ...),
so pages land in the store the running service reads from. Pages are
never personalised.
"""
import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from salepages.app import create_app  # noqa: E402
from salepages.errors import PageCacheError  # noqa: E402


def warm(app, limit=None) -> dict:
    """Render listing and detail pages through the page cache; returns a summary"""
    controller = app.extensions["page_cache"]
    summary = {"listing": False, "details": [], "failed": {}}

    summary["listing"] = bool(controller.get_listing({}))
    goods_list = controller.goods.fetch_listing()
    if limit is not None:
        goods_list = goods_list[:limit]
    for goods in goods_list:
        try:
            if controller.get_detail(goods["id"], {}):
                summary["details"].append(goods["id"])
        except PageCacheError as e:
            summary["failed"][str(goods["id"])] = str(e)
    return summary


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Warm the rendered page cache.")
    parser.add_argument("--limit", type=int, default=None, help="Warm at most N detail pages")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write JSON summary")
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    summary = warm(create_app(), limit=args.limit)
    text = json.dumps(summary, indent=2)
    if args.output:
        args.output.write_text(text)
    print(text)


if __name__ == "__main__":
    main()
