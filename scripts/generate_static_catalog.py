#!/usr/bin/env python3
"""CLI script to export the recent-episodes catalog and meta documents as static JSON files."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from api.tvmaze.settings import get_settings
from api.tvmaze.static_export import StaticExporter

# Load env after imports so E402 is satisfied; run with PYTHONPATH=src
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(str(_PROJECT_ROOT / "config" / "local.env"))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Write catalog/series/recent<N>.json and meta/series/tvmaze:<id>.json.",
        usage="%(prog)s [--out DIR] [--country CODE] [--days N]",
    )
    parser.add_argument("--out", default="public", help="Output directory (default: public).")
    parser.add_argument("--country", default=None, help="Schedule country (default: US).")
    parser.add_argument("--days", type=int, default=None, help="Window length (default: 7).")
    return parser.parse_args()


async def main() -> None:
    args = _parse_args()

    if args.days is not None and args.days < 1:
        print("--days must be at least 1", file=sys.stderr)
        sys.exit(1)

    settings = get_settings()
    overrides: dict[str, object] = {}
    if args.country:
        overrides["country"] = args.country.upper()
    if args.days is not None:
        overrides["window_days"] = args.days
    if overrides:
        settings = settings.model_copy(update=overrides)

    print(
        f"Exporting {settings.window_days}-day catalog for {settings.country} "
        f"to {os.path.abspath(args.out)}",
        file=sys.stderr,
    )
    summary = await StaticExporter(settings=settings).export(args.out)
    print(json.dumps(summary, indent=2))

    if summary["shows"] == 0:
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
