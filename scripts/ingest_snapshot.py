#!/usr/bin/env python3
"""Feed one feature snapshot through featurewatch.

Reads a JSON file holding either a list of feature records or a mapping of
slug to record, classifies it against the stored status, saves it, appends a
changelog entry and pushes notifications for every started or changed
feature.

Usage
-----
Set environment variables and run::

    export FEATUREWATCH_REDIS_URL="redis://localhost:6379/0"
    python scripts/ingest_snapshot.py snapshot.json

Options::

    --dry-run      Only classify; print what would change, save nothing
    --verbose      DEBUG logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from featurewatch import FeatureWatch, WatchConfig  # noqa: E402
from featurewatch.models import has_updates, is_just_started  # noqa: E402


def _load_records(path: Path) -> list[dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        records = []
        for slug, record in data.items():
            if isinstance(record, dict):
                records.append({**record, "slug": record.get("slug", slug)})
        return records
    if isinstance(data, list):
        return [record for record in data if isinstance(record, dict)]
    raise SystemExit(f"{path}: expected a JSON list or object, got {type(data).__name__}")


def _summary(records: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "started": [r["slug"] for r in records if is_just_started(r)],
        "updated": {r["slug"]: r["updated"] for r in records if has_updates(r)},
    }


async def main() -> None:
    parser = argparse.ArgumentParser(description="Ingest a feature snapshot")
    parser.add_argument("snapshot", type=Path, help="JSON snapshot file")
    parser.add_argument("--dry-run", action="store_true", help="Classify only, save nothing")
    parser.add_argument("--verbose", "-v", action="store_true", help="DEBUG logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    records = _load_records(args.snapshot)

    async with FeatureWatch(WatchConfig.from_env()) as watch:
        if args.dry_run:
            classified = list(await watch.engine.check_for_new_data(records))
        else:
            classified = list(await watch.process_batch(records))

    print(json.dumps(_summary(classified), indent=2, default=str, ensure_ascii=False))


if __name__ == "__main__":
    asyncio.run(main())
