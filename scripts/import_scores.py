#!/usr/bin/env python3
"""Import a legacy scores.json file into the stats database.

Usage:
    python scripts/import_scores.py data/scores.json [--db data/purity.db]

The target store must not contain any submissions yet. The aggregate is
taken verbatim from the file's "stats" object.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from purity.core.errors import PurityError  # noqa: E402
from purity.db.session import get_db_session  # noqa: E402
from purity.service.submissions import import_snapshot  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("scores_file", type=Path, help="Path to scores.json")
    parser.add_argument("--db", type=Path, default=None, help="Target SQLite database")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        document = json.loads(args.scores_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read {args.scores_file}: {e}", file=sys.stderr)
        return 1

    try:
        with get_db_session(args.db) as session:
            result = import_snapshot(session, document)
    except PurityError as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1

    print(
        f"Imported {result.total_submissions} submissions "
        f"(average score {result.average_score})"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
