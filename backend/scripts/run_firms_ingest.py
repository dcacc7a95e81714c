import argparse
import asyncio
import dataclasses
import json
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from focos.config import load_settings  # noqa: E402
from focos.db import SessionLocal, init_db, make_engine  # noqa: E402
from focos.logging_config import configure_logging  # noqa: E402
from focos.services.ingest_firms import ERROR_NO_API_KEY, ingest_firms_once  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Run one NASA FIRMS ingestion cycle.")
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Fetch window in days (defaults to FIRMS_FETCH_DAYS).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch, parse and deduplicate without writing to the database.",
    )
    parser.add_argument("--env-file", default=str(BASE_DIR / ".env"))
    args = parser.parse_args()

    try:
        settings = load_settings(args.env_file)
        if args.days is not None:
            settings = dataclasses.replace(
                settings,
                fetch_days=args.days,
                lookback_buffer_days=max(settings.lookback_buffer_days, args.days),
            )
    except ValueError as e:
        print(json.dumps({"success": False, "error": str(e), "error_code": "config_error"}, indent=2))
        return 2
    configure_logging(settings.log_level)

    init_db(make_engine(settings))

    db = SessionLocal()
    try:
        result = asyncio.run(ingest_firms_once(db, settings, dry_run=args.dry_run))
    finally:
        db.close()

    print(json.dumps(result.to_dict(), indent=2))

    if result.success:
        return 0
    if result.error_code == ERROR_NO_API_KEY:
        return 2
    return 1


if __name__ == "__main__":
    sys.exit(main())
