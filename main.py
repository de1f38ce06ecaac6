"""
Business scraping — command line client
=======================================
Commands:
  run       Start a scraping job on the remote job runner (RUNNER_URL) and
            export the businesses it returns
  generate  Generate businesses locally, without a job runner
  status    Print the authoritative record of a job by id

Usage:
  python main.py run --query "Restaurant" --location berlin [options]
  python main.py generate --query "Friseur" --location hamburg --limit 10
  python main.py status <job_id>

Options (run / generate):
  --query         Search text, e.g. "Restaurant" (required)
  --location      City, e.g. "berlin" (required)
  --limit         Maximum number of businesses (default: from .env / 20)
  --submitter     Submitter id recorded on the job (run only, default: cli)
  --output        Output CSV filename (default: businesses_YYYYMMDD_HHMMSS.csv)
  --log-level     Logging level: DEBUG, INFO, WARNING (default: INFO)

The job runner service itself is started with:
  uvicorn api.server:app --host 0.0.0.0 --port 8000
"""
import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime

import pandas as pd

import config
from api.models import BusinessRecord, ProgressEvent, ProgressKind, build_request
from client.orchestrator import ScrapingOrchestrator
from client.runner_client import RunnerClient
from errors import ScrapingError
from generators.business_generator import generate_businesses

# ── CSV column order ──────────────────────────────────────────────────────────
CSV_COLUMNS = [
    "id",
    "name",
    "category",
    "address",
    "phone",
    "website",
    "rating",
    "review_count",
    "opening_hours",
    "lat",
    "lng",
]


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def to_rows(businesses: list[BusinessRecord]) -> list[dict]:
    rows = []
    for b in businesses:
        row = b.model_dump(exclude={"coordinates"})
        row["lat"] = b.coordinates.lat if b.coordinates else None
        row["lng"] = b.coordinates.lng if b.coordinates else None
        rows.append(row)
    return rows


def export_csv(businesses: list[BusinessRecord], output_path: str):
    """Export businesses to CSV in the fixed column order."""
    os.makedirs(config.OUTPUT_DIR, exist_ok=True)
    full_path = os.path.join(config.OUTPUT_DIR, output_path)

    df = pd.DataFrame(to_rows(businesses))

    # Ensure all columns exist (an empty result has none)
    for col in CSV_COLUMNS:
        if col not in df.columns:
            df[col] = None

    df = df[CSV_COLUMNS]
    df.to_csv(full_path, index=False, encoding="utf-8-sig")
    return full_path


def print_summary(businesses: list[BusinessRecord], path: str, job_id: str = None):
    total = len(businesses)
    print("\n" + "=" * 60)
    print("  BUSINESS SCRAPING — SUMMARY")
    print("=" * 60)
    if job_id:
        print(f"  Job id                 : {job_id}")
    print(f"  Businesses found       : {total}")
    if total:
        categories = pd.Series([b.category for b in businesses]).value_counts()
        for category, count in categories.items():
            print(f"    {category:<20} : {count}")
        rated = [b.rating for b in businesses if b.rating is not None]
        if rated:
            print(f"  Average rating         : {sum(rated) / len(rated):.2f}")
    print(f"\n  Output file: {path}")
    print("=" * 60 + "\n")


def print_progress(event: ProgressEvent):
    if event.kind == ProgressKind.ERROR:
        print(f"  [error] {event.error_message} ({event.error_code})")
    else:
        print(f"  [{event.percent or 0:>3}%] {event.message}")


async def run_job(args) -> int:
    logger = logging.getLogger("main")
    request = build_request(
        query_text=args.query,
        location=args.location,
        result_limit=args.limit,
        submitter_id=args.submitter,
    )

    orchestrator = ScrapingOrchestrator(RunnerClient())
    task = orchestrator.start(request, on_progress=print_progress)
    try:
        businesses = await task
    except asyncio.CancelledError:
        orchestrator.stop()
        raise
    except ScrapingError as exc:
        logger.error(f"Job failed: {exc.message} ({exc.details or exc.code})")
        return 1

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = export_csv(businesses, args.output or f"businesses_{ts}.csv")
    print_summary(businesses, path, orchestrator.job_id)
    return 0


def generate_local(args) -> int:
    businesses = generate_businesses(args.query, args.location, args.limit)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = export_csv(businesses, args.output or f"businesses_{ts}.csv")
    print_summary(businesses, path)
    return 0


def show_status(args) -> int:
    record = RunnerClient().get_job(args.job_id)
    print(f"Job {record.id}")
    print(f"  state      : {record.state.value}")
    print(f"  progress   : {record.progress_percent}%")
    print(f"  query      : {record.request.query_text} ({record.request.location})")
    print(f"  created    : {record.created_at.isoformat()}")
    if record.completed_at:
        print(f"  completed  : {record.completed_at.isoformat()}")
    if record.result_count is not None:
        print(f"  results    : {record.result_count}")
    if record.error_detail:
        print(f"  error      : {record.error_detail}")
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Business scraping — command line client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("run", "Start a job on the job runner"), ("generate", "Generate businesses locally")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--query", required=True, help="Search text, e.g. 'Restaurant'")
        p.add_argument("--location", required=True, help="City, e.g. 'berlin'")
        p.add_argument(
            "--limit",
            type=int,
            default=config.DEFAULT_RESULT_LIMIT,
            help=f"Max businesses (default: {config.DEFAULT_RESULT_LIMIT}, capped at {config.MAX_RESULT_LIMIT})",
        )
        p.add_argument("--output", default=None, help="Output CSV filename (saved in ./output/)")
        if name == "run":
            p.add_argument("--submitter", default="cli", help="Submitter id recorded on the job")

    p = sub.add_parser("status", help="Show a job record by id")
    p.add_argument("job_id")

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.command == "run":
            missing = config.validate_config()
            if missing:
                print(f"\n[ERROR] Missing settings: {', '.join(missing)}. Check your .env file.\n")
                return 2
            return asyncio.run(run_job(args))
        if args.command == "generate":
            return generate_local(args)
        return show_status(args)
    except ScrapingError as exc:
        print(f"\n[ERROR] {exc.message}" + (f" — {exc.details}" if exc.details else ""))
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
