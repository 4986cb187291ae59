"""Command-line interface for trackpage."""

import argparse
import json
import logging
import random
import sys
from datetime import timedelta

from . import __version__
from .carriers import classify
from .config import Settings
from .errors import TrackpageError
from .facilities import load_facility_tables
from .page_store import PageStore
from .timeline import synthesize
from .utils import parse_optional_timestamp, utc_now

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def cmd_classify(args: argparse.Namespace, settings: Settings) -> int:
    """Print the carrier for a tracking number."""
    info = classify(args.tracking_number)
    if args.json:
        print(json.dumps(info.to_dict(), indent=2))
    else:
        print(f"{info.carrier} ({info.carrier_code})")
        print(f"Track: {info.tracking_url}")
    return 0


def cmd_timeline(args: argparse.Namespace, settings: Settings) -> int:
    """Synthesize a timeline without touching the commerce backend."""
    try:
        now = parse_optional_timestamp(args.now, "now") or utc_now()
        events = synthesize(
            args.created_at,
            args.city,
            args.state,
            args.delivered,
            args.delivery_date,
            (),
            args.pickup_date,
            now=now,
            rng=random.Random(args.seed) if args.seed is not None else None,
            facilities=load_facility_tables(settings.facilities_file),
            fulfillment_window=settings.fulfillment_window,
        )
    except TrackpageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([e.to_dict() for e in events], indent=2))
        return 0

    for event in events:
        marker = "*" if event.current else ("D" if event.is_delivered else " ")
        print(f"{marker} {event.date:<18} {event.time:>8}  {event.status:<32} {event.location}")
    return 0


def cmd_pages(args: argparse.Namespace, settings: Settings) -> int:
    """List saved status pages."""
    pages = PageStore(settings.data_dir).list_pages()

    if args.json:
        print(json.dumps([p.to_dict() for p in pages], indent=2))
        return 0

    if not pages:
        print("No saved status pages.")
        return 0

    print(f"Saved status pages ({len(pages)}):")
    print()
    for page in pages:
        print(f"  {page.id}  {page.order_number:<10} {page.tracking_number}")
        print(f"    {page.carrier.carrier}, {page.destination}, {len(page.events)} events")
        print(f"    Created: {page.created_at}")
    return 0


def cmd_prune(args: argparse.Namespace, settings: Settings) -> int:
    """Delete saved pages older than the retention period."""
    if not settings.durable_storage:
        print("Durable storage disabled; nothing to prune.")
        return 0

    days = args.days if args.days is not None else settings.retention_days
    try:
        count = PageStore(settings.data_dir).prune(utc_now() - timedelta(days=days))
    except TrackpageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Removed {count} page(s) older than {days} days.")
    return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Start the API server."""
    try:
        import uvicorn

        print("Starting trackpage API server...")
        print(f"Shopify integration: {'configured' if settings.shopify_configured else 'not configured'}")
        print(f"Durable storage: {settings.data_dir if settings.durable_storage else 'disabled'}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "trackpage.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1,  # Single worker: the page cache lives in process memory
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="trackpage",
        description="Generate shareable order status pages with synthesized tracking timelines.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # classify
    classify_parser = subparsers.add_parser("classify", help="Identify the carrier for a tracking number")
    classify_parser.add_argument("tracking_number", help="Tracking number")
    classify_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # timeline
    timeline_parser = subparsers.add_parser(
        "timeline", help="Synthesize a tracking timeline from order dates"
    )
    timeline_parser.add_argument(
        "--created-at", required=True, help="Order creation timestamp (ISO 8601)"
    )
    timeline_parser.add_argument("--city", default="", help="Destination city")
    timeline_parser.add_argument("--state", default="", help="Destination state code")
    timeline_parser.add_argument(
        "--delivered", action="store_true", help="Order has been delivered"
    )
    timeline_parser.add_argument("--delivery-date", help="Delivery timestamp (ISO 8601)")
    timeline_parser.add_argument("--pickup-date", help="Custom label/pickup date (ISO 8601)")
    timeline_parser.add_argument("--now", help="Pretend the current time is this (ISO 8601)")
    timeline_parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    timeline_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # pages
    pages_parser = subparsers.add_parser("pages", help="List saved status pages")
    pages_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # prune
    prune_parser = subparsers.add_parser("prune", help="Delete old saved status pages")
    prune_parser.add_argument(
        "--days", type=int, help="Retention in days (default: TRACKPAGE_RETENTION_DAYS)"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = Settings.from_env()
    except TrackpageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    commands = {
        "classify": cmd_classify,
        "timeline": cmd_timeline,
        "pages": cmd_pages,
        "prune": cmd_prune,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args, settings)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
