"""CLI entry point for rendering internship match result views."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from matchview.core.config import Settings, ViewConfig
from matchview.core.records import get_number, get_text
from matchview.core.schemas import Record
from matchview.pipeline.store import ResultView
from matchview.pipeline.summary import EMPTY_STATE_MESSAGES, match_tier
from matchview.pipeline.url_state import MemoryLocation, open_view
from matchview.sources.base import RecordSource, RecordSourceError, StaticRecordSource
from matchview.sources.rest import HttpRecordSource, extract_records


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Filter, sort and page internship match results",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- view subcommand ---
    view_parser = subparsers.add_parser("view", help="Render one page of a configured view")
    view_parser.add_argument("name", help="View name from the settings file")
    view_parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    view_parser.add_argument(
        "--query",
        default="",
        help="Query string to seed the view, e.g. 'minScore=50&sortBy=date'",
    )
    view_parser.add_argument(
        "--input",
        help="Read records from a JSON file instead of the backend",
    )
    view_parser.add_argument(
        "--export",
        choices=["json"],
        help="Print the page's records in this format",
    )
    view_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the decoded state and request without fetching",
    )
    view_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    # --- views subcommand (default) ---
    list_parser = subparsers.add_parser("views", help="List configured views")
    list_parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    list_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    parser.add_argument("--config", default="config/settings.yaml", help=argparse.SUPPRESS)
    parser.add_argument("--verbose", "-v", action="store_true", help=argparse.SUPPRESS)

    args = parser.parse_args(argv)

    if args.command is None:
        args.command = "views"

    return args


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_records_file(path: str | Path, items_key: str | None = None) -> list[Record]:
    """Load records from a JSON export (an array, or an object holding one)."""
    path = Path(path)
    if not path.exists():
        msg = f"Records file not found: {path}"
        raise FileNotFoundError(msg)
    try:
        payload: Any = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        msg = f"Records file is not valid JSON: {path}: {e}"
        raise ValueError(msg) from e
    return extract_records(payload, items_key)


def render(view: ResultView, name: str, config: ViewConfig) -> str:
    """Plain-text rendering of one view page."""
    fields = config.record_fields
    page = view.page
    lines = [
        f"{config.title or name}: page {page.page} of {page.total_pages} "
        f"(showing {page.start_item} to {page.end_item} of {page.total} {config.noun})",
    ]
    if view.summary.chips:
        lines.append("Active filters: " + ", ".join(c.label for c in view.summary.chips))
    if view.summary.showing:
        lines.append(view.summary.showing)
    if view.error:
        lines.append(f"Error: {view.error}")
    state = view.empty_state
    if state is not None:
        lines.append(EMPTY_STATE_MESSAGES[state])

    for offset, record in enumerate(page.items):
        rank = page.start_item + offset
        title = get_text(record, fields.title) or "(untitled)"
        score = get_number(record, fields.score)
        if score is None:
            lines.append(f"  #{rank:<3} {title}")
        else:
            lines.append(f"  #{rank:<3} {title}  {score:.1f}% {match_tier(score)}")
    return "\n".join(lines)


def dry_run(name: str, config: ViewConfig, source: RecordSource, query: str) -> None:
    """Print what would happen without fetching."""
    store, _ = open_view(config, MemoryLocation(query))
    state = store.state
    print(f"[DRY RUN] view '{name}'")
    print(f"  Filters: {state.criteria.model_dump()}")
    print(f"  Sort: {state.sort.key} {state.sort.direction}")
    print(f"  Page: {state.pagination.page} (size {state.pagination.page_size})")
    if isinstance(source, HttpRecordSource):
        params = source.request_params(state.criteria)
        print(f"  Request: {config.source.method} {source.url} {params}")
    print("[DRY RUN] Would fetch and render 0 records (no request in dry-run)")


async def run_view(args: argparse.Namespace, settings: Settings) -> int:
    """Fetch, shape and print one view. Returns the exit code."""
    config = settings.view(args.name)
    source: RecordSource
    if args.input:
        source = StaticRecordSource(load_records_file(args.input, config.source.items_key))
    else:
        source = HttpRecordSource(settings.api, config.source)

    if args.dry_run:
        dry_run(args.name, config, source, args.query)
        return 0

    location = MemoryLocation(args.query)
    store, _ = open_view(config, location)
    await store.refresh(source)
    view = store.view

    if args.export == "json":
        print(json.dumps(view.items, indent=2, default=str))
    else:
        print(render(view, args.name, config))
        print(f"\nQuery: ?{location.read()}")

    return 1 if view.error else 0


def cmd_views(settings: Settings) -> None:
    for name, view in sorted(settings.views.items()):
        print(f"{name}: {view.title or '-'} ({view.source.method} {view.source.endpoint})")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "view":
        try:
            code = asyncio.run(run_view(args, settings))
        except (FileNotFoundError, ValueError, RecordSourceError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if code:
            sys.exit(code)
    else:
        cmd_views(settings)


if __name__ == "__main__":
    main()
