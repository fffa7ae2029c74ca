# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DocSignals CLI: analyze, history, compare, relay commands.

Usage:
    docsignals analyze URL [--fetches N] [--delay S] [--timeout S] [--relay-url URL] [--json] [--no-history]
    docsignals history [--json] [--clear]
    docsignals compare [--limit N]
    docsignals relay [--host HOST] [--port PORT] [--allow-private]

Exit codes: 0 success, 1 failure, 2 usage error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys

from .config import MAX_FETCH_COUNT, Settings
from .history import AnalysisHistory


def _fetch_count(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}") from None
    if not 1 <= value <= MAX_FETCH_COUNT:
        raise argparse.ArgumentTypeError(f"must be between 1 and {MAX_FETCH_COUNT}")
    return value


def _positive_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {raw!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return value


def _non_negative_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {raw!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return value


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return value


def _open_history(settings: Settings) -> AnalysisHistory | None:
    if settings.history_path is None:
        return None
    return AnalysisHistory(settings.history_path, limit=settings.history_limit)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment settings with CLI flags layered on top."""
    settings = Settings.from_env()
    overrides: dict[str, object] = {}
    if getattr(args, "fetches", None) is not None:
        overrides["fetch_count"] = args.fetches
    if getattr(args, "delay", None) is not None:
        overrides["fetch_delay"] = args.delay
    if getattr(args, "timeout", None) is not None:
        overrides["timeout"] = args.timeout
    if getattr(args, "relay_url", None):
        overrides["relay_url"] = args.relay_url
    if getattr(args, "no_history", False):
        overrides["history_path"] = None
    if getattr(args, "host", None):
        overrides["relay_host"] = args.host
    if getattr(args, "port", None) is not None:
        overrides["relay_port"] = args.port
    return dataclasses.replace(settings, **overrides) if overrides else settings


def cmd_analyze(args: argparse.Namespace) -> None:
    """Fetch a URL N times and print the readability report."""
    from ._progress import fetch_progress, status_spinner
    from .report import render_text
    from .runner import run_analysis
    from .serializer import to_json

    settings = _settings_from_args(args)
    history = _open_history(settings)

    with status_spinner(f"Analyzing {args.url}...") as update:
        result = asyncio.run(
            run_analysis(args.url, settings, history=history, on_progress=fetch_progress(update))
        )

    if args.json:
        print(to_json(result))
    else:
        print(render_text(result, settings.fetch_count))


def cmd_history(args: argparse.Namespace) -> None:
    """List or clear stored analyses."""
    settings = _settings_from_args(args)
    history = _open_history(settings)
    if history is None:
        print("History is disabled.", file=sys.stderr)
        return

    if args.clear:
        history.clear()
        print("History cleared.")
        return

    entries = history.entries()
    if args.json:
        from .serializer import entry_to_dict

        print(json.dumps([entry_to_dict(e) for e in entries], ensure_ascii=False, indent=2))
        return
    if not entries:
        print("No analyses stored.")
        return

    from tabulate import tabulate

    rows = [
        [
            i,
            e.timestamp,
            e.url,
            str(e.result.structure.classification),
            str(e.result.semantics.classification),
        ]
        for i, e in enumerate(entries, 1)
    ]
    headers = ["#", "Timestamp", "URL", "Structure", "Semantics"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))


def cmd_compare(args: argparse.Namespace) -> None:
    """Side-by-side comparison of the most recent stored analyses."""
    from .report import render_comparison

    settings = _settings_from_args(args)
    history = _open_history(settings)
    entries = history.entries() if history is not None else []
    if args.limit is not None:
        entries = entries[: args.limit]
    if len(entries) < 2:
        print("Run at least 2 analyses to compare.", file=sys.stderr)
        sys.exit(1)
    print(render_comparison(entries))


def cmd_relay(args: argparse.Namespace) -> None:
    """Run the CORS relay server."""
    from .relay import run_relay_server

    settings = _settings_from_args(args)
    asyncio.run(
        run_relay_server(
            settings.relay_host,
            settings.relay_port,
            settings,
            allow_private=args.allow_private,
        )
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="DocSignals: how readable is a web page for machines?",
        prog="docsignals",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and tracebacks")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    _analyze_epilog = """\
examples:
  %(prog)s https://example.com                 Analyze with 3 fetches
  %(prog)s example.com --fetches 5 --json      5 fetches, JSON to stdout
  %(prog)s https://example.com --relay-url http://127.0.0.1:8787/proxy
"""
    p_analyze = subparsers.add_parser(
        "analyze",
        help="Analyze a URL",
        epilog=_analyze_epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_analyze.add_argument("url", metavar="URL", help="Page to analyze (https:// is assumed when omitted)")
    p_analyze.add_argument(
        "--fetches",
        type=_fetch_count,
        metavar="N",
        help=f"Number of fetches, 1-{MAX_FETCH_COUNT} (default: 3)",
    )
    p_analyze.add_argument("--delay", type=_non_negative_float, metavar="S", help="Pause between fetches in seconds")
    p_analyze.add_argument("--timeout", type=_positive_float, metavar="S", help="Per-request timeout in seconds")
    p_analyze.add_argument("--relay-url", type=str, metavar="URL", help="Relay endpoint used when a fetch is blocked")
    p_analyze.add_argument("--json", action="store_true", help="Print the result as JSON")
    p_analyze.add_argument("--no-history", action="store_true", help="Do not record this analysis")

    p_history = subparsers.add_parser("history", help="List stored analyses")
    p_history.add_argument("--json", action="store_true", help="Print entries as JSON")
    p_history.add_argument("--clear", action="store_true", help="Delete all stored analyses")

    p_compare = subparsers.add_parser("compare", help="Compare stored analyses side by side")
    p_compare.add_argument("--limit", type=_positive_int, metavar="N", help="Compare only the N most recent")

    p_relay = subparsers.add_parser("relay", help="Run the CORS relay server")
    p_relay.add_argument("--host", type=str, help="Bind address (default: 127.0.0.1)")
    p_relay.add_argument("--port", type=int, help="Bind port (default: 8787)")
    p_relay.add_argument(
        "--allow-private",
        action="store_true",
        help="Allow loopback/private targets (local development only)",
    )
    return parser


COMMANDS = {
    "analyze": cmd_analyze,
    "history": cmd_history,
    "compare": cmd_compare,
    "relay": cmd_relay,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    from .logging_config import configure

    if args.verbose:
        level = "DEBUG"
    elif args.command == "relay":
        level = "INFO"
    else:
        level = "WARNING"
    configure(json_output=args.log_json, level=level)

    try:
        COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except Exception as e:
        from .problem_details import from_exception

        problem = from_exception(e)
        if getattr(args, "json", False):
            print(problem.to_json(), file=sys.stderr)
        else:
            print(problem.to_cli_text(), file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
