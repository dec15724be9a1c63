"""
Command line interface for the DPP Graph Resolver.

Usage:
    dpp-graph resolve did:web:example.com:product:123
    dpp-graph expand passport.json --max-depth 2 --structure
    dpp-graph expand --identifier https://example.com/dpp/1 --merge
    dpp-graph discover https://example.com
    dpp-graph classify passport.json --content-type application/ld+json
    dpp-graph serve

Every command prints JSON to stdout; logs go to stderr.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import structlog

from dpp_graph.core.config import get_settings
from dpp_graph.core.exceptions import DPPGraphError
from dpp_graph.core.logging import configure_logging
from dpp_graph.core.rate_limiter import OriginThrottle
from dpp_graph.services.classification import analyze
from dpp_graph.services.graph import (
    ExpansionOptions,
    build_graph_structure,
    expand_document,
    merge_resolved_data,
)
from dpp_graph.services.resolution import ContentNegotiator, create_client, discover_well_known

logger = structlog.get_logger()


def _print_json(payload: Any) -> None:
    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False, default=str)
    sys.stdout.write("\n")


def _load_document(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _throttle() -> OriginThrottle:
    settings = get_settings()
    return OriginThrottle(
        max_per_origin=settings.per_origin_concurrency,
        min_interval=settings.per_origin_min_interval,
    )


# =============================================================================
# Commands
# =============================================================================


async def _resolve(args: argparse.Namespace) -> int:
    async with create_client(timeout=args.timeout) as client:
        negotiator = ContentNegotiator.from_settings(client, throttle=_throttle())
        result = await negotiator.resolve(
            args.identifier,
            convert_did=False if args.no_convert_did else None,
            timeout=args.timeout,
        )
    payload = result.to_dict()
    if result.ok:
        payload["analysis"] = analyze(result.data, result.content_type).to_dict()
    _print_json(payload)
    return 0 if result.ok else 1


async def _expand(args: argparse.Namespace) -> int:
    options = ExpansionOptions.from_settings(
        max_depth=args.max_depth,
        max_links=args.max_links,
        per_request_timeout=args.timeout,
        concurrency=args.concurrency,
        global_timeout=args.global_timeout,
        convert_did=False if args.no_convert_did else None,
    )

    async with create_client(timeout=options.per_request_timeout) as client:
        throttle = _throttle()
        if args.file is not None:
            root = _load_document(args.file)
        else:
            negotiator = ContentNegotiator.from_settings(client, throttle=throttle)
            fetched = await negotiator.resolve(args.identifier)
            if not fetched.ok:
                _print_json({"error": fetched.error, "attempts": [a.to_dict() for a in fetched.attempts]})
                return 1
            root = fetched.data

        def progress(processed: int, total: int, current: str) -> None:
            if args.verbose:
                print(f"[{processed}/{total}] {current}", file=sys.stderr)

        graph = await expand_document(root, options, client=client, throttle=throttle, on_progress=progress)

    payload = graph.to_dict(include_data=not args.no_data)
    if args.structure and isinstance(root, dict):
        payload["structure"] = build_graph_structure(root, graph.links)
    if args.merge:
        payload["merged"] = merge_resolved_data(root, graph.links)
    _print_json(payload)
    return 0


async def _discover(args: argparse.Namespace) -> int:
    async with create_client() as client:
        report = await discover_well_known(client, args.base_url, timeout=args.timeout)
    _print_json(report.to_dict())
    return 0 if report.found else 1


def _classify(args: argparse.Namespace) -> int:
    document = _load_document(args.file)
    _print_json(analyze(document, args.content_type).to_dict())
    return 0


def _serve(args: argparse.Namespace) -> int:
    from dpp_graph.api.main import run

    run()
    return 0


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dpp-graph",
        description="Resolve and expand linked Digital Product Passport documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and progress on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve one URL or DID")
    resolve_parser.add_argument("identifier", help="URL or did:web identifier")
    resolve_parser.add_argument("--timeout", type=float, default=None, help="Per-strategy timeout in seconds")
    resolve_parser.add_argument("--no-convert-did", action="store_true", help="Do not map did:web to HTTPS")

    expand_parser = subparsers.add_parser("expand", help="Expand a document's @id references")
    source = expand_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("file", nargs="?", type=Path, help="Root document (JSON file)")
    source.add_argument("--identifier", help="Resolve the root document from this URL or DID")
    expand_parser.add_argument("--max-depth", type=int, default=None)
    expand_parser.add_argument("--max-links", type=int, default=None)
    expand_parser.add_argument("--concurrency", type=int, default=None)
    expand_parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    expand_parser.add_argument("--global-timeout", type=float, default=None, help="Abort after this many seconds")
    expand_parser.add_argument("--no-convert-did", action="store_true")
    expand_parser.add_argument("--no-data", action="store_true", help="Omit resolved payloads from output")
    expand_parser.add_argument("--structure", action="store_true", help="Include nodes/edges structure")
    expand_parser.add_argument("--merge", action="store_true", help="Include root with resolved data inlined")

    discover_parser = subparsers.add_parser("discover", help="Probe well-known endpoints of an origin")
    discover_parser.add_argument("base_url")
    discover_parser.add_argument("--timeout", type=float, default=5.0)

    classify_parser = subparsers.add_parser("classify", help="Classify and score a local document")
    classify_parser.add_argument("file", type=Path)
    classify_parser.add_argument("--content-type", default=None)

    subparsers.add_parser("serve", help="Run the HTTP API")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        json_logs=False,
        log_level="DEBUG" if args.verbose else "WARNING",
        cache_loggers=False,
    )

    try:
        if args.command == "classify":
            return _classify(args)
        if args.command == "serve":
            return _serve(args)
        command = {"resolve": _resolve, "expand": _expand, "discover": _discover}[args.command]
        return asyncio.run(command(args))
    except (DPPGraphError, OSError, json.JSONDecodeError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
