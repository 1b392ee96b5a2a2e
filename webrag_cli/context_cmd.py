# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
WebRAG CLI Commands

Commands:
- context: Build the web evidence block for a query
- config: Print the effective runtime configuration
- check-url: Run the SSRF guard against a URL
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from typing import NoReturn


def _load_config(args: argparse.Namespace):
    from webrag_core.config import WebRagConfig

    config = WebRagConfig.from_env()
    runtime = config.runtime

    if getattr(args, "max_results", None) is not None:
        runtime = dataclasses.replace(
            runtime, search=dataclasses.replace(runtime.search, max_results=max(1, int(args.max_results)))
        )
    if getattr(args, "top_k", None) is not None:
        runtime = dataclasses.replace(
            runtime, retrieval=dataclasses.replace(runtime.retrieval, top_k=max(1, int(args.top_k)))
        )
    if getattr(args, "no_embeddings", False):
        runtime = dataclasses.replace(
            runtime, features=dataclasses.replace(runtime.features, disable_embeddings=True)
        )
    if getattr(args, "no_readability", False):
        runtime = dataclasses.replace(
            runtime, features=dataclasses.replace(runtime.features, use_readability=False)
        )
    return config.model_copy(update={"runtime": runtime})


async def _build_context(config, query: str):
    from webrag_core.engine import WebRagEngine

    async with WebRagEngine(config) as engine:
        return await engine.build_context(query)


def cmd_context(args: argparse.Namespace) -> int:
    """Build and print the evidence block for a query."""
    config = _load_config(args)
    if not config.tavily_api_key:
        print("✗ TAVILY_API_KEY is not set", file=sys.stderr)
        return 1

    result = asyncio.run(_build_context(config, args.query))
    if result is None:
        print("No web evidence available for this query.", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(result.context)
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the effective runtime configuration."""
    config = _load_config(args)
    print(json.dumps(config.runtime.to_safe_log_dict(), ensure_ascii=False, indent=2))
    return 0


def cmd_check_url(args: argparse.Namespace) -> int:
    """Check a URL against the SSRF guard."""
    from webrag_core.errors import BlockedURL
    from webrag_core.tools.url_utils import validate_public_http_url

    try:
        safe = validate_public_http_url(args.url)
    except BlockedURL as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    print(f"✓ {safe.url} (host={safe.host})")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="webrag",
        description="Web evidence retrieval commands",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # context command
    context_parser = subparsers.add_parser(
        "context",
        help="Build the citation-annotated evidence block for a query",
    )
    context_parser.add_argument(
        "query",
        help="User query to ground",
    )
    context_parser.add_argument(
        "--max-results",
        type=int,
        help="Search max_results override",
    )
    context_parser.add_argument(
        "--top-k", "-k",
        type=int,
        help="Number of evidence chunks to keep",
    )
    context_parser.add_argument(
        "--no-embeddings",
        action="store_true",
        help="Use keyword retrieval only",
    )
    context_parser.add_argument(
        "--no-readability",
        action="store_true",
        help="Use whole-document text instead of main-content extraction",
    )
    context_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result (context + sources) as JSON",
    )
    context_parser.set_defaults(func=cmd_context)

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Print the effective runtime configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    # check-url command
    check_parser = subparsers.add_parser(
        "check-url",
        help="Check whether a URL passes the SSRF guard",
    )
    check_parser.add_argument(
        "url",
        help="URL to check",
    )
    check_parser.set_defaults(func=cmd_check_url)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the WebRAG CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
