"""Command line front-end for similarity search over a markdown vault.

Examples:
    easylink search ~/notes "machine learning"
    easylink search ~/notes "machine learning" --active Daily/today.md --json
    easylink link ~/notes "machine learning" --pick 1 --alias "machine learning"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

import orjson
from pydantic import ValidationError

from easylink import __version__
from easylink.adapters.filesystem_vault import FileSystemVault
from easylink.config import SearchSettings, Settings, load_search_settings
from easylink.domain.errors import ResolveError, SearchError
from easylink.domain.search import SearchResponse
from easylink.observability.logging import configure_logging
from easylink.observability.metrics import init_metrics
from easylink.observability.tracing import init_tracing
from easylink.service_layer.search_service import SimilaritySearchService


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="easylink", description="Find similar content across markdown notes.")
    parser.add_argument("--log-level", default=None, help="Override EASYLINK_LOG_LEVEL (default: info).")
    parser.add_argument("--plain-logs", action="store_true", help="Human-readable logs instead of JSON.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("vault", nargs="?", help="Vault root (default: EASYLINK_VAULT_PATH).")
        sub.add_argument("query", help="Text to find similar content for.")
        sub.add_argument("--active", help="Vault-relative path of the active note (excluded by default).")
        sub.add_argument("--settings", help="Search settings JSON file (default: <vault>/.easylink.json).")
        sub.add_argument("--max-results", type=int, help="Override maxResults.")
        sub.add_argument("--min-score", type=float, help="Override minScore.")

    search = subparsers.add_parser("search", help="List ranked similar passages.")
    add_common(search)
    search.add_argument("--json", action="store_true", help="Emit results as JSON.")

    link = subparsers.add_parser("link", help="Resolve one result and print a wikilink to it.")
    add_common(link)
    link.add_argument("--pick", type=int, default=1, help="1-based rank of the result to link (default: 1).")
    link.add_argument("--alias", default=None, help="Link alias (default: the query text).")
    return parser


def _load_settings(args: argparse.Namespace, env: Settings, vault_root: Path) -> SearchSettings:
    path = Path(args.settings).expanduser() if args.settings else env.resolve_settings_file(vault_root)
    settings = load_search_settings(path)
    overrides = {}
    if args.max_results is not None:
        overrides["max_results"] = args.max_results
    if args.min_score is not None:
        overrides["min_score"] = args.min_score
    if overrides:
        settings = SearchSettings.model_validate({**settings.model_dump(), **overrides})
    return settings


def _print_results(response: SearchResponse, as_json: bool) -> None:
    if as_json:
        payload = {
            "query": response.query,
            "query_tokens": sorted(response.query_tokens),
            "results": [
                {
                    "rank": rank,
                    "path": result.document.path,
                    "kind": result.unit.kind,
                    "score": result.score,
                    "link_target": result.unit.link_target,
                    "text": result.unit.source,
                }
                for rank, result in enumerate(response.results, start=1)
            ],
            "stats": response.stats.model_dump(),
        }
        sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")
        return

    for rank, result in enumerate(response.results, start=1):
        location = result.document.path
        if result.unit.link_target:
            location += f"#{result.unit.link_target}"
        preview = " ".join(result.unit.text.split())
        if len(preview) > 100:
            preview = preview[:97] + "..."
        sys.stdout.write(f"{rank:>3}. {result.score * 100:>3.0f}%  [{result.unit.kind}] {location}\n      {preview}\n")


async def _run(args: argparse.Namespace, env: Settings) -> int:
    vault_arg = args.vault or env.vault_path
    if vault_arg is None:
        sys.stderr.write("No vault given and EASYLINK_VAULT_PATH is not set.\n")
        return 2

    try:
        vault = FileSystemVault(Path(vault_arg))
        settings = _load_settings(args, env, vault.root)
    except (NotADirectoryError, ValidationError, ValueError) as e:
        sys.stderr.write(f"{e}\n")
        return 2

    service = SimilaritySearchService(
        vault,
        settings,
        on_slow_search=lambda query: sys.stderr.write(f'EasyLink: Searching for "{query}"...\n'),
    )
    try:
        response = await service.search(args.query, active_path=args.active)
    except SearchError as e:
        sys.stderr.write(f"{e.user_message}\n")
        return 1

    if args.command == "search":
        _print_results(response, args.json)
        return 0

    if not 1 <= args.pick <= len(response.results):
        sys.stderr.write(f"--pick must be between 1 and {len(response.results)}.\n")
        return 2
    result = response.results[args.pick - 1]
    alias = args.alias if args.alias is not None else response.query
    try:
        wikilink = await service.build_wikilink(result, alias)
    except ResolveError as e:
        logger.error("Link resolution failed: %s", e)
        sys.stderr.write(f"{e.user_message}\n")
        return 1
    sys.stdout.write(wikilink + "\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env = Settings()
    configure_logging(args.log_level or env.log_level, json_output=env.log_json and not args.plain_logs)
    init_tracing("easylink", {"service.version": __version__})
    init_metrics("easylink", {"service.version": __version__})
    return asyncio.run(_run(args, env))


if __name__ == "__main__":
    raise SystemExit(main())
