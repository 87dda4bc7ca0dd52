"""CLI entrypoint for digest runs and configuration checks."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from config import build_default_resolver, get_settings, load_sources
from config.sources import group_by_kind
from orchestrator import build_orchestrator
from utils.exceptions import ConfigurationMissingError, PipelineError
from utils.logger import setup_pipeline_logging


logger = logging.getLogger(__name__)


def _print(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, default=str))


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    sources = load_sources(Path(args.sources_file)) if args.sources_file else None
    config_file = Path(args.config_file) if args.config_file else None
    orchestrator = await build_orchestrator(settings, sources=sources, config_file=config_file)
    try:
        outcome = await orchestrator.run()
    except PipelineError as exc:
        _print({"state": "failure", "error": str(exc), "stats": orchestrator.stats.model_dump()})
        return 1
    finally:
        await orchestrator.aclose()
    _print(outcome.model_dump(mode="json"))
    return 0 if outcome.state.value in {"success", "partial_success"} else 1


async def _check_config(args: argparse.Namespace) -> int:
    config_file = Path(args.config_file) if args.config_file else None
    resolver = build_default_resolver(get_settings(), config_file=config_file)
    try:
        value = await resolver.get(args.key)
    except ConfigurationMissingError as exc:
        _print({"key": args.key, "found": False, "error": str(exc)})
        return 1
    if args.key.upper().endswith(("KEY", "SECRET", "TOKEN")):
        value = "***"
    _print({"key": args.key, "found": True, "value": value})
    return 0


def _sources(args: argparse.Namespace) -> int:
    sources = load_sources(Path(args.sources_file) if args.sources_file else None)
    for kind, entries in group_by_kind(sources).items():
        _print({"kind": kind.value, "identifiers": [s.identifier for s in entries]})
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="AI digest pipeline CLI")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", default="")
    parser.add_argument("--plain-logs", action="store_true", help="disable rich console output")
    parser.add_argument("--config-file", default="", help="JSON key/value config store")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="execute one pipeline run")
    run.add_argument("--sources-file", default="")

    check = sub.add_parser("check-config", help="resolve one configuration key")
    check.add_argument("key")

    srcs = sub.add_parser("sources", help="list configured sources")
    srcs.add_argument("--sources-file", default="")

    args = parser.parse_args()
    setup_pipeline_logging(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        log_file=args.log_file or None,
        use_rich=not args.plain_logs,
    )

    if args.command == "run":
        raise SystemExit(asyncio.run(_run(args)))

    if args.command == "check-config":
        raise SystemExit(asyncio.run(_check_config(args)))

    if args.command == "sources":
        raise SystemExit(_sources(args))


if __name__ == "__main__":
    main()
