"""CLI front end: resolve, sign and print an install link for a ProStore release."""

from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import asdict
from pathlib import Path

from prostore_core.advisory import AdvisoryDocument, parse_advisory
from prostore_core.catalog import filter_releases
from prostore_core.config import AppConfig, load_config, resolve_token
from prostore_core.errors import InstallerError, TransportError
from prostore_core.logging_setup import configure_logging, get_logger
from prostore_core.resolver import candidate_assets, select_asset

from . import service
from .client import InstallerClient
from .orchestrator import StartOptions


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str, ensure_ascii=False))


def _load(args: argparse.Namespace) -> AppConfig:
    return load_config(Path(args.config).expanduser() if args.config else None)


def _start_options(args: argparse.Namespace, cfg: AppConfig) -> StartOptions:
    return StartOptions(
        repo=args.repo or cfg.source.repo,
        credential=resolve_token(args.token),
        include_prereleases=bool(args.prereleases or cfg.source.include_prereleases),
    )


def cmd_install(args: argparse.Namespace, cfg: AppConfig) -> int:
    client = InstallerClient.from_config(cfg)
    session = client.start(_start_options(args, cfg))

    last = -1
    while not session.done:
        current = client.progress()
        if current != last:
            print(f"progress {current}% ({client.state().value})", file=sys.stderr)
            last = current
        time.sleep(max(20, args.poll_ms) / 1000.0)

    try:
        session.wait()
    except InstallerError:
        _print_json({"success": False, **session.snapshot()})
        return 2

    _print_json({"success": True, **session.snapshot()})
    return 0


def cmd_advisory(args: argparse.Namespace, cfg: AppConfig) -> int:
    try:
        text = service.fetch_advisory(cfg.endpoints.advisory_url, timeout=cfg.network.timeout_s)
    except TransportError as exc:
        _print_json({"success": False, "error": str(exc), "status": exc.status})
        return 2

    document = parse_advisory(text)
    payload = asdict(document)
    recommended = document.recommended_entry
    payload["recommended_entry"] = asdict(recommended) if recommended else None
    _print_json(payload)
    return 0


def cmd_releases(args: argparse.Namespace, cfg: AppConfig) -> int:
    options = _start_options(args, cfg)
    try:
        releases = service.fetch_releases(
            options.repo,
            token=options.credential,
            api_base=cfg.endpoints.api_base,
            page_size=cfg.network.page_size,
            timeout=cfg.network.timeout_s,
        )
        eligible = filter_releases(releases, include_prereleases=options.include_prereleases)
    except InstallerError as exc:
        _print_json({"success": False, "error": str(exc), "error_type": type(exc).__name__})
        return 2

    try:
        advisory = parse_advisory(service.fetch_advisory(cfg.endpoints.advisory_url, timeout=cfg.network.timeout_s))
    except TransportError as exc:
        get_logger("cli").warning("advisory unavailable: %s", exc)
        advisory = AdvisoryDocument()

    selected: dict[str, str] | None = None
    try:
        selection = select_asset(eligible, advisory.recommended_name)
        selected = {
            "release": selection.release.label,
            "asset": selection.asset.file_name,
            "url": selection.asset.download_url,
            "reason": selection.reason,
        }
    except InstallerError as exc:
        get_logger("cli").warning("no installable asset: %s", exc)

    _print_json(
        {
            "success": selected is not None,
            "repo": options.repo,
            "recommended": advisory.recommended_name,
            "releases": [
                {
                    "tag": r.tag,
                    "name": r.name,
                    "created_at": r.created_at,
                    "prerelease": r.is_prerelease,
                    "packages": [a.file_name for a in candidate_assets(r)],
                }
                for r in eligible
            ],
            "selected": selected,
        }
    )
    return 0 if selected is not None else 2


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo", default=None, help="GitHub owner/repo (defaults to config)")
    parser.add_argument("--token", default=None, help="GitHub token (or PROSTORE_GITHUB_TOKEN)")
    parser.add_argument("--prereleases", action="store_true", help="Consider prerelease builds")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="prostore-signer", description="ProStore signing and install link tool")
    parser.add_argument("--config", default=None, help="Path to config.json")
    parser.add_argument("--verbose", action="store_true", help="Echo log records to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    install_cmd = sub.add_parser("install", help="Sign the selected release and print an install link")
    _add_source_args(install_cmd)
    install_cmd.add_argument("--poll-ms", type=int, default=120, help="Progress polling interval")
    install_cmd.set_defaults(func=cmd_install)

    advisory_cmd = sub.add_parser("advisory", help="Print the parsed certificate advisory")
    advisory_cmd.set_defaults(func=cmd_advisory)

    releases_cmd = sub.add_parser("releases", help="List eligible releases and the asset that would be used")
    _add_source_args(releases_cmd)
    releases_cmd.set_defaults(func=cmd_releases)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = _load(args)
    configure_logging(keep_files=cfg.diagnostics.keep_log_files, console=args.verbose)
    return int(args.func(args, cfg))


if __name__ == "__main__":
    raise SystemExit(main())
