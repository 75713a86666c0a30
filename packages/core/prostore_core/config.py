"""Persistent signer settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 1

DEFAULT_REPO = "ProStore-iOS/ProStore"
DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_ADVISORY_URL = "https://raw.githubusercontent.com/ProStore-iOS/certificates/refs/heads/main/README.md"
DEFAULT_SIGNING_URL = "https://sign.prostore-ios.dev/sign"
DEFAULT_INSTALL_BASE = "https://sign.prostore-ios.dev/install"
DEFAULT_MANIFEST_PATH = "manifest.plist"

TOKEN_ENV = "PROSTORE_GITHUB_TOKEN"


@dataclass
class SourceConfig:
    repo: str = DEFAULT_REPO
    include_prereleases: bool = False


@dataclass
class EndpointsConfig:
    api_base: str = DEFAULT_API_BASE
    advisory_url: str = DEFAULT_ADVISORY_URL
    signing_url: str = DEFAULT_SIGNING_URL
    install_base: str = DEFAULT_INSTALL_BASE
    manifest_path: str = DEFAULT_MANIFEST_PATH


@dataclass
class NetworkConfig:
    timeout_s: int = 30
    page_size: int = 100


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    source: SourceConfig = field(default_factory=SourceConfig)
    endpoints: EndpointsConfig = field(default_factory=EndpointsConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "ProStore"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "ProStore"
    return Path.home() / ".config" / "prostore"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_source(cfg: AppConfig) -> None:
    repo = str(cfg.source.repo or "").strip().strip("/")
    if repo.count("/") != 1:
        repo = DEFAULT_REPO
    cfg.source.repo = repo
    cfg.source.include_prereleases = bool(cfg.source.include_prereleases)


def _normalize_endpoints(cfg: AppConfig) -> None:
    cfg.endpoints.api_base = str(cfg.endpoints.api_base).rstrip("/")
    cfg.endpoints.install_base = str(cfg.endpoints.install_base).rstrip("/")
    cfg.endpoints.manifest_path = str(cfg.endpoints.manifest_path).strip("/") or DEFAULT_MANIFEST_PATH


def _normalize_network(cfg: AppConfig) -> None:
    try:
        timeout = int(cfg.network.timeout_s)
    except (TypeError, ValueError):
        timeout = NetworkConfig.timeout_s
    try:
        page_size = int(cfg.network.page_size)
    except (TypeError, ValueError):
        page_size = NetworkConfig.page_size
    cfg.network.timeout_s = max(5, min(120, timeout))
    cfg.network.page_size = max(1, min(100, page_size))


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(data, dict):
        return AppConfig()

    cfg = AppConfig(
        config_version=CONFIG_VERSION,
        source=_merge(SourceConfig, data.get("source", {})),
        endpoints=_merge(EndpointsConfig, data.get("endpoints", {})),
        network=_merge(NetworkConfig, data.get("network", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_source(cfg)
    _normalize_endpoints(cfg)
    _normalize_network(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path


def resolve_token(explicit: str | None = None) -> str | None:
    token = (explicit or os.environ.get(TOKEN_ENV, "")).strip()
    return token or None
