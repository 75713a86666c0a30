"""Core ProStore logic: advisory parsing, release filtering, asset selection, settings."""

from .advisory import AdvisoryDocument, AdvisoryEntry, normalize_key, parse_advisory
from .catalog import Asset, Release, filter_releases, parse_releases
from .config import AppConfig, load_config, save_config
from .errors import (
    EmptyCatalogError,
    InstallerError,
    NoAssetError,
    RunSupersededError,
    SigningServiceError,
    TransportError,
)
from .resolver import Selection, candidate_assets, select_asset

__all__ = [
    "AdvisoryDocument",
    "AdvisoryEntry",
    "AppConfig",
    "Asset",
    "EmptyCatalogError",
    "InstallerError",
    "NoAssetError",
    "Release",
    "RunSupersededError",
    "Selection",
    "SigningServiceError",
    "TransportError",
    "candidate_assets",
    "filter_releases",
    "load_config",
    "normalize_key",
    "parse_advisory",
    "parse_releases",
    "save_config",
    "select_asset",
]
