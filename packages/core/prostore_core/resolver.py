"""Release asset resolution for installable iOS packages."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from .advisory import normalize_key
from .catalog import Asset, Release
from .errors import NoAssetError

PACKAGE_SUFFIX = ".ipa"

REASON_RECOMMENDED_ASSET = "recommended-asset"
REASON_RECOMMENDED_RELEASE = "recommended-release"
REASON_SIGNED_MARKER = "signed-marker"
REASON_FIRST_CANDIDATE = "first-candidate"

_SIGNED_MARKER_RE = re.compile(r"(?<!un)signed", re.IGNORECASE)


@dataclass(frozen=True)
class Selection:
    release: Release
    asset: Asset
    reason: str


def candidate_assets(release: Release, suffix: str = PACKAGE_SUFFIX) -> list[Asset]:
    return [a for a in release.assets if a.file_name.lower().endswith(suffix.lower())]


def _release_haystack(release: Release) -> str:
    return normalize_key(" ".join((release.name, release.tag, release.body)))


def _preferred(candidates: list[Asset]) -> tuple[Asset, str]:
    for asset in candidates:
        if _SIGNED_MARKER_RE.search(asset.file_name):
            return asset, REASON_SIGNED_MARKER
    return candidates[0], REASON_FIRST_CANDIDATE


def _select_recommended(releases: Sequence[Release], needle: str) -> Selection | None:
    for release in releases:
        candidates = candidate_assets(release)
        if not candidates:
            continue
        for asset in candidates:
            if needle in normalize_key(asset.file_name):
                return Selection(release, asset, REASON_RECOMMENDED_ASSET)
        if needle in _release_haystack(release):
            asset, _ = _preferred(candidates)
            return Selection(release, asset, REASON_RECOMMENDED_RELEASE)
    return None


def select_asset(releases: Sequence[Release], recommended_name: str | None = None) -> Selection:
    """Pick one installable asset from ``releases`` (already in filter order).

    A recommendation, when it matches an asset file name or a release's
    name/tag/body, wins over the default choice. Otherwise the newest release
    with any ``.ipa`` asset is used, preferring a "signed" build.
    """
    needle = normalize_key(recommended_name or "")
    if needle:
        chosen = _select_recommended(releases, needle)
        if chosen is not None:
            return chosen

    for release in releases:
        candidates = candidate_assets(release)
        if candidates:
            asset, reason = _preferred(candidates)
            return Selection(release, asset, reason)

    raise NoAssetError(f"No {PACKAGE_SUFFIX} asset found in {len(releases)} eligible release(s)")
