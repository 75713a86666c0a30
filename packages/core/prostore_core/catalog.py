"""Release models and eligibility filtering for GitHub Releases payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from .errors import EmptyCatalogError

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Asset:
    file_name: str
    download_url: str


@dataclass(frozen=True)
class Release:
    id: int | None
    name: str
    tag: str
    created_at: datetime | None
    is_draft: bool = False
    is_prerelease: bool = False
    assets: tuple[Asset, ...] = field(default_factory=tuple)
    body: str = ""

    @property
    def label(self) -> str:
        return self.tag or self.name or str(self.id)


def _parse_timestamp(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(raw: Any) -> str:
    return raw if isinstance(raw, str) else ""


def _parse_assets(raw: Any) -> tuple[Asset, ...]:
    if not isinstance(raw, list):
        return ()
    out = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        name = _text(item.get("name")).strip()
        url = _text(item.get("browser_download_url")).strip()
        if name and url:
            out.append(Asset(file_name=name, download_url=url))
    return tuple(out)


def release_from_payload(item: dict[str, Any]) -> Release:
    raw_id = item.get("id")
    return Release(
        id=raw_id if isinstance(raw_id, int) else None,
        name=_text(item.get("name")),
        tag=_text(item.get("tag_name")),
        created_at=_parse_timestamp(item.get("created_at")),
        is_draft=bool(item.get("draft")),
        is_prerelease=bool(item.get("prerelease")),
        assets=_parse_assets(item.get("assets")),
        body=_text(item.get("body")),
    )


def parse_releases(payload: Any) -> list[Release]:
    """Convert a decoded ``/releases`` response into :class:`Release` objects."""
    if not isinstance(payload, list):
        return []
    return [release_from_payload(item) for item in payload if isinstance(item, dict)]


def _newest_first(releases: Iterable[Release]) -> list[Release]:
    return sorted(releases, key=lambda r: r.created_at or _EPOCH, reverse=True)


def filter_releases(releases: Iterable[Release], include_prereleases: bool = False) -> list[Release]:
    """Return distributable releases, newest first.

    Drafts are never eligible. Prereleases are dropped unless requested, but a
    repository that only publishes prereleases still yields its non-draft
    releases rather than nothing.
    """
    published = [r for r in releases if not r.is_draft]
    eligible = [r for r in published if include_prereleases or not r.is_prerelease]
    if not eligible:
        eligible = published
    if not eligible:
        raise EmptyCatalogError("No published releases are available")
    return _newest_first(eligible)
