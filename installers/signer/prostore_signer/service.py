"""HTTP calls used by an install run: releases, advisory, signing, install link."""

from __future__ import annotations

import http.client
import json
import os
import ssl
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from prostore_core.catalog import Release, parse_releases
from prostore_core.config import (
    DEFAULT_ADVISORY_URL,
    DEFAULT_API_BASE,
    DEFAULT_INSTALL_BASE,
    DEFAULT_MANIFEST_PATH,
    DEFAULT_SIGNING_URL,
)
from prostore_core.errors import SigningServiceError, TransportError

try:
    import certifi
except Exception:  # pragma: no cover - fallback when optional dependency unavailable
    certifi = None


USER_AGENT = "ProStoreSigner/0.1 (+https://github.com/ProStore-iOS/ProStore)"
INSTALL_SCHEME = "itms-services://?action=download-manifest&url="
DEFAULT_PAGE_SIZE = 100
DEFAULT_TIMEOUT_S = 30


def _build_ssl_context() -> ssl.SSLContext:
    """Create TLS context for API calls with explicit CA handling."""
    if os.environ.get("PROSTORE_ALLOW_INSECURE_TLS", "").strip() == "1":
        return ssl._create_unverified_context()

    ca_bundle = os.environ.get("PROSTORE_CA_BUNDLE", "").strip()
    if ca_bundle:
        return ssl.create_default_context(cafile=ca_bundle)

    if certifi is not None:
        return ssl.create_default_context(cafile=certifi.where())

    return ssl.create_default_context()


def _urlopen(
    url: str,
    timeout: int,
    accept: str = "*/*",
    headers: dict[str, str] | None = None,
    data: bytes | None = None,
):
    request = urllib.request.Request(
        url,
        data=data,
        headers={
            "User-Agent": USER_AGENT,
            "Accept": accept,
            **(headers or {}),
        },
        method="POST" if data is not None else "GET",
    )
    return urllib.request.urlopen(request, timeout=timeout, context=_build_ssl_context())


def _get(url: str, timeout: int, accept: str = "*/*", headers: dict[str, str] | None = None) -> bytes:
    try:
        with _urlopen(url, timeout=timeout, accept=accept, headers=headers) as response:
            return response.read()
    except urllib.error.HTTPError as exc:
        raise TransportError(f"GET {url} failed with HTTP {exc.code}", status=exc.code, url=url) from exc
    except (urllib.error.URLError, OSError, http.client.HTTPException, ValueError) as exc:
        raise TransportError(f"GET {url} failed: {exc}", url=url) from exc


def releases_url(repo: str, api_base: str = DEFAULT_API_BASE, page_size: int = DEFAULT_PAGE_SIZE) -> str:
    return f"{api_base.rstrip('/')}/repos/{repo}/releases?per_page={page_size}"


def fetch_releases(
    repo: str,
    token: str | None = None,
    api_base: str = DEFAULT_API_BASE,
    page_size: int = DEFAULT_PAGE_SIZE,
    timeout: int = DEFAULT_TIMEOUT_S,
) -> list[Release]:
    url = releases_url(repo, api_base=api_base, page_size=page_size)
    headers = {"Authorization": f"Bearer {token}"} if token else None
    raw = _get(url, timeout=timeout, accept="application/vnd.github+json", headers=headers)
    try:
        payload = json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise TransportError(f"Release listing for {repo} was not valid JSON", url=url) from exc
    if not isinstance(payload, list):
        raise TransportError(f"Release listing for {repo} was not a JSON array", url=url)
    return parse_releases(payload)


def fetch_advisory(url: str = DEFAULT_ADVISORY_URL, timeout: int = DEFAULT_TIMEOUT_S) -> str:
    raw = _get(url, timeout=timeout, accept="text/plain")
    return raw.decode("utf-8", errors="replace")


def _extract_job_id(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    job_id = payload.get("id")
    if isinstance(job_id, int) and not isinstance(job_id, bool):
        job_id = str(job_id)
    if not isinstance(job_id, str) or not job_id.strip():
        return None
    return job_id.strip()


def request_signature(
    download_url: str,
    signing_url: str = DEFAULT_SIGNING_URL,
    timeout: int = DEFAULT_TIMEOUT_S,
) -> str:
    """Submit ``download_url`` for signing and return the job identifier."""
    body = json.dumps({"url": download_url}).encode("utf-8")
    try:
        with _urlopen(
            signing_url,
            timeout=timeout,
            accept="application/json",
            headers={"Content-Type": "application/json"},
            data=body,
        ) as response:
            raw = response.read()
    except urllib.error.HTTPError as exc:
        raise SigningServiceError(f"Signing service returned HTTP {exc.code}", status=exc.code) from exc
    except (urllib.error.URLError, OSError, http.client.HTTPException, ValueError) as exc:
        raise TransportError(f"POST {signing_url} failed: {exc}", url=signing_url) from exc

    try:
        payload = json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise SigningServiceError("Signing service response was not valid JSON") from exc

    job_id = _extract_job_id(payload)
    if job_id is None:
        raise SigningServiceError("Signing service response did not include a job id")
    return job_id


def manifest_url(
    job_id: str,
    install_base: str = DEFAULT_INSTALL_BASE,
    manifest_path: str = DEFAULT_MANIFEST_PATH,
) -> str:
    return f"{install_base.rstrip('/')}/{job_id}/{manifest_path.strip('/')}"


def build_install_link(
    job_id: str,
    install_base: str = DEFAULT_INSTALL_BASE,
    manifest_path: str = DEFAULT_MANIFEST_PATH,
) -> str:
    manifest = manifest_url(job_id, install_base=install_base, manifest_path=manifest_path)
    return INSTALL_SCHEME + urllib.parse.quote(manifest, safe="")
