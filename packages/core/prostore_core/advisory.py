"""Best-effort parsing of the certificate advisory README.

The advisory is a hand-written markdown file with three parts we care about:
a "Recommend Certificate" heading followed by the recommended identity, a
``| Company | Type | Status | ...`` table, and an "Updates" section. Any of
them may be missing or malformed; parsing never raises and simply returns
empty results for the parts it cannot find.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

STATUS_SIGNED = "signed"
STATUS_REVOKED = "revoked"
STATUS_UNKNOWN = "unknown"

RECOMMEND_MARKER = "# recommend"
TABLE_HEADER_MARKER = "| company |"
UPDATES_HEADING = "updates"

_REVOKED_KEYWORD = "revok"
_REVOKED_GLYPH = "❌"
_QUALIFIER_SEPARATOR = " - "

_EMPHASIS_RE = re.compile(r"\*\*|__")
_BLOCKQUOTE_RE = re.compile(r"^>\s?")
_QUOTE_CHARS = "\"'`“”‘’"
_MD_LINK_RE = re.compile(r"\[.*?\]\((https?://[^)\s]+)\)")
_BARE_URL_RE = re.compile(r"https?://\S+")
_RULE_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class AdvisoryEntry:
    name: str
    category: str = ""
    status: str = STATUS_UNKNOWN
    status_text: str = ""
    valid_from: str = ""
    valid_to: str = ""
    download_url: str | None = None

    @property
    def is_revoked(self) -> bool:
        return self.status == STATUS_REVOKED


@dataclass(frozen=True)
class AdvisoryDocument:
    recommended_name: str | None = None
    entries: tuple[AdvisoryEntry, ...] = field(default_factory=tuple)
    change_log: tuple[str, ...] = field(default_factory=tuple)

    def find_entry(self, name: str | None) -> AdvisoryEntry | None:
        """Return the first entry whose normalized name equals ``name``'s."""
        key = normalize_key(name or "")
        if not key:
            return None
        for entry in self.entries:
            if normalize_key(entry.name) == key:
                return entry
        return None

    @property
    def recommended_entry(self) -> AdvisoryEntry | None:
        return self.find_entry(self.recommended_name)


def normalize_key(text: str) -> str:
    """Lower-case ``text`` and collapse every non-alphanumeric run to one space."""
    return _NON_ALNUM_RE.sub(" ", text.lower()).strip()


def strip_emphasis(text: str) -> str:
    return _EMPHASIS_RE.sub("", text or "").strip()


def classify_status(status_text: str) -> str:
    lowered = (status_text or "").lower()
    if _REVOKED_KEYWORD in lowered or _REVOKED_GLYPH in lowered:
        return STATUS_REVOKED
    if lowered.strip():
        return STATUS_SIGNED
    return STATUS_UNKNOWN


def extract_url(cell: str) -> str | None:
    """Resolve a table cell to a URL: markdown link first, then a bare URL."""
    if not cell:
        return None
    match = _MD_LINK_RE.search(cell)
    if match:
        return match.group(1)
    match = _BARE_URL_RE.search(cell)
    if match:
        return match.group(0)
    return None


def _is_heading(line: str) -> bool:
    return line.startswith("#")


def parse_recommendation(lines: list[str]) -> str | None:
    start = None
    for idx, line in enumerate(lines):
        if line.strip().lower().startswith(RECOMMEND_MARKER):
            start = idx
            break
    if start is None:
        return None

    for line in lines[start + 1:]:
        text = line.strip()
        if not text:
            continue
        if _is_heading(text):
            return None
        text = strip_emphasis(text)
        text = _BLOCKQUOTE_RE.sub("", text).strip()
        text = strip_emphasis(text).strip(_QUOTE_CHARS).strip()
        text = text.split(_QUALIFIER_SEPARATOR, 1)[0].strip().strip(_QUOTE_CHARS).strip()
        return text or None
    return None


def _cell(parts: list[str], index: int) -> str:
    return parts[index] if index < len(parts) else ""


def parse_entries(lines: list[str]) -> list[AdvisoryEntry]:
    start = None
    for idx, line in enumerate(lines):
        if line.strip().lower().startswith(TABLE_HEADER_MARKER):
            start = idx
            break
    if start is None:
        return []

    entries: list[AdvisoryEntry] = []
    # Skip the header row and the |---|---| separator below it.
    for line in lines[start + 2:]:
        row = line.strip()
        if not row.startswith("|"):
            break
        parts = [part.strip() for part in row.split("|")]
        name = strip_emphasis(_cell(parts, 1))
        if not name:
            continue
        status_text = strip_emphasis(_cell(parts, 3))
        entries.append(
            AdvisoryEntry(
                name=name,
                category=strip_emphasis(_cell(parts, 2)),
                status=classify_status(status_text),
                status_text=status_text,
                valid_from=strip_emphasis(_cell(parts, 4)),
                valid_to=strip_emphasis(_cell(parts, 5)),
                download_url=extract_url(_cell(parts, 6)),
            )
        )
    return entries


def parse_change_log(lines: list[str]) -> list[str]:
    start = None
    for idx, line in enumerate(lines):
        text = line.strip()
        if _is_heading(text) and text.lstrip("#").strip().lower() == UPDATES_HEADING:
            start = idx
            break
    if start is None:
        return []

    out: list[str] = []
    for line in lines[start + 1:]:
        text = line.strip()
        if not text:
            continue
        if _is_heading(text):
            break
        if _RULE_RE.match(text):
            continue
        text = strip_emphasis(text)
        if len(text) >= 3:
            out.append(text)
    return out


def parse_advisory(markdown: str | None) -> AdvisoryDocument:
    lines = (markdown or "").splitlines()
    return AdvisoryDocument(
        recommended_name=parse_recommendation(lines),
        entries=tuple(parse_entries(lines)),
        change_log=tuple(parse_change_log(lines)),
    )
