import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))

from prostore_core.catalog import filter_releases, parse_releases
from prostore_core.errors import EmptyCatalogError


def _payload(tag, created, draft=False, prerelease=False, assets=None):
    return {
        "id": hash(tag) & 0xFFFF,
        "name": f"ProStore {tag}",
        "tag_name": tag,
        "created_at": created,
        "draft": draft,
        "prerelease": prerelease,
        "body": "",
        "assets": assets or [],
    }


class ParseReleasesTests(unittest.TestCase):
    def test_parse_fields_and_assets(self):
        releases = parse_releases(
            [
                _payload(
                    "v1.0.0",
                    "2024-05-01T10:00:00Z",
                    assets=[
                        {"name": "ProStore.ipa", "browser_download_url": "https://example/p.ipa"},
                        {"name": "", "browser_download_url": "https://example/blank"},
                        "junk",
                    ],
                ),
                "not-a-release",
            ]
        )
        self.assertEqual(len(releases), 1)
        release = releases[0]
        self.assertEqual(release.tag, "v1.0.0")
        self.assertEqual(release.created_at.year, 2024)
        self.assertEqual([a.file_name for a in release.assets], ["ProStore.ipa"])

    def test_parse_non_list(self):
        self.assertEqual(parse_releases({"message": "Not Found"}), [])


class FilterReleasesTests(unittest.TestCase):
    def setUp(self):
        self.releases = parse_releases(
            [
                _payload("v1.0.0", "2024-01-01T00:00:00Z"),
                _payload("v1.2.0-draft", "2024-04-01T00:00:00Z", draft=True),
                _payload("v1.1.0-beta", "2024-03-01T00:00:00Z", prerelease=True),
                _payload("v1.0.1", "2024-02-01T00:00:00Z"),
            ]
        )

    def test_drops_drafts_and_prereleases_by_default(self):
        out = filter_releases(self.releases)
        self.assertEqual([r.tag for r in out], ["v1.0.1", "v1.0.0"])

    def test_includes_prereleases_when_requested(self):
        out = filter_releases(self.releases, include_prereleases=True)
        self.assertEqual([r.tag for r in out], ["v1.1.0-beta", "v1.0.1", "v1.0.0"])
        self.assertFalse(any(r.is_draft for r in out))

    def test_prerelease_only_repo_falls_back(self):
        releases = parse_releases(
            [
                _payload("v0.1.0-beta", "2024-01-01T00:00:00Z", prerelease=True),
                _payload("v0.2.0-beta", "2024-02-01T00:00:00Z", prerelease=True),
                _payload("v0.3.0", "2024-03-01T00:00:00Z", draft=True),
            ]
        )
        out = filter_releases(releases)
        self.assertEqual([r.tag for r in out], ["v0.2.0-beta", "v0.1.0-beta"])

    def test_only_drafts_raises(self):
        releases = parse_releases([_payload("v1", "2024-01-01T00:00:00Z", draft=True)])
        with self.assertRaises(EmptyCatalogError):
            filter_releases(releases)
        with self.assertRaises(EmptyCatalogError):
            filter_releases([])

    def test_missing_timestamp_sorts_last(self):
        releases = parse_releases(
            [
                _payload("v-undated", None),
                _payload("v-dated", "2023-01-01T00:00:00Z"),
            ]
        )
        out = filter_releases(releases)
        self.assertEqual([r.tag for r in out], ["v-dated", "v-undated"])

    def test_order_is_non_increasing(self):
        out = filter_releases(self.releases, include_prereleases=True)
        stamps = [r.created_at for r in out]
        self.assertEqual(stamps, sorted(stamps, reverse=True))


if __name__ == "__main__":
    unittest.main()
