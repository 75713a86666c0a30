import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))

from prostore_core.catalog import Asset, Release
from prostore_core.errors import NoAssetError
from prostore_core.resolver import (
    REASON_FIRST_CANDIDATE,
    REASON_RECOMMENDED_ASSET,
    REASON_RECOMMENDED_RELEASE,
    REASON_SIGNED_MARKER,
    select_asset,
)


def _release(tag, names, body="", day=1):
    return Release(
        id=day,
        name=f"ProStore {tag}",
        tag=tag,
        created_at=datetime(2024, 1, day, tzinfo=timezone.utc),
        assets=tuple(Asset(file_name=n, download_url=f"https://example/{tag}/{n}") for n in names),
        body=body,
    )


class AssetSelectorTests(unittest.TestCase):
    def test_prefers_signed_asset(self):
        release = _release("v1", ["readme.txt", "App-signed.ipa"])
        selection = select_asset([release])
        self.assertEqual(selection.asset.file_name, "App-signed.ipa")
        self.assertEqual(selection.reason, REASON_SIGNED_MARKER)

    def test_signed_marker_beats_listing_order(self):
        release = _release("v1", ["App.ipa", "App-unsigned.ipa", "App-Signed.IPA"])
        self.assertEqual(select_asset([release]).asset.file_name, "App-Signed.IPA")

    def test_first_candidate_without_marker(self):
        release = _release("v1", ["App-unsigned.ipa", "App.ipa"])
        selection = select_asset([release])
        self.assertEqual(selection.asset.file_name, "App-unsigned.ipa")
        self.assertEqual(selection.reason, REASON_FIRST_CANDIDATE)

    def test_recommended_release_body_wins_over_newer_release(self):
        newest = _release("v2", ["ProStore.ipa"], body="Signed with Beta Ltd", day=2)
        older = _release("v1", ["ProStore-acme.ipa"], body="Built for **Acme Corp V2** users", day=1)
        selection = select_asset([newest, older], "Acme Corp V2")
        self.assertIs(selection.release, older)
        self.assertEqual(selection.asset.file_name, "ProStore-acme.ipa")
        self.assertEqual(selection.reason, REASON_RECOMMENDED_RELEASE)

    def test_recommended_asset_name_match(self):
        release = _release("v1", ["ProStore-Beta.ipa", "ProStore-Acme_Corp-V2.ipa"])
        selection = select_asset([release], "Acme Corp V2")
        self.assertEqual(selection.asset.file_name, "ProStore-Acme_Corp-V2.ipa")
        self.assertEqual(selection.reason, REASON_RECOMMENDED_ASSET)

    def test_unmatched_recommendation_uses_default(self):
        release = _release("v1", ["ProStore.ipa"])
        selection = select_asset([release], "Nobody Inc")
        self.assertEqual(selection.reason, REASON_FIRST_CANDIDATE)

    def test_falls_back_to_next_release_with_candidates(self):
        empty = _release("v2", ["notes.txt"], day=2)
        usable = _release("v1", ["ProStore.ipa"], day=1)
        selection = select_asset([empty, usable])
        self.assertIs(selection.release, usable)

    def test_recommendation_ignores_release_without_packages(self):
        mentioned = _release("v2", ["notes.txt"], body="Acme Corp V2", day=2)
        usable = _release("v1", ["ProStore.ipa"], day=1)
        selection = select_asset([mentioned, usable], "Acme Corp V2")
        self.assertIs(selection.release, usable)

    def test_no_asset_anywhere(self):
        with self.assertRaises(NoAssetError):
            select_asset([_release("v1", ["a.zip"]), _release("v0", [])])
        with self.assertRaises(NoAssetError):
            select_asset([])


if __name__ == "__main__":
    unittest.main()
