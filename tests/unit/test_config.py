import json
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))

from prostore_core.config import (
    DEFAULT_REPO,
    TOKEN_ENV,
    AppConfig,
    load_config,
    resolve_token,
    save_config,
)


class ConfigTests(unittest.TestCase):
    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_config(Path(tmp) / "missing.json")
            self.assertIsInstance(cfg, AppConfig)
            self.assertEqual(cfg.source.repo, DEFAULT_REPO)
            self.assertFalse(cfg.source.include_prereleases)
            self.assertEqual(cfg.endpoints.manifest_path, "manifest.plist")

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            cfg = load_config(path)
            cfg.source.repo = "someone/fork"
            cfg.source.include_prereleases = True
            cfg.endpoints.signing_url = "https://signer.example/api/sign"
            save_config(cfg, path)
            reloaded = load_config(path)
            self.assertEqual(reloaded.source.repo, "someone/fork")
            self.assertTrue(reloaded.source.include_prereleases)
            self.assertEqual(reloaded.endpoints.signing_url, "https://signer.example/api/sign")

    def test_normalizes_bad_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            raw = {
                "source": {"repo": "not-a-repo"},
                "endpoints": {"install_base": "https://i.example/", "manifest_path": "/m.plist/"},
                "network": {"timeout_s": 9999, "page_size": "x"},
            }
            path.write_text(json.dumps(raw), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.source.repo, DEFAULT_REPO)
            self.assertEqual(cfg.endpoints.install_base, "https://i.example")
            self.assertEqual(cfg.endpoints.manifest_path, "m.plist")
            self.assertEqual(cfg.network.timeout_s, 120)
            self.assertEqual(cfg.network.page_size, 100)

    def test_corrupt_file_falls_back(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_config(path), AppConfig())

    def test_resolve_token(self):
        with patch.dict("os.environ", {TOKEN_ENV: " env-token "}):
            self.assertEqual(resolve_token(None), "env-token")
            self.assertEqual(resolve_token("cli-token"), "cli-token")
        with patch.dict("os.environ", {}, clear=True):
            self.assertIsNone(resolve_token(None))


if __name__ == "__main__":
    unittest.main()
