import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "installers" / "signer"))

from prostore_signer.cli import build_parser


class CliTests(unittest.TestCase):
    def test_install_command(self):
        args = build_parser().parse_args(["install", "--repo", "a/b", "--prereleases", "--poll-ms", "50"])
        self.assertEqual(args.command, "install")
        self.assertEqual(args.repo, "a/b")
        self.assertTrue(args.prereleases)
        self.assertEqual(args.poll_ms, 50)

    def test_install_defaults(self):
        args = build_parser().parse_args(["install"])
        self.assertIsNone(args.repo)
        self.assertIsNone(args.token)
        self.assertFalse(args.prereleases)
        self.assertEqual(args.poll_ms, 120)

    def test_advisory_command(self):
        args = build_parser().parse_args(["--config", "cfg.json", "advisory"])
        self.assertEqual(args.command, "advisory")
        self.assertEqual(args.config, "cfg.json")

    def test_releases_command(self):
        args = build_parser().parse_args(["releases", "--token", "t"])
        self.assertEqual(args.command, "releases")
        self.assertEqual(args.token, "t")


if __name__ == "__main__":
    unittest.main()
