from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "installers" / "signer"))

import prostore_signer.__main__ as signer_main


def test_main_passes_through_args(monkeypatch) -> None:
    calls: list[list[str]] = []
    hooks: list[bool] = []
    monkeypatch.setattr(signer_main, "install_crash_hooks", lambda: hooks.append(True))
    monkeypatch.setattr(signer_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)

    rc = signer_main.main(["install", "--repo", "a/b"])
    assert rc == 0
    assert calls == [["install", "--repo", "a/b"]]
    assert hooks == [True]
