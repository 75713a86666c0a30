from __future__ import annotations

import sys

from prostore_core.logging_setup import install_crash_hooks

from .cli import main as _cli_main


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    install_crash_hooks()
    return int(_cli_main(args))


if __name__ == "__main__":
    raise SystemExit(main())
