"""Facade used by front ends: start a run, then poll its progress and result."""

from __future__ import annotations

import threading

from prostore_core.catalog import Asset, Release
from prostore_core.config import AppConfig
from prostore_core.errors import InstallerError

from .orchestrator import InstallSession, SessionState, SigningOrchestrator, StartOptions


class InstallerClient:
    def __init__(self, orchestrator: SigningOrchestrator | None = None) -> None:
        self._orchestrator = orchestrator or SigningOrchestrator()
        self._worker: threading.Thread | None = None

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "InstallerClient":
        return cls(SigningOrchestrator(endpoints=cfg.endpoints, network=cfg.network))

    @property
    def session(self) -> InstallSession | None:
        return self._orchestrator.active

    def start(self, options: StartOptions) -> InstallSession:
        """Begin a run on a worker thread; ``session.wait()`` yields its outcome."""
        session = self._orchestrator.begin(options)
        self._worker = threading.Thread(
            target=self._orchestrator.execute,
            args=(session,),
            name=f"prostore-run-{session.run_id}",
            daemon=True,
        )
        self._worker.start()
        return session

    def run(self, options: StartOptions, timeout: float | None = None) -> str:
        return self.start(options).wait(timeout)

    def state(self) -> SessionState:
        session = self.session
        return session.state if session else SessionState.IDLE

    def progress(self) -> int:
        session = self.session
        return session.progress if session else 0

    def install_link(self) -> str | None:
        session = self.session
        return session.install_link() if session else None

    def last_error(self) -> InstallerError | None:
        session = self.session
        return session.last_error if session else None

    def chosen_asset(self) -> Asset | None:
        session = self.session
        return session.chosen_asset if session else None

    def chosen_release(self) -> Release | None:
        session = self.session
        return session.chosen_release if session else None
