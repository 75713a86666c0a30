"""Install run state machine: releases -> advisory -> selection -> signing -> link.

One :class:`InstallSession` exists per run. The orchestrator owns the session
while the run is in flight and is the only writer; UI code polls the read-only
properties from any thread. Starting a new run supersedes the previous one, and
a superseded session silently drops every later write so a slow response from
an old run can never overwrite a newer run's progress or result.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from enum import Enum

from prostore_core.advisory import AdvisoryDocument, parse_advisory
from prostore_core.catalog import Asset, Release, filter_releases
from prostore_core.config import EndpointsConfig, NetworkConfig
from prostore_core.errors import InstallerError, RunSupersededError
from prostore_core.logging_setup import run_logger
from prostore_core.resolver import Selection, select_asset

from . import service


PROGRESS_FETCHING = 10
PROGRESS_FILTERED = 30
PROGRESS_ADVISORY = 45
PROGRESS_SELECTING = 60
PROGRESS_SIGNING = 75
PROGRESS_READY = 100


class SessionState(str, Enum):
    IDLE = "idle"
    FETCHING_RELEASES = "fetching_releases"
    SELECTING_ASSET = "selecting_asset"
    REQUESTING_SIGNATURE = "requesting_signature"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.READY, SessionState.FAILED)


@dataclass(frozen=True)
class StartOptions:
    repo: str
    credential: str | None = None
    include_prereleases: bool = False


class InstallSession:
    def __init__(self, options: StartOptions, run_id: str | None = None) -> None:
        self.options = options
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.log = run_logger(self.run_id)
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._state = SessionState.IDLE
        self._progress = 0
        self._trace: list[int] = [0]
        self._release: Release | None = None
        self._asset: Asset | None = None
        self._selection_reason: str | None = None
        self._recommended_name: str | None = None
        self._job_id: str | None = None
        self._install_link: str | None = None
        self._error: InstallerError | None = None
        self._superseded = False

    # Read side. Safe from any thread, never raises.

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def progress(self) -> int:
        with self._lock:
            return self._progress

    @property
    def progress_trace(self) -> tuple[int, ...]:
        with self._lock:
            return tuple(self._trace)

    @property
    def chosen_release(self) -> Release | None:
        with self._lock:
            return self._release

    @property
    def chosen_asset(self) -> Asset | None:
        with self._lock:
            return self._asset

    @property
    def selection_reason(self) -> str | None:
        with self._lock:
            return self._selection_reason

    @property
    def recommended_name(self) -> str | None:
        with self._lock:
            return self._recommended_name

    @property
    def signing_job_id(self) -> str | None:
        with self._lock:
            return self._job_id

    @property
    def last_error(self) -> InstallerError | None:
        with self._lock:
            return self._error

    @property
    def superseded(self) -> bool:
        with self._lock:
            return self._superseded

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def install_link(self) -> str | None:
        """Return the install URI once the run is ready, ``None`` before that."""
        with self._lock:
            if self._state is not SessionState.READY:
                return None
            return self._install_link

    def wait(self, timeout: float | None = None) -> str:
        """Block until the run ends; return the install link or raise its error."""
        if not self._done.wait(timeout):
            raise TimeoutError(f"run {self.run_id} still in progress")
        with self._lock:
            if self._superseded and not self._state.is_terminal:
                raise RunSupersededError(f"run {self.run_id} was superseded")
            if self._error is not None:
                raise self._error
            if self._install_link is None:
                raise InstallerError(f"run {self.run_id} ended without an install link")
            return self._install_link

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            return {
                "run_id": self.run_id,
                "state": self._state.value,
                "progress": self._progress,
                "release": self._release.label if self._release else None,
                "asset": self._asset.file_name if self._asset else None,
                "selection_reason": self._selection_reason,
                "recommended": self._recommended_name,
                "job_id": self._job_id,
                "install_link": self._install_link if self._state is SessionState.READY else None,
                "error": str(self._error) if self._error else None,
                "error_type": type(self._error).__name__ if self._error else None,
            }

    # Write side. Only the orchestrator calls these.

    def _check_writable(self) -> None:
        if self._superseded:
            raise RunSupersededError(f"run {self.run_id} was superseded")

    def _set_progress(self, value: int) -> None:
        value = max(self._progress, min(PROGRESS_READY, value))
        if value != self._progress:
            self._progress = value
            self._trace.append(value)

    def _advance(self, state: SessionState | None, progress: int) -> None:
        with self._lock:
            self._check_writable()
            if state is not None:
                self._state = state
            self._set_progress(progress)

    def _note_recommendation(self, name: str | None) -> None:
        with self._lock:
            self._check_writable()
            self._recommended_name = name

    def _choose(self, selection: Selection) -> None:
        with self._lock:
            self._check_writable()
            self._release = selection.release
            self._asset = selection.asset
            self._selection_reason = selection.reason

    def _succeed(self, job_id: str, install_link: str) -> None:
        with self._lock:
            self._check_writable()
            self._job_id = job_id
            self._install_link = install_link
            self._state = SessionState.READY
            self._set_progress(PROGRESS_READY)
        self._done.set()

    def _fail(self, error: InstallerError) -> None:
        with self._lock:
            self._check_writable()
            self._error = error
            self._state = SessionState.FAILED
            self._progress = 0
            self._trace.append(0)
        self._done.set()

    def _supersede(self) -> None:
        with self._lock:
            if self._state.is_terminal:
                return
            self._superseded = True
        self._done.set()


class SigningOrchestrator:
    """Drive one install run at a time against the configured endpoints."""

    def __init__(
        self,
        endpoints: EndpointsConfig | None = None,
        network: NetworkConfig | None = None,
    ) -> None:
        self.endpoints = endpoints or EndpointsConfig()
        self.network = network or NetworkConfig()
        self._lock = threading.Lock()
        self._active: InstallSession | None = None

    @property
    def active(self) -> InstallSession | None:
        with self._lock:
            return self._active

    def begin(self, options: StartOptions) -> InstallSession:
        """Create a session for ``options``, superseding any unfinished run."""
        session = InstallSession(options)
        with self._lock:
            previous = self._active
            if previous is not None and not previous.done:
                previous._supersede()
                previous.log.info("superseded by run %s", session.run_id, extra={"event": "run_superseded"})
            self._active = session
        return session

    def execute(self, session: InstallSession) -> None:
        """Run every step for ``session``; failures end in the ``failed`` state."""
        log = session.log
        log.info("run started for %s", session.options.repo, extra={"event": "run_started"})
        try:
            self._run_steps(session)
        except RunSupersededError:
            log.info("run stopped after supersession", extra={"event": "run_stale"})
            return
        except InstallerError as exc:
            self._fail(session, exc)
            return
        except Exception as exc:
            log.exception("unexpected error during run", extra={"event": "run_crashed"})
            self._fail(session, InstallerError(f"Unexpected error: {exc}"))
            return
        log.info("run ready", extra={"event": "run_ready"})

    def _fail(self, session: InstallSession, exc: InstallerError) -> None:
        try:
            session._fail(exc)
        except RunSupersededError:
            return
        session.log.warning("run failed: %s", exc, extra={"event": "run_failed"})

    def _run_steps(self, session: InstallSession) -> None:
        options = session.options
        timeout = self.network.timeout_s

        session._advance(SessionState.FETCHING_RELEASES, PROGRESS_FETCHING)
        releases = service.fetch_releases(
            options.repo,
            token=options.credential,
            api_base=self.endpoints.api_base,
            page_size=self.network.page_size,
            timeout=timeout,
        )
        eligible = filter_releases(releases, include_prereleases=options.include_prereleases)
        session.log.info(
            "%d of %d releases eligible",
            len(eligible),
            len(releases),
            extra={"event": "releases_filtered"},
        )
        session._advance(None, PROGRESS_FILTERED)

        advisory = self._load_advisory(session)
        session._note_recommendation(advisory.recommended_name)
        session._advance(None, PROGRESS_ADVISORY)

        session._advance(SessionState.SELECTING_ASSET, PROGRESS_SELECTING)
        selection = select_asset(eligible, advisory.recommended_name)
        session._choose(selection)
        session.log.info(
            "selected %s from %s (%s)",
            selection.asset.file_name,
            selection.release.label,
            selection.reason,
            extra={"event": "asset_selected"},
        )

        session._advance(SessionState.REQUESTING_SIGNATURE, PROGRESS_SIGNING)
        job_id = service.request_signature(
            selection.asset.download_url,
            signing_url=self.endpoints.signing_url,
            timeout=timeout,
        )
        link = service.build_install_link(
            job_id,
            install_base=self.endpoints.install_base,
            manifest_path=self.endpoints.manifest_path,
        )
        session._succeed(job_id, link)

    def _load_advisory(self, session: InstallSession) -> AdvisoryDocument:
        # The advisory only steers selection; no failure here may end the run.
        try:
            text = service.fetch_advisory(self.endpoints.advisory_url, timeout=self.network.timeout_s)
            return parse_advisory(text)
        except Exception as exc:
            session.log.warning(
                "advisory unavailable, continuing without recommendation: %s",
                exc,
                extra={"event": "advisory_unavailable"},
            )
            return AdvisoryDocument()
