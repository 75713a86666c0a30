"""Error kinds surfaced by an install run."""

from __future__ import annotations


class InstallerError(RuntimeError):
    """Base class for failures that end a run in the ``failed`` state."""


class TransportError(InstallerError):
    def __init__(self, message: str, status: int | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.url = url


class EmptyCatalogError(InstallerError):
    """No eligible release remained after filtering and fallback."""


class NoAssetError(InstallerError):
    """No release in the eligible set carries an installable artifact."""


class SigningServiceError(InstallerError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RunSupersededError(InstallerError):
    """The run was replaced by a newer one before it finished."""
