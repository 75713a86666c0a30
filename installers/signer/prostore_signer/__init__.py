"""Signing orchestration and install link delivery for ProStore."""

from .client import InstallerClient
from .orchestrator import InstallSession, SessionState, SigningOrchestrator, StartOptions
from .service import build_install_link, fetch_advisory, fetch_releases, request_signature

__all__ = [
    "InstallSession",
    "InstallerClient",
    "SessionState",
    "SigningOrchestrator",
    "StartOptions",
    "build_install_link",
    "fetch_advisory",
    "fetch_releases",
    "request_signature",
]
