"""Platform trust locator: finds the OS trust anchor directory and rebuild command.

Also bootstraps the ca-certificates package through the host package manager
when explicitly enabled.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pydantic import BaseModel

from trust_sync.core.config import HostEnvironment
from trust_sync.core.errors import CommandExecutionError, NotSupportedError
from trust_sync.core.runner import run_privileged

logger = logging.getLogger(__name__)


class PlatformProfile(BaseModel):
    """Where trust anchors live and how the OS bundle is rebuilt from them."""

    anchor_dir: Path
    suffix: str
    rebuild_command: tuple[str, ...]

    def anchor_path(self, name: str) -> Path:
        return self.anchor_dir / f"{name}{self.suffix}"


# Probed in order, first existing directory wins.
# (anchor directory, file suffix, rebuild command)
CANDIDATES: list[tuple[Path, str, tuple[str, ...]]] = [
    # RHEL, Fedora, CentOS
    (Path("/etc/pki/ca-trust/source/anchors"), ".pem", ("update-ca-trust", "extract")),
    # Debian, Ubuntu, Alpine
    (Path("/usr/local/share/ca-certificates"), ".crt", ("update-ca-certificates",)),
    # openSUSE
    (Path("/usr/share/pki/trust/anchors"), ".crt", ("update-ca-certificates",)),
    # Arch and other p11-kit based systems
    (
        Path("/etc/ca-certificates/trust-source/anchors"),
        ".crt",
        ("trust", "extract-compat"),
    ),
    (Path("/etc/ssl/certs"), ".crt", ("trust", "extract-compat")),
]

ALPINE_RELEASE = Path("/etc/alpine-release")
ALPINE_HTTP_MIRROR = "http://dl-cdn.alpinelinux.org/alpine/v{version}/main"

# Probed in order when bootstrapping.
PACKAGE_MANAGERS = ["apk", "apt-get", "dnf"]


def locate(
    candidates: list[tuple[Path, str, tuple[str, ...]]] | None = None,
) -> PlatformProfile | None:
    """Probe well-known trust anchor directories. Read-only.

    A matching directory whose rebuild command is not on PATH leaves the
    system store unresolved.
    """
    for anchor_dir, suffix, command in candidates or CANDIDATES:
        if not anchor_dir.is_dir():
            continue
        if shutil.which(command[0]) is None:
            logger.debug("found %s but %s is not installed", anchor_dir, command[0])
            return None
        return PlatformProfile(anchor_dir=anchor_dir, suffix=suffix, rebuild_command=command)
    return None


def _alpine_version() -> str:
    """Major.minor Alpine release, e.g. '3.19'."""
    try:
        release = ALPINE_RELEASE.read_text().strip()
    except OSError as e:
        raise NotSupportedError() from e
    parts = release.split(".")
    if len(parts) < 2:
        raise NotSupportedError()
    return f"{parts[0]}.{parts[1]}"


def _package_commands(manager: str, ignore_certs: bool) -> list[list[str]]:
    """Command lines installing ca-certificates with the given package manager."""
    if manager == "apk":
        if ignore_certs:
            # apk has no switch to skip TLS verification
            repo = ALPINE_HTTP_MIRROR.format(version=_alpine_version())
            return [["apk", "--no-cache", "--repository", repo, "add", "ca-certificates"]]
        return [["apk", "--no-cache", "add", "ca-certificates"]]

    if manager == "apt-get":
        insecure = ["-o", "Acquire::https::Verify-Peer=false"] if ignore_certs else []
        return [
            ["apt-get", *insecure, "update"],
            ["apt-get", *insecure, "install", "-y", "ca-certificates"],
        ]

    if manager == "dnf":
        insecure = ["--setopt=sslverify=False"] if ignore_certs else []
        return [["dnf", *insecure, "install", "-y", "ca-certificates"]]

    raise NotSupportedError()


def bootstrap(environment: HostEnvironment) -> PlatformProfile:
    """Install ca-certificates with the host package manager, then locate again.

    Only runs when TRUSTSTORE_INSTALL_CA_PACKAGE is enabled. Every failure is
    reported as NotSupportedError.
    """
    if not environment.install_ca_package:
        raise NotSupportedError()

    logger.debug("trying to determine OS package manager")
    manager = next((m for m in PACKAGE_MANAGERS if shutil.which(m)), None)
    if manager is None:
        raise NotSupportedError()

    logger.debug("using %s", manager)
    if environment.ignore_package_certs:
        logger.warning("TLS verification disabled for the %s package install", manager)

    for command in _package_commands(manager, environment.ignore_package_certs):
        try:
            run_privileged(command).check()
        except CommandExecutionError as e:
            logger.debug("%s", e)
            raise NotSupportedError() from e

    profile = locate()
    if profile is None:
        raise NotSupportedError()
    return profile


class PlatformTrustLocator:
    """Resolves the system trust profile once and caches it."""

    def __init__(self) -> None:
        self._profile: PlatformProfile | None = None

    def find(self) -> PlatformProfile | None:
        """Return the cached profile or probe for one. Never bootstraps."""
        if self._profile is None:
            self._profile = locate()
        return self._profile

    def resolve(self, environment: HostEnvironment) -> PlatformProfile:
        """Return the profile, bootstrapping ca-certificates if none is found."""
        if self.find() is None:
            self._profile = bootstrap(environment)
        return self._profile
